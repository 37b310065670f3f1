"""SQLAlchemy models package."""

from .assignment import (  # noqa: F401
    AssignmentStatusEnum,
    GiftAssigneeRoleEnum,
    GiftAssignment,
    GiftAssignmentStatusEnum,
    PumpAssignment,
    UserAssignment,
)
from .customer_tier import CustomerTier, TierEnum  # noqa: F401
from .gift import Gift, GiftCategoryEnum  # noqa: F401
from .notification import Notification, NotificationCategoryEnum, NotificationTypeEnum  # noqa: F401
from .pump import (  # noqa: F401
    FuelTypeEnum,
    MaintenanceStatusEnum,
    Pump,
    PumpMaintenanceReport,
    PumpMeterReading,
    PumpStatusEnum,
)
from .redemption import Redemption, RedemptionStatusEnum  # noqa: F401
from .station_settings import StationSettings  # noqa: F401
from .transaction import (  # noqa: F401
    FuelTransaction,
    PaymentMethodEnum,
    TransactionStatusEnum,
    TransactionTypeEnum,
)
from .user import User, UserRoleEnum  # noqa: F401
