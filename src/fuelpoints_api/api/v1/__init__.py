from fastapi import APIRouter

from .endpoints import (
    admin,
    auth,
    customer,
    employer,
    gifts,
    health,
    notifications,
    redemptions,
    supervisor,
    transactions,
    users,
)

router = APIRouter()
router.include_router(health.router, tags=["Health"])
router.include_router(auth.router)
router.include_router(users.router)
router.include_router(gifts.router)
router.include_router(admin.router)
router.include_router(employer.router)
router.include_router(supervisor.router)
router.include_router(redemptions.router)
router.include_router(notifications.router)
router.include_router(customer.router)
router.include_router(transactions.router)
