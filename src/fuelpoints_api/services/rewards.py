"""Reward point rules for fuel sales."""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Protocol


LEGACY_AMOUNT_PER_POINT = Decimal("100")


class RewardRates(Protocol):
    points_per_liter: Decimal
    reward_multiplier: Decimal


class _PointsSource(Protocol):
    reward_points: int | None
    amount: Decimal | None


def _to_decimal(value: Decimal | float | int | str | None) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def legacy_reward_points(amount: Decimal | float | int | None) -> int:
    """One point per 100 currency units, rounded down."""

    return max(0, math.floor(_to_decimal(amount) / LEGACY_AMOUNT_PER_POINT))


def calculate_reward_points(
    *,
    liters: Decimal | float | int | None,
    amount: Decimal | float | int | None,
    rates: RewardRates,
) -> int:
    """Points earned by a sale at the current station rates.

    Liters drive the calculation whenever they are positive; sales recorded
    without a volume fall back to the amount rule.
    """

    volume = _to_decimal(liters)
    if volume > 0:
        earned = volume * _to_decimal(rates.points_per_liter) * _to_decimal(rates.reward_multiplier)
        return max(0, math.floor(earned))
    return legacy_reward_points(amount)


def effective_reward_points(transaction: _PointsSource) -> int:
    """Stored points, or the amount rule for rows written before points were stored."""

    if transaction.reward_points is not None:
        return int(transaction.reward_points)
    return legacy_reward_points(transaction.amount)


__all__ = [
    "RewardRates",
    "calculate_reward_points",
    "effective_reward_points",
    "legacy_reward_points",
]
