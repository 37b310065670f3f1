from decimal import Decimal
from types import SimpleNamespace

import pytest

from fuelpoints_api.services.rewards import (
    calculate_reward_points,
    effective_reward_points,
    legacy_reward_points,
)


def _rates(points_per_liter: str = "1", multiplier: str = "1") -> SimpleNamespace:
    return SimpleNamespace(points_per_liter=Decimal(points_per_liter), reward_multiplier=Decimal(multiplier))


def test_liters_drive_points_at_default_rates() -> None:
    assert calculate_reward_points(liters=Decimal("40"), amount=Decimal("4200"), rates=_rates()) == 40


def test_points_are_floored_after_rates_apply() -> None:
    points = calculate_reward_points(liters=Decimal("10.5"), amount=Decimal("900"), rates=_rates("2", "1.5"))
    assert points == 31


def test_sales_without_volume_use_amount_rule() -> None:
    assert calculate_reward_points(liters=None, amount=Decimal("250"), rates=_rates("5")) == 2
    assert calculate_reward_points(liters=Decimal("0"), amount=Decimal("99.99"), rates=_rates()) == 0


@pytest.mark.parametrize(
    ("amount", "expected"),
    [(None, 0), (Decimal("0"), 0), (Decimal("100"), 1), (Decimal("1999.99"), 19)],
)
def test_legacy_amount_rule(amount, expected) -> None:
    assert legacy_reward_points(amount) == expected


def test_stored_points_take_precedence_over_amount() -> None:
    assert effective_reward_points(SimpleNamespace(reward_points=0, amount=Decimal("5000"))) == 0
    assert effective_reward_points(SimpleNamespace(reward_points=None, amount=Decimal("550"))) == 5
