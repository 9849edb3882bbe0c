from datetime import date, timedelta

import pytest

from fleetgate.services.grace import compute_status, grace_status_for

TODAY = date(2026, 3, 15)


@pytest.mark.parametrize(
    ("remaining", "expected"),
    [
        (30, "normal"),
        (8, "normal"),
        (7, "warning"),
        (1, "warning"),
        (0, "grace"),
        (-3, "grace"),
        (-4, "degraded"),
        (-7, "degraded"),
        (-8, "stopped"),
        (-365, "stopped"),
    ],
)
def test_grace_ladder_boundaries(remaining: int, expected: str):
    assert grace_status_for(remaining) == expected
    entitlement = compute_status(TODAY + timedelta(days=remaining), suspended=False, active=True, today=TODAY)
    assert entitlement.valid
    assert entitlement.status == expected
    assert entitlement.days_remaining == remaining


def test_inactive_code_is_rejected_before_dates():
    entitlement = compute_status(TODAY + timedelta(days=30), suspended=False, active=False, today=TODAY)
    assert not entitlement.valid
    assert entitlement.rejection == "not_active"
    assert entitlement.status is None


def test_missing_binding_is_rejected():
    entitlement = compute_status(None, suspended=False, active=True, today=TODAY)
    assert entitlement.rejection == "not_active"


def test_suspension_overrides_date():
    entitlement = compute_status(TODAY + timedelta(days=300), suspended=True, active=True, today=TODAY)
    assert not entitlement.valid
    assert entitlement.rejection == "suspended"
    assert "suspended" in entitlement.message


def test_every_status_has_a_message():
    for remaining in (10, 3, -1, -5, -10):
        entitlement = compute_status(TODAY + timedelta(days=remaining), suspended=False, active=True, today=TODAY)
        assert entitlement.message
