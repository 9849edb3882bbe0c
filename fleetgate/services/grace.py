from dataclasses import dataclass
from datetime import date
from typing import Literal

GraceStatus = Literal["normal", "warning", "grace", "degraded", "stopped"]
RejectionReason = Literal["not_active", "suspended"]

WARNING_DAYS = 7
GRACE_FLOOR_DAYS = -3
DEGRADED_FLOOR_DAYS = -7

STATUS_MESSAGES: dict[GraceStatus, str] = {
    "normal": "Service is active",
    "warning": "Service expires soon, please renew",
    "grace": "Service has expired, still operating within the grace period",
    "degraded": "Service has expired, automatic publishing is paused",
    "stopped": "Service has stopped, please contact the administrator to renew",
}

REJECTION_MESSAGES: dict[RejectionReason, str] = {
    "not_active": "Pickup code is invalid or deactivated",
    "suspended": "Service has been suspended, please contact the administrator",
}


@dataclass(frozen=True)
class Entitlement:
    status: GraceStatus | None
    days_remaining: int | None = None
    rejection: RejectionReason | None = None

    @property
    def valid(self) -> bool:
        return self.rejection is None

    @property
    def message(self) -> str:
        if self.rejection is not None:
            return REJECTION_MESSAGES[self.rejection]
        return STATUS_MESSAGES[self.status]


def days_remaining(end_date: date, today: date) -> int:
    return (end_date - today).days


def grace_status_for(remaining: int) -> GraceStatus:
    if remaining > WARNING_DAYS:
        return "normal"
    if remaining >= 1:
        return "warning"
    if remaining >= GRACE_FLOOR_DAYS:
        return "grace"
    if remaining >= DEGRADED_FLOOR_DAYS:
        return "degraded"
    return "stopped"


def compute_status(end_date: date | None, *, suspended: bool, active: bool, today: date) -> Entitlement:
    """Derive the entitlement of one pickup code binding.

    ``end_date`` is ``None`` when the code has no customer binding. An inactive
    or unbound code is rejected first, then a suspended customer, and only then
    does the remaining-days ladder apply.
    """
    if not active or end_date is None:
        return Entitlement(status=None, rejection="not_active")
    if suspended:
        return Entitlement(status=None, rejection="suspended")
    remaining = days_remaining(end_date, today)
    return Entitlement(status=grace_status_for(remaining), days_remaining=remaining)
