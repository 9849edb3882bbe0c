import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from fleetgate.models.common import utcnow
from fleetgate.models.device_command import DeviceCommand
from fleetgate.models.pickup_code import PickupCode

logger = logging.getLogger(__name__)

CLAIM_BATCH_SIZE = 10
HISTORY_DEFAULT_LIMIT = 20


class CommandKind(str, Enum):
    MESSAGE = "message"
    REBOOT = "reboot"
    UPDATE_CONFIG = "update_config"
    FORCE_PUBLISH = "force_publish"
    CLEAR_CACHE = "clear_cache"


class UnknownCommandKind(Exception):
    pass


class PickupCodeNotFound(Exception):
    pass


@dataclass(frozen=True)
class ClaimedCommand:
    id: int
    type: str
    payload: dict[str, Any]
    created_at: datetime


def parse_kind(kind: str | CommandKind) -> CommandKind:
    try:
        return CommandKind(kind)
    except ValueError as exc:
        allowed = ", ".join(item.value for item in CommandKind)
        raise UnknownCommandKind(f"Unsupported command type {kind!r}, allowed: {allowed}") from exc


def enqueue(db: Session, pickup_code: str, kind: str | CommandKind, payload: dict[str, Any] | None = None) -> DeviceCommand:
    command_kind = parse_kind(kind)
    if db.get(PickupCode, pickup_code) is None:
        raise PickupCodeNotFound(pickup_code)

    command = DeviceCommand(
        pickup_code=pickup_code,
        command_type=command_kind.value,
        payload=payload or {},
        status="pending",
    )
    db.add(command)
    db.commit()
    db.refresh(command)
    logger.info("Command %s (%s) queued for %s.", command.id, command.command_type, pickup_code)
    return command


def claim_pending(
    db: Session,
    pickup_code: str,
    limit: int = CLAIM_BATCH_SIZE,
    now: datetime | None = None,
    *,
    commit: bool = True,
) -> list[ClaimedCommand]:
    """Hand out the oldest pending commands for one code, at most once each.

    Selection and the pending->sent transition happen in one UPDATE statement.
    On PostgreSQL the candidate rows are locked with SKIP LOCKED so a
    concurrent poller moves on to other rows; the repeated status guard keeps a
    row that was sent meanwhile from being returned twice.
    """
    now = now or utcnow()
    candidates = (
        select(DeviceCommand.id)
        .where(DeviceCommand.pickup_code == pickup_code, DeviceCommand.status == "pending")
        .order_by(DeviceCommand.created_at.asc(), DeviceCommand.id.asc())
        .limit(limit)
        .with_for_update(skip_locked=True)
    )
    stmt = (
        update(DeviceCommand)
        .where(DeviceCommand.id.in_(candidates), DeviceCommand.status == "pending")
        .values(status="sent", sent_at=now)
        .returning(
            DeviceCommand.id,
            DeviceCommand.command_type,
            DeviceCommand.payload,
            DeviceCommand.created_at,
        )
    )
    rows = db.execute(stmt, execution_options={"synchronize_session": False}).all()
    if commit:
        db.commit()

    claimed = [
        ClaimedCommand(id=row.id, type=row.command_type, payload=row.payload or {}, created_at=row.created_at)
        for row in rows
    ]
    # RETURNING carries no ordering guarantee.
    claimed.sort(key=lambda item: (item.created_at, item.id))
    if claimed:
        logger.info("Claimed %d command(s) for %s.", len(claimed), pickup_code)
    return claimed


def history(db: Session, pickup_code: str, limit: int = HISTORY_DEFAULT_LIMIT) -> list[DeviceCommand]:
    if db.get(PickupCode, pickup_code) is None:
        raise PickupCodeNotFound(pickup_code)
    stmt = (
        select(DeviceCommand)
        .where(DeviceCommand.pickup_code == pickup_code)
        .order_by(DeviceCommand.created_at.desc(), DeviceCommand.id.desc())
        .limit(limit)
    )
    return list(db.scalars(stmt).all())
