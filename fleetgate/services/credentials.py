import logging
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.orm.attributes import set_committed_value

from fleetgate.core.config import get_settings
from fleetgate.core.security import new_device_token
from fleetgate.models.common import as_utc, utcnow
from fleetgate.models.device_token import DeviceToken
from fleetgate.models.pickup_code import PickupCode

logger = logging.getLogger(__name__)


def get_binding(db: Session, pickup_code: str) -> PickupCode | None:
    """Pickup code row with its customer, or ``None`` for an unknown code."""
    stmt = (
        select(PickupCode)
        .where(PickupCode.pickup_code == pickup_code)
        .options(joinedload(PickupCode.customer))
    )
    return db.scalar(stmt)


def bind_device(db: Session, binding: PickupCode, device_id: str | None) -> bool:
    """First-bind ``device_id`` to an unbound code.

    The write only lands while the stored device id is still NULL, so two
    devices racing for a fresh code cannot both win. A different device id on
    an already bound code is refused and logged. Returns True when the code
    ends up bound to ``device_id``.
    """
    if not device_id:
        return False
    if binding.device_id == device_id:
        return True
    if binding.device_id is not None:
        logger.warning(
            "Refused rebinding of pickup code %s: bound to %s, heard from %s.",
            binding.pickup_code,
            binding.device_id,
            device_id,
        )
        return False

    result = db.execute(
        update(PickupCode)
        .where(PickupCode.pickup_code == binding.pickup_code, PickupCode.device_id.is_(None))
        .values(device_id=device_id),
        execution_options={"synchronize_session": False},
    )
    if result.rowcount != 1:
        logger.warning("Pickup code %s was bound concurrently, %s not bound.", binding.pickup_code, device_id)
        return False

    set_committed_value(binding, "device_id", device_id)
    logger.info("Pickup code %s bound to device %s.", binding.pickup_code, device_id)
    return True


def _renew_device_token(
    db: Session,
    expired: DeviceToken,
    device_info: dict[str, Any] | None,
    now: datetime,
    expires_at: datetime,
) -> DeviceToken:
    # Only the caller that still sees the expired token swaps it; the others
    # pick up the winner's token.
    result = db.execute(
        update(DeviceToken)
        .where(DeviceToken.device_id == expired.device_id, DeviceToken.token == expired.token)
        .values(
            token=new_device_token(),
            device_info=device_info or expired.device_info,
            created_at=now,
            expires_at=expires_at,
        ),
        execution_options={"synchronize_session": False},
    )
    db.commit()
    if result.rowcount == 1:
        logger.info("Device token renewed for %s.", expired.device_id)
    else:
        logger.info("Device token for %s was renewed concurrently.", expired.device_id)
    db.refresh(expired)
    return expired


def register_device_token(
    db: Session,
    device_id: str,
    device_info: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> DeviceToken:
    """Return the device's token, minting one on first registration.

    An expired token is replaced; a live one is returned unchanged.
    """
    settings = get_settings()
    now = now or utcnow()
    expires_at = now + timedelta(days=settings.device_token_ttl_days)

    existing = db.get(DeviceToken, device_id)
    if existing is not None:
        if as_utc(existing.expires_at) > now:
            return existing
        return _renew_device_token(db, existing, device_info, now, expires_at)

    record = DeviceToken(
        device_id=device_id,
        token=new_device_token(),
        device_info=device_info or {},
        created_at=now,
        expires_at=expires_at,
    )
    db.add(record)
    try:
        db.commit()
    except IntegrityError:
        # Lost a registration race for the same device; hand out the winner's token.
        db.rollback()
        winner = db.get(DeviceToken, device_id)
        if winner is None:
            raise
        return winner

    logger.info("Device token minted for %s.", device_id)
    return record


def resolve_device_token(db: Session, token: str, now: datetime | None = None) -> str | None:
    """Device id for a live token, ``None`` for unknown or expired tokens."""
    if not token:
        return None
    record = db.scalar(select(DeviceToken).where(DeviceToken.token == token))
    if record is None:
        return None
    if as_utc(record.expires_at) <= (now or utcnow()):
        return None
    return record.device_id
