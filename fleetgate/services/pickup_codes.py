import logging
import secrets
import string

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fleetgate.models.customer import Customer
from fleetgate.models.pickup_code import PickupCode

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_SUFFIX_LENGTH = 4
MAX_GENERATE_ATTEMPTS = 5


class CustomerNotFound(Exception):
    pass


def _format_code(prefix: str, seq: int) -> str:
    suffix = "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_SUFFIX_LENGTH))
    return f"XN-{prefix}-{seq:02d}-{suffix}"


def generate_codes(db: Session, customer_id: int, count: int, prefix: str = "CODE") -> list[str]:
    """Batch-create pickup codes ``XN-{prefix}-{NN}-{RAND4}`` for a customer."""
    if db.get(Customer, customer_id) is None:
        raise CustomerNotFound(customer_id)

    prefix = prefix.upper()
    for _ in range(MAX_GENERATE_ATTEMPTS):
        codes = [_format_code(prefix, seq) for seq in range(1, count + 1)]
        db.add_all(PickupCode(pickup_code=code, customer_id=customer_id, is_active=True) for code in codes)
        try:
            db.commit()
        except IntegrityError:
            # Random suffix collided with an existing code; draw the batch again.
            db.rollback()
            continue
        logger.info("Generated %d pickup code(s) for customer %s.", len(codes), customer_id)
        return codes
    raise RuntimeError(f"Could not generate unique pickup codes for customer {customer_id}")


def update_code(
    db: Session,
    pickup_code: str,
    *,
    is_active: bool | None = None,
    device_alias: str | None = None,
    account_name: str | None = None,
) -> PickupCode | None:
    row = db.get(PickupCode, pickup_code)
    if row is None:
        return None
    if is_active is not None:
        row.is_active = is_active
    if device_alias is not None:
        row.device_alias = device_alias
    if account_name is not None:
        row.account_name = account_name
    db.commit()
    db.refresh(row)
    return row


def customer_devices(db: Session, customer_id: int) -> list[PickupCode]:
    stmt = select(PickupCode).where(PickupCode.customer_id == customer_id).order_by(PickupCode.created_at.asc())
    return list(db.scalars(stmt).all())
