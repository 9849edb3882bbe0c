import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from sqlalchemy.orm import Session

from fleetgate.core.config import get_settings
from fleetgate.services.credentials import bind_device, get_binding
from fleetgate.services.entitlement_token import EntitlementTokenCodec
from fleetgate.services.grace import Entitlement, compute_status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntitlementCheck:
    entitlement: Entitlement
    customer_name: str | None = None
    plan: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    signed_token: str | None = None
    config_snapshot: dict[str, Any] | None = None


def business_today() -> date:
    return datetime.now(get_settings().entitlement_tz).date()


def check_entitlement(
    db: Session,
    codec: EntitlementTokenCodec,
    pickup_code: str,
    device_id: str | None = None,
    today: date | None = None,
) -> EntitlementCheck:
    today = today or business_today()
    binding = get_binding(db, pickup_code)
    customer = binding.customer if binding is not None else None

    entitlement = compute_status(
        customer.end_date if customer is not None else None,
        suspended=customer.is_suspended if customer is not None else False,
        active=binding.is_active if binding is not None else False,
        today=today,
    )
    if not entitlement.valid:
        logger.info("Entitlement check for %s rejected: %s.", pickup_code, entitlement.rejection)
        return EntitlementCheck(entitlement=entitlement)

    if device_id and bind_device(db, binding, device_id):
        db.commit()

    signed_token = codec.issue(
        {
            "pickup_code": binding.pickup_code,
            "customer_name": customer.customer_name,
            "plan": customer.plan,
            "end_date": customer.end_date.isoformat(),
            "grace_status": entitlement.status,
        }
    )
    return EntitlementCheck(
        entitlement=entitlement,
        customer_name=customer.customer_name,
        plan=customer.plan,
        start_date=customer.start_date,
        end_date=customer.end_date,
        signed_token=signed_token,
        config_snapshot=binding.config_snapshot,
    )
