from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fleetgate.api.deps import get_token_codec
from fleetgate.db.session import get_db
from fleetgate.models.common import utcnow
from fleetgate.schemas.membership import (
    CommandOut,
    EntitlementCheckRequest,
    EntitlementCheckResponse,
    HeartbeatRequest,
    HeartbeatResponse,
    TokenVerifyRequest,
    TokenVerifyResponse,
)
from fleetgate.services.entitlement import check_entitlement
from fleetgate.services.entitlement_token import EntitlementTokenCodec
from fleetgate.services.heartbeat import DeviceDescriptor, Telemetry, record_heartbeat

router = APIRouter(prefix="/membership", tags=["membership"])


@router.post("/check", response_model=EntitlementCheckResponse, response_model_exclude_none=True)
def check(
    payload: EntitlementCheckRequest,
    db: Session = Depends(get_db),
    codec: EntitlementTokenCodec = Depends(get_token_codec),
):
    result = check_entitlement(db, codec, payload.pickup_code, payload.device_id)
    entitlement = result.entitlement
    if not entitlement.valid:
        return EntitlementCheckResponse(valid=False, message=entitlement.message)

    return EntitlementCheckResponse(
        valid=True,
        message=entitlement.message,
        customer_name=result.customer_name,
        plan=result.plan,
        start_date=result.start_date,
        end_date=result.end_date,
        days_remaining=entitlement.days_remaining,
        grace_status=entitlement.status,
        signed_token=result.signed_token,
        config_snapshot=result.config_snapshot,
    )


@router.post("/heartbeat", response_model=HeartbeatResponse)
def heartbeat(payload: HeartbeatRequest, db: Session = Depends(get_db)):
    now = utcnow()
    result = record_heartbeat(
        db,
        payload.pickup_code,
        DeviceDescriptor(
            device_id=payload.device_id,
            device_model=payload.device_model,
            app_version=payload.app_version,
            os_version=payload.os_version,
        ),
        Telemetry(
            monitor_data=payload.monitor_data,
            config_snapshot=payload.config_snapshot,
            last_publish_time=payload.last_publish_time,
        ),
        now=now,
    )
    if not result.accepted:
        return HeartbeatResponse(ok=False, message="Pickup code is invalid")

    return HeartbeatResponse(
        ok=True,
        server_time=now,
        commands=[CommandOut(id=item.id, type=item.type, payload=item.payload) for item in result.commands],
    )


@router.post("/verify", response_model=TokenVerifyResponse, response_model_exclude_none=True)
def verify_token(payload: TokenVerifyRequest, codec: EntitlementTokenCodec = Depends(get_token_codec)):
    verification = codec.verify(payload.token)
    return TokenVerifyResponse(valid=verification.valid, reason=verification.error, claims=verification.claims)
