from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from fleetgate.api.deps import get_current_admin
from fleetgate.db.session import get_db
from fleetgate.models.admin import Admin
from fleetgate.schemas.codes import DeviceDetail, PickupCodeOut, PickupCodeUpdateRequest
from fleetgate.schemas.commands import CommandCreateRequest, CommandItem
from fleetgate.services import commands as command_queue
from fleetgate.services.audit import log_admin_action
from fleetgate.services.commands import PickupCodeNotFound
from fleetgate.services.credentials import get_binding
from fleetgate.services.heartbeat import is_online
from fleetgate.services.pickup_codes import update_code

router = APIRouter(prefix="/codes", tags=["codes"])


@router.get("/{pickup_code}", response_model=DeviceDetail)
def device_detail(
    pickup_code: str,
    db: Session = Depends(get_db),
    _: Admin = Depends(get_current_admin),
):
    binding = get_binding(db, pickup_code)
    if not binding:
        raise HTTPException(status_code=404, detail="Pickup code not found")

    customer = binding.customer
    return DeviceDetail(
        pickup_code=binding.pickup_code,
        device_id=binding.device_id,
        device_alias=binding.device_alias,
        account_name=binding.account_name,
        device_model=binding.device_model,
        app_version=binding.app_version,
        os_version=binding.os_version,
        is_active=binding.is_active,
        is_online=is_online(binding.last_heartbeat),
        last_heartbeat=binding.last_heartbeat,
        last_publish_time=binding.last_publish_time,
        config_snapshot=binding.config_snapshot,
        monitor_data=binding.monitor_data,
        code_created_at=binding.created_at,
        customer_id=customer.id,
        customer_name=customer.customer_name,
        plan=customer.plan,
        end_date=customer.end_date,
        is_suspended=customer.is_suspended,
    )


@router.patch("/{pickup_code}", response_model=PickupCodeOut)
def update_pickup_code(
    pickup_code: str,
    payload: PickupCodeUpdateRequest,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    row = update_code(
        db,
        pickup_code,
        is_active=payload.is_active,
        device_alias=payload.device_alias,
        account_name=payload.account_name,
    )
    if not row:
        raise HTTPException(status_code=404, detail="Pickup code not found")

    log_admin_action(
        db,
        admin.id,
        "update_code",
        "pickup_code",
        pickup_code,
        payload.model_dump(exclude_none=True),
    )
    return row


@router.post("/{pickup_code}/commands", response_model=CommandItem)
def send_command(
    pickup_code: str,
    payload: CommandCreateRequest,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    command_request = payload.root
    try:
        command = command_queue.enqueue(
            db,
            pickup_code,
            command_request.command_type,
            command_request.payload.model_dump(exclude_none=True),
        )
    except PickupCodeNotFound as exc:
        raise HTTPException(status_code=404, detail="Pickup code not found") from exc

    log_admin_action(
        db,
        admin.id,
        "send_command",
        "pickup_code",
        pickup_code,
        {"command_type": command.command_type, "payload": command.payload, "command_id": command.id},
    )
    return command


@router.get("/{pickup_code}/commands", response_model=list[CommandItem])
def command_history(
    pickup_code: str,
    limit: int = Query(default=command_queue.HISTORY_DEFAULT_LIMIT, ge=1, le=100),
    db: Session = Depends(get_db),
    _: Admin = Depends(get_current_admin),
):
    try:
        return command_queue.history(db, pickup_code, limit)
    except PickupCodeNotFound as exc:
        raise HTTPException(status_code=404, detail="Pickup code not found") from exc
