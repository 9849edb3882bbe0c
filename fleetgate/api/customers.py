from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from fleetgate.api.deps import get_current_admin
from fleetgate.db.session import get_db
from fleetgate.models.admin import Admin
from fleetgate.schemas.codes import GenerateCodesRequest, GenerateCodesResponse
from fleetgate.schemas.customers import CustomerDeviceStatus, CustomerStatusResponse
from fleetgate.services.audit import log_admin_action
from fleetgate.services.credentials import get_binding
from fleetgate.services.heartbeat import is_online
from fleetgate.services.pickup_codes import CustomerNotFound, customer_devices, generate_codes

router = APIRouter(prefix="/customers", tags=["customers"])


@router.get("/status", response_model=CustomerStatusResponse)
def customer_status(code: str = Query(..., min_length=1, max_length=50), db: Session = Depends(get_db)):
    binding = get_binding(db, code)
    if not binding or not binding.customer:
        raise HTTPException(status_code=404, detail="Pickup code not found")

    customer = binding.customer
    devices = [
        CustomerDeviceStatus(
            pickup_code=row.pickup_code,
            device_alias=row.device_alias,
            account_name=row.account_name,
            device_model=row.device_model,
            is_active=row.is_active,
            is_online=is_online(row.last_heartbeat),
            last_heartbeat=row.last_heartbeat,
        )
        for row in customer_devices(db, customer.id)
    ]
    return CustomerStatusResponse(
        customer_name=customer.customer_name,
        plan=customer.plan,
        start_date=customer.start_date,
        end_date=customer.end_date,
        is_suspended=customer.is_suspended,
        devices=devices,
    )


@router.post("/{customer_id}/codes", response_model=GenerateCodesResponse)
def create_codes(
    customer_id: int,
    payload: GenerateCodesRequest,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    try:
        codes = generate_codes(db, customer_id, payload.count, payload.prefix)
    except CustomerNotFound as exc:
        raise HTTPException(status_code=404, detail="Customer not found") from exc

    log_admin_action(
        db,
        admin.id,
        "generate_codes",
        "customer",
        str(customer_id),
        {"count": payload.count, "prefix": payload.prefix, "codes": codes},
    )
    return GenerateCodesResponse(codes=codes)
