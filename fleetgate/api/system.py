from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fleetgate.core.config import get_settings
from fleetgate.db.session import get_db
from fleetgate.models.device_command import DeviceCommand
from fleetgate.models.device_token import DeviceToken
from fleetgate.models.pickup_code import PickupCode

router = APIRouter(tags=["system"])


@router.get("/health")
def health():
    settings = get_settings()
    return {"status": "ok", "version": settings.app_version}


@router.get("/system/info")
def system_info(db: Session = Depends(get_db)):
    settings = get_settings()
    bound_devices = db.scalar(select(func.count()).select_from(PickupCode).where(PickupCode.device_id.is_not(None))) or 0
    registered_devices = db.scalar(select(func.count()).select_from(DeviceToken)) or 0
    pending_commands = db.scalar(
        select(func.count()).select_from(DeviceCommand).where(DeviceCommand.status == "pending")
    ) or 0
    return {
        "app_name": settings.app_name,
        "app_env": settings.app_env,
        "app_version": settings.app_version,
        "bound_devices": bound_devices,
        "registered_devices": registered_devices,
        "pending_commands": pending_commands,
    }
