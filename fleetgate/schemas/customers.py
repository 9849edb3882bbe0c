from datetime import date, datetime

from pydantic import BaseModel


class CustomerDeviceStatus(BaseModel):
    pickup_code: str
    device_alias: str | None
    account_name: str | None
    device_model: str | None
    is_active: bool
    is_online: bool
    last_heartbeat: datetime | None


class CustomerStatusResponse(BaseModel):
    customer_name: str
    plan: str
    start_date: date
    end_date: date
    is_suspended: bool
    devices: list[CustomerDeviceStatus]
