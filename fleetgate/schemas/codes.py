from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field


class GenerateCodesRequest(BaseModel):
    count: int = Field(..., ge=1, le=100)
    prefix: str = Field(default="CODE", min_length=1, max_length=16, pattern=r"^[A-Za-z0-9]+$")


class GenerateCodesResponse(BaseModel):
    codes: list[str]


class PickupCodeUpdateRequest(BaseModel):
    is_active: bool | None = None
    device_alias: str | None = Field(default=None, max_length=50)
    account_name: str | None = Field(default=None, max_length=100)


class PickupCodeOut(BaseModel):
    pickup_code: str
    customer_id: int
    device_id: str | None
    device_alias: str | None
    account_name: str | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class DeviceDetail(BaseModel):
    pickup_code: str
    device_id: str | None
    device_alias: str | None
    account_name: str | None
    device_model: str | None
    app_version: str | None
    os_version: str | None
    is_active: bool
    is_online: bool
    last_heartbeat: datetime | None
    last_publish_time: datetime | None
    config_snapshot: dict[str, Any] | None
    monitor_data: dict[str, Any] | None
    code_created_at: datetime
    customer_id: int
    customer_name: str
    plan: str
    end_date: date
    is_suspended: bool
