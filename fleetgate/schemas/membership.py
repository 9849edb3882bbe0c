from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field


class EntitlementCheckRequest(BaseModel):
    pickup_code: str = Field(..., min_length=1, max_length=50)
    device_id: str | None = Field(default=None, max_length=100)


class EntitlementCheckResponse(BaseModel):
    valid: bool
    message: str
    customer_name: str | None = None
    plan: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    days_remaining: int | None = None
    grace_status: str | None = None
    signed_token: str | None = None
    config_snapshot: dict[str, Any] | None = None


class HeartbeatRequest(BaseModel):
    pickup_code: str = Field(..., min_length=1, max_length=50)
    device_id: str | None = Field(default=None, max_length=100)
    device_model: str | None = Field(default=None, max_length=100)
    app_version: str | None = Field(default=None, max_length=20)
    os_version: str | None = Field(default=None, max_length=50)
    last_publish_time: datetime | None = None
    config_snapshot: dict[str, Any] | None = None
    monitor_data: dict[str, Any] | None = None


class CommandOut(BaseModel):
    id: int
    type: str
    payload: dict[str, Any]


class HeartbeatResponse(BaseModel):
    ok: bool
    server_time: datetime | None = None
    message: str | None = None
    commands: list[CommandOut] = []


class TokenVerifyRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=4096)


class TokenVerifyResponse(BaseModel):
    valid: bool
    reason: str | None = None
    claims: dict[str, Any] | None = None
