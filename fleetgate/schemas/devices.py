from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class DeviceRegisterRequest(BaseModel):
    device_id: str = Field(..., min_length=1, max_length=100)
    device_info: dict[str, Any] = Field(default_factory=dict)


class DeviceRegisterResponse(BaseModel):
    token: str
    expires_in: int


class ErrorReportRequest(BaseModel):
    platform: str | None = Field(default=None, max_length=32)
    step: str | None = Field(default=None, max_length=128)
    error_msg: str | None = None
    screenshot: str | None = None
    screenshot_omitted: bool = False
    state: Any = None
    ai_action: str | None = None
    ai_result: str | None = None
    timestamp: int | None = None
    extra: dict[str, Any] = Field(default_factory=dict)


class ReportAck(BaseModel):
    success: bool
    message: str | None = None


class ErrorReportListItem(BaseModel):
    request_id: str
    device_id: str
    platform: str | None
    step: str | None
    error_msg: str | None
    screenshot_omitted: bool
    has_screenshot: bool
    state: Any
    ai_action: str | None
    ai_result: str | None
    client_timestamp: int | None
    created_at: datetime


class ErrorReportDetail(ErrorReportListItem):
    screenshot: str | None
    extra: dict[str, Any] | None


class ErrorReportPage(BaseModel):
    items: list[ErrorReportListItem]
    total: int
    page: int
    limit: int
