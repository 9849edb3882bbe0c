from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, RootModel


class _OpenPayload(BaseModel):
    model_config = ConfigDict(extra="allow")


class MessagePayload(_OpenPayload):
    text: str = Field(..., min_length=1, max_length=1000)
    title: str | None = Field(default=None, max_length=120)


class RebootPayload(_OpenPayload):
    delay_seconds: int = Field(default=0, ge=0, le=3600)


class UpdateConfigPayload(_OpenPayload):
    config: dict[str, Any]


class ForcePublishPayload(_OpenPayload):
    platform: str | None = Field(default=None, max_length=32)


class ClearCachePayload(_OpenPayload):
    scope: str | None = Field(default=None, max_length=64)


class MessageCommand(BaseModel):
    command_type: Literal["message"]
    payload: MessagePayload


class RebootCommand(BaseModel):
    command_type: Literal["reboot"]
    payload: RebootPayload = Field(default_factory=RebootPayload)


class UpdateConfigCommand(BaseModel):
    command_type: Literal["update_config"]
    payload: UpdateConfigPayload


class ForcePublishCommand(BaseModel):
    command_type: Literal["force_publish"]
    payload: ForcePublishPayload = Field(default_factory=ForcePublishPayload)


class ClearCacheCommand(BaseModel):
    command_type: Literal["clear_cache"]
    payload: ClearCachePayload = Field(default_factory=ClearCachePayload)


class CommandCreateRequest(RootModel):
    root: Annotated[
        MessageCommand | RebootCommand | UpdateConfigCommand | ForcePublishCommand | ClearCacheCommand,
        Field(discriminator="command_type"),
    ]


class CommandItem(BaseModel):
    id: int
    pickup_code: str
    command_type: str
    payload: dict[str, Any]
    status: str
    created_at: datetime
    sent_at: datetime | None

    model_config = {"from_attributes": True}
