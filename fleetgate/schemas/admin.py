from datetime import datetime
from typing import Any

from pydantic import BaseModel


class AdminLogItem(BaseModel):
    id: int
    admin_id: str
    action: str
    target_type: str | None
    target_id: str | None
    detail: dict[str, Any] | None
    created_at: datetime

    model_config = {"from_attributes": True}


class AdminLogPage(BaseModel):
    items: list[AdminLogItem]
    total: int
    page: int
    limit: int
