from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from fleetgate.db.base import Base
from fleetgate.models.common import CreatedAtMixin


class DeviceToken(CreatedAtMixin, Base):
    __tablename__ = "device_tokens"

    # Keyed by device, never by pickup code: a device may be re-pointed at another code.
    device_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    token: Mapped[str] = mapped_column(String(128), nullable=False, unique=True, index=True)
    device_info: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
