from typing import Any

from sqlalchemy import JSON, BigInteger, Boolean, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fleetgate.db.base import Base
from fleetgate.models.common import CreatedAtMixin


class ErrorReport(CreatedAtMixin, Base):
    __tablename__ = "error_reports"
    __table_args__ = (Index("ix_error_reports_device_created", "device_id", "created_at"),)

    request_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    device_id: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")  # pending | accepted | rate_limited | rejected
    reason: Mapped[str | None] = mapped_column(String(64), nullable=True)
    platform: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)
    step: Mapped[str | None] = mapped_column(String(128), nullable=True)
    error_msg: Mapped[str | None] = mapped_column(Text, nullable=True)
    screenshot: Mapped[str | None] = mapped_column(Text, nullable=True)
    screenshot_omitted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    state: Mapped[Any | None] = mapped_column(JSON, nullable=True)
    ai_action: Mapped[str | None] = mapped_column(Text, nullable=True)
    ai_result: Mapped[str | None] = mapped_column(Text, nullable=True)
    extra: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    client_timestamp: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
