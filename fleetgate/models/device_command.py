from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fleetgate.db.base import Base
from fleetgate.models.common import CreatedAtMixin


class DeviceCommand(CreatedAtMixin, Base):
    __tablename__ = "device_commands"
    __table_args__ = (Index("ix_device_commands_code_status_created", "pickup_code", "status", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    pickup_code: Mapped[str] = mapped_column(
        String(50), ForeignKey("pickup_codes.pickup_code", ondelete="CASCADE"), nullable=False
    )
    command_type: Mapped[str] = mapped_column(String(32), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")  # pending | sent
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    target = relationship("PickupCode", back_populates="commands")
