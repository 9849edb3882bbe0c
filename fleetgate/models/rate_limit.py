from sqlalchemy import BigInteger, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from fleetgate.db.base import Base


class RateLimitCounter(Base):
    """Per-device request counter for one wall-clock hour."""

    __tablename__ = "rate_limit_counters"

    device_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    # Hour index since the epoch (epoch_seconds // 3600).
    hour_bucket: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    hits: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
