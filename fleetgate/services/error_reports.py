"""Error-report intake for devices.

Every report carries a client-chosen request id. The first attempt with a
given id consumes it whatever the outcome, so client retries are always safe:
a replay is answered as a duplicate and never counted against the hourly
ceiling a second time.
"""

import base64
import binascii
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Literal

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fleetgate.db.session import dialect_name
from fleetgate.models.common import utcnow
from fleetgate.models.error_report import ErrorReport
from fleetgate.models.rate_limit import RateLimitCounter
from fleetgate.services.credentials import resolve_device_token

logger = logging.getLogger(__name__)

RATE_LIMIT_PER_HOUR = 100
MAX_CLOCK_SKEW = timedelta(minutes=5)
MAX_SCREENSHOT_BYTES = 200 * 1024
COUNTER_RETENTION_HOURS = 2

AdmitOutcome = Literal["accepted", "duplicate", "rate_limited", "rejected"]


@dataclass(frozen=True)
class AdmitResult:
    outcome: AdmitOutcome
    reason: str | None = None
    device_id: str | None = None

    @property
    def success(self) -> bool:
        return self.outcome in ("accepted", "duplicate")


@dataclass(frozen=True)
class ReportPayload:
    platform: str | None = None
    step: str | None = None
    error_msg: str | None = None
    screenshot: str | None = None
    screenshot_omitted: bool = False
    state: Any = None
    ai_action: str | None = None
    ai_result: str | None = None
    timestamp: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)


def hour_bucket(moment: datetime) -> int:
    return int(moment.timestamp()) // 3600


def _upsert_counter_stmt(db: Session, device_id: str, bucket: int):
    table = RateLimitCounter.__table__
    dialect = dialect_name(db)
    if dialect == "postgresql":
        insert = postgresql_insert
    elif dialect == "sqlite":
        insert = sqlite_insert
    else:
        raise RuntimeError(f"Rate limiting is not supported on {dialect}")

    stmt = insert(table).values(device_id=device_id, hour_bucket=bucket, hits=1)
    return stmt.on_conflict_do_update(
        index_elements=[table.c.device_id, table.c.hour_bucket],
        set_={"hits": table.c.hits + 1},
    ).returning(table.c.hits)


def increment_rate_counter(db: Session, device_id: str, now: datetime) -> int:
    """Atomically bump the (device, hour) counter and return the new count."""
    return db.execute(_upsert_counter_stmt(db, device_id, hour_bucket(now))).scalar_one()


def screenshot_size(screenshot: str) -> int:
    """Decoded byte length of a base64 screenshot.

    A data-URL prefix and line wrapping (MIME style, as Android and
    ``base64.encodebytes`` emit) are accepted.
    """
    if screenshot.startswith("data:") and "," in screenshot:
        screenshot = screenshot.split(",", 1)[1]
    return len(base64.b64decode("".join(screenshot.split()), validate=True))


def _check_payload(payload: ReportPayload, now: datetime) -> str | None:
    if payload.timestamp:
        skew_ms = abs(int(now.timestamp() * 1000) - payload.timestamp)
        if skew_ms > MAX_CLOCK_SKEW.total_seconds() * 1000:
            return "stale_timestamp"

    if payload.screenshot:
        try:
            size = screenshot_size(payload.screenshot)
        except (binascii.Error, ValueError):
            return "invalid_screenshot"
        if size > MAX_SCREENSHOT_BYTES:
            return "payload_too_large"
    return None


def admit(
    db: Session,
    *,
    token: str | None,
    request_id: str,
    claimed_device_id: str | None,
    payload: ReportPayload,
    now: datetime | None = None,
) -> AdmitResult:
    now = now or utcnow()

    device_id = resolve_device_token(db, token or "", now=now)
    if device_id is None:
        return AdmitResult(outcome="rejected", reason="unauthenticated")
    if claimed_device_id and claimed_device_id != device_id:
        return AdmitResult(outcome="rejected", reason="device_mismatch", device_id=device_id)

    if db.get(ErrorReport, request_id) is not None:
        logger.info("Duplicate error report %s from %s.", request_id, device_id)
        return AdmitResult(outcome="duplicate", device_id=device_id)

    report = ErrorReport(request_id=request_id, device_id=device_id, status="pending", created_at=now)
    db.add(report)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        logger.info("Duplicate error report %s from %s.", request_id, device_id)
        return AdmitResult(outcome="duplicate", device_id=device_id)

    hits = increment_rate_counter(db, device_id, now)
    if hits > RATE_LIMIT_PER_HOUR:
        report.status = "rate_limited"
        db.commit()
        logger.info("Error report %s from %s rate limited (%d this hour).", request_id, device_id, hits)
        return AdmitResult(outcome="rate_limited", device_id=device_id)

    reason = _check_payload(payload, now)
    if reason is not None:
        report.status = "rejected"
        report.reason = reason
        db.commit()
        logger.info("Error report %s from %s rejected: %s.", request_id, device_id, reason)
        return AdmitResult(outcome="rejected", reason=reason, device_id=device_id)

    report.status = "accepted"
    report.platform = payload.platform
    report.step = payload.step
    report.error_msg = payload.error_msg
    report.screenshot = payload.screenshot or None
    report.screenshot_omitted = payload.screenshot_omitted
    report.state = payload.state
    report.ai_action = payload.ai_action
    report.ai_result = payload.ai_result
    report.extra = payload.extra or {}
    report.client_timestamp = payload.timestamp
    db.commit()
    logger.info("Error report %s accepted from %s.", request_id, device_id)
    return AdmitResult(outcome="accepted", device_id=device_id)


def list_reports(
    db: Session,
    *,
    device_id: str | None = None,
    platform: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[ErrorReport], int]:
    filters = [ErrorReport.status == "accepted"]
    if device_id:
        filters.append(ErrorReport.device_id == device_id)
    if platform:
        filters.append(ErrorReport.platform == platform)

    total = db.scalar(select(func.count()).select_from(ErrorReport).where(*filters)) or 0
    rows = db.scalars(
        select(ErrorReport)
        .where(*filters)
        .order_by(ErrorReport.created_at.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    ).all()
    return list(rows), total


def prune_rate_limits(db: Session, now: datetime | None = None) -> int:
    """Delete counters for buckets older than the retention window."""
    cutoff = hour_bucket(now or utcnow()) - COUNTER_RETENTION_HOURS
    result = db.execute(delete(RateLimitCounter).where(RateLimitCounter.hour_bucket < cutoff))
    db.commit()
    return result.rowcount or 0
