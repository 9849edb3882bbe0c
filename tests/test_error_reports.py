import base64
from datetime import UTC, datetime, timedelta

from sqlalchemy import func, select

from fleetgate.models.error_report import ErrorReport
from fleetgate.models.rate_limit import RateLimitCounter
from fleetgate.services import error_reports
from fleetgate.services.credentials import register_device_token
from fleetgate.services.error_reports import RATE_LIMIT_PER_HOUR, ReportPayload, hour_bucket
from fleetgate.services.maintenance import RateLimitJanitor


def _bucket_start(moment: datetime) -> datetime:
    return datetime.fromtimestamp(hour_bucket(moment) * 3600, UTC)


def _ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def _payload(now: datetime, **overrides) -> ReportPayload:
    fields = {
        "platform": "xhs",
        "step": "publish",
        "error_msg": "button not found",
        "state": {"screen": "editor"},
        "ai_action": "tap",
        "ai_result": "failed",
        "timestamp": _ms(now),
    }
    fields.update(overrides)
    return ReportPayload(**fields)


def _count(db, model) -> int:
    return db.scalar(select(func.count()).select_from(model))


def _setup(db_session, device_id: str = "device-1"):
    now = _bucket_start(datetime.now(UTC)) + timedelta(minutes=10)
    token = register_device_token(db_session, device_id, {"model": "Pixel"}, now=now).token
    return token, now


def test_accepted_report_is_stored(db_session):
    token, now = _setup(db_session)

    result = error_reports.admit(
        db_session, token=token, request_id="req-1", claimed_device_id="device-1", payload=_payload(now), now=now
    )

    assert result.outcome == "accepted"
    assert result.success
    row = db_session.get(ErrorReport, "req-1")
    assert row.status == "accepted"
    assert row.device_id == "device-1"
    assert row.platform == "xhs"
    assert row.state == {"screen": "editor"}


def test_duplicate_request_id_stores_one_row_and_counts_once(db_session):
    token, now = _setup(db_session)

    first = error_reports.admit(db_session, token=token, request_id="req-dup", claimed_device_id=None, payload=_payload(now), now=now)
    second = error_reports.admit(db_session, token=token, request_id="req-dup", claimed_device_id=None, payload=_payload(now), now=now)

    assert first.outcome == "accepted"
    assert second.outcome == "duplicate"
    assert first.success and second.success
    assert _count(db_session, ErrorReport) == 1
    counter = db_session.get(RateLimitCounter, ("device-1", hour_bucket(now)))
    assert counter.hits == 1


def test_rate_limit_per_hour_bucket(db_session):
    token, now = _setup(db_session)

    outcomes = [
        error_reports.admit(
            db_session, token=token, request_id=f"req-{i}", claimed_device_id="device-1", payload=_payload(now), now=now
        ).outcome
        for i in range(RATE_LIMIT_PER_HOUR + 1)
    ]

    assert outcomes[:RATE_LIMIT_PER_HOUR] == ["accepted"] * RATE_LIMIT_PER_HOUR
    assert outcomes[-1] == "rate_limited"

    next_hour = now + timedelta(hours=1)
    result = error_reports.admit(
        db_session, token=token, request_id="req-next-hour", claimed_device_id="device-1", payload=_payload(next_hour), now=next_hour
    )
    assert result.outcome == "accepted"


def test_rate_limit_is_per_device(db_session):
    token, now = _setup(db_session)
    other_token = register_device_token(db_session, "device-2", now=now).token

    for i in range(RATE_LIMIT_PER_HOUR):
        error_reports.admit(db_session, token=token, request_id=f"a-{i}", claimed_device_id=None, payload=_payload(now), now=now)

    result = error_reports.admit(db_session, token=other_token, request_id="b-0", claimed_device_id=None, payload=_payload(now), now=now)
    assert result.outcome == "accepted"


def test_unknown_token_is_unauthenticated(db_session):
    _, now = _setup(db_session)
    result = error_reports.admit(db_session, token="dt_unknown", request_id="req-x", claimed_device_id=None, payload=_payload(now), now=now)
    assert result.outcome == "rejected"
    assert result.reason == "unauthenticated"
    assert _count(db_session, ErrorReport) == 0


def test_expired_token_is_unauthenticated(db_session):
    token, now = _setup(db_session)
    later = now + timedelta(days=366)
    result = error_reports.admit(db_session, token=token, request_id="req-x", claimed_device_id=None, payload=_payload(later), now=later)
    assert result.reason == "unauthenticated"


def test_device_id_header_must_match_token(db_session):
    token, now = _setup(db_session)
    result = error_reports.admit(db_session, token=token, request_id="req-x", claimed_device_id="device-9", payload=_payload(now), now=now)
    assert result.outcome == "rejected"
    assert result.reason == "device_mismatch"


def test_stale_timestamp_is_rejected_both_directions(db_session):
    token, now = _setup(db_session)

    past = _payload(now, timestamp=_ms(now - timedelta(minutes=6)))
    future = _payload(now, timestamp=_ms(now + timedelta(minutes=6)))
    close = _payload(now, timestamp=_ms(now - timedelta(minutes=4)))

    assert error_reports.admit(db_session, token=token, request_id="r-past", claimed_device_id=None, payload=past, now=now).reason == "stale_timestamp"
    assert error_reports.admit(db_session, token=token, request_id="r-future", claimed_device_id=None, payload=future, now=now).reason == "stale_timestamp"
    assert error_reports.admit(db_session, token=token, request_id="r-close", claimed_device_id=None, payload=close, now=now).outcome == "accepted"
    assert db_session.get(ErrorReport, "r-past").status == "rejected"


def test_screenshot_size_is_measured_on_decoded_bytes(db_session):
    token, now = _setup(db_session)
    at_limit = base64.b64encode(b"\x00" * (200 * 1024)).decode("ascii")
    over_limit = base64.b64encode(b"\x00" * (200 * 1024 + 1)).decode("ascii")

    ok = error_reports.admit(db_session, token=token, request_id="s-ok", claimed_device_id=None, payload=_payload(now, screenshot=at_limit), now=now)
    too_big = error_reports.admit(db_session, token=token, request_id="s-big", claimed_device_id=None, payload=_payload(now, screenshot=over_limit), now=now)
    garbage = error_reports.admit(db_session, token=token, request_id="s-bad", claimed_device_id=None, payload=_payload(now, screenshot="***"), now=now)

    assert ok.outcome == "accepted"
    assert too_big.reason == "payload_too_large"
    assert garbage.reason == "invalid_screenshot"


def test_request_id_is_consumed_by_rejected_attempt(db_session):
    token, now = _setup(db_session)
    stale = _payload(now, timestamp=_ms(now - timedelta(hours=1)))

    first = error_reports.admit(db_session, token=token, request_id="once", claimed_device_id=None, payload=stale, now=now)
    retry = error_reports.admit(db_session, token=token, request_id="once", claimed_device_id=None, payload=_payload(now), now=now)

    assert first.reason == "stale_timestamp"
    assert retry.outcome == "duplicate"


def test_list_reports_filters_and_paginates(db_session):
    token, now = _setup(db_session)
    for i in range(5):
        error_reports.admit(db_session, token=token, request_id=f"l-{i}", claimed_device_id=None, payload=_payload(now, platform="xhs" if i % 2 else "dy"), now=now)
    error_reports.admit(db_session, token=token, request_id="l-stale", claimed_device_id=None, payload=_payload(now, timestamp=_ms(now - timedelta(hours=1))), now=now)

    rows, total = error_reports.list_reports(db_session, page=1, limit=2)
    assert total == 5
    assert len(rows) == 2

    rows, total = error_reports.list_reports(db_session, platform="xhs")
    assert total == 2
    assert {row.platform for row in rows} == {"xhs"}


def test_prune_removes_counters_older_than_two_hours(db_session):
    now = _bucket_start(datetime.now(UTC))
    current = hour_bucket(now)
    for offset in range(5):
        db_session.add(RateLimitCounter(device_id="device-1", hour_bucket=current - offset, hits=1))
    db_session.commit()

    removed = error_reports.prune_rate_limits(db_session, now=now)

    assert removed == 2
    remaining = sorted(db_session.scalars(select(RateLimitCounter.hour_bucket)).all())
    assert remaining == [current - 2, current - 1, current]


def test_janitor_run_once_swallows_failures():
    def broken_factory():
        raise RuntimeError("database unavailable")

    janitor = RateLimitJanitor(broken_factory, interval_seconds=60)
    assert janitor.run_once() == 0


def test_janitor_run_once_prunes(database, db_session):
    stale_bucket = hour_bucket(datetime.now(UTC)) - 10
    db_session.add(RateLimitCounter(device_id="device-1", hour_bucket=stale_bucket, hits=3))
    db_session.commit()

    janitor = RateLimitJanitor(lambda: database, interval_seconds=60)
    assert janitor.run_once() == 1


def test_line_wrapped_screenshot_is_accepted(db_session):
    token, now = _setup(db_session)
    wrapped = base64.encodebytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * 5000).decode("ascii")
    assert "\n" in wrapped

    result = error_reports.admit(
        db_session, token=token, request_id="wrapped", claimed_device_id=None, payload=_payload(now, screenshot=wrapped), now=now
    )

    assert result.outcome == "accepted"
    assert db_session.get(ErrorReport, "wrapped").screenshot == wrapped


def test_screenshot_size_ignores_data_url_prefix_and_wrapping():
    raw = b"\x01" * 300
    wrapped = base64.encodebytes(raw).decode("ascii")

    assert error_reports.screenshot_size(wrapped) == 300
    assert error_reports.screenshot_size("data:image/png;base64," + wrapped) == 300


def test_zero_timestamp_counts_as_missing(db_session):
    token, now = _setup(db_session)
    result = error_reports.admit(
        db_session, token=token, request_id="no-clock", claimed_device_id=None, payload=_payload(now, timestamp=0), now=now
    )
    assert result.outcome == "accepted"
