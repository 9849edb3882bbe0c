import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from fleetgate.models.common import as_utc, utcnow
from fleetgate.services import commands as command_queue
from fleetgate.services.commands import ClaimedCommand
from fleetgate.services.credentials import bind_device, get_binding

logger = logging.getLogger(__name__)

ONLINE_WINDOW = timedelta(hours=24)


@dataclass(frozen=True)
class DeviceDescriptor:
    device_id: str | None = None
    device_model: str | None = None
    app_version: str | None = None
    os_version: str | None = None


@dataclass(frozen=True)
class Telemetry:
    monitor_data: dict[str, Any] | None = None
    config_snapshot: dict[str, Any] | None = None
    last_publish_time: datetime | None = None


@dataclass(frozen=True)
class HeartbeatResult:
    accepted: bool
    commands: list[ClaimedCommand] = field(default_factory=list)


def is_online(last_heartbeat: datetime | None, now: datetime | None = None) -> bool:
    if last_heartbeat is None:
        return False
    return (now or utcnow()) - as_utc(last_heartbeat) < ONLINE_WINDOW


def record_heartbeat(
    db: Session,
    pickup_code: str,
    device: DeviceDescriptor,
    telemetry: Telemetry,
    now: datetime | None = None,
) -> HeartbeatResult:
    now = now or utcnow()
    binding = get_binding(db, pickup_code)
    if binding is None or binding.customer is None:
        logger.info("Heartbeat rejected for unknown pickup code %s.", pickup_code)
        return HeartbeatResult(accepted=False)

    bind_device(db, binding, device.device_id)

    binding.device_model = device.device_model
    binding.app_version = device.app_version
    binding.os_version = device.os_version
    binding.monitor_data = telemetry.monitor_data
    if telemetry.config_snapshot is not None:
        binding.config_snapshot = telemetry.config_snapshot
    if telemetry.last_publish_time is not None:
        binding.last_publish_time = telemetry.last_publish_time
    binding.last_heartbeat = now
    db.flush()

    claimed = command_queue.claim_pending(db, pickup_code, command_queue.CLAIM_BATCH_SIZE, now=now, commit=False)
    db.commit()
    return HeartbeatResult(accepted=True, commands=claimed)
