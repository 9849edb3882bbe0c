import asyncio
import logging
from collections.abc import Callable

from sqlalchemy.orm import Session, sessionmaker

from fleetgate.services.error_reports import prune_rate_limits

logger = logging.getLogger(__name__)


class RateLimitJanitor:
    """Periodically prunes stale rate-limit counters off the request path.

    Owned by the application lifespan. Failures are logged and the loop keeps
    going; correctness never depends on a pass having run.
    """

    def __init__(self, session_factory: Callable[[], sessionmaker[Session]], interval_seconds: int) -> None:
        self._session_factory = session_factory
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def enabled(self) -> bool:
        return self.interval_seconds > 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def run_once(self) -> int:
        try:
            with self._session_factory()() as db:
                removed = prune_rate_limits(db)
        except Exception as exc:
            logger.warning("Rate-limit cleanup failed: %s", exc)
            return 0
        if removed:
            logger.info("Pruned %d stale rate-limit counter(s).", removed)
        return removed

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await asyncio.to_thread(self.run_once)

    def start(self) -> None:
        if not self.enabled or self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="rate-limit-janitor")
        logger.info("Rate-limit cleanup scheduled every %d s.", self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
