"""Background maintenance for the approval store.

Every *interval* seconds the sweeper expires overdue pending approvals and
then purges finalized records older than *retention* seconds.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types import TracebackType

    from toolgate.approval.store import ApprovalStore

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL = 60.0


class ApprovalSweeper:
    """Periodic ``expire_overdue`` + ``cleanup`` task bound to an event loop."""

    def __init__(
        self,
        store: ApprovalStore,
        *,
        interval: float = DEFAULT_SWEEP_INTERVAL,
        retention: float = 24 * 60 * 60.0,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be > 0")
        self._store = store
        self._interval = interval
        self._retention = retention
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep_once(self) -> tuple[int, int]:
        """Run one pass. Returns ``(expired, removed)``."""
        now = self._store.now()
        expired = self._store.expire_overdue(now)
        removed = self._store.cleanup(now - timedelta(seconds=self._retention))
        return expired, removed

    def start(self) -> None:
        if self.running:
            logger.warning("Approval sweeper is already running")
            return
        self._task = asyncio.get_running_loop().create_task(self._loop())
        logger.info("Approval sweeper started (interval=%ss)", self._interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Approval sweeper stopped")

    async def __aenter__(self) -> ApprovalSweeper:
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self.sweep_once()
            except Exception:
                logger.exception("Approval sweep failed")
