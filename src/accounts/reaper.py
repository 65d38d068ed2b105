"""Account reaper — deletes accounts that have not logged in recently.

Each tick removes accounts whose last login is strictly older than
``now - retention``. Only when something was removed does it flush the
store and drop the sessions that pointed at the removed accounts.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from .models import utcnow
from .store import AccountStore

if TYPE_CHECKING:
    from ..sessions.store import SessionStore

logger = logging.getLogger(__name__)

DEFAULT_RETENTION = timedelta(days=2)
DEFAULT_REAPER_INTERVAL = 60 * 60  # 1 hour


class AccountReaper:
    """Periodically removes inactive accounts and their sessions."""

    def __init__(
        self,
        store: AccountStore,
        sessions: SessionStore,
        retention: timedelta = DEFAULT_RETENTION,
        interval: float = DEFAULT_REAPER_INTERVAL,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.sessions = sessions
        self.retention = retention
        self.interval = interval
        self._clock = clock
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="reaper")
        self._task: asyncio.Task[None] | None = None
        self._running = False

    def reap(self) -> int:
        """Run one tick. Returns the number of accounts removed."""
        cutoff = self._clock() - self.retention
        removed = self.store.remove_inactive(cutoff)
        if not removed:
            return 0

        logger.info("Deleted %d inactive accounts", len(removed))
        self.store.flush()
        self.sessions.prune(self.store.exists)
        return len(removed)

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._reap_loop(), name="account-reaper")
        logger.info(
            "Account reaper started (interval=%ss, retention=%s)", self.interval, self.retention,
        )

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self._executor.shutdown(wait=False)
        logger.info("Account reaper stopped")

    async def _reap_loop(self) -> None:
        loop = asyncio.get_running_loop()
        while self._running:
            try:
                # First tick one full period after start
                await asyncio.sleep(self.interval)
                if not self._running:
                    break
                await loop.run_in_executor(self._executor, self.reap)
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Account reaper tick failed")
