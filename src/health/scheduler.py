"""Ping sweep — probes every target of every account on a fixed period.

TargetSweeper holds the (blocking) sweep logic and its locking rules.
SweepScheduler drives it from an asyncio loop, running each tick in a
single-worker thread pool so ticks never overlap.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..accounts.models import utcnow
from ..accounts.store import AccountStore
from .engine import ProbeOutcome, probe

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL = 3.0  # seconds


@dataclass
class SweepReport:
    """Summary of one full sweep tick."""

    started_at: datetime
    finished_at: datetime | None = None
    accounts: int = 0
    probed: int = 0
    failures: int = 0
    flushed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "accounts": self.accounts,
            "probed": self.probed,
            "failures": self.failures,
            "flushed": self.flushed,
        }


class TargetSweeper:
    """Probes targets and records outcomes onto the account store.

    Locking:
      - the tick lock makes whole sweeps sequential;
      - each account's sweep lock keeps a scheduled sweep and a manual
        ping-now from probing the same account at once;
      - the store lock is only taken for the outcome write, never across
        the network call.
    """

    def __init__(
        self,
        store: AccountStore,
        prober: Callable[[str], ProbeOutcome] = probe,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.prober = prober
        self._clock = clock
        self._tick_lock = threading.Lock()
        self.last_report: SweepReport | None = None

    def sweep_account(self, account_id: str, report: SweepReport | None = None) -> int:
        """Probe one account's targets in insertion order. No flush."""
        recorded = 0
        lock = self.store.sweep_lock(account_id)
        if lock is None:
            logger.debug("Skipping %s (account removed)", account_id)
            return 0
        with lock:
            for url in self.store.target_urls(account_id):
                outcome = self.prober(url)
                if report is not None:
                    report.probed += 1
                    if not outcome.ok:
                        report.failures += 1
                if self.store.record_outcome(account_id, url, outcome.summary, outcome.ok):
                    recorded += 1
                    logger.debug("Pinged %s for %s: %s", url, account_id, outcome.summary)
                else:
                    logger.debug("Dropped outcome for %s (target removed mid-sweep)", url)
        return recorded

    def sweep_all(self) -> SweepReport:
        """One full tick: every account, every target, then a single flush."""
        with self._tick_lock:
            report = SweepReport(started_at=self._clock())
            logger.debug("Starting ping cycle")
            for account_id in self.store.account_ids():
                report.accounts += 1
                self.sweep_account(account_id, report)
            report.flushed = self.store.flush()
            report.finished_at = self._clock()
            self.last_report = report
            return report

    def ping_now(self, account_id: str) -> int:
        """Manual trigger for one account, flushed on completion."""
        recorded = self.sweep_account(account_id)
        self.store.flush()
        logger.info("Manual ping for %s: %d targets", account_id, recorded)
        return recorded


class SweepScheduler:
    """Runs TargetSweeper.sweep_all on a fixed, non-overlapping period.

    Lifecycle:
        scheduler = SweepScheduler(sweeper, interval=3)
        await scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(self, sweeper: TargetSweeper, interval: float = DEFAULT_SWEEP_INTERVAL) -> None:
        self.sweeper = sweeper
        self.interval = interval
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="sweep")
        self._task: asyncio.Task[None] | None = None
        self._running = False
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the background sweep loop."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._sweep_loop(), name="ping-sweep")
        logger.info("Sweep scheduler started (interval=%ss)", self.interval)

    async def stop(self) -> None:
        """Stop the loop. An in-flight probe is abandoned."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self._executor.shutdown(wait=False, cancel_futures=True)
        logger.info("Sweep scheduler stopped")

    async def run_now(self) -> SweepReport:
        """Run one tick immediately (queued behind any tick in progress)."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self.sweeper.sweep_all)

    async def _sweep_loop(self) -> None:
        while self._running:
            t0 = time.monotonic()
            try:
                report = await self.run_now()
                self.ticks += 1
                logger.debug(
                    "Sweep done: %d accounts, %d targets, %d failures",
                    report.accounts, report.probed, report.failures,
                )
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Ping sweep failed")
            # An overrunning tick delays the next one instead of overlapping it
            await asyncio.sleep(max(0.0, self.interval - (time.monotonic() - t0)))
