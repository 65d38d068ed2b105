"""Shared test fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from src.accounts.service import AccountService
from src.accounts.store import AccountStore
from src.health.engine import ProbeOutcome
from src.health.scheduler import TargetSweeper
from src.sessions.store import SessionStore


class FakeClock:
    """Manually advanced clock, callable like utcnow()."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class FakeProber:
    """Stand-in for probe(): canned outcomes per URL, records call order."""

    def __init__(self, default: ProbeOutcome | None = None) -> None:
        self.default = default or ProbeOutcome(message="200 OK", elapsed_ms=42, ok=True)
        self.outcomes: dict[str, ProbeOutcome] = {}
        self.calls: list[str] = []

    def __call__(self, url: str) -> ProbeOutcome:
        self.calls.append(url)
        return self.outcomes.get(url, self.default)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def accounts_path(tmp_path: Path) -> Path:
    return tmp_path / "users.json"


@pytest.fixture
def store(accounts_path: Path) -> AccountStore:
    return AccountStore(accounts_path)


@pytest.fixture
def sessions(clock: FakeClock) -> SessionStore:
    return SessionStore(clock=clock)


@pytest.fixture
def prober() -> FakeProber:
    return FakeProber()


@pytest.fixture
def sweeper(store: AccountStore, prober: FakeProber) -> TargetSweeper:
    return TargetSweeper(store, prober=prober)


@pytest.fixture
def service(
    store: AccountStore, sessions: SessionStore, sweeper: TargetSweeper, clock: FakeClock,
) -> AccountService:
    return AccountService(store, sessions, sweeper=sweeper, clock=clock)
