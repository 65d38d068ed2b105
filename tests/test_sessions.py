"""Tests for the in-memory session store."""

from __future__ import annotations

import threading
from datetime import timedelta

from src.accounts.models import utcnow
from src.sessions.store import Session, SessionStore


class TestSessionStore:
    def test_create_and_validate(self, sessions) -> None:
        token = sessions.create("acc1")
        assert len(token) == 64
        assert sessions.validate(token) == "acc1"

    def test_tokens_are_unique(self, sessions) -> None:
        tokens = {sessions.create("acc1") for _ in range(50)}
        assert len(tokens) == 50

    def test_unknown_token(self, sessions) -> None:
        assert sessions.validate("nope") is None

    def test_default_clock_is_shared_utc_clock(self) -> None:
        store = SessionStore()
        assert store._clock is utcnow
        token = store.create("acc1")
        assert store.validate(token) == "acc1"

    def test_expiry_uses_lifetime(self, clock) -> None:
        store = SessionStore(lifetime=timedelta(minutes=5), clock=clock)
        token = store.create("acc1")

        clock.advance(minutes=4, seconds=59)
        assert store.validate(token) == "acc1"

        clock.advance(seconds=1)  # expiry == now counts as expired
        assert store.validate(token) is None

    def test_lazy_expiry_deletes_entry(self, sessions, clock) -> None:
        sessions.insert("tok", Session(account_id="acc1", expires_at=clock() - timedelta(seconds=1)))
        assert "tok" in sessions

        assert sessions.validate("tok") is None
        assert "tok" not in sessions
        assert sessions.validate("tok") is None

    def test_destroy(self, sessions) -> None:
        token = sessions.create("acc1")
        sessions.destroy(token)
        assert sessions.validate(token) is None
        sessions.destroy(token)  # absent, no error
        sessions.destroy("never-existed")

    def test_prune_orphans(self, sessions) -> None:
        keep = sessions.create("alive")
        drop1 = sessions.create("gone")
        drop2 = sessions.create("gone")

        removed = sessions.prune(lambda account_id: account_id == "alive")

        assert removed == 2
        assert keep in sessions
        assert drop1 not in sessions
        assert drop2 not in sessions

    def test_concurrent_validate_and_prune(self, sessions) -> None:
        tokens = [sessions.create(f"acc{i % 4}") for i in range(200)]
        results: list[str | None] = []

        def validate_all() -> None:
            for tok in tokens:
                results.append(sessions.validate(tok))

        workers = [threading.Thread(target=validate_all) for _ in range(3)]
        pruner = threading.Thread(target=sessions.prune, args=(lambda a: a != "acc0",))
        for t in [*workers, pruner]:
            t.start()
        for t in [*workers, pruner]:
            t.join()

        assert len(sessions) == 150
        assert all(r is None or r.startswith("acc") for r in results)
