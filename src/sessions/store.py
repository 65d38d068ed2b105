"""In-memory session store.

Sessions are not persisted; a restart logs everyone out. Expired entries are
removed lazily when looked up, or by the account reaper's orphan prune.
"""

from __future__ import annotations

import logging
import secrets
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..accounts.models import utcnow

logger = logging.getLogger(__name__)

DEFAULT_LIFETIME = timedelta(hours=24)


@dataclass
class Session:
    account_id: str
    expires_at: datetime


class SessionStore:
    """Token → session map guarded by a single lock."""

    def __init__(
        self,
        lifetime: timedelta = DEFAULT_LIFETIME,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.lifetime = lifetime
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, token: object) -> bool:
        with self._lock:
            return token in self._sessions

    def create(self, account_id: str) -> str:
        """Start a session for ``account_id`` and return its token."""
        with self._lock:
            token = secrets.token_hex(32)
            while token in self._sessions:
                token = secrets.token_hex(32)
            self._sessions[token] = Session(
                account_id=account_id,
                expires_at=self._clock() + self.lifetime,
            )
        return token

    def insert(self, token: str, session: Session) -> None:
        """Put a session in place as-is."""
        with self._lock:
            self._sessions[token] = session

    def validate(self, token: str) -> str | None:
        """Return the session's account id, or None if absent or expired.

        An expired entry is deleted before returning.
        """
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                return None
            if session.expires_at <= self._clock():
                del self._sessions[token]
                return None
            return session.account_id

    def destroy(self, token: str) -> None:
        with self._lock:
            self._sessions.pop(token, None)

    def prune(self, is_live: Callable[[str], bool]) -> int:
        """Remove sessions whose account no longer passes ``is_live``."""
        with self._lock:
            dead = [tok for tok, s in self._sessions.items() if not is_live(s.account_id)]
            for tok in dead:
                del self._sessions[tok]
        if dead:
            logger.info("Pruned %d orphaned sessions", len(dead))
        return len(dead)

