"""Account store — the authoritative in-memory account list.

The whole list is loaded from a JSON file once at startup and rewritten
wholesale on every flush. All reads hand out detached copies; all writes go
through methods that take the store lock, so a flush always serialises a
consistent snapshot.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from .models import Account, Target, utcnow

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent.parent.parent / "data"
ACCOUNTS_PATH = DATA_DIR / "users.json"


class AccountExistsError(ValueError):
    """Raised when a username is already taken."""


class AccountStore:
    """Thread-safe account list with JSON persistence."""

    def __init__(
        self,
        path: Path | str | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._path = Path(path) if path else ACCOUNTS_PATH
        self._clock = clock
        self._accounts: list[Account] = []
        self._lock = threading.RLock()
        self._flush_lock = threading.Lock()
        self._sweep_locks: dict[str, threading.Lock] = {}

    # ── Persistence ──────────────────────────────────────────────────────

    def load(self) -> list[Account]:
        """Replace the in-memory list with the file contents.

        A missing or unreadable file leaves the store empty.
        """
        accounts: list[Account] = []
        if not self._path.exists():
            logger.info("No accounts file at %s, starting fresh", self._path)
        else:
            try:
                raw = json.loads(self._path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                logger.warning("Could not load %s, starting fresh: %s", self._path, e)
                raw = []

            entries = raw.get("accounts", []) if isinstance(raw, dict) else raw
            if not isinstance(entries, list):
                logger.warning("Unexpected accounts file layout in %s, starting fresh", self._path)
                entries = []
            for entry in entries:
                try:
                    accounts.append(Account.from_dict(entry))
                except (KeyError, TypeError, ValueError) as e:
                    logger.warning("Skipping malformed account entry: %s", e)

        with self._lock:
            self._accounts = accounts
            self._sweep_locks.clear()
        logger.info("Loaded %d accounts", len(accounts))
        return [a.copy() for a in accounts]

    def flush(self) -> bool:
        """Write the whole account list to disk. Returns False on failure."""
        with self._flush_lock:
            with self._lock:
                payload = {"accounts": [a.to_dict() for a in self._accounts]}
            tmp = self._path.with_name(self._path.name + ".tmp")
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                tmp.write_text(json.dumps(payload, indent=2), encoding="utf-8")
                os.replace(tmp, self._path)
            except OSError:
                logger.exception("Could not save accounts file %s", self._path)
                return False
        return True

    # ── Reads ────────────────────────────────────────────────────────────

    def __len__(self) -> int:
        with self._lock:
            return len(self._accounts)

    def _find(self, account_id: str) -> Account | None:
        return next((a for a in self._accounts if a.id == account_id), None)

    def get(self, account_id: str) -> Account | None:
        with self._lock:
            account = self._find(account_id)
            return account.copy() if account else None

    def find_by_username(self, username: str) -> Account | None:
        with self._lock:
            account = next((a for a in self._accounts if a.username == username), None)
            return account.copy() if account else None

    def exists(self, account_id: str) -> bool:
        with self._lock:
            return self._find(account_id) is not None

    def account_ids(self) -> list[str]:
        """Account ids in store order."""
        with self._lock:
            return [a.id for a in self._accounts]

    def target_urls(self, account_id: str) -> list[str]:
        """Target URLs of one account in insertion order ([] if gone)."""
        with self._lock:
            account = self._find(account_id)
            return [t.url for t in account.targets] if account else []

    # ── Writes ───────────────────────────────────────────────────────────

    def add(self, account: Account) -> Account:
        with self._lock:
            if any(a.username == account.username for a in self._accounts):
                raise AccountExistsError(f"Username already exists: {account.username}")
            self._accounts.append(account.copy())
            return account.copy()

    def touch(self, account_id: str, when: datetime) -> bool:
        """Advance last_login to ``when``; never moves it backwards."""
        with self._lock:
            account = self._find(account_id)
            if not account:
                return False
            if account.last_login is None or when > account.last_login:
                account.last_login = when
            return True

    def add_target(self, account_id: str, url: str) -> bool:
        """Append a target. Returns False if the URL is already present."""
        with self._lock:
            account = self._find(account_id)
            if not account:
                raise KeyError(account_id)
            if account.find_target(url):
                return False
            account.targets.append(Target(url=url))
            return True

    def remove_target(self, account_id: str, url: str) -> bool:
        with self._lock:
            account = self._find(account_id)
            if not account:
                raise KeyError(account_id)
            before = len(account.targets)
            account.targets = [t for t in account.targets if t.url != url]
            return len(account.targets) != before

    def record_outcome(self, account_id: str, url: str, status: str, ok: bool) -> datetime | None:
        """Write one ping outcome onto a target.

        Status text, flag and timestamp change together. The timestamp is
        read under the lock so successive writes to a target never go
        backwards. Returns None if the account or target has disappeared.
        """
        with self._lock:
            account = self._find(account_id)
            target = account.find_target(url) if account else None
            if not target:
                return None
            now = self._clock()
            if target.last_ping and now < target.last_ping:
                now = target.last_ping
            target.status = status
            target.ok = ok
            target.last_ping = now
            return now

    def remove_inactive(self, cutoff: datetime) -> list[Account]:
        """Drop accounts whose last login is strictly older than ``cutoff``.

        Accounts that never logged in are always dropped.
        """
        with self._lock:
            kept: list[Account] = []
            removed: list[Account] = []
            for account in self._accounts:
                if account.last_login is None or account.last_login < cutoff:
                    removed.append(account)
                else:
                    kept.append(account)
            if removed:
                self._accounts = kept
                for account in removed:
                    self._sweep_locks.pop(account.id, None)
            return removed

    def sweep_lock(self, account_id: str) -> threading.Lock | None:
        """Per-account lock serialising scheduled and manual pings.

        None if the account is gone, so removed ids never get a lock back.
        """
        with self._lock:
            if self._find(account_id) is None:
                return None
            return self._sweep_locks.setdefault(account_id, threading.Lock())
