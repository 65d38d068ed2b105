"""Request-facing account operations.

Validation problems are raised as ServiceError subclasses; the API layer
turns them into 4xx responses. They are expected outcomes and are never
logged as errors.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

from .models import Account, utcnow
from .store import AccountExistsError, AccountStore

if TYPE_CHECKING:
    from ..health.scheduler import TargetSweeper
    from ..sessions.store import SessionStore

logger = logging.getLogger(__name__)

_URL_SCHEMES = ("http://", "https://")


class ServiceError(ValueError):
    """Base for validation failures surfaced to the caller."""


class InvalidInputError(ServiceError):
    pass


class AlreadyExistsError(ServiceError):
    pass


class InvalidCredentialsError(ServiceError):
    pass


class InvalidUrlError(ServiceError):
    pass


class UnknownAccountError(ServiceError):
    pass


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def is_valid_target_url(url: str) -> bool:
    return bool(url) and url.startswith(_URL_SCHEMES)


class AccountService:
    """register / login / logout / targets / ping-now / session resolution."""

    def __init__(
        self,
        store: AccountStore,
        sessions: SessionStore,
        sweeper: TargetSweeper | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.sessions = sessions
        self.sweeper = sweeper
        self._clock = clock

    # ── Auth ─────────────────────────────────────────────────────────────

    def register(self, username: str, password: str) -> tuple[Account, str]:
        """Create an account and log it in. Returns (account, session token)."""
        if not username or not password:
            raise InvalidInputError("Username and password are required")

        account = Account(
            username=username,
            password_hash=hash_password(password),
            last_login=self._clock(),
        )
        try:
            account = self.store.add(account)
        except AccountExistsError as e:
            raise AlreadyExistsError(str(e)) from e
        self.store.flush()
        logger.info("Registered account %s (%s)", account.username, account.id)
        return account, self.sessions.create(account.id)

    def login(self, username: str, password: str) -> tuple[Account, str]:
        account = self.store.find_by_username(username or "")
        if not account or account.password_hash != hash_password(password or ""):
            raise InvalidCredentialsError("Invalid username or password")

        if not self.store.touch(account.id, self._clock()):
            # removed by the reaper since the lookup
            raise InvalidCredentialsError("Invalid username or password")
        self.store.flush()
        return self._require(account.id), self.sessions.create(account.id)

    def logout(self, token: str | None) -> None:
        if token:
            self.sessions.destroy(token)

    def resolve_session(self, token: str | None) -> Account | None:
        """Account for a session token, or None if unauthenticated."""
        if not token:
            return None
        account_id = self.sessions.validate(token)
        if account_id is None:
            return None
        return self.store.get(account_id)

    # ── Targets ──────────────────────────────────────────────────────────

    def add_target(self, account_id: str, url: str) -> Account:
        """Add a URL to ping. Adding an existing URL is a no-op."""
        if not is_valid_target_url(url):
            raise InvalidUrlError(f"URL must start with http:// or https://: {url!r}")
        try:
            added = self.store.add_target(account_id, url)
        except KeyError:
            raise UnknownAccountError(account_id) from None
        if added:
            self.store.flush()
        return self._require(account_id)

    def remove_target(self, account_id: str, url: str) -> Account:
        try:
            removed = self.store.remove_target(account_id, url)
        except KeyError:
            raise UnknownAccountError(account_id) from None
        if removed:
            self.store.flush()
        return self._require(account_id)

    def ping_now(self, account_id: str) -> Account:
        """Probe this account's targets right away (blocks until done)."""
        if self.sweeper is None:
            raise RuntimeError("ping_now requires a TargetSweeper")
        if not self.store.exists(account_id):
            raise UnknownAccountError(account_id)
        self.sweeper.ping_now(account_id)
        return self._require(account_id)

    def _require(self, account_id: str) -> Account:
        account = self.store.get(account_id)
        if account is None:
            raise UnknownAccountError(account_id)
        return account
