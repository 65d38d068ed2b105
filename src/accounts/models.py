"""Account and target models plus their JSON representation."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_instant(value: Any) -> datetime | None:
    if not value:
        return None
    dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _format_instant(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


@dataclass
class Target:
    """A URL an account wants pinged, plus its last outcome."""

    url: str
    status: str | None = None  # "<status-or-error> (<elapsed>ms)", None until first ping
    ok: bool | None = None
    last_ping: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "status": self.status,
            "ok": self.ok,
            "last_ping": _format_instant(self.last_ping),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Target":
        return cls(
            url=data["url"],
            status=data.get("status"),
            ok=data.get("ok"),
            last_ping=_parse_instant(data.get("last_ping")),
        )


@dataclass
class Account:
    """A registered user and the targets it owns (in display order)."""

    username: str
    password_hash: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    targets: list[Target] = field(default_factory=list)
    last_login: datetime | None = None

    def find_target(self, url: str) -> Target | None:
        return next((t for t in self.targets if t.url == url), None)

    def copy(self) -> "Account":
        """Detached snapshot, safe to hand out past the store lock."""
        return Account(
            username=self.username,
            password_hash=self.password_hash,
            id=self.id,
            targets=[
                Target(url=t.url, status=t.status, ok=t.ok, last_ping=t.last_ping)
                for t in self.targets
            ],
            last_login=self.last_login,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "password_hash": self.password_hash,
            "last_login": _format_instant(self.last_login),
            "targets": [t.to_dict() for t in self.targets],
        }

    def to_public_dict(self) -> dict[str, Any]:
        """Dashboard view: everything except the credential digest."""
        d = self.to_dict()
        d.pop("password_hash")
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Account":
        return cls(
            id=data["id"],
            username=data["username"],
            password_hash=data.get("password_hash", ""),
            targets=[Target.from_dict(t) for t in data.get("targets", []) or []],
            last_login=_parse_instant(data.get("last_login")),
        )
