"""In-memory login sessions."""

from .store import Session, SessionStore
