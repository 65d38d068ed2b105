"""Account API routes — auth, target list, manual ping.

Endpoints:
  POST /api/register        — create account, start session (cookie)
  POST /api/login           — start session (cookie)
  POST /api/logout          — end session
  GET  /api/me              — dashboard data for the logged-in account
  POST /api/targets         — add a URL to ping
  POST /api/targets/remove  — remove a URL
  POST /api/ping-now        — ping all of the account's URLs immediately
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel

from src.accounts.models import Account
from src.accounts.service import (
    AccountService,
    AlreadyExistsError,
    InvalidCredentialsError,
    InvalidInputError,
    InvalidUrlError,
    UnknownAccountError,
)

logger = logging.getLogger(__name__)

router = APIRouter()

SESSION_COOKIE = "sessionId"


# ── Request models ───────────────────────────────────────────────────────


class CredentialsBody(BaseModel):
    username: str = ""
    password: str = ""


class TargetBody(BaseModel):
    url: str = ""


# ── Helpers ──────────────────────────────────────────────────────────────


def _service(request: Request) -> AccountService:
    return request.app.state.account_service  # type: ignore[no-any-return]


def _set_session_cookie(request: Request, response: Response, token: str) -> None:
    lifetime = request.app.state.session_store.lifetime
    response.set_cookie(
        SESSION_COOKIE, token, max_age=int(lifetime.total_seconds()), httponly=True,
    )


def _current_account(request: Request) -> Account:
    account = _service(request).resolve_session(request.cookies.get(SESSION_COOKIE))
    if account is None:
        raise HTTPException(status_code=401, detail="Not logged in")
    return account


def _dashboard(request: Request, account: Account) -> dict[str, Any]:
    data = account.to_public_dict()
    data["target_count"] = len(account.targets)
    data["sweep_interval_seconds"] = request.app.state.sweep_interval
    data["retention_days"] = request.app.state.retention.total_seconds() / 86400
    return data


# ── Auth ─────────────────────────────────────────────────────────────────


@router.post("/register")
def register(body: CredentialsBody, request: Request, response: Response) -> dict[str, Any]:
    try:
        account, token = _service(request).register(body.username, body.password)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AlreadyExistsError:
        raise HTTPException(status_code=409, detail="Username already exists")
    _set_session_cookie(request, response, token)
    return _dashboard(request, account)


@router.post("/login")
def login(body: CredentialsBody, request: Request, response: Response) -> dict[str, Any]:
    try:
        account, token = _service(request).login(body.username, body.password)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=401, detail=str(e))
    _set_session_cookie(request, response, token)
    return _dashboard(request, account)


@router.post("/logout")
def logout(request: Request, response: Response) -> dict[str, str]:
    _service(request).logout(request.cookies.get(SESSION_COOKIE))
    response.delete_cookie(SESSION_COOKIE, httponly=True)
    return {"status": "logged out"}


# ── Dashboard + targets ──────────────────────────────────────────────────


@router.get("/me")
def me(request: Request) -> dict[str, Any]:
    return _dashboard(request, _current_account(request))


@router.post("/targets")
def add_target(body: TargetBody, request: Request) -> dict[str, Any]:
    account = _current_account(request)
    try:
        account = _service(request).add_target(account.id, body.url)
    except InvalidUrlError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UnknownAccountError:
        raise HTTPException(status_code=401, detail="Not logged in")
    return _dashboard(request, account)


@router.post("/targets/remove")
def remove_target(body: TargetBody, request: Request) -> dict[str, Any]:
    account = _current_account(request)
    try:
        account = _service(request).remove_target(account.id, body.url)
    except UnknownAccountError:
        raise HTTPException(status_code=401, detail="Not logged in")
    return _dashboard(request, account)


@router.post("/ping-now")
def ping_now(request: Request) -> dict[str, Any]:
    """Blocking: returns once every target has been probed."""
    account = _current_account(request)
    try:
        account = _service(request).ping_now(account.id)
    except UnknownAccountError:
        raise HTTPException(status_code=401, detail="Not logged in")
    return _dashboard(request, account)
