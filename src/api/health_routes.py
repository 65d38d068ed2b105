"""Service status routes.

Endpoints:
  GET  /api/status  — liveness + account/session counts + last sweep report
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request

logger = logging.getLogger(__name__)

health_router = APIRouter()


@health_router.get("/status")
def system_status(request: Request) -> dict[str, Any]:
    state = request.app.state
    sweeper = state.sweeper
    scheduler = getattr(state, "sweep_scheduler", None)
    report = sweeper.last_report
    return {
        "status": "ok",
        "accounts": len(state.account_store),
        "sessions": len(state.session_store),
        "sweep": {
            "interval_seconds": state.sweep_interval,
            "running": bool(scheduler and scheduler.running),
            "last": report.to_dict() if report else None,
        },
    }
