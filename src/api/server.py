"""FastAPI server for the auto-ping service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from functools import partial
from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import FileResponse

from src.accounts.reaper import AccountReaper
from src.accounts.service import AccountService
from src.accounts.store import AccountStore
from src.api.health_routes import health_router
from src.api.routes import router
from src.config import Settings, settings
from src.health.engine import probe
from src.health.scheduler import SweepScheduler, TargetSweeper
from src.sessions.store import SessionStore

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent.parent / "static"


def init_state(app: FastAPI, cfg: Settings, store: AccountStore | None = None) -> None:
    """Build stores, sweeper and service and hang them off app.state."""
    if store is None:
        store = AccountStore(cfg.accounts_file)
    sessions = SessionStore(lifetime=timedelta(hours=cfg.session_lifetime_hours))
    sweeper = TargetSweeper(store, prober=partial(probe, timeout_seconds=cfg.probe_timeout_seconds))

    app.state.account_store = store
    app.state.session_store = sessions
    app.state.sweeper = sweeper
    app.state.account_service = AccountService(store, sessions, sweeper=sweeper)
    app.state.sweep_interval = cfg.sweep_interval_seconds
    app.state.retention = timedelta(days=cfg.retention_days)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load accounts and start the background jobs."""
    init_state(app, settings)
    store: AccountStore = app.state.account_store
    store.load()

    scheduler = SweepScheduler(app.state.sweeper, interval=settings.sweep_interval_seconds)
    app.state.sweep_scheduler = scheduler
    await scheduler.start()

    reaper = AccountReaper(
        store,
        app.state.session_store,
        retention=app.state.retention,
        interval=settings.reaper_interval_seconds,
    )
    app.state.reaper = reaper
    if settings.reaper_enabled:
        await reaper.start()
    else:
        logger.warning("Account reaper disabled, inactive accounts are kept")

    yield

    # Shutdown
    await reaper.stop()
    await scheduler.stop()
    store.flush()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Auto Ping",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(router, prefix="/api")
    app.include_router(health_router, prefix="/api")

    @app.get("/")
    async def dashboard():
        return FileResponse(STATIC_DIR / "index.html")

    return app


app = create_app()
