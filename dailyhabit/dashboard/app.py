#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
DailyHabit Tracker - FastAPI Application
JSON API over the habit tracker: habits, daily metrics, statistics,
exports and the sync session

Version: 1.0.0
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dailyhabit import __version__
from dailyhabit.config import TrackerConfig, load_config
from dailyhabit.core.models import ValidationError
from dailyhabit.services.sync_service import SyncError, SyncReadFailure
from dailyhabit.services.tracker_service import HabitTracker, build_tracker

from .api import export, habits, metrics, session, stats
from .schemas import HealthCheck

logger = logging.getLogger(__name__)


def create_app(config: Optional[TrackerConfig] = None,
               tracker: Optional[HabitTracker] = None) -> FastAPI:
    """
    Build the dashboard application.

    A tracker passed in is used as is (and is not closed on shutdown);
    otherwise one is built from the configuration, signed in as
    DEFAULT_USER_ID when that is set, and closed with the application.
    """
    config = config or (tracker.config if tracker is not None else load_config())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info("🚀 Starting DailyHabit dashboard...")
        app.state.started_at = time.time()
        owns_tracker = tracker is None
        app.state.tracker = tracker or build_tracker(config)

        if owns_tracker:
            config.ensure_directories()
            user_id = config.server.default_user_id
            if user_id:
                try:
                    await app.state.tracker.sign_in(user_id)
                except (SyncReadFailure, ValidationError) as e:
                    logger.error(f"❌ Could not sign in {user_id}: {e}")

        logger.info(f"🌐 Dashboard available at http://{config.server.host}:{config.server.port}")
        logger.info("✅ Dashboard ready")

        yield

        # Shutdown
        logger.info("🛑 Stopping dashboard...")
        if owns_tracker:
            await app.state.tracker.close()
        app.state.tracker = None
        logger.info("✅ Resources released")

    app = FastAPI(
        title="DailyHabit Tracker",
        description="Habit completions, mood and sleep with monthly analytics",
        version=__version__,
        docs_url="/api/docs" if config.server.debug_mode else None,
        redoc_url="/api/redoc" if config.server.debug_mode else None,
        lifespan=lifespan,
    )

    # ===== MIDDLEWARE =====

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        logger.debug(
            f"{request.method} {request.url.path} "
            f"- {response.status_code} "
            f"- {process_time:.3f}s"
        )
        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        return response

    # ===== ERROR HANDLERS =====

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(SyncError)
    async def sync_error_handler(request: Request, exc: SyncError):
        logger.error(f"❌ Sync error on {request.url.path}: {exc}")
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    # ===== ROUTES =====

    @app.get("/health", response_model=HealthCheck)
    async def health_check():
        return HealthCheck(status="healthy", service="dailyhabit-dashboard", version=__version__)

    @app.get("/api/info")
    async def api_info(request: Request):
        started_at = getattr(request.app.state, "started_at", None)
        return {
            "version": __version__,
            "environment": config.environment.value,
            "uptime_seconds": round(time.time() - started_at, 1) if started_at else 0,
            "config": config.to_dict(),
        }

    app.include_router(habits.router)
    app.include_router(metrics.router)
    app.include_router(stats.router)
    app.include_router(export.router)
    app.include_router(session.router)

    return app
