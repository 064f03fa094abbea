"""FastAPI application entry point — wires everything together.

Usage:
    python -m actionlog.main

Serves the admin log API and health check. When ACTIONLOG_CLEANUP_ENABLED is
set, the retention loop runs in the background for the app's lifetime.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI

from actionlog.admin.web import register_error_handlers, router
from actionlog.config import settings
from actionlog.db.engine import db_lifespan
from actionlog.security.audit import get_action_logger
from actionlog.security.retention import run_retention_loop

# ── Logging setup ────────────────────────────────────────────────────

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    stream=sys.stdout,
)
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = logging.getLogger(__name__)

# ── FastAPI lifespan ─────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application startup and shutdown lifecycle."""
    logger.info("Starting action log service (env=%s)", settings.environment)

    # 1. Database
    async with db_lifespan():
        logger.info("Database initialized")

        # 2. Logger facade bound to the database store
        audit = get_action_logger()

        # 3. Retention loop (only if enabled)
        retention_task: asyncio.Task[None] | None = None
        if settings.actionlog.cleanup_enabled:
            retention_task = asyncio.create_task(
                run_retention_loop(audit.retention), name="actionlog-retention"
            )
            logger.info("Retention loop scheduled")
        else:
            logger.warning("ACTIONLOG_CLEANUP_ENABLED not set — scheduled retention disabled")

        try:
            yield
        finally:
            logger.info("Shutting down action log service...")

            if retention_task is not None:
                retention_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await retention_task
                logger.info("Retention loop stopped")

            pending = audit.pipeline.pending
            await audit.drain()
            logger.info("Write pipeline drained (%d in flight at shutdown)", pending)

    logger.info("Action log service shutdown complete")


# ── FastAPI app ──────────────────────────────────────────────────────

app = FastAPI(
    title="Action Log API",
    description="Audit trail of administrative actions with risk classification",
    version="0.1.0",
    lifespan=lifespan,
)
app.include_router(router)
register_error_handlers(app)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {
        "status": "ok",
        "environment": settings.environment,
    }


# ── Entry point ──────────────────────────────────────────────────────

if __name__ == "__main__":
    uvicorn.run(
        "actionlog.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower(),
    )
