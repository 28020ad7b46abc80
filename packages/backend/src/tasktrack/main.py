"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (logging, migrations, engine).
Middleware, CORS, error handlers, routers and the local media mount are
all registered here.

Event hooks are passed in explicitly and stored on app.state; the
service dependencies read them from there for every request.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional, Sequence
from urllib.parse import urlparse

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from tasktrack import __version__
from tasktrack.api import api_router
from tasktrack.api.errors import register_error_handlers
from tasktrack.config import settings
from tasktrack.db.engine import engine
from tasktrack.db.migrate import run_migrations
from tasktrack.events.hooks import EventHook
from tasktrack.logging import configure_logging
from tasktrack.middleware.request_id import RequestIdMiddleware
from tasktrack.middleware.security import SecurityHeadersMiddleware

logger = structlog.get_logger()


def media_mount_path(base_url: str) -> str:
    """Path part of the public media URL, where local avatars are served."""
    return urlparse(base_url).path.rstrip("/") or "/media"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs
    at shutdown.
    """
    configure_logging(json_format=settings.log_json, log_level=settings.log_level)
    logger.info(
        "tasktrack.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    if settings.storage_backend == "local":
        Path(settings.storage_root).mkdir(parents=True, exist_ok=True)

    if settings.migrate_on_startup:
        await run_migrations()
        logger.info("tasktrack.schema_ready")

    yield

    logger.info("tasktrack.shutdown")
    await engine.dispose()


def create_app(hooks: Optional[Sequence[EventHook]] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="TaskTrack",
        description="Multi-user task tracking API with session-token authentication",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.event_hooks = list(hooks or ())

    # Handlers first: the unexpected-error catcher must be the innermost
    # middleware so its 500s still pass through the headers below.
    register_error_handlers(app)

    # ── Middleware stack ──────────────────────────────────────
    # Starlette runs middleware in reverse order of registration.
    # Request flow: CORS → Security → RequestId → errors → handler
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)
    if settings.storage_backend == "local":
        app.mount(
            media_mount_path(settings.storage_base_url),
            StaticFiles(directory=settings.storage_root, check_dir=False),
            name="media",
        )

    return app


# Default app instance (used by uvicorn: tasktrack.main:app)
app = create_app()
