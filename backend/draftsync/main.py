"""Main module of the FastAPI application.

This module sets up the FastAPI application, the middleware that logs
incoming requests and unhandled exceptions, and the exception handlers.
"""

import os
import subprocess
import sys
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from draftsync.api.deps import get_container
from draftsync.api.middleware import (
    add_request_id,
    draftsync_exception_handler,
    exception_logging_middleware,
    invalid_state_exception_handler,
    log_requests,
    not_found_exception_handler,
)
from draftsync.api.v1.api import api_router
from draftsync.core.config import settings
from draftsync.core.container import Container
from draftsync.core.exceptions import DraftSyncException, InvalidStateError, NotFoundException
from draftsync.core.logging import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events.

    Initializes the DI container and, when enabled, runs alembic migrations.
    """
    from draftsync.core.container import initialize_container

    logger.info("Initializing dependency injection container...")
    initialize_container(settings)
    logger.info("Container initialized successfully")

    if settings.RUN_ALEMBIC_MIGRATIONS:
        logger.info("Running alembic migrations...")
        env = os.environ.copy()
        backend_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        env["PYTHONPATH"] = backend_dir
        subprocess.run(
            [sys.executable, "-m", "alembic", "upgrade", "heads"],
            check=True,
            cwd=backend_dir,
            env=env,
        )

    yield

    from draftsync.core.container import reset_container

    reset_container()


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.include_router(api_router)

# Order matters: first registered = outermost middleware
app.middleware("http")(add_request_id)
app.middleware("http")(log_requests)
app.middleware("http")(exception_logging_middleware)

app.exception_handler(NotFoundException)(not_found_exception_handler)
app.exception_handler(InvalidStateError)(invalid_state_exception_handler)
app.exception_handler(DraftSyncException)(draftsync_exception_handler)


@app.get("/metrics", include_in_schema=False)
async def metrics(c: Container = Depends(get_container)) -> Response:
    """Prometheus exposition of the publish metrics registry."""
    registry = c.metrics_registry
    body = generate_latest(registry) if registry is not None else b""
    return Response(content=body, media_type=CONTENT_TYPE_LATEST)
