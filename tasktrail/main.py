"""FastAPI application entrypoint and router wiring."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import APIRouter, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware

from tasktrail.api.board import router as board_router
from tasktrail.api.tags import router as tags_router
from tasktrail.api.tasks import router as tasks_router
from tasktrail.api.views import router as views_router
from tasktrail.core.config import settings
from tasktrail.core.error_handling import install_error_handling
from tasktrail.core.logging import configure_logging, get_logger
from tasktrail.db.session import init_db
from tasktrail.schemas.common import HealthStatusResponse

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = get_logger(__name__)
OPENAPI_TAGS = [
    {
        "name": "health",
        "description": "Service liveness probe.",
    },
    {
        "name": "tasks",
        "description": "Task CRUD, tree listing, tag assignment and history trail.",
    },
    {
        "name": "tags",
        "description": "Tag catalog with case-insensitive get-or-create.",
    },
    {
        "name": "views",
        "description": "Named saved filters.",
    },
    {
        "name": "board",
        "description": "Status lanes and tag counts for a filtered task list.",
    },
]


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    """Initialize the database schema before serving requests."""
    logger.info(
        "app.lifecycle.starting environment=%s db_auto_migrate=%s",
        settings.environment,
        settings.db_auto_migrate,
    )
    await init_db()
    logger.info("app.lifecycle.started")
    try:
        yield
    finally:
        logger.info("app.lifecycle.stopped")


def health() -> HealthStatusResponse:
    """Lightweight liveness probe endpoint."""
    return HealthStatusResponse(ok=True)


def create_app() -> FastAPI:
    """Build the API application with logging, CORS, error handling and routers."""
    configure_logging()
    app = FastAPI(
        title="TaskTrail API",
        version="0.1.0",
        lifespan=lifespan,
        openapi_tags=OPENAPI_TAGS,
    )

    origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        logger.info("app.cors.enabled origins_count=%s", len(origins))
    else:
        logger.info("app.cors.disabled")

    install_error_handling(app)

    app.get(
        "/health",
        tags=["health"],
        response_model=HealthStatusResponse,
        summary="Health Check",
        responses={
            status.HTTP_200_OK: {
                "description": "Service is alive.",
                "content": {"application/json": {"example": {"ok": True}}},
            }
        },
    )(health)

    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(tasks_router)
    api_v1.include_router(tags_router)
    api_v1.include_router(views_router)
    api_v1.include_router(board_router)
    app.include_router(api_v1)

    logger.debug("app.routes.registered count=%s", len(app.routes))
    return app


app = create_app()
