from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .client import MessagingClient, WorkspaceClient
from .dispatcher import EventDispatcher
from .repositories import Repository, get_repository
from .routers import todos as todos_router
from .routers import webhook as webhook_router
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "webhook", "description": "Chat platform events driving the todo lifecycle."},
    {"name": "todos", "description": "Read-only views of the in-memory todo store."},
]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# PUBLIC_INTERFACE
def create_app(
    settings: Optional[Settings] = None,
    store: Optional[Repository] = None,
    client: Optional[MessagingClient] = None,
) -> FastAPI:
    """
    Build the bot application.

    The store and the messaging client are constructed once here and shared
    by the dispatcher and the routers through app.state.
    """
    _settings = settings or get_settings()
    _configure_logging(_settings.log_level)

    _store = store or get_repository()
    _client = client or WorkspaceClient(_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Adding todo event listeners")
        yield
        await _client.aclose()

    app = FastAPI(
        title="Todo Lens Bot",
        description="Chat bot turning actionable phrases into personal and shared todo lists.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.settings = _settings
    app.state.store = _store
    app.state.dispatcher = EventDispatcher(_store, _client)

    # Global exception handlers for consistent JSON on validation errors
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return a consistent JSON structure for request validation errors.

        Response format:
            {
                "error": "ValidationError",
                "detail": [... pydantic/fastapi error details ...],
                "message": "Request validation failed"
            }
        """
        return JSONResponse(
            status_code=422,
            content={
                "error": "ValidationError",
                "message": "Request validation failed",
                "detail": exc.errors(),
            },
        )

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health and the number of stored todos.
        """
        return {"message": "Healthy", "todos": _store.count()}

    # Include routers
    app.include_router(webhook_router.create_router(_settings))
    app.include_router(todos_router.router)

    return app


# Default app for uvicorn module-level discovery.
app = create_app()
