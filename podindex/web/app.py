"""
FastAPI web application for the podcast feed directory.

Serves the recent feeds listing, the incremental episode sync stream and the
feed maintenance admin routes. Domain errors are mapped to JSON error bodies
in one place.

Run with `python -m podindex.web.app` or `uvicorn --factory podindex.web.app:create_app`.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..config import Config
from ..db.factory import create_repository_from_config
from ..db.repository import FeedRepositoryInterface
from ..errors import ConflictError, InvalidInputError, NotFoundError, PodIndexError, StoreError
from ..identity.resolver import FeedIdentityResolver
from ..services.directory import DirectoryService
from ..sync.engine import IncrementalSyncEngine
from .admin_routes import router as admin_router
from .api_routes import router as api_router

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = (
    (InvalidInputError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (StoreError, 503),
)


def status_code_for(exc: PodIndexError) -> int:
    """Map a domain error to its HTTP status code."""
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 500


async def podindex_error_handler(request: Request, exc: PodIndexError) -> JSONResponse:
    """Render a domain error as `{status: "false", description}`."""
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
        description = "The directory store is unavailable, try again later."
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({status_code}): {exc}")
        description = str(exc)
    return JSONResponse(
        status_code=status_code,
        content={"status": "false", "description": description},
    )


def create_app(
    config: Optional[Config] = None,
    repository: Optional[FeedRepositoryInterface] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Parameters:
        config: Settings; a fresh `Config()` (environment and .env) when omitted.
        repository: Store adapter; created from `config` when omitted, and closed on shutdown.

    Returns:
        FastAPI: The application with routes, error handlers and services on `app.state`.
    """
    config = config or Config()
    owns_repository = repository is None
    if repository is None:
        repository = create_repository_from_config(config)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        """
        FastAPI lifespan context manager.

        Handles startup logging and closes a repository the app created itself.
        """
        logger.info("Application started")

        yield

        if owns_repository:
            repository.close()
        logger.info("Application shutdown")

    app = FastAPI(
        title="Podcast Index Directory",
        description="Feed identity, recent feeds and incremental episode sync",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_exception_handler(PodIndexError, podindex_error_handler)

    # Store config, repository and services in app state for access in routes
    app.state.config = config
    app.state.repository = repository
    app.state.resolver = FeedIdentityResolver(repository)
    app.state.directory = DirectoryService(repository, config)
    app.state.sync_engine = IncrementalSyncEngine(repository, config)

    app.include_router(api_router)
    app.include_router(admin_router)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy", "service": "podindex"}

    return app


def main() -> None:
    import uvicorn

    config = Config()
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(create_app(config), host="0.0.0.0", port=config.WEB_PORT)


if __name__ == "__main__":
    main()
