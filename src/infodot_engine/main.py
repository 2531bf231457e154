"""Main entry point for the InfoDot interaction engine API."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from infodot_engine.api.v1 import (
    comments_router,
    questions_router,
    reactions_router,
    search_router,
)
from infodot_engine.core.errors import (
    ConflictTransientError,
    DependencyUnavailableError,
    EngineError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from infodot_engine.core.logging import configure_logging
from infodot_engine.core.settings import settings
from infodot_engine.services.broadcast import EventBroadcaster, build_broadcaster
from infodot_engine.services.cache import CacheCoordinator, build_cache
from infodot_engine.services.search import build_search_index

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Reactions, comments, answer acceptance and search for InfoDot",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(reactions_router, prefix="/api/v1")
app.include_router(comments_router, prefix="/api/v1")
app.include_router(questions_router, prefix="/api/v1")
app.include_router(search_router, prefix="/api/v1")

ERROR_STATUS: dict[type[EngineError], int] = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    ConflictTransientError: status.HTTP_409_CONFLICT,
    DependencyUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError) -> JSONResponse:
    """Translate engine errors into JSON responses."""
    status_code = next(
        (code for kind, code in ERROR_STATUS.items() if isinstance(exc, kind)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    content: dict[str, object] = {"detail": exc.message, "code": exc.code}
    if isinstance(exc, ConflictTransientError):
        content["retryable"] = True
    return JSONResponse(status_code=status_code, content=content)


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging(settings)
    app.state.cache = build_cache(settings)
    app.state.broadcaster = build_broadcaster(settings)
    app.state.search_index = build_search_index(settings)
    logger.info(
        "Engine started cache=%s broadcast=%s search=%s",
        settings.cache_driver,
        settings.broadcast_driver,
        settings.search_driver if settings.search_enabled else "database",
    )


@app.on_event("shutdown")
async def on_shutdown() -> None:
    broadcaster: EventBroadcaster | None = getattr(app.state, "broadcaster", None)
    if broadcaster:
        broadcaster.close()
    cache: CacheCoordinator | None = getattr(app.state, "cache", None)
    if cache:
        cache.close()
    search_index = getattr(app.state, "search_index", None)
    if search_index:
        search_index.close()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("infodot_engine.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
