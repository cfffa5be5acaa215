"""
Frank Karaoke - Main Application

FastAPI application that serves the song library and party queue to the
browser game:
- REST API endpoints for songs, search and the request queue
- Asset file streaming (audio, video, cover, background)
- Health check

The song index is built from ``SONGS_DIRECTORY`` on startup; nothing is
persisted between runs.
"""

import sys
import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from frank.config import (
    APP_ENV,
    APP_HOST,
    APP_PORT,
    APP_VERSION,
    CORS_ORIGINS,
    DEBUG,
    LOG_LEVEL,
    SONGS_DIRECTORY,
)
from frank.library import SongLibrary
from frank.routes.api import router as api_router

# ---------------------------------------------------------------------------
# Logging setup: stdout only
# ---------------------------------------------------------------------------
logger.remove()

logger.add(
    sys.stdout,
    level="DEBUG" if DEBUG else LOG_LEVEL,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    colorize=True,
)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    On startup the songs directory is scanned and the library is filled.
    Scanning reads every chart, so it runs off the event loop.
    """
    logger.info("🚀 Starting Frank Karaoke v{}", APP_VERSION)
    logger.info("📋 Environment: {} | Debug: {}", APP_ENV, DEBUG)
    songs_directory = app.state.songs_directory
    logger.info("📁 Songs directory: {}", songs_directory)

    library: SongLibrary = app.state.library
    count = await run_in_threadpool(library.reindex, songs_directory)

    logger.success(
        "✅ Ready with {} songs — listening on {}:{}", count, APP_HOST, APP_PORT
    )

    yield

    logger.info("👋 Shutdown complete")


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------
def create_app(
    library: SongLibrary | None = None,
    songs_directory: Path = SONGS_DIRECTORY,
) -> FastAPI:
    """Create and configure the FastAPI application.

    The library is (re)filled from *songs_directory* when the app starts.
    """

    app = FastAPI(
        title="Frank Karaoke API",
        description="API for Frank, a browser-based karaoke game",
        version=APP_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if DEBUG else None,
        redoc_url="/redoc" if DEBUG else None,
    )
    app.state.library = library if library is not None else SongLibrary()
    app.state.songs_directory = songs_directory

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ------------------------------------------------------------------
    # Request logging middleware
    # ------------------------------------------------------------------
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log every incoming HTTP request with timing information."""
        start = time.time()
        try:
            response = await call_next(request)
        except Exception as exc:
            duration = round(time.time() - start, 3)
            logger.error(
                "❌ {method} {path} — unhandled error after {duration}s: {exc}",
                method=request.method,
                path=request.url.path,
                duration=duration,
                exc=exc,
            )
            raise

        duration = round(time.time() - start, 3)
        status = response.status_code
        if status >= 500:
            log = logger.error
        elif status >= 400:
            log = logger.warning
        elif request.url.path.startswith("/files/"):
            log = logger.debug
        else:
            log = logger.info
        log(
            "📤 {method} {path} — {status} [{duration}s]",
            method=request.method,
            path=request.url.path,
            status=status,
            duration=duration,
        )
        return response

    app.include_router(api_router)

    return app


# ---------------------------------------------------------------------------
# Create the app instance (used by Uvicorn)
# ---------------------------------------------------------------------------
app = create_app()


# ---------------------------------------------------------------------------
# Direct execution (development)
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "frank.main:app",
        host=APP_HOST,
        port=APP_PORT,
        reload=DEBUG,
        log_level="debug" if DEBUG else "info",
    )
