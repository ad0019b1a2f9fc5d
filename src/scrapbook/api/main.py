"""FastAPI application factory and entry point."""

import argparse
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from scrapbook import __version__
from scrapbook.api.routes import ask, capture, memory, search, summarize, tasks
from scrapbook.api.schemas import ErrorResponse, HealthResponse
from scrapbook.app_utils.logging_config import configure_logging
from scrapbook.core.errors import ScrapbookError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    from scrapbook.api.deps import clear_caches, get_summarize_service, get_task_runner

    logger.info("Initializing Scrapbook API...")

    task_runner = get_task_runner()
    await task_runner.start()

    status = get_summarize_service().get_service_status()
    logger.info(
        "Content sources: "
        + ", ".join(f"{name}={'on' if ok else 'off'}" for name, ok in status.items())
    )
    logger.info("✓ Scrapbook API startup complete")

    yield

    logger.info("Shutting down Scrapbook API...")
    await task_runner.stop()
    clear_caches()


async def scrapbook_error_handler(request: Request, exc: ScrapbookError) -> JSONResponse:
    """Map pipeline errors to ``{"detail", "code"}`` with the error's status."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(detail=exc.message, code=exc.code).model_dump(),
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Scrapbook API",
        description="Capture, summarize and search a personal content library",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ScrapbookError, scrapbook_error_handler)

    # Include routers under /api prefix
    app.include_router(summarize.router, prefix="/api/summarize", tags=["summarize"])
    app.include_router(search.router, prefix="/api", tags=["search"])
    app.include_router(ask.router, prefix="/api", tags=["ask"])
    app.include_router(capture.router, prefix="/api", tags=["capture"])
    app.include_router(memory.router, prefix="/api", tags=["memory"])
    app.include_router(tasks.router, prefix="/api/tasks", tags=["tasks"])

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="ok", version=__version__)

    return app


# Create default app instance
app = create_app()


def run() -> None:
    """Run the API server (CLI entry point)."""
    parser = argparse.ArgumentParser(description="Scrapbook API Server")
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to (default: 8000)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: LOG_LEVEL env or INFO)",
    )
    args = parser.parse_args()

    configure_logging(args.log_level)
    logger.info(f"Scrapbook v{__version__} listening on http://{args.host}:{args.port}")

    uvicorn.run(
        "scrapbook.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )


if __name__ == "__main__":
    run()
