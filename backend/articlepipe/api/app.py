"""FastAPI application setup with lifespan and exception handlers."""

from contextlib import asynccontextmanager
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from articlepipe import __version__
from articlepipe.config import settings
from articlepipe.db import async_session, init_database, shutdown
from articlepipe.orchestrator.pipeline import ArticleProcessor
from articlepipe.orchestrator.runner import JobRunner
from articlepipe.services.job_store import ArticleStore
from articlepipe.services.registry import build_processor, close_processor
from articlepipe.api.routes import router

logger = logging.getLogger(__name__)


def create_app(
    store: Optional[ArticleStore] = None,
    processor: Optional[ArticleProcessor] = None,
) -> FastAPI:
    """Build the API application.

    With no arguments the app owns its resources: it initializes the
    configured database, wires the configured adapters and closes both on
    shutdown. Injected collaborators are used as-is and left open.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager.

        Startup:
            - Initialize database schema
            - Build the processor and start the job runner

        Shutdown:
            - Stop the job runner
            - Close adapter clients and database connections
        """
        logger.info("Starting Article Pipeline API...")
        owns_store = store is None
        owns_processor = processor is None

        if owns_store:
            await init_database()
        app_store = store or ArticleStore(async_session)
        app_processor = processor or build_processor(app_store)

        runner = JobRunner(
            app_processor,
            max_workers=settings.pipeline.max_workers,
            queue_size=settings.pipeline.queue_size,
        )
        runner.start()

        app.state.store = app_store
        app.state.runner = runner
        logger.info("API startup complete")

        yield

        logger.info("Shutting down Article Pipeline API...")
        await runner.shutdown()
        if owns_processor:
            await close_processor(app_processor)
        if owns_store:
            await shutdown()
        logger.info("API shutdown complete")

    app = FastAPI(
        title="Article Pipeline API",
        version=__version__,
        lifespan=lifespan,
    )
    app.include_router(router)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Catch-all exception handler to prevent stack traces in API responses."""
        logger.error(f"Unhandled exception in {request.method} {request.url.path}: {type(exc).__name__}: {str(exc)}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc),
            }
        )

    return app


app = create_app()
