"""
FastAPI application entry point.

Run with: uvicorn src.main:app --reload
"""

from contextlib import asynccontextmanager
import uuid

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from src.core.config import settings
from src.core.logging import configure_logging, get_logger, bind_context, clear_context
from src.api.routes import datasets, health
from src.api.exception_handlers import setup_exception_handlers

# Configure logging before anything else
configure_logging(debug=settings.debug)
log = get_logger(__name__)


# =============================================================================
# Correlation ID Middleware
# =============================================================================


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds a unique correlation ID to each request.

    - Generates a UUID4 request_id for each incoming request
    - Binds it to structlog context for all logs in that request
    - Adds X-Request-ID header to responses
    """

    async def dispatch(self, request: Request, call_next):
        """Process request and add correlation ID."""
        request_id = str(uuid.uuid4())

        bind_context(request_id=request_id)

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_context()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    log.info(
        "application_starting",
        debug=settings.debug,
        data_dir=str(settings.data_dir),
        num_unseen=settings.num_unseen,
        max_nodes=settings.max_nodes,
    )

    if not settings.data_dir.is_dir():
        # Not fatal: datasets may be mounted after startup
        log.warning("data_dir_missing", data_dir=str(settings.data_dir))

    log.info("application_started")

    yield

    log.info("application_shutting_down")


app = FastAPI(
    title="Rule Graph Explorer",
    description="Rule/dependency graphs with surprisal metrics for rule-mining results",
    version="0.1.0",
    lifespan=lifespan,
    debug=settings.debug,
)

# CORS: the explorer front end is served separately during development
if settings.debug:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.add_middleware(CorrelationIDMiddleware)

setup_exception_handlers(app)

app.include_router(health.router, tags=["system"])
app.include_router(datasets.router)


@app.get("/")
async def root():
    """Root endpoint with basic info."""
    return {"name": "Rule Graph Explorer", "version": "0.1.0", "status": "running"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
