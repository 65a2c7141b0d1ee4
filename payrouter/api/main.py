"""FastAPI application for the payment relay.

Note: Rate limiting is not implemented at the application level. It
belongs at the infrastructure layer (reverse proxy / load balancer).
"""

import logging
import os

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from payrouter import __version__
from payrouter.api.endpoints import router

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("PAYROUTER_HOST", "0.0.0.0")
PORT = int(os.environ.get("PAYROUTER_PORT", "8000"))
DEBUG = os.environ.get("PAYROUTER_DEBUG", "false").lower() in ("true", "1", "yes")
LOG_LEVEL = os.environ.get("PAYROUTER_LOG_LEVEL", "INFO").upper()

# Maximum request body size (1 MB)
MAX_REQUEST_SIZE = 1024 * 1024

logger = structlog.get_logger()


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Console logging filtered at `level` (a stdlib level name)."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelNamesMapping().get(level.upper(), logging.INFO)
        ),
    )


app = FastAPI(
    title="PayRouter",
    description="Stablecoin payment routing, pay-to-access and protocol fees",
    version=__version__,
)


@app.middleware("http")
async def limit_request_size(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject requests with body larger than MAX_REQUEST_SIZE."""
    content_length = request.headers.get("content-length")
    if content_length and int(content_length) > MAX_REQUEST_SIZE:
        return JSONResponse(status_code=413, content={"detail": "Request too large"})
    return await call_next(request)


@app.exception_handler(Exception)
async def internal_error(request: Request, exc: Exception) -> JSONResponse:
    """Generic 500 for anything the endpoints did not map themselves."""
    logger.exception("unhandled_error", path=request.url.path, error_type=exc.__class__.__name__)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


app.include_router(router)


@app.get("/health")
async def health() -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


def run() -> None:
    """Run the relay API server.

    Configuration via environment variables:
    - PAYROUTER_HOST: Host to bind to (default: 0.0.0.0)
    - PAYROUTER_PORT: Port to bind to (default: 8000)
    - PAYROUTER_DEBUG: Enable debug/reload mode (default: false)
    - PAYROUTER_LOG_LEVEL: Log level (default: INFO)
    """
    configure_logging()
    uvicorn.run(
        "payrouter.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
