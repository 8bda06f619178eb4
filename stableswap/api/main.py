"""FastAPI application serving read-only pool quotes."""

import logging
import os

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from stableswap import __version__
from stableswap.api.endpoints import router
from stableswap.errors import (
    AuthorizationError,
    PoolStateError,
    RateSourceError,
    StableSwapError,
)

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("STABLESWAP_HOST", "0.0.0.0")
PORT = int(os.environ.get("STABLESWAP_PORT", "8000"))
DEBUG = os.environ.get("STABLESWAP_DEBUG", "false").lower() in ("true", "1", "yes")

# Maximum request body size (1 MB)
MAX_REQUEST_SIZE = 1024 * 1024

logger = structlog.get_logger()

app = FastAPI(
    title="StableSwap Quote Service",
    description="Read-only quotes for StableSwap pools",
    version=__version__,
)


@app.middleware("http")
async def limit_request_size(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject requests with body larger than MAX_REQUEST_SIZE."""
    content_length = request.headers.get("content-length")
    if content_length and int(content_length) > MAX_REQUEST_SIZE:
        return JSONResponse(status_code=413, content={"detail": "Request too large"})
    return await call_next(request)


def status_for(error: StableSwapError) -> int:
    """HTTP status code for an engine error."""
    if isinstance(error, PoolStateError):
        return 409
    if isinstance(error, AuthorizationError):
        return 403
    if isinstance(error, RateSourceError):
        return 503
    return 422


@app.exception_handler(StableSwapError)
async def stableswap_error_handler(request: Request, exc: StableSwapError) -> JSONResponse:
    status = status_for(exc)
    logger.info("quote_rejected", path=request.url.path, error=type(exc).__name__, status=status)
    return JSONResponse(status_code=status, content={"detail": str(exc), "error": type(exc).__name__})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("quote_failed", path=request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal error"})


app.include_router(router)


@app.get("/health")
async def health() -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


def configure_logging(debug: bool = DEBUG) -> None:
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG if debug else logging.INFO),
    )


def run() -> None:
    """Run the quote API server.

    Configuration via environment variables:
    - STABLESWAP_HOST: Host to bind to (default: 0.0.0.0)
    - STABLESWAP_PORT: Port to bind to (default: 8000)
    - STABLESWAP_DEBUG: Enable debug logging and reload mode (default: false)
    """
    configure_logging()
    uvicorn.run(
        "stableswap.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
