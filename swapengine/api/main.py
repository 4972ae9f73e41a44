"""FastAPI application for the quote service.

Only reads are exposed; transactions are signed and sent by wallet-side
callers of SwapEngine, never over HTTP.
"""

import logging
import os

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from swapengine import __version__
from swapengine.api.endpoints import router

HOST = os.environ.get("SWAPENGINE_HOST", "0.0.0.0")
PORT = int(os.environ.get("SWAPENGINE_PORT", "8000"))
DEBUG = os.environ.get("SWAPENGINE_DEBUG", "false").lower() in ("true", "1", "yes")

# A quote request is a handful of fields
MAX_REQUEST_SIZE = 64 * 1024


def configure_logging(debug: bool = DEBUG) -> None:
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG if debug else logging.INFO),
    )


app = FastAPI(
    title="Swap Engine",
    description="Quotes across the ReachSwap and Sphynx routers on the Loop network",
    version=__version__,
)


@app.middleware("http")
async def limit_request_size(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject requests with body larger than MAX_REQUEST_SIZE."""
    content_length = request.headers.get("content-length")
    if content_length and int(content_length) > MAX_REQUEST_SIZE:
        return JSONResponse(status_code=413, content={"detail": "Request too large"})
    return await call_next(request)


app.include_router(router)


@app.get("/health")
async def health() -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


def run() -> None:
    """Run the quote API server.

    Configuration via environment variables:
    - SWAPENGINE_HOST: Host to bind to (default: 0.0.0.0)
    - SWAPENGINE_PORT: Port to bind to (default: 8000)
    - SWAPENGINE_DEBUG: Enable debug logging and reload (default: false)
    - SWAPENGINE_RPC_URL: Loop RPC endpoint
    """
    configure_logging()
    uvicorn.run(
        "swapengine.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
