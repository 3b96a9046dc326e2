"""FastAPI application for the exchange.

Every exchange error is a client error: the call that raised it has been
rolled back, so the handler only reports the error code back.
"""

import logging
import os

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from exchange.api.endpoints import router
from exchange.errors import ExchangeError, PoolAlreadyExists, PoolNotFound
from exchange.models.api import ErrorResponse
from exchange.safe_int import SafeIntError

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("EXCHANGE_HOST", "0.0.0.0")
PORT = int(os.environ.get("EXCHANGE_PORT", "8000"))
DEBUG = os.environ.get("EXCHANGE_DEBUG", "false").lower() in ("true", "1", "yes")
LOG_LEVEL = os.environ.get("EXCHANGE_LOG_LEVEL", "INFO").upper()

logger = structlog.get_logger()


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Route structlog output through a level filter and console renderer."""
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
    title="Native/Asset AMM Exchange",
    description="Constant product liquidity pools with a one-pool-per-asset registry",
    version="0.1.0",
)


@app.exception_handler(ExchangeError)
async def exchange_error_handler(request: Request, exc: ExchangeError) -> JSONResponse:
    """Report a rejected or rolled-back exchange call as a 4xx error."""
    if isinstance(exc, PoolNotFound):
        status_code = 404
    elif isinstance(exc, PoolAlreadyExists):
        status_code = 409
    else:
        status_code = 400
    logger.info(
        "request_rejected",
        path=request.url.path,
        error=exc.code,
        detail=str(exc),
    )
    body = ErrorResponse(error=exc.code, detail=str(exc))
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(SafeIntError)
async def arithmetic_error_handler(request: Request, exc: SafeIntError) -> JSONResponse:
    """Amounts outside uint256 range are rejected like any other bad input."""
    logger.info("request_rejected", path=request.url.path, error="arithmetic", detail=str(exc))
    body = ErrorResponse(error="arithmetic", detail=str(exc))
    return JSONResponse(status_code=400, content=body.model_dump())


app.include_router(router)


@app.get("/health")
async def health() -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok"}


def run() -> None:
    """Run the exchange API server.

    Configuration via environment variables:
    - EXCHANGE_HOST: Host to bind to (default: 0.0.0.0)
    - EXCHANGE_PORT: Port to bind to (default: 8000)
    - EXCHANGE_DEBUG: Enable debug/reload mode (default: false)
    - EXCHANGE_LOG_LEVEL: Minimum log level (default: INFO)
    - EXCHANGE_INVARIANT_CHECK, EXCHANGE_ENFORCE_DEPOSIT_RATIO,
      EXCHANGE_POPULATE_REVERSE_LOOKUPS: see exchange.config
    """
    configure_logging()
    uvicorn.run(
        "exchange.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
