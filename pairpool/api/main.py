"""FastAPI application for the pool.

Note: Authentication is intentionally not implemented. Callers name the
acting account in each request; this service is a simulation of the pool,
not a custody layer.
"""

import os

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from pairpool import __version__
from pairpool.api.endpoints import router
from pairpool.errors import PoolError
from pairpool.models.requests import ErrorResponse

logger = structlog.get_logger()

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("POOL_HOST", "0.0.0.0")
PORT = int(os.environ.get("POOL_PORT", "8000"))
DEBUG = os.environ.get("POOL_DEBUG", "false").lower() in ("true", "1", "yes")

app = FastAPI(
    title="Pair Pool",
    description="Two-asset constant-product liquidity pool",
    version=__version__,
)


@app.exception_handler(PoolError)
async def pool_error_handler(request: Request, exc: PoolError) -> JSONResponse:
    """Report a rejected pool operation as 400 with its error name."""
    logger.warning(
        "pool_operation_rejected",
        path=request.url.path,
        error=type(exc).__name__,
        detail=str(exc),
    )
    body = ErrorResponse(error=type(exc).__name__, detail=str(exc))
    return JSONResponse(status_code=400, content=body.model_dump())


app.include_router(router)


@app.get("/health")
async def health() -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


def run() -> None:
    """Run the pool API server.

    Configuration via environment variables:
    - POOL_HOST: Host to bind to (default: 0.0.0.0)
    - POOL_PORT: Port to bind to (default: 8000)
    - POOL_DEBUG: Enable debug/reload mode (default: false)
    """
    uvicorn.run(
        "pairpool.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
