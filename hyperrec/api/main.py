"""FastAPI application main module.

This module defines the FastAPI application for the HyperRec service: the
health, status and metrics endpoints, structured request logging and the
mapping of HyperRec exceptions to JSON error responses.
"""

import logging
import os
from typing import Any, Dict

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from hyperrec import __version__
from hyperrec.api.dependencies import get_engine
from hyperrec.api.logging_config import RequestLoggingMiddleware, setup_logging
from hyperrec.api.metrics import metrics_service
from hyperrec.api.routes import products, recommend, track
from hyperrec.exceptions import HyperRecException
from hyperrec.recommender.engine import RecommendationEngine

setup_logging(os.environ.get("HYPERREC_LOG_LEVEL", "INFO"))

# Configure module logger
logger = logging.getLogger(__name__)

# Create FastAPI application instance
app = FastAPI(
    title="HyperRec API",
    description="Hybrid personalization and recommendation service",
    version=__version__,
)

app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(recommend.router)
app.include_router(track.router)
app.include_router(products.router)


@app.exception_handler(HyperRecException)
async def hyperrec_exception_handler(request: Request, exc: HyperRecException) -> JSONResponse:
    """Render HyperRec exceptions as JSON with their status code."""
    logger.warning(
        "Request raised HyperRec error",
        extra={
            "path": str(request.url.path),
            "error_type": type(exc).__name__,
            "status_code": exc.status_code,
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": type(exc).__name__,
            "message": exc.message,
            "details": exc.details,
        },
    )


@app.get("/ping")
def ping() -> Dict[str, str]:
    """Health check endpoint.

    Returns:
        Dictionary with status key set to "ok".

    Example:
        >>> response = client.get("/ping")
        >>> assert response.json() == {"status": "ok"}
    """
    return {"status": "ok"}


@app.get("/status")
def model_status(engine: RecommendationEngine = Depends(get_engine)) -> Dict[str, Any]:
    """Model readiness, version, matrix size and refresh state."""
    return engine.status()


@app.get("/metrics")
def metrics() -> Dict[str, Any]:
    return metrics_service.get_metrics()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "hyperrec.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
