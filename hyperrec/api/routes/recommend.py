"""Recommendation endpoints for the HyperRec API.

This module provides API endpoints for ranked recommendations and for
forcing a rebuild of the model generation.
"""

import logging
import time
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from hyperrec.api.dependencies import get_engine
from hyperrec.api.metrics import metrics_service
from hyperrec.api.schemas import RecommendationResponse
from hyperrec.exceptions import HyperRecException
from hyperrec.recommender.engine import RecommendationEngine

# Configure module logger
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(
    prefix="/recommend",
    tags=["recommendations"],
)


@router.get("/{user_id}", response_model=RecommendationResponse)
def get_recommendations(
    user_id: str,
    limit: int = Query(10, ge=0, le=100, description="Maximum number of recommendations"),
    exclude_recently_viewed: bool = Query(True, description="Drop recently viewed products"),
    engine: RecommendationEngine = Depends(get_engine),
) -> RecommendationResponse:
    """Get ranked product recommendations for a user.

    Unknown users and internal failures still get a response: the engine
    serves trending or featured products and marks the result as fallback.

    Example:
        GET /recommend/u42?limit=5
        Returns up to 5 recommendations for user u42.
    """
    start_time = time.time()

    result = engine.get_recommendations(
        user_id,
        limit=limit,
        exclude_recently_viewed=exclude_recently_viewed,
    )

    latency_ms = (time.time() - start_time) * 1000
    metrics_service.record_recommendation(latency_ms, fallback=result.fallback)

    logger.info(
        "Recommendation request served",
        extra={
            "user_id": user_id,
            "limit": limit,
            "num_recommendations": len(result),
            "fallback": result.fallback,
            "model_version": result.model_version,
            "latency_ms": round(latency_ms, 2),
        },
    )

    return RecommendationResponse.from_result(result)


@router.post("/refresh")
def refresh_model(engine: RecommendationEngine = Depends(get_engine)) -> Dict[str, Any]:
    """Rebuild the model generation from the current catalog and events.

    Raises:
        HyperRecException: 503 when a refresh is already running or the
            build failed. The previous generation keeps serving.
    """
    logger.info("Refreshing model...")

    refreshed = engine.refresh()
    metrics_service.record_refresh(success=refreshed)

    if not refreshed:
        if engine.handle.is_refreshing:
            raise HyperRecException(
                message="Model refresh already in progress.",
                status_code=503,
            )
        error = engine.handle.last_refresh_error
        if error is not None:
            raise error
        raise HyperRecException(message="Model refresh failed.", status_code=503)

    generation = engine.handle.require()
    return {
        "status": "Model refreshed successfully",
        "model_version": generation.model_version,
    }
