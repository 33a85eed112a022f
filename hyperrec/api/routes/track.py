"""Interaction tracking endpoints.

Tracking is fire-and-forget from the client's point of view: the event is
accepted with 202 even when recording it failed, and the failure shows up
in the logs and in ``/metrics``.
"""

import logging
import time

from fastapi import APIRouter, Depends, status

from hyperrec.api.dependencies import get_engine
from hyperrec.api.metrics import metrics_service
from hyperrec.api.schemas import (
    RecommendationResponse,
    TrackRequest,
    TrackResponse,
    TrackViewRequest,
)
from hyperrec.recommender.engine import RecommendationEngine
from hyperrec.recommender.records import InteractionKind

# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/track",
    tags=["tracking"],
)


@router.post("", response_model=TrackResponse, status_code=status.HTTP_202_ACCEPTED)
def track_interaction(
    request: TrackRequest,
    engine: RecommendationEngine = Depends(get_engine),
) -> TrackResponse:
    """Record a view, purchase, add-to-cart or add-to-wishlist event."""
    accepted = engine.track_interaction(
        request.user_id,
        request.product_id,
        request.kind,
        request.metadata(),
    )
    metrics_service.record_tracked_event(success=accepted)

    return TrackResponse(
        accepted=accepted,
        user_id=request.user_id,
        product_id=request.product_id,
        kind=request.kind,
    )


@router.post("/view", response_model=RecommendationResponse)
def track_view(
    request: TrackViewRequest,
    engine: RecommendationEngine = Depends(get_engine),
) -> RecommendationResponse:
    """Track a completed product view and return refreshed recommendations."""
    start_time = time.time()

    metadata = {"duration": request.duration} if request.duration is not None else None
    result = engine.track_view_and_recommend(
        request.user_id,
        request.product_id,
        metadata=metadata,
        limit=request.limit,
    )

    latency_ms = (time.time() - start_time) * 1000
    metrics_service.record_tracked_event(success=bool(result.tracked))
    metrics_service.record_recommendation(latency_ms, fallback=result.fallback)

    logger.info(
        "View tracked, recommendations updated",
        extra={
            "user_id": request.user_id,
            "product_id": request.product_id,
            "kind": InteractionKind.VIEW.value,
            "num_recommendations": len(result),
            "fallback": result.fallback,
        },
    )

    return RecommendationResponse.from_result(result)
