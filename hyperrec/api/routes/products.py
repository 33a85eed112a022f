"""Product lookup endpoints."""

import logging

from fastapi import APIRouter, Depends, Query

from hyperrec.api.dependencies import get_engine
from hyperrec.api.schemas import RecommendationItem, SimilarProductsResponse
from hyperrec.exceptions import UnknownProductError
from hyperrec.recommender.engine import RecommendationEngine

# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/products",
    tags=["products"],
)


@router.get("/{product_id}/similar", response_model=SimilarProductsResponse)
def similar_products(
    product_id: str,
    limit: int = Query(10, ge=0, le=100),
    engine: RecommendationEngine = Depends(get_engine),
) -> SimilarProductsResponse:
    """Products closest to ``product_id`` by attribute embedding.

    Raises:
        UnknownProductError: If the product is not in the catalog.
    """
    if engine.catalog.get_product(product_id) is None:
        raise UnknownProductError(product_id)

    generation = engine.handle.current()
    similar = engine.similar_products(product_id, limit=limit)

    logger.debug(f"Found {len(similar)} products similar to {product_id}")

    return SimilarProductsResponse(
        product_id=product_id,
        similar=[RecommendationItem(**c.to_dict()) for c in similar],
        model_version=generation.model_version if generation else None,
    )
