"""Popularity-based generators: trending items and cold-start fallback."""

import logging
from typing import List

from hyperrec.recommender.catalog import CatalogRepository
from hyperrec.recommender.records import Candidate, Source

# Configure module logger
logger = logging.getLogger(__name__)

TRENDING_BASE_SCORE = 0.8
FALLBACK_BASE_SCORE = 0.5


class TrendingGenerator:
    """Non-personalized rankings read straight from product analytics."""

    def __init__(self, catalog: CatalogRepository):
        self.catalog = catalog

    def trending(self, limit: int) -> List[Candidate]:
        """Active products by trending score, then views, each scored 0.8."""
        if limit <= 0:
            return []

        products = sorted(
            self.catalog.active_products(),
            key=lambda p: (-p.trending_score, -p.views, p.id),
        )

        return [
            Candidate(product_id=p.id, score=TRENDING_BASE_SCORE, sources={Source.TRENDING})
            for p in products[:limit]
        ]

    def fallback(self, limit: int) -> List[Candidate]:
        """Featured active products by views, each scored 0.5.

        Used only when the personalized pipeline fails or returns nothing.
        A failing catalog read yields an empty list.
        """
        if limit <= 0:
            return []

        try:
            products = sorted(
                self.catalog.featured_products(),
                key=lambda p: (-p.views, p.id),
            )
        except Exception as e:
            logger.error(
                "Fallback recommendations failed",
                extra={"error": str(e), "error_type": type(e).__name__},
                exc_info=True,
            )
            return []

        return [
            Candidate(product_id=p.id, score=FALLBACK_BASE_SCORE, sources={Source.FALLBACK})
            for p in products[:limit]
        ]
