"""Hybrid recommendation module.

Merges collaborative, content-based and trending candidates into a single
ranking and applies the personalization boosts.
"""

import logging
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from hyperrec.recommender.records import Candidate, Product, Source, User

# Configure module logger
logger = logging.getLogger(__name__)

# Default weights for hybrid scoring
DEFAULT_COLLABORATIVE_WEIGHT = 0.4
DEFAULT_CONTENT_WEIGHT = 0.4
DEFAULT_TRENDING_WEIGHT = 0.2
DEFAULT_LIMIT = 10

# Personalization boosts
CATEGORY_BOOST = 1.3
PRICE_RANGE_BOOST = 1.2
BRAND_BOOST = 1.4
SEASON_BOOST = 1.1
MAX_BOOST = CATEGORY_BOOST * PRICE_RANGE_BOOST * BRAND_BOOST * SEASON_BOOST


def _ranked(candidates: Iterable[Candidate]) -> List[Candidate]:
    return sorted(candidates, key=lambda c: (-c.score, c.product_id))


def combine(sources: Sequence[Tuple[Sequence[Candidate], float]]) -> List[Candidate]:
    """Merge weighted candidate lists.

    Every candidate's score is multiplied by its list's weight; products that
    appear in several lists have their weighted scores summed and their
    sources united.

    Args:
        sources: (candidates, weight) pairs.

    Returns:
        New candidates sorted by score descending, ties by product id.
    """
    combined: Dict[str, Candidate] = {}

    for candidates, weight in sources:
        for candidate in candidates:
            weighted_score = candidate.score * weight
            existing = combined.get(candidate.product_id)
            if existing is None:
                combined[candidate.product_id] = Candidate(
                    product_id=candidate.product_id,
                    score=weighted_score,
                    sources=set(candidate.sources),
                )
            else:
                existing.score += weighted_score
                existing.sources |= candidate.sources

    return _ranked(combined.values())


def current_season(today: Optional[date] = None) -> str:
    """Calendar season for the northern hemisphere.

    Spring is March-May, summer June-August, fall September-November.
    """
    month = (today or date.today()).month
    if 3 <= month <= 5:
        return "spring"
    if 6 <= month <= 8:
        return "summer"
    if 9 <= month <= 11:
        return "fall"
    return "winter"


def personalization_boost(product: Product, user: User, season: str) -> float:
    """Multiplicative boost from the four business rules."""
    boost = 1.0

    if product.category is not None and product.category in user.categories:
        boost *= CATEGORY_BOOST

    if user.price_range.contains(product.price):
        boost *= PRICE_RANGE_BOOST

    if product.brand is not None and product.brand in user.brands:
        boost *= BRAND_BOOST

    if season in product.seasons:
        boost *= SEASON_BOOST

    return boost


def apply_personalization_boost(
    candidates: Sequence[Candidate],
    user: User,
    products: Mapping[str, Product],
    season: Optional[str] = None,
) -> List[Candidate]:
    """Boost candidates by user preferences and re-sort.

    Candidates whose product record is unavailable keep their score.
    """
    season = season or current_season()
    boosted = []

    for candidate in candidates:
        product = products.get(candidate.product_id)
        if product is None:
            boosted.append(candidate)
            continue

        boost = personalization_boost(product, user, season)
        boosted.append(
            Candidate(
                product_id=candidate.product_id,
                score=candidate.score * boost,
                sources=set(candidate.sources),
                boost=boost,
            )
        )

    return _ranked(boosted)


class HybridRanker:
    """Combines the generator outputs into the final recommendation list.
    """

    def __init__(
        self,
        collaborative_weight: float = DEFAULT_COLLABORATIVE_WEIGHT,
        content_weight: float = DEFAULT_CONTENT_WEIGHT,
        trending_weight: float = DEFAULT_TRENDING_WEIGHT,
    ):
        """Initialize the ranker.

        Weights are used as given; they are not normalized.
        """
        self.weights = {
            Source.COLLABORATIVE: collaborative_weight,
            Source.CONTENT_BASED: content_weight,
            Source.TRENDING: trending_weight,
        }

        logger.info(
            f"Initialized HybridRanker: "
            f"collaborative weight={collaborative_weight:.2f}, "
            f"content weight={content_weight:.2f}, "
            f"trending weight={trending_weight:.2f}"
        )

    def rank(
        self,
        collaborative: Sequence[Candidate],
        content: Sequence[Candidate],
        trending: Sequence[Candidate],
        limit: int = DEFAULT_LIMIT,
        user: Optional[User] = None,
        products: Optional[Mapping[str, Product]] = None,
        exclude_ids: Optional[Set[str]] = None,
        season: Optional[str] = None,
    ) -> List[Candidate]:
        """Merge, filter, boost and truncate.

        Args:
            collaborative: Collaborative filter output.
            content: Content filter output.
            trending: Trending generator output.
            limit: Maximum number of results.
            user: User record for boosting; no boost without it.
            products: Product records for the merged candidates.
            exclude_ids: Product ids removed before boosting.
            season: Override of the current season.

        Returns:
            At most ``limit`` unique candidates, best first.
        """
        merged = combine([
            (collaborative, self.weights[Source.COLLABORATIVE]),
            (content, self.weights[Source.CONTENT_BASED]),
            (trending, self.weights[Source.TRENDING]),
        ])

        if exclude_ids:
            merged = [c for c in merged if c.product_id not in exclude_ids]

        if user is not None:
            merged = apply_personalization_boost(merged, user, products or {}, season)

        logger.debug(
            "Ranked hybrid candidates",
            extra={
                "num_collaborative": len(collaborative),
                "num_content": len(content),
                "num_trending": len(trending),
                "num_ranked": len(merged),
            },
        )

        return merged[:max(limit, 0)]
