"""Recommendation engine facade.

Wires the generators, the hybrid ranker, the interaction tracker and the
model handle together behind the two request operations: getting
recommendations and tracking interactions. Recommendation retrieval never
raises; any failure in the personalized pipeline is turned into the
fallback list.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set

from hyperrec.config import EngineConfig
from hyperrec.exceptions import ModelNotReadyError, TransientLookupError
from hyperrec.recommender.catalog import CatalogRepository
from hyperrec.recommender.collaborative import CollaborativeFilter
from hyperrec.recommender.content import ContentFilter
from hyperrec.recommender.generation import ModelGeneration, ModelHandle
from hyperrec.recommender.hybrid import HybridRanker
from hyperrec.recommender.records import (
    Candidate,
    InteractionEvent,
    InteractionKind,
    Product,
    Source,
    User,
)
from hyperrec.recommender.store import InteractionStore
from hyperrec.recommender.tracker import InteractionTracker, RefreshPolicy, RefreshScheduler
from hyperrec.recommender.trending import TrendingGenerator

# Configure module logger
logger = logging.getLogger(__name__)


@dataclass
class RecommendationResult:
    """Ordered recommendations for one request."""

    user_id: str
    candidates: List[Candidate] = field(default_factory=list)
    model_version: Optional[str] = None
    fallback: bool = False
    # Set when the result follows a tracked interaction
    tracked: Optional[bool] = None

    @property
    def product_ids(self) -> List[str]:
        return [c.product_id for c in self.candidates]

    def __len__(self) -> int:
        return len(self.candidates)


class RecommendationEngine:
    """Process-scoped recommendation service.

    Args:
        catalog: Read/write access to users and products.
        config: Engine configuration.
        store: Interaction store; created from the config if omitted.
        handle: Model handle; built over ``catalog`` and ``store`` if omitted.
    """

    def __init__(
        self,
        catalog: CatalogRepository,
        config: Optional[EngineConfig] = None,
        store: Optional[InteractionStore] = None,
        handle: Optional[ModelHandle] = None,
    ):
        self.config = config or EngineConfig()
        self.catalog = catalog
        self.store = store or InteractionStore(self.config.max_events_per_user)
        self.handle = handle or ModelHandle.for_catalog(catalog, self.store)

        self.collaborative = CollaborativeFilter()
        self.content = ContentFilter()
        self.trending = TrendingGenerator(catalog)
        self.ranker = HybridRanker(
            collaborative_weight=self.config.collaborative_weight,
            content_weight=self.config.content_weight,
            trending_weight=self.config.trending_weight,
        )
        self.tracker = InteractionTracker(
            store=self.store,
            catalog=catalog,
            handle=self.handle,
            policy=RefreshPolicy(
                event_threshold=self.config.refresh_event_threshold,
                interval_seconds=self.config.refresh_interval_seconds,
            ),
            background=self.config.background_refresh,
        )
        self.scheduler: Optional[RefreshScheduler] = None

    # Lifecycle

    def start(self, events: Optional[Iterable[InteractionEvent]] = None) -> bool:
        """Load initial events, build the first generation, start the scheduler.

        Returns:
            True if the first generation was built.
        """
        if events is not None:
            loaded = self.store.extend(events)
            logger.info(f"Loaded {loaded} interaction events")

        built = self.tracker.refresh()

        if self.config.scheduler_enabled and self.config.refresh_interval_seconds <= 0:
            logger.warning("Refresh scheduler not started, interval trigger is disabled")
        elif self.config.scheduler_enabled and self.scheduler is None:
            self.scheduler = RefreshScheduler(
                self.tracker,
                check_interval_seconds=min(self.config.refresh_interval_seconds, 60.0),
            )
            self.scheduler.start()

        return built

    def stop(self) -> None:
        if self.scheduler is not None:
            self.scheduler.stop()
            self.scheduler = None

    def refresh(self) -> bool:
        return self.tracker.refresh()

    # Read path

    def get_recommendations(
        self,
        user_id: str,
        limit: Optional[int] = None,
        exclude_recently_viewed: Optional[bool] = None,
        season: Optional[str] = None,
    ) -> RecommendationResult:
        """Ranked recommendations for a user.

        Args:
            user_id: Target user.
            limit: Maximum number of results (config default if None).
            exclude_recently_viewed: Drop products the user viewed recently
                (config default if None).
            season: Override of the current season for boosting.

        Returns:
            RecommendationResult; ``fallback`` is True when the personalized
            pipeline failed or produced nothing.
        """
        limit = self.config.default_limit if limit is None else limit
        if exclude_recently_viewed is None:
            exclude_recently_viewed = self.config.exclude_recently_viewed

        start_time = time.time()
        generation = self.handle.current()
        model_version = generation.model_version if generation else None

        try:
            candidates = self._personalized(
                generation, user_id, limit, exclude_recently_viewed, season
            )
            if candidates:
                logger.info(
                    "Recommendations generated",
                    extra={
                        "user_id": user_id,
                        "num_recommendations": len(candidates),
                        "model_version": model_version,
                        "total_time_ms": round((time.time() - start_time) * 1000, 2),
                    },
                )
                return RecommendationResult(
                    user_id=user_id,
                    candidates=candidates,
                    model_version=model_version,
                )
            logger.info(
                "Personalized pipeline returned nothing, using fallback",
                extra={"user_id": user_id},
            )
        except ModelNotReadyError:
            logger.warning(
                "Model not ready, using fallback",
                extra={"user_id": user_id},
            )
        except TransientLookupError as e:
            logger.error(
                "Catalog lookup failed, using fallback",
                extra={"user_id": user_id, **e.details},
            )
        except Exception as e:
            logger.error(
                "Recommendation generation failed, using fallback",
                extra={
                    "user_id": user_id,
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
                exc_info=True,
            )

        return RecommendationResult(
            user_id=user_id,
            candidates=self.trending.fallback(limit),
            model_version=model_version,
            fallback=True,
        )

    def _personalized(
        self,
        generation: Optional[ModelGeneration],
        user_id: str,
        limit: int,
        exclude_recently_viewed: bool,
        season: Optional[str],
    ) -> List[Candidate]:
        if generation is None:
            raise ModelNotReadyError()
        if limit <= 0:
            return []

        user = self._lookup_user(user_id)
        if user is None:
            logger.info(f"User {user_id} not found, serving non-personalized candidates")

        pool_size = limit * max(self.config.candidate_multiplier, 1)
        collaborative = self.collaborative.recommend(user_id, generation.matrix, pool_size)
        content = self.content.recommend(
            user_id, generation.user_index, generation.product_index, pool_size
        )
        trending = self.trending.trending(limit)

        excluded: Set[str] = set()
        if exclude_recently_viewed:
            excluded = self.recently_viewed(user_id, user)

        candidate_ids = {c.product_id for c in (*collaborative, *content, *trending)}
        products = self._lookup_products(candidate_ids) if user is not None else {}

        return self.ranker.rank(
            collaborative,
            content,
            trending,
            limit=limit,
            user=user,
            products=products,
            exclude_ids=excluded,
            season=season,
        )

    def recently_viewed(self, user_id: str, user: Optional[User] = None) -> Set[str]:
        """Products on the user's recently-viewed list or viewed in tracked events."""
        viewed = self.store.viewed_product_ids(user_id)
        if user is not None:
            viewed.update(user.recently_viewed)
        return viewed

    def _lookup_user(self, user_id: str) -> Optional[User]:
        try:
            return self.catalog.get_user(user_id)
        except Exception as e:
            raise TransientLookupError("user", e) from e

    def _lookup_products(self, product_ids: Iterable[str]) -> Dict[str, Product]:
        try:
            return self.catalog.get_products(product_ids)
        except Exception as e:
            raise TransientLookupError("products", e) from e

    def similar_products(self, product_id: str, limit: int = 10) -> List[Candidate]:
        """Products closest to ``product_id`` in the current embedding space."""
        generation = self.handle.current()
        if generation is None:
            return []

        return [
            Candidate(product_id=pid, score=score, sources={Source.CONTENT_BASED})
            for pid, score in generation.product_index.get_similar(product_id, top_n=limit)
        ]

    # Write path

    def track_interaction(
        self,
        user_id: str,
        product_id: str,
        kind: InteractionKind,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Record an interaction; never raises."""
        return self.tracker.track(user_id, product_id, kind, metadata)

    def track_view_and_recommend(
        self,
        user_id: str,
        product_id: str,
        metadata: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> RecommendationResult:
        """Track a completed view and return the updated recommendation set.

        Called when the live session layer wants fresh recommendations to
        push to the user right after a product view.
        """
        tracked = self.track_interaction(user_id, product_id, InteractionKind.VIEW, metadata)
        result = self.get_recommendations(user_id, limit=limit)
        result.tracked = tracked
        return result

    def status(self) -> Dict[str, Any]:
        generation = self.handle.current()
        status: Dict[str, Any] = {
            "model_loaded": generation is not None,
            "model_version": None,
            "timestamp_last_loaded": None,
            "num_users": 0,
            "num_products": 0,
            "refreshing": self.handle.is_refreshing,
            "events_since_refresh": self.tracker.events_since_refresh,
            "stored_events": len(self.store),
        }
        if generation is not None:
            status.update(
                model_version=generation.model_version,
                timestamp_last_loaded=generation.built_at.isoformat(),
                num_users=generation.matrix.shape[0],
                num_products=generation.matrix.shape[1],
            )
        return status
