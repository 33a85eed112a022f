"""Model generations and the process-scoped handle that serves them.

A generation bundles the interaction matrix with both embedding indexes.
It is built from one snapshot of the catalog and the interaction store and
published by a single reference assignment, so a reader that calls
``current()`` once sees either the whole old generation or the whole new
one. Refreshes are serialized: a refresh requested while another is
running returns immediately.
"""

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from hyperrec.exceptions import ModelNotReadyError, RefreshError
from hyperrec.recommender.catalog import CatalogRepository
from hyperrec.recommender.embed import EmbeddingIndex, build_embedding_indexes
from hyperrec.recommender.features import FeatureEncoder
from hyperrec.recommender.matrix import InteractionMatrix, build_interaction_matrix
from hyperrec.recommender.records import utcnow
from hyperrec.recommender.store import InteractionStore

# Configure module logger
logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ModelGeneration:
    """One consistent snapshot of the recommendation model."""

    version: int
    matrix: InteractionMatrix
    user_index: EmbeddingIndex
    product_index: EmbeddingIndex
    encoder: FeatureEncoder
    built_at: datetime
    events_seen: int = 0

    @property
    def model_version(self) -> str:
        return f"gen-{self.version}"

    def summary(self) -> dict:
        return {
            "model_version": self.model_version,
            "built_at": self.built_at.isoformat(),
            "num_users": self.matrix.shape[0],
            "num_products": self.matrix.shape[1],
            "embedding_dim": self.encoder.dimension,
        }


def build_generation(
    catalog: CatalogRepository,
    store: InteractionStore,
    version: int,
    now: Optional[datetime] = None,
) -> ModelGeneration:
    """Build a generation from the current catalog and interaction history.

    Users, products and events are read once up front; everything after that
    works on those copies.
    """
    now = now or utcnow()

    users = catalog.active_users()
    products = catalog.active_products()
    events_seen = store.total_appended
    snapshot = store.snapshot()

    matrix = build_interaction_matrix(users, products, snapshot, now=now)
    user_index, product_index, encoder = build_embedding_indexes(users, products)

    return ModelGeneration(
        version=version,
        matrix=matrix,
        user_index=user_index,
        product_index=product_index,
        encoder=encoder,
        built_at=now,
        events_seen=events_seen,
    )


class ModelHandle:
    """Holds the current generation and rebuilds it on request.

    Args:
        builder: Callable taking the next version number and returning a
            freshly built ModelGeneration.
    """

    def __init__(self, builder: Callable[[int], ModelGeneration]):
        self._builder = builder
        self._generation: Optional[ModelGeneration] = None
        self._refresh_lock = threading.Lock()
        self.last_refresh_error: Optional[RefreshError] = None
        self.last_refresh_at: Optional[float] = None

    @classmethod
    def for_catalog(cls, catalog: CatalogRepository, store: InteractionStore) -> "ModelHandle":
        return cls(lambda version: build_generation(catalog, store, version))

    def _next_version(self) -> int:
        current = self._generation
        return current.version + 1 if current is not None else 1

    def build(self) -> ModelGeneration:
        """Build a new generation without publishing it."""
        return self._builder(self._next_version())

    def current(self) -> Optional[ModelGeneration]:
        return self._generation

    def require(self) -> ModelGeneration:
        """Current generation, or ModelNotReadyError before the first build."""
        generation = self._generation
        if generation is None:
            raise ModelNotReadyError()
        return generation

    def swap(self, generation: ModelGeneration) -> Optional[ModelGeneration]:
        """Publish ``generation`` and return the one it replaced."""
        previous = self._generation
        self._generation = generation
        logger.info(
            "Model generation published",
            extra={
                "model_version": generation.model_version,
                "previous_version": previous.model_version if previous else None,
            },
        )
        return previous

    @property
    def is_refreshing(self) -> bool:
        return self._refresh_lock.locked()

    def refresh(self) -> bool:
        """Rebuild and publish a generation.

        Returns:
            True if a new generation was published. False when another
            refresh was already running or the build failed; in both cases
            the current generation stays in place.
        """
        if not self._refresh_lock.acquire(blocking=False):
            logger.info("Refresh already in progress, skipping")
            return False

        start_time = time.time()
        try:
            generation = self.build()
            self.swap(generation)
            self.last_refresh_error = None
            return True
        except Exception as e:
            self.last_refresh_error = RefreshError(e)
            logger.error(
                "Model refresh failed, keeping previous generation",
                extra={
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "current_version": (
                        self._generation.model_version if self._generation else None
                    ),
                },
                exc_info=True,
            )
            return False
        finally:
            self.last_refresh_at = time.time()
            logger.debug(
                "Refresh finished",
                extra={"duration_ms": round((time.time() - start_time) * 1000, 2)},
            )
            self._refresh_lock.release()
