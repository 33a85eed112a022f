"""User x product interaction matrix.

The matrix is rebuilt wholesale from an interaction snapshot and never
mutated afterwards; a new generation replaces the old one atomically.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
from scipy.sparse import csr_matrix

from hyperrec.recommender.records import InteractionEvent, Product, User, utcnow
from hyperrec.recommender.store import InteractionStore

# Configure module logger
logger = logging.getLogger(__name__)

RECENCY_DECAY_DAYS = 30.0
RECENCY_WEIGHT = 0.7
DURATION_WEIGHT = 0.3
DURATION_CAP_MINUTES = 10.0
SECONDS_PER_DAY = 86400.0


def recency_score(timestamp: datetime, now: Optional[datetime] = None) -> float:
    """Exponential decay over 30 days; events in the future count as today."""
    now = now or utcnow()
    days = max((now - timestamp).total_seconds() / SECONDS_PER_DAY, 0.0)
    return math.exp(-days / RECENCY_DECAY_DAYS)


def duration_score(duration_seconds: Optional[float]) -> float:
    """Viewing time normalized to [0, 1], saturating at 10 minutes."""
    if not duration_seconds or duration_seconds < 0:
        return 0.0
    return min(duration_seconds / 60, DURATION_CAP_MINUTES) / DURATION_CAP_MINUTES


def interaction_score(event: InteractionEvent, now: Optional[datetime] = None) -> float:
    return (
        recency_score(event.timestamp, now) * RECENCY_WEIGHT
        + duration_score(event.duration) * DURATION_WEIGHT
    )


@dataclass(frozen=True, eq=False)
class InteractionMatrix:
    """Dense interaction scores with the ids that index its rows and columns."""

    scores: np.ndarray
    user_ids: Tuple[str, ...]
    product_ids: Tuple[str, ...]
    user_index: Dict[str, int] = field(init=False, repr=False)
    product_index: Dict[str, int] = field(init=False, repr=False)
    sparse: csr_matrix = field(init=False, repr=False)

    def __post_init__(self):
        if self.scores.shape != (len(self.user_ids), len(self.product_ids)):
            raise ValueError(
                f"Score shape {self.scores.shape} does not match "
                f"{len(self.user_ids)} users x {len(self.product_ids)} products"
            )
        self.scores.setflags(write=False)
        object.__setattr__(self, "user_index", {u: i for i, u in enumerate(self.user_ids)})
        object.__setattr__(self, "product_index", {p: j for j, p in enumerate(self.product_ids)})
        object.__setattr__(self, "sparse", csr_matrix(self.scores))

    @property
    def shape(self) -> Tuple[int, int]:
        return self.scores.shape

    def row(self, user_id: str) -> Optional[np.ndarray]:
        idx = self.user_index.get(user_id)
        if idx is None:
            return None
        return self.scores[idx]

    def cell(self, user_id: str, product_id: str) -> float:
        i = self.user_index.get(user_id)
        j = self.product_index.get(product_id)
        if i is None or j is None:
            return 0.0
        return float(self.scores[i, j])

    @classmethod
    def empty(cls) -> "InteractionMatrix":
        return cls(scores=np.zeros((0, 0)), user_ids=(), product_ids=())


def build_interaction_matrix(
    users: Iterable[Union[User, str]],
    products: Iterable[Union[Product, str]],
    interactions: Union[InteractionStore, Mapping[str, Sequence[InteractionEvent]]],
    now: Optional[datetime] = None,
) -> InteractionMatrix:
    """Build the matrix from active users, active products and their events.

    For every stored event between an active user and an active product the
    cell keeps the maximum of ``0.7 * recency + 0.3 * duration`` over all of
    that pair's events.

    Args:
        users: Active users (records or ids); defines row order.
        products: Active products (records or ids); defines column order.
        interactions: Store or snapshot mapping user id to events.
        now: Reference time for recency decay.

    Returns:
        A new immutable InteractionMatrix.
    """
    now = now or utcnow()

    user_ids = _active_ids(users)
    product_ids = _active_ids(products)

    if isinstance(interactions, InteractionStore):
        interactions = interactions.snapshot()

    product_index = {pid: j for j, pid in enumerate(product_ids)}
    scores = np.zeros((len(user_ids), len(product_ids)), dtype=np.float64)

    n_events = 0
    for i, user_id in enumerate(user_ids):
        for event in interactions.get(user_id, ()):
            j = product_index.get(event.product_id)
            if j is None:
                continue
            scores[i, j] = max(scores[i, j], interaction_score(event, now))
            n_events += 1

    matrix = InteractionMatrix(
        scores=scores,
        user_ids=tuple(user_ids),
        product_ids=tuple(product_ids),
    )

    n_cells = scores.size
    logger.info(
        "Interaction matrix built",
        extra={
            "num_users": len(user_ids),
            "num_products": len(product_ids),
            "num_events": n_events,
            "density": round(matrix.sparse.nnz / n_cells, 6) if n_cells else 0.0,
        },
    )

    return matrix


def _active_ids(records: Iterable[Union[User, Product, str]]) -> List[str]:
    ids: List[str] = []
    seen = set()
    for record in records:
        if isinstance(record, str):
            record_id = record
        elif not record.is_active:
            continue
        else:
            record_id = record.id
        if record_id not in seen:
            seen.add(record_id)
            ids.append(record_id)
    return ids
