"""Neighbor-based collaborative filtering.

Recommends products that the most similar users interacted with and the
target user has not.
"""

import logging
from typing import Dict, List

import numpy as np

from hyperrec.recommender.matrix import InteractionMatrix
from hyperrec.recommender.records import Candidate, Source
from hyperrec.recommender.similarity import cosine_similarities

# Configure module logger
logger = logging.getLogger(__name__)

MIN_NEIGHBOR_SIMILARITY = 0.1
MAX_NEIGHBORS = 10


class CollaborativeFilter:
    """User-user collaborative filter over an InteractionMatrix."""

    def __init__(
        self,
        min_similarity: float = MIN_NEIGHBOR_SIMILARITY,
        max_neighbors: int = MAX_NEIGHBORS,
    ):
        self.min_similarity = min_similarity
        self.max_neighbors = max_neighbors

    def neighbors(self, user_id: str, matrix: InteractionMatrix) -> List[tuple]:
        """Most similar users as (row index, similarity), best first.

        Only neighbors above ``min_similarity`` are kept. Equal similarities
        are ordered by user id.
        """
        user_idx = matrix.user_index.get(user_id)
        if user_idx is None:
            return []

        similarities = cosine_similarities(matrix.sparse[user_idx], matrix.sparse)

        candidates = [
            (idx, float(sim))
            for idx, sim in enumerate(similarities)
            if idx != user_idx and sim > self.min_similarity
        ]
        candidates.sort(key=lambda pair: (-pair[1], matrix.user_ids[pair[0]]))

        return candidates[: self.max_neighbors]

    def recommend(
        self,
        user_id: str,
        matrix: InteractionMatrix,
        limit: int,
    ) -> List[Candidate]:
        """Score unseen products by neighbor interactions.

        Each neighbor contributes ``neighbor_cell * similarity`` to every
        product the neighbor touched and the target user did not; the
        contributions are summed.

        Args:
            user_id: Target user.
            matrix: Current interaction matrix.
            limit: Maximum number of candidates.

        Returns:
            Candidates sorted by score, empty for users absent from the matrix.
        """
        user_row = matrix.row(user_id)
        if user_row is None:
            logger.debug(f"User {user_id} not in interaction matrix, returning no collaborative candidates")
            return []

        if limit <= 0 or matrix.shape[1] == 0:
            return []

        scores: Dict[int, float] = {}
        unseen = user_row == 0

        for neighbor_idx, similarity in self.neighbors(user_id, matrix):
            neighbor_row = matrix.scores[neighbor_idx]
            for product_idx in np.flatnonzero(unseen & (neighbor_row > 0)):
                contribution = float(neighbor_row[product_idx]) * similarity
                scores[product_idx] = scores.get(product_idx, 0.0) + contribution

        ranked = sorted(
            scores.items(),
            key=lambda item: (-item[1], matrix.product_ids[item[0]]),
        )

        return [
            Candidate(
                product_id=matrix.product_ids[idx],
                score=score,
                sources={Source.COLLABORATIVE},
            )
            for idx, score in ranked[:limit]
        ]
