"""Content-based filtering over the embedding indexes."""

import logging
from typing import List

import numpy as np

from hyperrec.recommender.embed import EmbeddingIndex
from hyperrec.recommender.records import Candidate, Source

# Configure module logger
logger = logging.getLogger(__name__)


class ContentFilter:
    """Ranks products by similarity to the user's taste vector."""

    def recommend(
        self,
        user_id: str,
        user_index: EmbeddingIndex,
        product_index: EmbeddingIndex,
        limit: int,
    ) -> List[Candidate]:
        """Top ``limit`` products by cosine similarity to the user embedding.

        Returns an empty list when the user has no embedding or an all-zero
        one. Products with no positive similarity are dropped.
        """
        user_embedding = user_index.get_embedding(user_id)
        if user_embedding is None or not np.any(user_embedding):
            logger.debug(f"No usable embedding for user {user_id}, returning no content candidates")
            return []

        ranked = product_index.rank_against(user_embedding, top_n=limit)

        return [
            Candidate(product_id=product_id, score=score, sources={Source.CONTENT_BASED})
            for product_id, score in ranked
            if score > 0
        ]
