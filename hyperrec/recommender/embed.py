"""Embedding indexes for content-based recommendations.

Holds one generation of user or product embeddings keyed by id. Indexes are
built from catalog records through the FeatureEncoder and are never
modified after construction.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from hyperrec.recommender.features import FeatureEncoder
from hyperrec.recommender.records import Product, User
from hyperrec.recommender.similarity import cosine_similarities, cosine_similarity

# Configure module logger
logger = logging.getLogger(__name__)


class EmbeddingIndex:
    """Holds embeddings for one kind of entity.
    """

    def __init__(
        self,
        embeddings: np.ndarray,
        ids: Sequence[str],
        kind: str = "product",
    ):
        """Initialize.

        Args:
            embeddings: Array of shape (len(ids), dimension).
            ids: Entity ids, in row order.
            kind: "user" or "product", used for logging only.
        """
        if embeddings.ndim != 2 or embeddings.shape[0] != len(ids):
            raise ValueError(
                f"Embeddings shape {embeddings.shape} does not match {len(ids)} ids"
            )

        self.embeddings = embeddings
        self.embeddings.setflags(write=False)
        self.ids = tuple(ids)
        self.kind = kind
        self.id_to_idx = {entity_id: idx for idx, entity_id in enumerate(self.ids)}

        logger.info(
            f"Initialized EmbeddingIndex: {len(self.ids)} {kind}s, "
            f"embedding_dim={self.dimension}"
        )

    @property
    def dimension(self) -> int:
        return int(self.embeddings.shape[1])

    def __len__(self) -> int:
        return len(self.ids)

    def __contains__(self, entity_id: str) -> bool:
        return entity_id in self.id_to_idx

    def get_embedding(self, entity_id: str) -> Optional[np.ndarray]:
        """Get embedding for an id, or None if absent.
        """
        idx = self.id_to_idx.get(entity_id)
        if idx is None:
            return None
        return self.embeddings[idx]

    def compute_similarity(self, id1: str, id2: str) -> Optional[float]:
        """Get similarity between two entries of this index.
        """
        emb1 = self.get_embedding(id1)
        emb2 = self.get_embedding(id2)

        if emb1 is None or emb2 is None:
            return None

        return cosine_similarity(emb1, emb2)

    def rank_against(
        self,
        vector: np.ndarray,
        top_n: int,
        exclude_ids: Optional[Iterable[str]] = None,
    ) -> List[Tuple[str, float]]:
        """Rank every entry by cosine similarity to ``vector``.

        Ties are broken by id so that results are reproducible.

        Returns:
            Up to ``top_n`` (id, similarity) pairs, most similar first.
        """
        if top_n <= 0 or len(self.ids) == 0:
            return []

        if vector.shape[-1] != self.dimension:
            raise ValueError(
                f"Vector dimension {vector.shape[-1]} does not match "
                f"index dimension {self.dimension}"
            )

        similarities = cosine_similarities(vector, self.embeddings)
        excluded = set(exclude_ids or ())

        ranked = sorted(
            (
                (entity_id, float(similarities[idx]))
                for idx, entity_id in enumerate(self.ids)
                if entity_id not in excluded
            ),
            key=lambda pair: (-pair[1], pair[0]),
        )
        return ranked[:top_n]

    def get_similar(
        self,
        entity_id: str,
        top_n: int = 10,
        exclude_ids: Optional[List[str]] = None,
    ) -> List[Tuple[str, float]]:
        """Find the entries most similar to an existing one.
        """
        emb = self.get_embedding(entity_id)
        if emb is None:
            logger.warning(f"{self.kind.capitalize()} {entity_id} not found in embeddings")
            return []

        excluded = set(exclude_ids or [])
        excluded.add(entity_id)
        return self.rank_against(emb, top_n=top_n, exclude_ids=excluded)


def build_product_index(
    products: Iterable[Product],
    encoder: FeatureEncoder,
) -> EmbeddingIndex:
    """Encode every active product."""
    active = [p for p in products if p.is_active]
    if active:
        embeddings = np.vstack([encoder.encode_product(p) for p in active])
    else:
        embeddings = np.zeros((0, encoder.dimension))
    return EmbeddingIndex(embeddings, [p.id for p in active], kind="product")


def build_user_index(
    users: Iterable[User],
    encoder: FeatureEncoder,
) -> EmbeddingIndex:
    """Encode every active user."""
    active = [u for u in users if u.is_active]
    if active:
        embeddings = np.vstack([encoder.encode_user(u) for u in active])
    else:
        embeddings = np.zeros((0, encoder.dimension))
    return EmbeddingIndex(embeddings, [u.id for u in active], kind="user")


def build_embedding_indexes(
    users: Iterable[User],
    products: Sequence[Product],
    encoder: Optional[FeatureEncoder] = None,
) -> Tuple[EmbeddingIndex, EmbeddingIndex, FeatureEncoder]:
    """Build user and product indexes over a shared feature basis.

    Args:
        users: User records.
        products: Product records; also define the category vocabulary
            when ``encoder`` is not given.
        encoder: Optional pre-built encoder.

    Returns:
        Tuple of (user index, product index, encoder used).
    """
    products = list(products)
    if encoder is None:
        encoder = FeatureEncoder.from_products(p for p in products if p.is_active)

    user_index = build_user_index(users, encoder)
    product_index = build_product_index(products, encoder)

    logger.info(
        f"Embeddings computed: {len(user_index)} users, {len(product_index)} products, "
        f"dim={encoder.dimension}, categories={len(encoder.category_vocabulary)}"
    )

    return user_index, product_index, encoder
