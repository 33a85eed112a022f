"""Feature encoding for users and products.

Turns raw catalog records into fixed-length numeric vectors. Every
projection is deterministic: categories are one-hot encoded against a
sorted vocabulary fixed for the lifetime of one model generation, and any
attribute missing from a record encodes as 0.
"""

import logging
import re
from typing import Iterable, List, Sequence

import numpy as np

from hyperrec.recommender.records import PERSONALIZATION_SCORES, Product, User

# Configure module logger
logger = logging.getLogger(__name__)

SEASONS = ("spring", "summer", "fall", "winter")

STOP_WORDS = frozenset(
    ["the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by"]
)
QUALITY_PATTERN = re.compile(r"\b(premium|luxury|high-quality)\b", re.IGNORECASE)
DISCOUNT_PATTERN = re.compile(r"\b(sale|discount|cheap|affordable)\b", re.IGNORECASE)

# Leading numeric slots shared by both projections
NUM_BASE_FEATURES = 13


def _clamp(value: float, upper: float = 1.0) -> float:
    return float(min(max(value, 0.0), upper))


def build_category_vocabulary(products: Iterable[Product]) -> List[str]:
    """Collect the sorted set of categories used by the given products."""
    return sorted({p.category for p in products if p.category})


def extract_text_features(text: str) -> List[float]:
    """Lexical signals from free text.

    Returns:
        [meaningful word count / 100, quality hits / 10, discount hits / 10]
    """
    words = text.lower().split()
    meaningful = [w for w in words if w not in STOP_WORDS and len(w) > 2]

    return [
        len(meaningful) / 100,
        len(QUALITY_PATTERN.findall(text)) / 10,
        len(DISCOUNT_PATTERN.findall(text)) / 10,
    ]


class FeatureEncoder:
    """Encodes users and products into vectors of a shared dimension.

    Both projections are ``NUM_BASE_FEATURES + len(category_vocabulary)``
    long. The trailing block is a one-hot of the product category, or a
    multi-hot of the user's preferred categories, over the same vocabulary.
    """

    def __init__(self, category_vocabulary: Sequence[str]):
        self.category_vocabulary = list(category_vocabulary)
        self._category_index = {c: i for i, c in enumerate(self.category_vocabulary)}

    @classmethod
    def from_products(cls, products: Iterable[Product]) -> "FeatureEncoder":
        return cls(build_category_vocabulary(products))

    @property
    def dimension(self) -> int:
        return NUM_BASE_FEATURES + len(self.category_vocabulary)

    def _encode_categories(self, categories: Iterable[str]) -> List[float]:
        block = [0.0] * len(self.category_vocabulary)
        for category in categories:
            idx = self._category_index.get(category)
            if idx is not None:
                block[idx] = 1.0
        return block

    def encode_product(self, product: Product) -> np.ndarray:
        """Encode a product record.

        Args:
            product: Product to encode.

        Returns:
            1-D float array of length ``self.dimension``.
        """
        features = [
            _clamp(product.price / 1000),
            _clamp(product.views / 10000),
            _clamp(product.average_rating / 5),
        ]

        features.extend(1.0 if season in product.seasons else 0.0 for season in SEASONS)

        features.extend([
            _clamp(len(product.colors) / 10),
            _clamp(len(product.sizes) / 10),
            _clamp(len(product.materials) / 5),
        ])

        features.extend(extract_text_features(f"{product.name} {product.description}"))

        categories = [product.category] if product.category else []
        features.extend(self._encode_categories(categories))

        return np.asarray(features, dtype=np.float64)

    def encode_user(self, user: User) -> np.ndarray:
        """Encode a user record.

        Args:
            user: User to encode.

        Returns:
            1-D float array of length ``self.dimension``.
        """
        features = [
            _clamp(user.price_range.min / 1000),
            _clamp(user.price_range.max / 1000),
        ]

        features.extend(_clamp(user.scores.get(name, 0.0)) for name in PERSONALIZATION_SCORES)

        features.extend([
            _clamp(user.total_purchases / 50),
            _clamp(user.total_spent / 10000),
            _clamp(user.average_order_value / 500),
        ])

        # Click-pattern aggregates
        features.append(sum(user.time_of_day_clicks) / 100)
        features.append(sum(user.day_of_week_clicks) / 100)

        features.extend(self._encode_categories(user.categories))

        return np.asarray(features, dtype=np.float64)
