"""Records exchanged with the catalog and returned to callers.

Users and products are owned by external services; these dataclasses are
the read-only views the recommender works with. ``from_dict`` accepts the
raw snake_case records the catalog hands out and fills absent fields with
defaults so that encoders never see missing values.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Set

import pandas as pd

DEFAULT_PRICE_MIN = 0.0
DEFAULT_PRICE_MAX = 10000.0

PERSONALIZATION_SCORES = (
    "fashion_style",
    "price_consciousness",
    "brand_loyalty",
    "trend_follower",
    "quality_focused",
    "impulse_buyer",
)


class InteractionKind(str, Enum):
    """Kinds of tracked user actions."""

    VIEW = "view"
    PURCHASE = "purchase"
    ADD_TO_CART = "add_to_cart"
    ADD_TO_WISHLIST = "add_to_wishlist"


class Source(str, Enum):
    """Generators a candidate can come from."""

    COLLABORATIVE = "collaborative"
    CONTENT_BASED = "content-based"
    TRENDING = "trending"
    FALLBACK = "fallback"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_datetime(value: Any) -> datetime:
    """Parse a timestamp into an aware UTC datetime."""
    if value is None:
        return utcnow()
    return pd.to_datetime(value, utc=True).to_pydatetime()


@dataclass
class PriceRange:
    min: float = DEFAULT_PRICE_MIN
    max: float = DEFAULT_PRICE_MAX

    def contains(self, price: float) -> bool:
        return self.min <= price <= self.max


@dataclass
class User:
    """Read-only view of a user record."""

    id: str
    is_active: bool = True
    price_range: PriceRange = field(default_factory=PriceRange)
    categories: List[str] = field(default_factory=list)
    brands: List[str] = field(default_factory=list)
    scores: Dict[str, float] = field(default_factory=dict)
    total_purchases: float = 0.0
    total_spent: float = 0.0
    average_order_value: float = 0.0
    time_of_day_clicks: List[float] = field(default_factory=list)
    day_of_week_clicks: List[float] = field(default_factory=list)
    recently_viewed: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        preferences = data.get("preferences") or {}
        behavior = data.get("behavior") or {}
        click_patterns = behavior.get("click_patterns") or {}
        price_range = preferences.get("price_range") or {}

        return cls(
            id=str(data["id"]),
            is_active=bool(data.get("is_active", True)),
            price_range=PriceRange(
                min=float(price_range.get("min", DEFAULT_PRICE_MIN)),
                max=float(price_range.get("max", DEFAULT_PRICE_MAX)),
            ),
            categories=[str(c) for c in preferences.get("categories") or []],
            brands=[str(b) for b in preferences.get("brands") or []],
            scores={
                name: float((data.get("personalization_scores") or {}).get(name, 0.0))
                for name in PERSONALIZATION_SCORES
            },
            total_purchases=float(behavior.get("total_purchases", 0) or 0),
            total_spent=float(behavior.get("total_spent", 0) or 0),
            average_order_value=float(behavior.get("average_order_value", 0) or 0),
            time_of_day_clicks=[
                float(slot.get("clicks", 0) or 0)
                for slot in click_patterns.get("time_of_day") or []
            ],
            day_of_week_clicks=[
                float(slot.get("clicks", 0) or 0)
                for slot in click_patterns.get("day_of_week") or []
            ],
            recently_viewed=[str(p) for p in data.get("recently_viewed") or []],
        )


@dataclass
class Product:
    """Read-only view of a product record, plus its analytics counters."""

    id: str
    name: str = ""
    description: str = ""
    price: float = 0.0
    category: Optional[str] = None
    brand: Optional[str] = None
    status: str = "active"
    featured: bool = False
    colors: List[str] = field(default_factory=list)
    sizes: List[str] = field(default_factory=list)
    materials: List[str] = field(default_factory=list)
    seasons: List[str] = field(default_factory=list)
    features: List[str] = field(default_factory=list)
    views: int = 0
    purchases: int = 0
    add_to_cart: int = 0
    add_to_wishlist: int = 0
    conversion_rate: float = 0.0
    average_rating: float = 0.0
    trending_score: float = 0.0

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        attributes = data.get("attributes") or {}
        analytics = data.get("analytics") or {}

        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            description=data.get("description") or "",
            price=float(data.get("price", 0) or 0),
            category=data.get("category"),
            brand=data.get("brand"),
            status=data.get("status", "active"),
            featured=bool(data.get("featured", False)),
            colors=list(attributes.get("colors") or []),
            sizes=list(attributes.get("sizes") or []),
            materials=list(attributes.get("materials") or []),
            seasons=[s.lower() for s in attributes.get("season") or []],
            features=list(attributes.get("features") or []),
            views=int(analytics.get("views", 0) or 0),
            purchases=int(analytics.get("purchases", 0) or 0),
            add_to_cart=int(analytics.get("add_to_cart", 0) or 0),
            add_to_wishlist=int(analytics.get("add_to_wishlist", 0) or 0),
            conversion_rate=float(analytics.get("conversion_rate", 0) or 0),
            average_rating=float(analytics.get("average_rating", 0) or 0),
            trending_score=float(analytics.get("trending_score", 0) or 0),
        )


@dataclass(frozen=True)
class InteractionEvent:
    """One tracked action. Never mutated after creation."""

    user_id: str
    product_id: str
    kind: InteractionKind
    timestamp: datetime
    duration: Optional[float] = None
    source: Optional[str] = None


@dataclass
class Candidate:
    """A scored product produced by one or more generators."""

    product_id: str
    score: float
    sources: Set[Source] = field(default_factory=set)
    boost: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "score": self.score,
            "sources": sorted(s.value for s in self.sources),
            "boost": self.boost,
        }
