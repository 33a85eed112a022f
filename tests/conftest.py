"""Shared fixtures: a small catalog, interaction events and engine setups."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from hyperrec.config import EngineConfig
from hyperrec.recommender.catalog import InMemoryCatalog
from hyperrec.recommender.engine import RecommendationEngine
from hyperrec.recommender.records import (
    InteractionEvent,
    InteractionKind,
    PriceRange,
    Product,
    User,
    utcnow,
)


@pytest.fixture
def products():
    """Five active products across three categories plus one archived."""
    return [
        Product(
            id="p1",
            name="Premium wool coat",
            description="A luxury coat for the cold months",
            price=250.0,
            category="outerwear",
            brand="Aster",
            featured=True,
            colors=["black", "camel"],
            sizes=["S", "M", "L"],
            materials=["wool"],
            seasons=["fall", "winter"],
            views=900,
            purchases=30,
            average_rating=4.5,
            trending_score=0.9,
        ),
        Product(
            id="p2",
            name="Canvas sneaker",
            description="Everyday sneaker on sale",
            price=80.0,
            category="shoes",
            brand="Vela",
            featured=True,
            seasons=["summer"],
            views=500,
            average_rating=4.0,
            trending_score=0.7,
        ),
        Product(
            id="p3",
            name="Down parka",
            description="High-quality insulated parka",
            price=400.0,
            category="outerwear",
            brand="Kestrel",
            seasons=["winter"],
            views=300,
            trending_score=0.5,
        ),
        Product(
            id="p4",
            name="Linen dress",
            description="Light dress for warm days",
            price=120.0,
            category="dresses",
            brand="Aster",
            featured=True,
            seasons=["spring", "summer"],
            views=200,
            trending_score=0.3,
        ),
        Product(
            id="p5",
            name="Leather sandal",
            price=60.0,
            category="shoes",
            views=100,
            trending_score=0.1,
        ),
        Product(
            id="p6",
            name="Archived gown",
            price=900.0,
            category="dresses",
            status="archived",
            featured=True,
            views=10000,
            trending_score=1.0,
        ),
    ]


@pytest.fixture
def users():
    """Three active users with preferences and one inactive user."""
    return [
        User(
            id="u1",
            price_range=PriceRange(100.0, 300.0),
            categories=["outerwear"],
            brands=["Aster"],
            scores={"quality_focused": 0.9, "brand_loyalty": 0.7},
            total_purchases=10,
            total_spent=2000.0,
            average_order_value=200.0,
        ),
        User(
            id="u2",
            price_range=PriceRange(50.0, 500.0),
            categories=["outerwear", "shoes"],
            scores={"trend_follower": 0.8},
        ),
        User(
            id="u3",
            categories=["dresses"],
            brands=["Aster"],
        ),
        User(id="u4", is_active=False, categories=["shoes"]),
    ]


@pytest.fixture
def catalog(users, products):
    return InMemoryCatalog(users=users, products=products)


@pytest.fixture
def make_event():
    """Factory for interaction events relative to the current time."""

    def _make(user_id, product_id, kind=InteractionKind.VIEW, days_ago=0.0, duration=None, now=None):
        now = now or utcnow()
        return InteractionEvent(
            user_id=user_id,
            product_id=product_id,
            kind=InteractionKind(kind),
            timestamp=now - timedelta(days=days_ago),
            duration=duration,
        )

    return _make


@pytest.fixture
def events(make_event):
    """u1 and u2 share interest in p1; u2 also touched p2 and p3."""
    return [
        make_event("u1", "p1", duration=120),
        make_event("u2", "p1", duration=300),
        make_event("u2", "p2", kind=InteractionKind.PURCHASE, days_ago=2),
        make_event("u2", "p3", duration=60, days_ago=1),
        make_event("u3", "p4", duration=200),
    ]


@pytest.fixture
def config():
    """Inline refreshes and no scheduler so tests stay deterministic."""
    return EngineConfig(background_refresh=False, scheduler_enabled=False)


@pytest.fixture
def engine(catalog, config, events):
    """Engine with its first generation built from ``events``."""
    engine = RecommendationEngine(catalog, config=config)
    assert engine.start(events)
    yield engine
    engine.stop()


@pytest.fixture
def fixed_now():
    return datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)
