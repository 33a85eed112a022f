"""Tests for the collaborative, content-based and trending generators."""

import numpy as np
import pytest

from hyperrec.recommender.catalog import InMemoryCatalog
from hyperrec.recommender.collaborative import CollaborativeFilter
from hyperrec.recommender.content import ContentFilter
from hyperrec.recommender.embed import build_embedding_indexes
from hyperrec.recommender.matrix import InteractionMatrix
from hyperrec.recommender.records import PriceRange, Source, User
from hyperrec.recommender.trending import TrendingGenerator


@pytest.fixture
def small_matrix():
    """a and b overlap on x and y; c only touched z."""
    return InteractionMatrix(
        scores=np.array([
            [1.0, 1.0, 0.0, 0.0],
            [1.0, 1.0, 1.0, 0.0],
            [0.0, 0.0, 0.0, 1.0],
            [0.0, 0.0, 0.0, 0.0],
        ]),
        user_ids=("a", "b", "c", "d"),
        product_ids=("x", "y", "w", "z"),
    )


def test_neighbors_above_threshold(small_matrix):
    """Test that only sufficiently similar users are neighbors."""
    neighbors = CollaborativeFilter().neighbors("a", small_matrix)

    assert [idx for idx, _ in neighbors] == [1]
    assert neighbors[0][1] == pytest.approx(2 / np.sqrt(6))


def test_collaborative_recommends_unseen_products(small_matrix):
    """Test that neighbor products the user has not touched are scored."""
    candidates = CollaborativeFilter().recommend("a", small_matrix, limit=10)

    assert [c.product_id for c in candidates] == ["w"]
    assert candidates[0].score == pytest.approx(2 / np.sqrt(6))
    assert candidates[0].sources == {Source.COLLABORATIVE}


def test_collaborative_sums_neighbor_contributions():
    """Test that contributions from several neighbors add up."""
    matrix = InteractionMatrix(
        scores=np.array([
            [1.0, 0.0],
            [1.0, 1.0],
            [1.0, 0.5],
        ]),
        user_ids=("a", "b", "c"),
        product_ids=("x", "y"),
    )
    sim_b = 1 / np.sqrt(2)
    sim_c = 1 / np.sqrt(1.25)

    candidates = CollaborativeFilter().recommend("a", matrix, limit=5)

    assert len(candidates) == 1
    assert candidates[0].score == pytest.approx(1.0 * sim_b + 0.5 * sim_c)


def test_collaborative_respects_max_neighbors():
    """Test that only the closest neighbors contribute."""
    matrix = InteractionMatrix(
        scores=np.array([
            [1.0, 1.0, 0.0, 0.0],
            [1.0, 1.0, 1.0, 0.0],
            [1.0, 0.0, 0.0, 1.0],
        ]),
        user_ids=("a", "b", "c"),
        product_ids=("x", "y", "v", "w"),
    )

    candidates = CollaborativeFilter(max_neighbors=1).recommend("a", matrix, limit=5)

    assert [c.product_id for c in candidates] == ["v"]


def test_collaborative_unknown_or_isolated_user(small_matrix):
    """Test that absent users and users without interactions get nothing."""
    cf = CollaborativeFilter()

    assert cf.recommend("ghost", small_matrix, limit=5) == []
    assert cf.recommend("d", small_matrix, limit=5) == []
    assert cf.recommend("a", small_matrix, limit=0) == []


def test_collaborative_limit(small_matrix):
    """Test that at most ``limit`` candidates come back, best first."""
    candidates = CollaborativeFilter().recommend("c", small_matrix, limit=3)
    assert candidates == []

    matrix = InteractionMatrix(
        scores=np.array([
            [1.0, 0.0, 0.0, 0.0],
            [1.0, 1.0, 0.5, 0.2],
        ]),
        user_ids=("a", "b"),
        product_ids=("x", "y", "v", "w"),
    )
    candidates = CollaborativeFilter().recommend("a", matrix, limit=2)

    assert [c.product_id for c in candidates] == ["y", "v"]


def test_content_filter_ranks_by_similarity(users, products):
    """Test that content candidates are sorted and bounded by the limit."""
    user_index, product_index, _ = build_embedding_indexes(users, products)

    candidates = ContentFilter().recommend("u1", user_index, product_index, limit=3)

    assert len(candidates) == 3
    scores = [c.score for c in candidates]
    assert scores == sorted(scores, reverse=True)
    assert all(c.sources == {Source.CONTENT_BASED} for c in candidates)
    assert "p6" not in [c.product_id for c in candidates]


def test_content_filter_unknown_user(users, products):
    """Test that users without an embedding get no content candidates."""
    user_index, product_index, _ = build_embedding_indexes(users, products)

    assert ContentFilter().recommend("ghost", user_index, product_index, limit=5) == []
    assert ContentFilter().recommend("u4", user_index, product_index, limit=5) == []


def test_trending_orders_by_score_then_views(catalog):
    """Test trending candidates and their fixed score."""
    candidates = TrendingGenerator(catalog).trending(limit=3)

    assert [c.product_id for c in candidates] == ["p1", "p2", "p3"]
    assert all(c.score == 0.8 for c in candidates)
    assert all(c.sources == {Source.TRENDING} for c in candidates)


def test_fallback_uses_featured_products(catalog):
    """Test that the fallback lists featured active products by views."""
    candidates = TrendingGenerator(catalog).fallback(limit=10)

    assert [c.product_id for c in candidates] == ["p1", "p2", "p4"]
    assert all(c.score == 0.5 for c in candidates)
    assert all(c.sources == {Source.FALLBACK} for c in candidates)


def test_fallback_catalog_failure_returns_empty():
    """Test that a failing catalog read yields an empty fallback."""

    class BrokenCatalog(InMemoryCatalog):
        def active_products(self):
            raise ConnectionError("catalog down")

    assert TrendingGenerator(BrokenCatalog()).fallback(limit=5) == []


def test_content_filter_zero_embedding(users, products):
    """Test that an all-zero user profile yields no content candidates."""
    blank = User(id="z", price_range=PriceRange(0.0, 0.0))
    user_index, product_index, _ = build_embedding_indexes(users + [blank], products)

    assert not np.any(user_index.get_embedding("z"))
    assert ContentFilter().recommend("z", user_index, product_index, limit=5) == []
