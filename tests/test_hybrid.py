"""Tests for hybrid merging and personalization boosts."""

from datetime import date

import pytest

from hyperrec.recommender.hybrid import (
    MAX_BOOST,
    HybridRanker,
    apply_personalization_boost,
    combine,
    current_season,
    personalization_boost,
)
from hyperrec.recommender.records import Candidate, PriceRange, Product, Source, User


def collab(pid, score):
    return Candidate(pid, score, {Source.COLLABORATIVE})


def content(pid, score):
    return Candidate(pid, score, {Source.CONTENT_BASED})


def trend(pid, score=0.8):
    return Candidate(pid, score, {Source.TRENDING})


def test_combine_merges_weighted_sources():
    """Test the weighted merge of three candidate lists."""
    merged = combine([
        ([collab("P1", 0.5)], 0.4),
        ([content("P1", 0.8)], 0.4),
        ([trend("P2", 0.8)], 0.2),
    ])

    assert [c.product_id for c in merged] == ["P1", "P2"]
    assert merged[0].score == pytest.approx(0.52)
    assert merged[1].score == pytest.approx(0.16)
    assert merged[0].sources == {Source.COLLABORATIVE, Source.CONTENT_BASED}


def test_combine_is_exactly_weighted_sum():
    """Test that a product in both lists scores 0.4c + 0.4d before boosts."""
    c, d = 0.37, 0.91
    ranker = HybridRanker()

    ranked = ranker.rank([collab("p", c)], [content("p", d)], [], limit=5)

    assert len(ranked) == 1
    assert ranked[0].score == 0.4 * c + 0.4 * d
    assert ranked[0].boost == 1.0


def test_combine_does_not_mutate_inputs():
    """Test that merged candidates are new objects."""
    original = collab("p", 1.0)

    combine([([original], 0.4), ([content("p", 1.0)], 0.4)])

    assert original.score == 1.0
    assert original.sources == {Source.COLLABORATIVE}


def test_combine_ties_broken_by_product_id():
    merged = combine([([trend("b"), trend("a"), trend("c")], 0.2)])

    assert [c.product_id for c in merged] == ["a", "b", "c"]


@pytest.mark.parametrize(
    "today, season",
    [
        (date(2024, 1, 10), "winter"),
        (date(2024, 3, 1), "spring"),
        (date(2024, 5, 31), "spring"),
        (date(2024, 7, 4), "summer"),
        (date(2024, 10, 15), "fall"),
        (date(2024, 12, 24), "winter"),
    ],
)
def test_current_season(today, season):
    assert current_season(today) == season


def test_boost_all_rules(users, products):
    """Test that a product matching every rule gets the maximum boost."""
    boost = personalization_boost(products[0], users[0], "winter")

    assert boost == pytest.approx(1.3 * 1.2 * 1.4 * 1.1)
    assert boost == pytest.approx(MAX_BOOST)


def test_boost_no_rules(users, products):
    """Test that a product matching no rule keeps boost 1."""
    assert personalization_boost(products[4], users[0], "winter") == 1.0


def test_boost_individual_rules():
    """Test each boost factor on its own."""
    user = User(id="u", price_range=PriceRange(0, 10), categories=["hats"], brands=["Acme"])

    assert personalization_boost(Product(id="a", price=50, category="hats"), user, "fall") == pytest.approx(1.3)
    assert personalization_boost(Product(id="b", price=5), user, "fall") == pytest.approx(1.2)
    assert personalization_boost(Product(id="c", price=50, brand="Acme"), user, "fall") == pytest.approx(1.4)
    assert personalization_boost(Product(id="d", price=50, seasons=["fall"]), user, "fall") == pytest.approx(1.1)


def test_boost_bounds(users, products):
    """Test that every boost lies between 1 and the product of all factors."""
    for user in users:
        for product in products:
            for season in ("spring", "summer", "fall", "winter"):
                boost = personalization_boost(product, user, season)
                assert 1.0 <= boost <= MAX_BOOST + 1e-12


def test_apply_boost_reorders(users, products):
    """Test that boosting can change the order of candidates."""
    by_id = {p.id: p for p in products}
    candidates = [trend("p5", 0.5), trend("p1", 0.4)]

    boosted = apply_personalization_boost(candidates, users[0], by_id, season="winter")

    assert [c.product_id for c in boosted] == ["p1", "p5"]
    assert boosted[0].boost == pytest.approx(MAX_BOOST)
    assert boosted[0].score == pytest.approx(0.4 * MAX_BOOST)
    assert boosted[1].boost == 1.0


def test_apply_boost_without_product_record(users):
    """Test that candidates with no product record keep their score."""
    boosted = apply_personalization_boost([trend("gone", 0.3)], users[0], {}, season="fall")

    assert boosted[0].score == 0.3
    assert boosted[0].boost == 1.0


def test_rank_excludes_and_limits(users, products):
    """Test exclusion, uniqueness and the result limit."""
    by_id = {p.id: p for p in products}
    ranker = HybridRanker()

    ranked = ranker.rank(
        [collab("p2", 0.9), collab("p3", 0.4)],
        [content("p2", 0.5), content("p1", 0.7)],
        [trend("p1"), trend("p4"), trend("p5")],
        limit=3,
        user=users[0],
        products=by_id,
        exclude_ids={"p3"},
        season="summer",
    )

    ids = [c.product_id for c in ranked]
    assert len(ids) == 3
    assert len(set(ids)) == 3
    assert "p3" not in ids


def test_rank_without_user_skips_boost():
    """Test that no boost is applied when the user is unknown."""
    ranked = HybridRanker().rank([], [], [trend("p1"), trend("p2")], limit=5)

    assert all(c.boost == 1.0 for c in ranked)
    assert all(c.score == pytest.approx(0.16) for c in ranked)


def test_rank_custom_weights():
    ranker = HybridRanker(collaborative_weight=1.0, content_weight=0.0, trending_weight=0.0)

    ranked = ranker.rank([collab("a", 0.5)], [content("b", 0.9)], [], limit=5)

    assert ranked[0].product_id == "a"
    assert ranked[0].score == 0.5
    assert ranked[1].score == 0.0


def test_rank_negative_limit():
    assert HybridRanker().rank([collab("a", 1.0)], [], [], limit=-1) == []
