"""Tests for feature encoding, cosine similarity and embedding indexes."""

import numpy as np
import pytest
from scipy.sparse import csr_matrix

from hyperrec.recommender.embed import build_embedding_indexes
from hyperrec.recommender.features import (
    NUM_BASE_FEATURES,
    FeatureEncoder,
    build_category_vocabulary,
    extract_text_features,
)
from hyperrec.recommender.records import Product, User
from hyperrec.recommender.similarity import cosine_similarities, cosine_similarity


@pytest.fixture
def encoder(products):
    return FeatureEncoder.from_products(products)


def test_category_vocabulary_is_sorted(products):
    """Test that the vocabulary is the sorted set of categories."""
    assert build_category_vocabulary(products) == ["dresses", "outerwear", "shoes"]


def test_extract_text_features():
    """Test word count, quality and discount signals."""
    features = extract_text_features("Premium luxury coat on sale")

    # premium, luxury, coat, sale are meaningful; "on" is a stop word
    assert features == pytest.approx([0.04, 0.2, 0.1])


def test_extract_text_features_empty():
    assert extract_text_features("") == [0.0, 0.0, 0.0]


def test_encode_product(encoder, products):
    """Test the layout of a product vector."""
    vector = encoder.encode_product(products[0])

    assert vector.shape == (encoder.dimension,)
    assert encoder.dimension == NUM_BASE_FEATURES + 3
    assert vector[0] == pytest.approx(0.25)
    assert vector[1] == pytest.approx(0.09)
    assert vector[2] == pytest.approx(0.9)
    # spring, summer, fall, winter
    assert list(vector[3:7]) == [0.0, 0.0, 1.0, 1.0]
    # outerwear one-hot
    assert list(vector[NUM_BASE_FEATURES:]) == [0.0, 1.0, 0.0]


def test_encode_product_missing_attributes_are_zero(encoder):
    """Test that absent attributes encode as zeros."""
    vector = encoder.encode_product(Product(id="bare"))

    assert vector.shape == (encoder.dimension,)
    assert not vector.any()


def test_encode_product_clamps_large_values(encoder):
    """Test that numeric features are capped at 1."""
    vector = encoder.encode_product(Product(id="big", price=5000, views=10 ** 6))

    assert vector[0] == 1.0
    assert vector[1] == 1.0


def test_encode_user(encoder, users):
    """Test the layout of a user vector."""
    vector = encoder.encode_user(users[1])

    assert vector.shape == (encoder.dimension,)
    assert vector[0] == pytest.approx(0.05)
    assert vector[1] == pytest.approx(0.5)
    # outerwear and shoes multi-hot
    assert list(vector[NUM_BASE_FEATURES:]) == [0.0, 1.0, 1.0]


def test_encode_user_ignores_unknown_categories(encoder):
    """Test that categories outside the vocabulary are dropped."""
    vector = encoder.encode_user(User(id="u", categories=["garden"]))

    assert not vector[NUM_BASE_FEATURES:].any()


def test_cosine_similarity_symmetric():
    """Test that cosine similarity is symmetric."""
    a = np.array([1.0, 2.0, 0.0])
    b = np.array([0.5, 1.0, 3.0])

    assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))
    assert cosine_similarity(a, a) == pytest.approx(1.0)


def test_cosine_similarity_zero_vector():
    """Test that a zero vector has similarity 0, never NaN."""
    zero = np.zeros(3)

    assert cosine_similarity(zero, np.array([1.0, 0.0, 0.0])) == 0.0
    assert cosine_similarity(zero, zero) == 0.0


def test_cosine_similarities_dense_and_sparse():
    """Test one-against-many similarity for dense and sparse inputs."""
    matrix = np.array([[1.0, 0.0], [0.0, 1.0], [0.0, 0.0]])

    dense = cosine_similarities(np.array([1.0, 0.0]), matrix)
    sparse = cosine_similarities(csr_matrix([[1.0, 0.0]]), csr_matrix(matrix))

    assert dense == pytest.approx([1.0, 0.0, 0.0])
    assert sparse == pytest.approx([1.0, 0.0, 0.0])
    assert cosine_similarities(np.array([1.0]), np.zeros((0, 1))).size == 0


def test_embedding_indexes_share_dimension(users, products):
    """Test that user and product embeddings live in the same space."""
    user_index, product_index, encoder = build_embedding_indexes(users, products)

    assert user_index.dimension == product_index.dimension == encoder.dimension
    assert "u4" not in user_index
    assert "p6" not in product_index
    assert len(product_index) == 5


def test_get_similar_excludes_self(users, products):
    """Test similar-product lookup."""
    _, product_index, _ = build_embedding_indexes(users, products)

    similar = product_index.get_similar("p1", top_n=3)

    assert len(similar) == 3
    assert "p1" not in [pid for pid, _ in similar]
    scores = [score for _, score in similar]
    assert scores == sorted(scores, reverse=True)
    assert product_index.get_similar("unknown") == []


def test_rank_against_dimension_mismatch(users, products):
    """Test that a vector of the wrong length is rejected."""
    _, product_index, _ = build_embedding_indexes(users, products)

    with pytest.raises(ValueError, match="dimension"):
        product_index.rank_against(np.ones(3), top_n=2)


def test_compute_similarity(users, products):
    """Test pairwise similarity lookup by id."""
    _, product_index, _ = build_embedding_indexes(users, products)

    assert product_index.compute_similarity("p1", "p1") == pytest.approx(1.0)
    assert product_index.compute_similarity("p1", "missing") is None
