"""Cosine similarity helpers.

Zero vectors have similarity 0 with everything, never NaN.
"""

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity as _pairwise_cosine


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine similarity of two vectors; 0.0 if either has zero norm."""
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    return float(np.dot(a, b) / (norm_a * norm_b))


def cosine_similarities(vector, matrix) -> np.ndarray:
    """Similarity of one vector against every row of a dense or sparse matrix.

    Rows with zero norm (and a zero ``vector``) score 0.
    """
    if matrix.shape[0] == 0:
        return np.zeros(0)

    if not hasattr(vector, "toarray"):
        vector = np.asarray(vector, dtype=np.float64).reshape(1, -1)

    return _pairwise_cosine(vector, matrix)[0]
