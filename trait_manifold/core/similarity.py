"""
Cosine similarity over embedding vectors.
Never returns a non-finite value: degenerate inputs are neutral (0).
"""

from typing import Sequence, Union

import numpy as np

VectorLike = Union[Sequence[float], np.ndarray]


def _rescaled(vector: np.ndarray) -> np.ndarray:
    """Divide by the largest absolute component so squaring cannot overflow."""
    if vector.size == 0:
        return vector
    peak = np.max(np.abs(vector))
    if peak == 0:
        return vector
    return vector / peak


def cosine_similarity(a: VectorLike, b: VectorLike) -> float:
    """
    Compute cosine similarity between two vectors.

    Args:
        a: First vector
        b: Second vector

    Returns:
        Similarity clamped to [-1, 1]. Returns 0 for empty vectors,
        mismatched lengths, zero-magnitude vectors, or vectors containing
        non-finite entries.
    """
    a = np.asarray(a, dtype=np.float64).ravel()
    b = np.asarray(b, dtype=np.float64).ravel()

    if a.size == 0 or b.size == 0 or a.size != b.size:
        return 0.0
    if not (np.all(np.isfinite(a)) and np.all(np.isfinite(b))):
        return 0.0

    a = _rescaled(a)
    b = _rescaled(b)

    norm_a = np.sqrt(np.dot(a, a))
    norm_b = np.sqrt(np.dot(b, b))
    if norm_a == 0 or norm_b == 0:
        return 0.0

    similarity = float(np.dot(a, b) / (norm_a * norm_b))
    if not np.isfinite(similarity):
        return 0.0
    return max(-1.0, min(1.0, similarity))


def similarity_matrix(vectors: np.ndarray) -> np.ndarray:
    """
    Build the full symmetric cosine-similarity matrix.

    Args:
        vectors: Array of shape (n, dim)

    Returns:
        Array of shape (n, n) with ones on the diagonal and every
        off-diagonal entry in [-1, 1]
    """
    vectors = np.asarray(vectors, dtype=np.float64)
    n = len(vectors)
    if n == 0:
        return np.zeros((0, 0))
    if vectors.ndim != 2:
        vectors = vectors.reshape(n, -1)

    # Rows with a non-finite entry are neutral against everything else
    valid = np.all(np.isfinite(vectors), axis=1)

    units = np.zeros_like(vectors)
    for i in np.flatnonzero(valid):
        row = _rescaled(vectors[i])
        norm = np.sqrt(np.dot(row, row))
        if norm > 0:
            units[i] = row / norm

    sims = units @ units.T
    sims = np.where(np.isfinite(sims), sims, 0.0)
    sims = np.clip(sims, -1.0, 1.0)
    # Symmetrize against round-off, then pin the diagonal
    sims = (sims + sims.T) / 2.0
    np.fill_diagonal(sims, 1.0)
    return sims
