"""
Embedding arithmetic for admixture-style trait combinations.
"""

from typing import Optional, Sequence

import numpy as np

from .deterministic import Mulberry32


def _unit(vector: np.ndarray) -> np.ndarray:
    magnitude = np.linalg.norm(vector)
    if magnitude == 0 or not np.isfinite(magnitude):
        return vector
    return vector / magnitude


def blend_embeddings(inputs: Sequence[tuple[Sequence[float], float]]) -> np.ndarray:
    """
    Weighted blend of embeddings, normalized to unit length.

    Example:
        # Trait with 60% steppe influence, 40% farmer
        blended = blend_embeddings([(steppe_centroid, 0.6), (farmer_centroid, 0.4)])

    Args:
        inputs: (embedding, weight) pairs of equal dimensionality

    Returns:
        Unit vector; empty array if no inputs

    Raises:
        ValueError: If the embeddings differ in length
    """
    if not inputs:
        return np.array([])

    dims = {len(embedding) for embedding, _ in inputs}
    if len(dims) > 1:
        raise ValueError(f"Cannot blend embeddings of different sizes: {sorted(dims)}")

    result = np.zeros(dims.pop())
    total_weight = 0.0
    for embedding, weight in inputs:
        result += np.asarray(embedding, dtype=np.float64) * weight
        total_weight += weight

    return _unit(result / (total_weight or 1))


def add_noise(
    embedding: Sequence[float],
    scale: float = 0.1,
    seed: Optional[int] = None,
) -> np.ndarray:
    """
    Jitter an embedding with seeded Gaussian noise, then normalize.

    Used to spread variants of one trait around a cluster centre.
    A missing seed means seed 0, so the result stays reproducible.
    """
    rng = Mulberry32(seed if seed is not None else 0)
    vector = np.asarray(embedding, dtype=np.float64)
    noise = np.array([rng.gaussian() for _ in range(len(vector))])
    return _unit(vector + noise * scale)
