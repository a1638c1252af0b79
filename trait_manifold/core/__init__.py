"""
Core components for Trait-Manifold.
"""

from .similarity import cosine_similarity, similarity_matrix
from .projector import ForceProjector, SeededRandom, derive_seed, project_to_3d
from .eigen import EigenDecomposition, compute_eigendecomposition, create_rotation_matrix
from .ellipsoid import (
    Ellipsoid,
    compute_cluster_ellipsoids,
    compute_ellipsoid,
    covariance_matrix,
    group_positions,
)
from .manifold_store import ManifoldStore

__all__ = [
    "cosine_similarity",
    "similarity_matrix",
    "ForceProjector",
    "SeededRandom",
    "derive_seed",
    "project_to_3d",
    "EigenDecomposition",
    "compute_eigendecomposition",
    "create_rotation_matrix",
    "Ellipsoid",
    "compute_cluster_ellipsoids",
    "compute_ellipsoid",
    "covariance_matrix",
    "group_positions",
    "ManifoldStore",
]
