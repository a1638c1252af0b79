"""
Oriented cluster ellipsoids from positioned points.
Covariance -> eigendecomposition -> radii and rotation.
"""

from dataclasses import dataclass
from typing import Hashable, Iterable, Optional, Sequence, Union

import numpy as np

from trait_manifold.core.eigen import compute_eigendecomposition, create_rotation_matrix
import config

PointsLike = Union[Sequence[Sequence[float]], np.ndarray]


@dataclass
class Ellipsoid:
    """A renderable cluster boundary."""
    centroid: np.ndarray  # (3,)
    radii: np.ndarray     # (3,), descending, never below the floor
    rotation: np.ndarray  # (3, 3), columns are the principal axes


def _as_points(points: PointsLike) -> np.ndarray:
    arr = np.asarray(points, dtype=np.float64)
    if arr.size == 0:
        return np.zeros((0, 3))
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(f"Expected points of shape (n, 3), got {arr.shape}")
    return arr


def covariance_matrix(
    points: PointsLike,
    epsilon: float = config.COVARIANCE_EPSILON,
) -> np.ndarray:
    """
    Population covariance of 3D points with diagonal regularization.

    Args:
        points: Array of shape (n, 3)
        epsilon: Added to every diagonal entry so no axis has zero variance

    Returns:
        Symmetric 3x3 matrix
    """
    pts = _as_points(points)
    if len(pts) == 0:
        return np.eye(3) * epsilon

    centered = pts - pts.mean(axis=0)
    cov = centered.T @ centered / len(pts)
    cov = (cov + cov.T) / 2.0
    return cov + np.eye(3) * epsilon


def compute_ellipsoid(
    points: PointsLike,
    epsilon: float = config.COVARIANCE_EPSILON,
    min_radius: float = config.ELLIPSOID_MIN_RADIUS,
    scale_factor: float = config.ELLIPSOID_SCALE_FACTOR,
    fatness_factor: float = config.ELLIPSOID_FATNESS_FACTOR,
) -> Optional[Ellipsoid]:
    """
    Fit an oriented ellipsoid around a group of points.

    Args:
        points: Array of shape (n, 3)
        epsilon: Covariance regularization
        min_radius: Floor applied before the fatness factor
        scale_factor: Multiplier on each axis standard deviation
        fatness_factor: Final multiplier on every radius

    Returns:
        Ellipsoid, or None for an empty group
    """
    pts = _as_points(points)
    if len(pts) == 0:
        return None

    centroid = pts.mean(axis=0)
    centroid = np.where(np.isfinite(centroid), centroid, 0.0)
    decomposition = compute_eigendecomposition(covariance_matrix(pts, epsilon))

    radii = np.maximum(np.sqrt(np.abs(decomposition.eigenvalues)) * scale_factor, min_radius) * fatness_factor
    radii = np.where(np.isfinite(radii), radii, min_radius * fatness_factor)

    return Ellipsoid(
        centroid=centroid,
        radii=radii,
        rotation=create_rotation_matrix(decomposition.eigenvectors),
    )


def group_positions(
    positions: PointsLike,
    memberships: Sequence[Iterable[Hashable]],
) -> dict[Hashable, np.ndarray]:
    """
    Collect positions per cluster.

    Args:
        positions: Array of shape (n, 3)
        memberships: For each point, the cluster ids it belongs to

    Returns:
        Mapping of cluster id to member positions, in first-seen order
    """
    pts = _as_points(positions)
    if len(memberships) != len(pts):
        raise ValueError(
            f"Got {len(memberships)} membership lists for {len(pts)} positions"
        )

    members: dict[Hashable, list[int]] = {}
    for idx, clusters in enumerate(memberships):
        for cluster_id in dict.fromkeys(clusters):
            members.setdefault(cluster_id, []).append(idx)

    return {cluster_id: pts[idxs] for cluster_id, idxs in members.items()}


def compute_cluster_ellipsoids(
    positions: PointsLike,
    memberships: Sequence[Iterable[Hashable]],
) -> dict[Hashable, Ellipsoid]:
    """Fit one ellipsoid per cluster."""
    return {
        cluster_id: compute_ellipsoid(points)
        for cluster_id, points in group_positions(positions, memberships).items()
    }
