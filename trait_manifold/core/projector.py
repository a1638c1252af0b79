"""
Force-directed projection of embeddings into 3D.
Similar items settle close together, dissimilar items far apart, and the
same input always produces the same layout.
"""

import logging
import math
from typing import Sequence, Union

import numpy as np

from trait_manifold.core.similarity import similarity_matrix
import config

logger = logging.getLogger(__name__)

VectorsLike = Union[Sequence[Sequence[float]], np.ndarray]


class SeededRandom:
    """
    Linear-congruential generator driving the initial layout.

    Each projection owns its instance, so layouts never depend on a
    global random state.
    """

    MULTIPLIER = 1103515245
    INCREMENT = 12345
    MODULUS = 2 ** 31

    def __init__(self, seed: int):
        self._state = int(seed) % self.MODULUS

    def random(self) -> float:
        """Return the next value in [0, 1)."""
        self._state = (self._state * self.MULTIPLIER + self.INCREMENT) % self.MODULUS
        return self._state / self.MODULUS

    __call__ = random


def _finite_or_zero(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def derive_seed(vectors: VectorsLike, offset: float = config.PROJECTION_SEED_OFFSET) -> int:
    """
    Derive an integer seed from the input, order-dependent and cheap.

    Sums the first two coordinates and the length of every vector on top of
    a fixed offset. Missing or non-finite coordinates count as zero.
    """
    acc = float(offset)
    for vector in vectors:
        first = _finite_or_zero(float(vector[0])) if len(vector) > 0 else 0.0
        second = _finite_or_zero(float(vector[1])) if len(vector) > 1 else 0.0
        acc += first + second + len(vector)

    scaled = acc * 1000
    if not math.isfinite(scaled):
        scaled = float(offset) * 1000
    return int(math.floor(scaled))


def _contain(values: np.ndarray, bound: float) -> np.ndarray:
    """Clamp component-wise to [-bound, bound]; non-finite entries become 0."""
    return np.where(np.isfinite(values), np.clip(values, -bound, bound), 0.0)


class ForceProjector:
    """
    Similarity-preserving force layout for small embedding sets.

    Features:
    - Deterministic seeding from the input vectors
    - Annealed attraction towards a similarity-derived ideal distance
    - Short-range repulsion so no two points collapse
    - Force and position clamping so coordinates stay finite and bounded
    """

    def __init__(
        self,
        iterations: int = config.PROJECTION_ITERATIONS,
        base_attraction: float = config.PROJECTION_BASE_ATTRACTION,
        base_repulsion: float = config.PROJECTION_BASE_REPULSION,
        min_ideal_dist: float = config.PROJECTION_MIN_IDEAL_DIST,
        ideal_dist_span: float = config.PROJECTION_IDEAL_DIST_SPAN,
        min_dist: float = config.PROJECTION_MIN_DIST,
        max_force: float = config.PROJECTION_MAX_FORCE,
        max_coord: float = config.PROJECTION_MAX_COORD,
        init_radius_min: float = config.PROJECTION_INIT_RADIUS_MIN,
        init_radius_max: float = config.PROJECTION_INIT_RADIUS_MAX,
        seed_offset: float = config.PROJECTION_SEED_OFFSET,
        pair_offset: float = config.PROJECTION_PAIR_OFFSET,
    ):
        """
        Initialize the projector.

        Args:
            iterations: Number of relaxation passes (default: 150)
            base_attraction: Spring strength before decay (default: 0.02)
            base_repulsion: Short-range repulsion before decay (default: 0.8)
            min_ideal_dist: Ideal distance for identical items (default: 2)
            ideal_dist_span: Extra ideal distance per unit of dissimilarity (default: 20)
            min_dist: Floor applied to pair distances (default: 0.1)
            max_force: Per-component force clamp (default: 2)
            max_coord: Per-component position clamp (default: 15)
            init_radius_min: Inner radius of the initial shell (default: 3)
            init_radius_max: Outer radius of the initial shell (default: 10)
            seed_offset: Constant added into the derived seed (default: 42)
            pair_offset: Half-separation used for exactly two items (default: 5)
        """
        self.iterations = iterations
        self.base_attraction = base_attraction
        self.base_repulsion = base_repulsion
        self.min_ideal_dist = min_ideal_dist
        self.ideal_dist_span = ideal_dist_span
        self.min_dist = min_dist
        self.max_force = max_force
        self.max_coord = max_coord
        self.init_radius_min = init_radius_min
        self.init_radius_max = init_radius_max
        self.seed_offset = seed_offset
        self.pair_offset = pair_offset

    def fit(self, vectors: VectorsLike) -> np.ndarray:
        """
        Project embeddings to 3D.

        Args:
            vectors: Sequence of n equal-length vectors

        Returns:
            Array of shape (n, 3); row i is the position of vectors[i]

        Raises:
            ValueError: If the vectors do not share one dimensionality
        """
        matrix = self._as_matrix(vectors)
        n = len(matrix)

        if n == 0:
            return np.zeros((0, 3))
        if n == 1:
            return np.zeros((1, 3))
        if n == 2:
            return np.array([
                [-self.pair_offset, 0.0, 0.0],
                [self.pair_offset, 0.0, 0.0],
            ])

        rng = SeededRandom(derive_seed(matrix, self.seed_offset))
        positions = self._initial_positions(n, rng)

        sims = similarity_matrix(matrix)
        ideal = (1.0 - sims) * self.ideal_dist_span + self.min_ideal_dist

        contained = 0
        for iteration in range(self.iterations):
            decay = 1.0 - iteration / self.iterations
            forces = self._accumulate_forces(
                positions,
                ideal,
                self.base_attraction * decay,
                self.base_repulsion * decay,
            )
            contained += int(np.count_nonzero(~np.isfinite(forces)))
            forces = _contain(forces, self.max_force)
            positions = _contain(positions + forces, self.max_coord)

        centroid = positions.mean(axis=0)
        positions = _contain(positions - centroid, self.max_coord)

        if contained:
            logger.debug(f"Replaced {contained} non-finite force components during projection")

        return positions

    def _as_matrix(self, vectors: VectorsLike) -> np.ndarray:
        """Stack input vectors into an (n, dim) float array."""
        if isinstance(vectors, np.ndarray):
            if vectors.ndim == 1 and vectors.size == 0:
                return np.zeros((0, 0))
            if vectors.ndim != 2:
                raise ValueError(f"Expected a 2D array of vectors, got shape {vectors.shape}")
            return vectors.astype(np.float64)

        vectors = list(vectors)
        if not vectors:
            return np.zeros((0, 0))

        dims = {len(v) for v in vectors}
        if len(dims) > 1:
            raise ValueError(f"All vectors must share one dimensionality, got {sorted(dims)}")

        return np.array([np.asarray(v, dtype=np.float64) for v in vectors]).reshape(len(vectors), dims.pop())

    def _initial_positions(self, n: int, rng: SeededRandom) -> np.ndarray:
        """Scatter points on a spherical shell using the seeded generator."""
        radius_band = self.init_radius_max - self.init_radius_min
        positions = np.zeros((n, 3))
        for i in range(n):
            theta = rng() * 2 * math.pi
            phi = math.acos(2 * rng() - 1)
            r = self.init_radius_min + rng() * radius_band
            positions[i] = (
                r * math.sin(phi) * math.cos(theta),
                r * math.sin(phi) * math.sin(theta),
                r * math.cos(phi),
            )
        return positions

    def _accumulate_forces(
        self,
        positions: np.ndarray,
        ideal: np.ndarray,
        attraction: float,
        repulsion: float,
    ) -> np.ndarray:
        """
        Sum pairwise forces for one pass into a fresh buffer.

        Pair (i, j) pushes i along (p_j - p_i) by the spring-plus-repulsion
        magnitude and j by the opposite amount. Positions are not touched.
        """
        delta = positions[np.newaxis, :, :] - positions[:, np.newaxis, :]
        dist_sq = np.sum(delta * delta, axis=-1)
        dist = np.maximum(np.sqrt(dist_sq), self.min_dist)

        magnitude = (dist - ideal) * attraction - repulsion / (dist_sq + 1.0)
        np.fill_diagonal(magnitude, 0.0)

        directions = delta / dist[:, :, np.newaxis]
        return np.sum(directions * magnitude[:, :, np.newaxis], axis=1)


def project_to_3d(vectors: VectorsLike) -> list[list[float]]:
    """
    Project embeddings to 3D with the default layout constants.

    Args:
        vectors: Sequence of equal-length numeric vectors

    Returns:
        One [x, y, z] list per input vector, in input order
    """
    return ForceProjector().fit(vectors).tolist()
