"""
Trait-Manifold Configuration
Central configuration for paths, defaults, and layout constants.
"""

from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent
DATA_DIR = PROJECT_ROOT / "data"
CACHE_DIR = PROJECT_ROOT / "cache"

# Default dataset paths
TRAITS_CSV_PATH = DATA_DIR / "traits.csv"

# Embedding settings
DEFAULT_EMBEDDER = "openai"
OPENAI_MODEL = "text-embedding-3-small"
OPENAI_EMBEDDING_DIM = 1536
OPENAI_BATCH_SIZE = 2000  # Max texts per API call (actual batch size adapts to token limits)
DETERMINISTIC_EMBEDDING_DIM = 32  # Offline fallback when no API key is configured

# Force-directed projection settings
PROJECTION_ITERATIONS = 150
PROJECTION_BASE_ATTRACTION = 0.02
PROJECTION_BASE_REPULSION = 0.8
PROJECTION_MIN_IDEAL_DIST = 2.0    # Ideal distance for similarity 1
PROJECTION_IDEAL_DIST_SPAN = 20.0  # Added per unit of (1 - similarity)
PROJECTION_MIN_DIST = 0.1          # Floor for pair distances
PROJECTION_MAX_FORCE = 2.0         # Per-component force clamp
PROJECTION_MAX_COORD = 15.0        # Per-component position clamp
PROJECTION_INIT_RADIUS_MIN = 3.0
PROJECTION_INIT_RADIUS_MAX = 10.0
PROJECTION_SEED_OFFSET = 42
PROJECTION_PAIR_OFFSET = 5.0       # Fixed placement for two items: (-d,0,0), (d,0,0)

# Eigendecomposition settings
JACOBI_EPSILON = 1e-10
JACOBI_MAX_ITERATIONS = 50

# Cluster ellipsoid settings
COVARIANCE_EPSILON = 0.05
ELLIPSOID_MIN_RADIUS = 2.0
ELLIPSOID_SCALE_FACTOR = 7.0
ELLIPSOID_FATNESS_FACTOR = 1.6

# Search settings
DEFAULT_K_NEIGHBORS = 10

# Community membership separator in trait CSVs
COMMUNITY_SEPARATOR = ";"
