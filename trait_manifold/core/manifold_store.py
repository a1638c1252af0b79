"""
ManifoldStore: Central orchestrator for Trait-Manifold.
Loads traits, embeds them, lays them out in 3D and fits cluster ellipsoids.
"""

import logging
from pathlib import Path
from typing import Callable, Hashable, Iterable, Optional

import numpy as np
import pandas as pd

from trait_manifold.cache.manager import CacheManager, layout_key
from trait_manifold.core.ellipsoid import Ellipsoid, compute_cluster_ellipsoids
from trait_manifold.core.projector import ForceProjector
from trait_manifold.core.similarity import cosine_similarity
from trait_manifold.embedders import BaseEmbedder, default_embedder
from trait_manifold.loaders.base import BaseDatasetLoader
from trait_manifold.loaders.traits import TraitsCsvLoader
import config

logger = logging.getLogger(__name__)


class ManifoldStore:
    """
    Central orchestrator for the trait manifold.

    Responsibilities:
    - Load traits via a loader
    - Embed trait texts via an embedder
    - Cache embeddings and layouts by content
    - Project to 3D and expose positions, neighbours, edges and ellipsoids
    """

    def __init__(
        self,
        dataset_loader: Optional[BaseDatasetLoader] = None,
        embedder: Optional[BaseEmbedder] = None,
        projector: Optional[ForceProjector] = None,
        cache_dir: Optional[Path] = None,
        force_rebuild: bool = False
    ):
        """
        Initialize the ManifoldStore.

        Args:
            dataset_loader: Trait loader (defaults to TraitsCsvLoader)
            embedder: Embedding backend (defaults to OpenAI if configured, else deterministic)
            projector: 3D projector (defaults to ForceProjector with config constants)
            cache_dir: Cache root (defaults to config.CACHE_DIR)
            force_rebuild: Whether to ignore existing cache entries
        """
        self.dataset_loader = dataset_loader or TraitsCsvLoader()
        self.embedder = embedder or default_embedder()
        self.projector = projector or ForceProjector()
        self.cache_dir = cache_dir
        self.force_rebuild = force_rebuild

        # Populated by initialize()
        self.items_df: Optional[pd.DataFrame] = None
        self.embeddings: Optional[np.ndarray] = None
        self.positions: Optional[np.ndarray] = None

        self._cache: Optional[CacheManager] = None
        self._id_to_idx: dict[str, int] = {}
        self._initialized = False

    @property
    def cache_key(self) -> str:
        """Unique cache key for this dataset+embedder combination."""
        return f"{self.dataset_loader.name}_{self.embedder.name}"

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def initialize(self, progress_callback: Optional[Callable[[str], None]] = None) -> None:
        """
        Load, embed and project the traits.

        Args:
            progress_callback: Optional callable(message: str) for progress updates
        """
        if self._initialized:
            return

        def log(msg: str):
            if progress_callback:
                progress_callback(msg)
            logger.info(msg)

        self._cache = CacheManager(self.cache_key, cache_dir=self.cache_dir)

        if not self.force_rebuild and self._cache.is_complete():
            log("Loading embeddings from cache...")
            self.embeddings, _ = self._cache.load_embeddings()
            self.items_df = self._cache.load_items()
        else:
            log(f"Loading {self.dataset_loader.name}...")
            self.items_df = self.dataset_loader.load()
            log(f"Embedding {len(self.items_df)} traits...")
            self.embeddings = self.embedder.embed(self.items_df["text"].tolist())
            self._cache.save_embeddings(self.embeddings, self.items_df["id"].tolist())
            self._cache.save_items(self.items_df)

        self.positions = self._project(log)
        self._build_id_index()

        self._initialized = True
        log(f"Ready! {len(self.items_df)} traits positioned.")

    def _project(self, log: Callable[[str], None]) -> np.ndarray:
        """Project embeddings, reusing a cached layout for identical input."""
        key = layout_key(self.items_df["id"].tolist(), self.embeddings)

        if not self.force_rebuild:
            cached = self._cache.load_layout(key)
            if cached is not None:
                log("Loaded 3D layout from cache")
                return cached

        log("Computing 3D layout...")
        positions = self.projector.fit(self.embeddings)
        self._cache.save_layout(key, positions)
        return positions

    def _build_id_index(self) -> None:
        self._id_to_idx = {id_: idx for idx, id_ in enumerate(self.items_df["id"])}

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError("ManifoldStore not initialized. Call initialize() first.")

    def _index_of(self, item_id: str) -> int:
        self._require_initialized()
        if item_id not in self._id_to_idx:
            raise ValueError(f"Item not found: {item_id}")
        return self._id_to_idx[item_id]

    # -------------------------------------------------------------------------
    # Retrieval
    # -------------------------------------------------------------------------

    def get_item(self, item_id: str) -> pd.Series:
        """
        Get a single trait by ID.

        Raises:
            ValueError: If item not found
        """
        return self.items_df.iloc[self._index_of(item_id)]

    def get_position(self, item_id: str) -> np.ndarray:
        """Get the 3D position of a trait."""
        return self.positions[self._index_of(item_id)]

    def neighbors(self, item_id: str, k: int = config.DEFAULT_K_NEIGHBORS) -> pd.DataFrame:
        """
        Nearest traits by cosine similarity in embedding space.

        Args:
            item_id: ID of the trait
            k: Number of neighbours to return (excluding the trait itself)

        Returns:
            DataFrame of up to k traits with a 'similarity' column, most similar first
        """
        idx = self._index_of(item_id)

        query = self.embeddings[idx]
        similarities = np.array([cosine_similarity(row, query) for row in self.embeddings])
        order = [i for i in np.argsort(-similarities, kind="stable") if i != idx][:k]

        results = self.items_df.iloc[order].copy()
        results["similarity"] = similarities[order]
        return results

    def cluster_ellipsoids(self) -> dict[Hashable, Ellipsoid]:
        """Fit one oriented ellipsoid per community."""
        self._require_initialized()
        return compute_cluster_ellipsoids(self.positions, self.items_df["communities"].tolist())

    def edges(self, pairs: Iterable[tuple[str, str]]) -> list[dict]:
        """
        Resolve (source_id, target_id) pairs to 3D segments.

        Pairs referencing unknown traits are skipped with a warning.

        Returns:
            List of dicts with source_id, target_id, start and end
        """
        self._require_initialized()
        segments = []
        for source_id, target_id in pairs:
            if source_id not in self._id_to_idx or target_id not in self._id_to_idx:
                logger.warning(f"Skipping edge {source_id} -> {target_id}: unknown trait")
                continue
            segments.append({
                "source_id": source_id,
                "target_id": target_id,
                "start": self.positions[self._id_to_idx[source_id]].tolist(),
                "end": self.positions[self._id_to_idx[target_id]].tolist(),
            })
        return segments

    # -------------------------------------------------------------------------
    # Utility methods
    # -------------------------------------------------------------------------

    def get_cache_info(self) -> dict:
        """Get information about the cache."""
        if self._cache is None:
            return {"status": "not initialized"}
        return self._cache.get_cache_info()

    def clear_cache(self) -> None:
        """Clear the cache for this dataset+embedder."""
        if self._cache:
            self._cache.clear()

    @property
    def n_items(self) -> int:
        """Number of traits in the store."""
        return len(self.items_df) if self.items_df is not None else 0
