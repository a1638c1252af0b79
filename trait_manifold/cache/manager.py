"""
CacheManager: on-disk cache for embeddings, items and 3D layouts.
One directory per dataset+embedder combination.
"""

import hashlib
import logging
import shutil
from pathlib import Path
from typing import Optional, Sequence

import numpy as np
import pandas as pd

import config

logger = logging.getLogger(__name__)


def layout_key(ids: Sequence[str], vectors: np.ndarray) -> str:
    """
    Stable content hash of an input set, used to reuse projections.

    Args:
        ids: Item identities, in projection order
        vectors: Embedding matrix aligned with ids

    Returns:
        Hex digest that changes if any id, the order, or any vector changes
    """
    digest = hashlib.blake2b(digest_size=16)
    for id_ in ids:
        digest.update(str(id_).encode("utf-8"))
        digest.update(b"\x00")
    digest.update(np.ascontiguousarray(vectors, dtype=np.float64).tobytes())
    return digest.hexdigest()


class CacheManager:
    """
    File-backed cache for one dataset+embedder combination.

    Layout:
        <cache_dir>/<cache_key>/embeddings.npz   embeddings + ids
        <cache_dir>/<cache_key>/items.csv        item table
        <cache_dir>/<cache_key>/layout.npz       positions + layout key
    """

    EMBEDDINGS_FILE = "embeddings.npz"
    ITEMS_FILE = "items.csv"
    LAYOUT_FILE = "layout.npz"

    def __init__(
        self,
        cache_key: str,
        cache_dir: Optional[Path] = None,
        community_separator: str = config.COMMUNITY_SEPARATOR
    ):
        self.cache_key = cache_key
        self.cache_dir = Path(cache_dir) if cache_dir else config.CACHE_DIR
        self.community_separator = community_separator

    @property
    def cache_path(self) -> Path:
        return self.cache_dir / self.cache_key

    def _ensure_cache_dir(self) -> None:
        self.cache_path.mkdir(parents=True, exist_ok=True)

    # -------------------------------------------------------------------------
    # Embeddings
    # -------------------------------------------------------------------------

    def has_embeddings(self) -> bool:
        return (self.cache_path / self.EMBEDDINGS_FILE).exists()

    def save_embeddings(self, embeddings: np.ndarray, ids: list[str]) -> None:
        self._ensure_cache_dir()
        np.savez_compressed(
            self.cache_path / self.EMBEDDINGS_FILE,
            embeddings=embeddings,
            ids=np.array(ids, dtype=str),
        )
        logger.debug(f"Saved {len(ids)} embeddings to {self.cache_path}")

    def load_embeddings(self) -> tuple[np.ndarray, list[str]]:
        with np.load(self.cache_path / self.EMBEDDINGS_FILE) as data:
            return data["embeddings"], data["ids"].tolist()

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    def has_items(self) -> bool:
        return (self.cache_path / self.ITEMS_FILE).exists()

    def save_items(self, items_df: pd.DataFrame) -> None:
        self._ensure_cache_dir()
        df = items_df.copy()
        df["communities"] = df["communities"].map(self.community_separator.join)
        df.to_csv(self.cache_path / self.ITEMS_FILE, index=False)

    def load_items(self) -> pd.DataFrame:
        df = pd.read_csv(self.cache_path / self.ITEMS_FILE, dtype={"id": str}, keep_default_na=False)
        df["communities"] = df["communities"].map(
            lambda cell: [c for c in str(cell).split(self.community_separator) if c]
        )
        return df

    # -------------------------------------------------------------------------
    # Layouts
    # -------------------------------------------------------------------------

    def load_layout(self, key: str) -> Optional[np.ndarray]:
        """Return cached positions if they were computed for ``key``."""
        path = self.cache_path / self.LAYOUT_FILE
        if not path.exists():
            return None
        with np.load(path) as data:
            if str(data["key"]) != key:
                return None
            return data["positions"]

    def save_layout(self, key: str, positions: np.ndarray) -> None:
        self._ensure_cache_dir()
        np.savez_compressed(self.cache_path / self.LAYOUT_FILE, key=np.array(key), positions=positions)

    # -------------------------------------------------------------------------
    # Housekeeping
    # -------------------------------------------------------------------------

    def is_complete(self) -> bool:
        """Embeddings and items are both cached."""
        return self.has_embeddings() and self.has_items()

    def clear(self) -> None:
        if self.cache_path.exists():
            shutil.rmtree(self.cache_path)
            logger.info(f"Cleared cache at {self.cache_path}")

    def get_cache_info(self) -> dict:
        files = sorted(p.name for p in self.cache_path.glob("*")) if self.cache_path.exists() else []
        size_bytes = sum(p.stat().st_size for p in self.cache_path.glob("*")) if files else 0
        return {
            "status": "complete" if self.is_complete() else ("partial" if files else "empty"),
            "cache_key": self.cache_key,
            "path": str(self.cache_path),
            "files": files,
            "size_bytes": size_bytes,
        }
