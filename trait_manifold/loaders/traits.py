"""
Cultural trait loader.
Reads a CSV (or an in-memory DataFrame) of traits with community memberships.
"""

import hashlib
from pathlib import Path
from typing import Optional

import pandas as pd

from .base import BaseDatasetLoader, register_loader
import config


@register_loader("traits")
class TraitsCsvLoader(BaseDatasetLoader):
    """
    Loader for trait tables.

    Expected CSV format:
    - label (or name/title): Trait label
    - description: Optional free text
    - category (or trait_type): Optional category
    - communities (or community/cluster): ';'-separated community ids
    - text: Optional; built from label, description and category if absent
    - id: Optional; generated as trait_<row> if absent
    """

    COLUMN_PRESETS = {
        "id": ["id", "trait_id", "node_id"],
        "label": ["label", "name", "title"],
        "description": ["description", "desc", "summary"],
        "category": ["category", "trait_type", "traitType", "type"],
        "text": ["text", "content"],
        "communities": ["communities", "community", "clusters", "cluster", "clusterId"],
    }

    def __init__(
        self,
        csv_path: Optional[Path] = None,
        frame: Optional[pd.DataFrame] = None,
        separator: str = config.COMMUNITY_SEPARATOR,
    ):
        """
        Initialize the traits loader.

        Args:
            csv_path: Path to the CSV file (defaults to config.TRAITS_CSV_PATH)
            frame: Already-loaded table; takes precedence over csv_path
            separator: Separator between community ids in one cell
        """
        self.csv_path = Path(csv_path) if csv_path else config.TRAITS_CSV_PATH
        self.frame = frame
        self.separator = separator

    @property
    def name(self) -> str:
        if self.frame is not None:
            # Distinct tables must not share a cache entry
            digest = hashlib.blake2b(
                self.frame.to_csv(index=False).encode("utf-8"), digest_size=8
            ).hexdigest()
            return f"traits_inline_{digest}"
        return f"traits_{self.csv_path.stem}"

    def load(self) -> pd.DataFrame:
        """
        Load traits and normalize to the standard format.

        Returns:
            DataFrame with columns: id, label, text, communities, description, category

        Raises:
            FileNotFoundError: If no frame was given and the CSV is missing
            ValueError: If no label or text column can be found
        """
        if self.frame is not None:
            df = self.frame.copy()
        else:
            if not self.csv_path.exists():
                raise FileNotFoundError(f"Traits CSV not found: {self.csv_path}")
            df = pd.read_csv(self.csv_path)

        df = self._normalize_columns(df)
        return self.validate(df)

    def _normalize_columns(self, df: pd.DataFrame) -> pd.DataFrame:
        mapping = self._auto_detect_columns(list(df.columns), self.COLUMN_PRESETS)

        if "label" not in mapping and "text" not in mapping:
            raise ValueError(
                f"Traits table needs a 'label' or 'text' column. "
                f"Available columns: {list(df.columns)}"
            )

        df = df.rename(columns={actual: target for target, actual in mapping.items()})

        if "description" not in df.columns:
            df["description"] = ""
        if "category" not in df.columns:
            df["category"] = ""
        df["description"] = df["description"].fillna("").astype(str)
        df["category"] = df["category"].fillna("").astype(str)

        if "label" not in df.columns:
            df["label"] = df["text"].astype(str).str[:50].str.strip()

        if "text" not in df.columns:
            df["text"] = [
                self._embedding_text(label, description, category)
                for label, description, category in zip(df["label"], df["description"], df["category"])
            ]

        if "id" not in df.columns:
            df["id"] = [f"trait_{i}" for i in range(len(df))]

        if "communities" not in df.columns:
            df["communities"] = pd.Series([[] for _ in range(len(df))], index=df.index, dtype=object)
        else:
            df["communities"] = df["communities"].map(self._split_communities)

        return df

    @staticmethod
    def _embedding_text(label: str, description: str, category: str) -> str:
        """Text sent to the embedder: '{label}. {description}. {category}'."""
        parts = [str(p).strip() for p in (label, description, category) if str(p).strip()]
        return ". ".join(parts)

    def _split_communities(self, value) -> list[str]:
        if isinstance(value, (list, tuple)):
            return [str(v) for v in value]
        if value is None or (isinstance(value, float) and pd.isna(value)):
            return []
        return [part.strip() for part in str(value).split(self.separator) if part.strip()]
