"""
Loader interface for trait tables, plus the loader registry.
"""

import logging
from abc import ABC, abstractmethod

import pandas as pd

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {"id", "label", "text", "communities"}


class BaseDatasetLoader(ABC):
    """
    Produces a trait table.

    ``load()`` returns one row per trait with at least:
    - id: unique string id
    - label: display label
    - text: what gets embedded
    - communities: list of community ids (may be empty)

    Extra columns are carried through untouched.
    """

    @abstractmethod
    def load(self) -> pd.DataFrame:
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Cache key component; must differ between different tables."""

    def validate(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Check the required columns, drop traits with no text, reject repeated ids.

        Raises:
            ValueError: If a required column is missing or an id repeats
        """
        missing = REQUIRED_COLUMNS - set(df.columns)
        if missing:
            raise ValueError(f"Dataset missing required columns: {sorted(missing)}")

        df["id"] = df["id"].astype(str)

        has_text = df["text"].notna() & (df["text"].astype(str).str.strip() != "")
        if not has_text.all():
            logger.warning(f"Dropped {int((~has_text).sum())} of {len(df)} traits with empty text")
        df = df[has_text]

        duplicated = df["id"][df["id"].duplicated()].unique().tolist()
        if duplicated:
            raise ValueError(f"Dataset has duplicate ids: {duplicated}")

        logger.info(f"Loaded {len(df)} traits")
        return df.reset_index(drop=True)

    @staticmethod
    def _auto_detect_columns(
        columns: list[str],
        column_presets: dict[str, list[str]]
    ) -> dict[str, str]:
        """
        Map each target column to the first matching candidate in ``columns``.

        Exact names win over case-insensitive matches. Targets with no
        match are left out of the result.
        """
        by_lower = {c.lower(): c for c in columns}
        mapping = {}
        for target, candidates in column_presets.items():
            for candidate in candidates:
                actual = candidate if candidate in columns else by_lower.get(candidate.lower())
                if actual is not None:
                    mapping[target] = actual
                    break
        return mapping


_LOADER_REGISTRY: dict[str, type[BaseDatasetLoader]] = {}


def register_loader(name: str):
    """
    Class decorator that makes a loader available as ``get_loader(name)``.

    Raises:
        TypeError: If the class is not a BaseDatasetLoader
        ValueError: If ``name`` is taken
    """
    def decorator(cls: type[BaseDatasetLoader]):
        if not issubclass(cls, BaseDatasetLoader):
            raise TypeError(f"{cls.__name__} must inherit from BaseDatasetLoader")
        existing = _LOADER_REGISTRY.get(name)
        if existing is not None:
            raise ValueError(f"Loader '{name}' already registered by {existing.__name__}")
        _LOADER_REGISTRY[name] = cls
        return cls
    return decorator


def get_loader(name: str, **kwargs) -> BaseDatasetLoader:
    """Instantiate a registered loader; kwargs go to its constructor."""
    try:
        cls = _LOADER_REGISTRY[name]
    except KeyError:
        raise ValueError(f"Unknown loader '{name}'. Available: {list_loaders()}") from None
    return cls(**kwargs)


def list_loaders() -> list[str]:
    return list(_LOADER_REGISTRY)
