"""
Embedder interface and the name -> class registry behind get_embedder().
"""

from abc import ABC, abstractmethod

import numpy as np


class BaseEmbedder(ABC):
    """
    Turns trait texts into unit vectors.

    ``name`` goes into the cache key, so it must change whenever the
    vectors an embedder produces would change (model, dimension).
    """

    @abstractmethod
    def embed(self, texts: list[str]) -> np.ndarray:
        """Return an array of shape (len(texts), dimension), one unit row per text."""

    @property
    @abstractmethod
    def dimension(self) -> int:
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    def embed_single(self, text: str) -> np.ndarray:
        return self.embed([text])[0]

    @staticmethod
    def normalize(vectors: np.ndarray) -> np.ndarray:
        """L2-normalize rows; all-zero rows stay zero."""
        norms = np.linalg.norm(vectors, axis=1, keepdims=True)
        return vectors / np.where(norms == 0, 1, norms)


_EMBEDDER_REGISTRY: dict[str, type[BaseEmbedder]] = {}


def register_embedder(name: str):
    """
    Class decorator that makes an embedder available as ``get_embedder(name)``.

    Raises:
        TypeError: If the class is not a BaseEmbedder
        ValueError: If ``name`` is taken
    """
    def decorator(cls: type[BaseEmbedder]):
        if not issubclass(cls, BaseEmbedder):
            raise TypeError(f"{cls.__name__} must inherit from BaseEmbedder")
        existing = _EMBEDDER_REGISTRY.get(name)
        if existing is not None:
            raise ValueError(f"Embedder '{name}' already registered by {existing.__name__}")
        _EMBEDDER_REGISTRY[name] = cls
        return cls
    return decorator


def get_embedder(name: str, **kwargs) -> BaseEmbedder:
    """Instantiate a registered embedder; kwargs go to its constructor."""
    try:
        cls = _EMBEDDER_REGISTRY[name]
    except KeyError:
        raise ValueError(
            f"Unknown embedder '{name}'. Available: {list_embedders()}"
        ) from None
    return cls(**kwargs)


def list_embedders() -> list[str]:
    return list(_EMBEDDER_REGISTRY)
