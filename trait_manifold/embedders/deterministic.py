"""
Deterministic offline embedding backend.
Hash-seeded Gaussian vectors: the same text always maps to the same vector,
which keeps layouts reproducible when no API key is configured.
"""

import math

import numpy as np

from .base import BaseEmbedder, register_embedder
import config

_UINT32 = 0xFFFFFFFF


def string_hash(text: str) -> int:
    """32-bit signed rolling hash (h * 31 + code unit) over UTF-16 code units."""
    data = text.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + code_unit) & _UINT32
    return h - (1 << 32) if h & 0x80000000 else h


def _imul(a: int, b: int) -> int:
    return (a * b) & _UINT32


class Mulberry32:
    """Small 32-bit PRNG with a fully explicit state."""

    def __init__(self, seed: int):
        self._state = int(seed) & _UINT32

    def random(self) -> float:
        """Return the next value in [0, 1)."""
        self._state = (self._state + 0x6D2B79F5) & _UINT32
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _UINT32
        return ((t ^ (t >> 14)) & _UINT32) / 4294967296

    __call__ = random

    def gaussian(self) -> float:
        """Standard normal sample via Box-Muller."""
        u1 = self.random()
        u2 = self.random()
        return math.sqrt(-2 * math.log(u1 or 0.0001)) * math.cos(2 * math.pi * u2)


@register_embedder("deterministic")
class DeterministicEmbedder(BaseEmbedder):
    """
    Offline embedder producing unit Gaussian vectors seeded by a text hash.

    Texts carry no semantic similarity in this space; it exists so the
    pipeline runs end to end without network access.
    """

    def __init__(self, dimension: int = config.DETERMINISTIC_EMBEDDING_DIM):
        self._dimension = dimension

    @property
    def name(self) -> str:
        return f"deterministic_{self._dimension}"

    @property
    def dimension(self) -> int:
        return self._dimension

    def embed(self, texts: list[str]) -> np.ndarray:
        if not texts:
            return np.array([]).reshape(0, self.dimension)

        vectors = np.array([self._embed_text(t) for t in texts], dtype=np.float32)
        return self.normalize(vectors)

    def _embed_text(self, text: str) -> list[float]:
        rng = Mulberry32(string_hash(text))
        return [rng.gaussian() for _ in range(self._dimension)]
