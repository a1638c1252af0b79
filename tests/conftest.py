"""
Pytest configuration and shared fixtures.
"""
from types import SimpleNamespace

import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def rng():
    """Seeded generator so random test inputs are reproducible."""
    return np.random.default_rng(1234)


@pytest.fixture
def trait_frame():
    """A small trait table with overlapping communities."""
    return pd.DataFrame({
        "id": ["n1", "n2", "n3", "n4", "n5", "n6"],
        "name": [
            "Microlithic tools",
            "Seasonal foraging",
            "Cereal farming",
            "Pottery",
            "Horse riding",
            "Kurgan burials",
        ],
        "description": [
            "Small flint blades",
            "Mobile camps following game",
            "Wheat and barley cultivation",
            "Fired clay vessels",
            "Domesticated horses for transport",
            "Burial mounds for elites",
        ],
        "category": ["technology", "subsistence", "subsistence", "technology", "technology", "ritual"],
        "communities": ["whg", "whg", "eef", "eef;whg", "steppe", "steppe"],
    })


class FakeEmbeddingsAPI:
    """Stands in for ``client.embeddings``; records calls, can fail first."""

    def __init__(self, dimension=4, failures=None):
        self.dimension = dimension
        self.failures = list(failures or [])
        self.calls = []

    def create(self, model, input):
        self.calls.append(list(input))
        if self.failures:
            raise self.failures.pop(0)
        data = []
        for i, text in enumerate(input):
            vec = [float(len(text)), float(i + 1)] + [1.0] * (self.dimension - 2)
            data.append(SimpleNamespace(index=i, embedding=vec))
        # The API does not promise ordering
        return SimpleNamespace(data=list(reversed(data)))


@pytest.fixture
def fake_openai_client():
    return SimpleNamespace(embeddings=FakeEmbeddingsAPI())


@pytest.fixture
def make_fake_client():
    """Factory for fake clients that fail with the given exceptions first."""
    def factory(dimension=4, failures=None):
        return SimpleNamespace(embeddings=FakeEmbeddingsAPI(dimension=dimension, failures=failures))
    return factory
