"""
Dataset loaders for Trait-Manifold.
"""

from .base import BaseDatasetLoader, get_loader, list_loaders, register_loader
from .traits import TraitsCsvLoader

__all__ = [
    "BaseDatasetLoader",
    "get_loader",
    "list_loaders",
    "register_loader",
    "TraitsCsvLoader",
]
