"""
On-disk caching for Trait-Manifold.
"""

from .manager import CacheManager, layout_key

__all__ = ["CacheManager", "layout_key"]
