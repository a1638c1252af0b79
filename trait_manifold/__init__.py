"""
Trait-Manifold: semantic 3D layout of cultural traits.
"""

__version__ = "0.1.0"
