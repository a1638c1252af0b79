"""
Embedding backends for Trait-Manifold.
"""

import logging
import os

from .base import BaseEmbedder, get_embedder, list_embedders, register_embedder
from .openai_embedder import OpenAIEmbedder
from .deterministic import DeterministicEmbedder
import config

logger = logging.getLogger(__name__)


def default_embedder() -> BaseEmbedder:
    """
    Build the embedder named by config.DEFAULT_EMBEDDER.

    The OpenAI backend needs OPENAI_API_KEY; without it the offline
    deterministic embedder is used instead.
    """
    name = config.DEFAULT_EMBEDDER
    if name == "openai" and not os.getenv("OPENAI_API_KEY"):
        logger.warning("OPENAI_API_KEY not set, using the deterministic embedder")
        return DeterministicEmbedder()
    return get_embedder(name)


__all__ = [
    "BaseEmbedder",
    "get_embedder",
    "list_embedders",
    "register_embedder",
    "default_embedder",
    "OpenAIEmbedder",
    "DeterministicEmbedder",
]
