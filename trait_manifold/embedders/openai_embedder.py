"""
OpenAI embedding backend.
Uses text-embedding-3-small to place trait descriptions in semantic space.
"""

import logging
import os
import time
from typing import Any, Callable, Optional

import numpy as np
from dotenv import load_dotenv
from openai import OpenAI

from .base import BaseEmbedder, register_embedder
import config

logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()


@register_embedder("openai")
class OpenAIEmbedder(BaseEmbedder):
    """
    OpenAI embedding backend using text-embedding-3-small.

    Features:
    - Token-aware batching for large trait sets
    - L2 normalization for cosine similarity
    - Rate limit handling with exponential backoff
    """

    # OpenAI's max tokens per embedding request
    MAX_TOKENS_PER_REQUEST = 290000  # Leave some buffer below 300k limit
    CHARS_PER_TOKEN_ESTIMATE = 3.5

    def __init__(
        self,
        model: str = config.OPENAI_MODEL,
        batch_size: int = config.OPENAI_BATCH_SIZE,
        api_key: Optional[str] = None,
        client: Optional[Any] = None,
        retry_delay: float = 2.0,
    ):
        """
        Initialize the OpenAI embedder.

        Args:
            model: OpenAI model name (default: text-embedding-3-small)
            batch_size: Maximum texts per API call
            api_key: Optional API key (defaults to OPENAI_API_KEY env var)
            client: Pre-built client exposing ``embeddings.create``
            retry_delay: Base delay in seconds before retrying a rate-limited call

        Raises:
            ValueError: If no client is given and no API key can be found
        """
        self.model = model
        self.batch_size = batch_size
        self.retry_delay = retry_delay

        if client is None:
            api_key = api_key or os.getenv("OPENAI_API_KEY")
            if not api_key:
                raise ValueError(
                    "OpenAI API key not found. "
                    "Set OPENAI_API_KEY in .env file or pass api_key parameter."
                )
            client = OpenAI(api_key=api_key)

        self.client = client
        self._dimension = config.OPENAI_EMBEDDING_DIM

    @property
    def name(self) -> str:
        return f"openai_{self.model}"

    @property
    def dimension(self) -> int:
        return self._dimension

    def embed(
        self,
        texts: list[str],
        progress_callback: Optional[Callable[[int, int], None]] = None
    ) -> np.ndarray:
        """
        Embed texts using the OpenAI API with dynamic batching.

        Args:
            texts: List of text strings to embed
            progress_callback: Optional callback(batch_num, total_batches)

        Returns:
            np.ndarray of shape (len(texts), dimension), L2-normalized
        """
        if not texts:
            return np.array([]).reshape(0, self.dimension)

        cleaned_texts = [self._clean_text(t) for t in texts]
        batches = self._create_token_aware_batches(cleaned_texts)
        n_batches = len(batches)

        all_embeddings = []
        for batch_num, batch in enumerate(batches, 1):
            if n_batches > 1:
                logger.info(f"Embedding batch {batch_num}/{n_batches} ({len(batch)} texts)")
            if progress_callback:
                progress_callback(batch_num, n_batches)

            all_embeddings.extend(self._embed_batch_with_retry(batch))

        embeddings_array = np.array(all_embeddings, dtype=np.float32)
        return self.normalize(embeddings_array)

    def _create_token_aware_batches(self, texts: list[str]) -> list[list[str]]:
        """Split texts into batches under both the count and token limits."""
        batches = []
        current_batch = []
        current_tokens = 0.0

        for text in texts:
            estimated_tokens = len(text) / self.CHARS_PER_TOKEN_ESTIMATE

            would_exceed_tokens = (current_tokens + estimated_tokens) > self.MAX_TOKENS_PER_REQUEST
            would_exceed_count = len(current_batch) >= self.batch_size

            if current_batch and (would_exceed_tokens or would_exceed_count):
                batches.append(current_batch)
                current_batch = []
                current_tokens = 0.0

            current_batch.append(text)
            current_tokens += estimated_tokens

        if current_batch:
            batches.append(current_batch)

        return batches

    def _embed_batch_with_retry(
        self,
        texts: list[str],
        max_retries: int = 5,
    ) -> list[list[float]]:
        """
        Embed a batch, retrying rate-limited calls with exponential backoff.

        Raises:
            Exception: Non rate-limit errors are re-raised immediately
            RuntimeError: If every attempt was rate limited
        """
        for attempt in range(max_retries):
            try:
                response = self.client.embeddings.create(
                    model=self.model,
                    input=texts
                )
                # Sort by index to ensure order matches input
                sorted_data = sorted(response.data, key=lambda x: x.index)
                return [item.embedding for item in sorted_data]

            except Exception as e:
                error_msg = str(e).lower()
                is_rate_limit = "rate" in error_msg or "limit" in error_msg or "429" in error_msg

                if is_rate_limit and attempt < max_retries - 1:
                    delay = self.retry_delay * (2 ** attempt)
                    logger.warning(f"Rate limited. Waiting {delay}s before retry...")
                    time.sleep(delay)
                    continue

                if not is_rate_limit:
                    raise

        raise RuntimeError(f"Failed to embed batch after {max_retries} attempts")

    def _clean_text(self, text: str, max_chars: int = 20000) -> str:
        """Strip and truncate text; empty strings become a single space."""
        if not text:
            return " "  # Empty strings cause API errors

        text = str(text).strip()
        if len(text) > max_chars:
            text = text[:max_chars]

        return text or " "
