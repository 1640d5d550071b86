"""
Embedding providers - Single Responsibility: turn content into vectors.

Any object with ``embed(content, options) -> vector`` satisfies
EmbeddingProvider; these are the two shipped with the package.
"""

from __future__ import annotations

import hashlib
import os
from typing import Any

import numpy as np
from openai import OpenAI

from tidb_retriever.core.protocols import EmbeddingProvider


def content_text(content: Any) -> str:
    """Plain text of a str or of anything exposing ``text()``."""
    if isinstance(content, str):
        return content
    text = getattr(content, "text", None)
    if callable(text):
        return text()
    raise TypeError(f"Cannot embed content of type {type(content).__name__}")


class OpenAIEmbeddings:
    """
    OpenAI-based embedding provider.

    Uses text-embedding-3-small by default (1536 dimensions).
    ``options`` may carry ``model`` and ``dimensions`` overrides.
    """

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        api_key: str | None = None,
    ):
        self.model = model
        self._client = OpenAI(api_key=api_key or os.environ.get("OPENAI_API_KEY"))

    @property
    def dimensions(self) -> int:
        """Return embedding dimensions for the model."""
        model_dims = {
            "text-embedding-3-small": 1536,
            "text-embedding-3-large": 3072,
            "text-embedding-ada-002": 1536,
        }
        return model_dims.get(self.model, 1536)

    def embed(self, content: Any, options: dict[str, Any] | None = None) -> np.ndarray:
        """Generate embedding for one piece of content."""
        options = options or {}
        kwargs = {}
        if "dimensions" in options:
            kwargs["dimensions"] = options["dimensions"]

        response = self._client.embeddings.create(
            input=content_text(content),
            model=options.get("model", self.model),
            **kwargs,
        )
        return np.array(response.data[0].embedding, dtype=np.float32)


class MockEmbeddings:
    """
    Mock embedding provider for testing without API calls.

    Generates deterministic pseudo-embeddings from text hashes.
    NOT for production use - only for testing/development.
    """

    def __init__(self, dimensions: int = 8):
        self._dimensions = dimensions

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def embed(self, content: Any, options: dict[str, Any] | None = None) -> np.ndarray:
        """Deterministic unit vector derived from the text's SHA-256."""
        h = hashlib.sha256(content_text(content).encode("utf-8")).digest()
        repeated = h * (self._dimensions // len(h) + 1)
        raw = np.frombuffer(repeated[: self._dimensions], dtype=np.uint8).astype(np.float32)
        centered = raw - 127.5
        norm = np.linalg.norm(centered)
        return centered / norm if norm else centered


def get_embedding_provider(use_mock: bool = False, **kwargs: Any) -> EmbeddingProvider:
    """
    Factory function to get the appropriate embedding provider.

    Args:
        use_mock: If True, return MockEmbeddings (for testing)
        **kwargs: Passed to the provider constructor
    """
    if use_mock:
        return MockEmbeddings(**kwargs)
    return OpenAIEmbeddings(**kwargs)
