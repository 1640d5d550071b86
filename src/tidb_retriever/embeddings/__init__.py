"""
Embeddings module - text embedding generation.

1. Protocol (EmbeddingProvider, in core) defines the interface
2. Production implementation (OpenAIEmbeddings)
3. Test double (MockEmbeddings) for fast testing
4. Factory function (get_embedding_provider)
"""

from tidb_retriever.core.protocols import EmbeddingProvider
from tidb_retriever.embeddings.providers import (
    OpenAIEmbeddings,
    MockEmbeddings,
    content_text,
    get_embedding_provider,
)

__all__ = [
    "EmbeddingProvider",
    "OpenAIEmbeddings",
    "MockEmbeddings",
    "content_text",
    "get_embedding_provider",
]
