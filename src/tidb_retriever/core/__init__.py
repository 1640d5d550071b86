"""
Core module - shared protocols, types and errors.

USAGE:
------
from tidb_retriever.core import EmbeddingProvider, VectorStore, QueryError
"""

from tidb_retriever.core.errors import (
    TiDBRetrieverError,
    TiDBConnectionError,
    SchemaError,
    IndexingError,
    QueryError,
    VectorDecodeError,
)
from tidb_retriever.core.protocols import (
    EmbeddingProvider,
    VectorStore,
    QueryResponse,
)

__all__ = [
    # Protocols
    "EmbeddingProvider",
    "VectorStore",
    # Data classes
    "QueryResponse",
    # Errors
    "TiDBRetrieverError",
    "TiDBConnectionError",
    "SchemaError",
    "IndexingError",
    "QueryError",
    "VectorDecodeError",
]
