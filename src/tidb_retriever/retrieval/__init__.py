"""
Retrieval module - vector storage and nearest-neighbor search.

This module provides:
- DistanceMethod: supported distance functions
- VectorType / register_vector_type(): VECTOR column type
- TiDBClientParams / connect(): connection manager
- embedding_table() / sync_schema(): per-collection table layout
- TiDBVectorStore: production store
- InMemoryVectorStore: testing/development store
- get_vector_store(): Factory function
"""

from tidb_retriever.retrieval.distance import (
    DistanceMethod,
    DEFAULT_DISTANCE_METHOD,
    resolve_distance_method,
    distance_function_name,
)
from tidb_retriever.retrieval.vector_type import (
    VectorType,
    register_vector_type,
    to_vector_literal,
    parse_vector_value,
)
from tidb_retriever.retrieval.connection import (
    TiDBClientParams,
    resolve_client_params,
    connect,
)
from tidb_retriever.retrieval.schema import (
    embedding_table,
    sync_schema,
    table_name_for,
)
from tidb_retriever.retrieval.store import (
    DEFAULT_K,
    TiDBVectorStore,
    InMemoryVectorStore,
    get_vector_store,
)

__all__ = [
    # Distance
    "DistanceMethod",
    "DEFAULT_DISTANCE_METHOD",
    "resolve_distance_method",
    "distance_function_name",
    # Vector type
    "VectorType",
    "register_vector_type",
    "to_vector_literal",
    "parse_vector_value",
    # Connection
    "TiDBClientParams",
    "resolve_client_params",
    "connect",
    # Schema
    "embedding_table",
    "sync_schema",
    "table_name_for",
    # Stores
    "DEFAULT_K",
    "TiDBVectorStore",
    "InMemoryVectorStore",
    "get_vector_store",
]
