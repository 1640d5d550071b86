"""
Shared plumbing for the indexer and retriever actions.

Each action owns one lazily created store. The first call connects
(and registers the VECTOR type); later calls reuse the engine pool.
"""

from __future__ import annotations

import threading
from typing import Any

from tidb_retriever.core.protocols import EmbeddingProvider, VectorStore
from tidb_retriever.retrieval.connection import ClientParamsLike, connect
from tidb_retriever.retrieval.store import TiDBVectorStore

PLUGIN_NAMESPACE = "tidb"


def action_name(table_name: str) -> str:
    return f"{PLUGIN_NAMESPACE}/{table_name}"


class TiDBAction:
    """Common state for TiDBIndexer and TiDBRetriever."""

    def __init__(
        self,
        table_name: str,
        embedder: EmbeddingProvider,
        embedder_options: dict[str, Any] | None = None,
        client_params: ClientParamsLike = None,
        dimensions: int | None = None,
        store: VectorStore | None = None,
    ):
        """
        Args:
            table_name: Logical collection name
            embedder: Anything with ``embed(content, options)``
            embedder_options: Passed through to every embed call
            client_params: Params, dict, or zero-arg callable; resolved
                on first use
            dimensions: Optional fixed VECTOR dimension for new tables
            store: Pre-built store (skips connecting; used in tests)
        """
        self.table_name = table_name
        self.name = action_name(table_name)
        self.embedder = embedder
        self.embedder_options = embedder_options
        self._client_params = client_params
        self._dimensions = dimensions
        self._store = store
        self._store_lock = threading.Lock()

    @property
    def store(self) -> VectorStore:
        if self._store is None:
            with self._store_lock:
                if self._store is None:
                    engine = connect(self._client_params)
                    self._store = TiDBVectorStore(
                        engine, self.table_name, dimensions=self._dimensions
                    )
        return self._store

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
