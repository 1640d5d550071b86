"""
Core protocols defining contracts for the retriever and indexer.

PATTERN:
- Protocol defines the contract
- Production implementation (TiDBVectorStore, OpenAIEmbeddings)
- Test double (InMemoryVectorStore, MockEmbeddings)
- Factory function for instantiation

Embedding providers are capability-based: anything with an
``embed(content, options)`` method works. There is no base class.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, Sequence, runtime_checkable

import numpy as np

if TYPE_CHECKING:
    from tidb_retriever.retrieval.distance import DistanceMethod


# ---------------------------------------------------------------------------
# EMBEDDING PROVIDER PROTOCOL
# ---------------------------------------------------------------------------


@runtime_checkable
class EmbeddingProvider(Protocol):
    """
    Contract for embedding generation.

    ``content`` is either plain text or a Document (anything with a
    ``text()`` method). ``options`` are provider-specific and passed
    through untouched.

    Implementations:
    - OpenAIEmbeddings (production)
    - MockEmbeddings (testing)
    """

    def embed(self, content: Any, options: dict[str, Any] | None = None) -> np.ndarray:
        """Generate the embedding vector for one piece of content."""
        ...


# ---------------------------------------------------------------------------
# VECTOR STORE PROTOCOL
# ---------------------------------------------------------------------------


@dataclass
class QueryResponse:
    """Rows matched by a nearest-neighbor query, in ranking order."""

    ids: list[str]
    documents: list[str | None]
    distances: list[float]
    embeddings: list[np.ndarray] | None = None

    def __len__(self) -> int:
        return len(self.ids)


@runtime_checkable
class VectorStore(Protocol):
    """
    Contract for a tenant-scoped vector table.

    Implementations:
    - TiDBVectorStore (production, MySQL-compatible vector database)
    - InMemoryVectorStore (testing/development)
    """

    table_name: str

    def create_schema(self) -> None:
        """Create the backing table if it does not exist."""
        ...

    def add(
        self,
        identifier_id: str,
        ids: Sequence[str],
        embeddings: Sequence[Sequence[float]],
        documents: Sequence[str | None],
    ) -> None:
        """Upsert one record per id as a single all-or-nothing batch."""
        ...

    def query(
        self,
        query_embedding: Sequence[float],
        identifier_id: str,
        k: int | None = None,
        distance_method: DistanceMethod | str | None = None,
        include_embeddings: bool = False,
    ) -> QueryResponse:
        """Return the k nearest records for one tenant, closest first."""
        ...
