"""
Vector store implementations.

Pattern: Protocol -> Production impl -> Test double -> Factory

This module contains:
1. TiDBVectorStore - MySQL-compatible vector database (production)
2. InMemoryVectorStore - numpy-backed store (testing/development)
3. get_vector_store() - Factory function

Both honor the same contract: records are scoped by identifier id,
writes are all-or-nothing per batch, and results come back closest
first under the selected distance method.
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np
from sqlalchemy import String, func, literal, select
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from tidb_retriever.core.errors import IndexingError, QueryError
from tidb_retriever.core.protocols import QueryResponse
from tidb_retriever.retrieval.connection import ClientParamsLike, connect
from tidb_retriever.retrieval.distance import DistanceMethod, resolve_distance_method
from tidb_retriever.retrieval.schema import embedding_table, sync_schema
from tidb_retriever.retrieval.vector_type import parse_vector_value, to_vector_literal

logger = logging.getLogger(__name__)

# Result count when the caller does not pass k. Pass k=None to the
# store explicitly to lift the limit.
DEFAULT_K = 10


def _check_batch(
    ids: Sequence[str],
    embeddings: Sequence[Sequence[float]],
    documents: Sequence[str | None],
) -> None:
    if not (len(ids) == len(embeddings) == len(documents)):
        raise ValueError(
            f"Batch length mismatch: {len(ids)} ids, "
            f"{len(embeddings)} embeddings, {len(documents)} documents"
        )


def _check_k(k: int | None) -> None:
    if k is not None and k < 1:
        raise QueryError(f"k must be a positive integer, got {k}")


# ---------------------------------------------------------------------------
# TIDB STORE (Production)
# ---------------------------------------------------------------------------


class TiDBVectorStore:
    """
    Vector table in a MySQL-compatible database with VEC_* functions.

    The engine is INJECTED (see retrieval.connection.connect) so tests
    can hand in a mock.
    """

    def __init__(
        self,
        engine: Engine,
        table_name: str,
        dimensions: int | None = None,
    ):
        self.table_name = table_name
        self.table = embedding_table(table_name, dimensions=dimensions)
        self._engine = engine

    def close(self) -> None:
        """Release pooled connections."""
        self._engine.dispose()

    def create_schema(self) -> None:
        """Create the table if missing (idempotent)."""
        sync_schema(self._engine, self.table)

    def build_insert(self):
        """INSERT ... ON DUPLICATE KEY UPDATE for one batch."""
        # ids are content hashes shared by every tenant of the table, so
        # indexing identical content under another identifierId moves the row.
        stmt = mysql_insert(self.table)
        return stmt.on_duplicate_key_update(
            identifierId=stmt.inserted.identifierId,
            text=stmt.inserted.text,
            embedding=stmt.inserted.embedding,
        )

    def add(
        self,
        identifier_id: str,
        ids: Sequence[str],
        embeddings: Sequence[Sequence[float]],
        documents: Sequence[str | None],
    ) -> None:
        """
        Upsert a batch in one transaction.

        Re-adding an existing id overwrites that row. If the statement
        fails the transaction rolls back and nothing from the batch is
        kept.

        Raises:
            IndexingError: the bulk insert failed
        """
        _check_batch(ids, embeddings, documents)
        if not ids:
            return

        records = [
            {
                "id": record_id,
                "identifierId": identifier_id,
                "text": document,
                "embedding": to_vector_literal(embedding),
            }
            for record_id, embedding, document in zip(ids, embeddings, documents)
        ]

        try:
            with self._engine.begin() as conn:
                conn.execute(self.build_insert(), records)
        except SQLAlchemyError as e:
            logger.error(f"Bulk insert of {len(records)} rows into {self.table.name} failed: {e}")
            raise IndexingError(str(e)) from e

        logger.info(f"Indexed {len(records)} rows into {self.table.name}")

    def build_query(
        self,
        query_embedding: Sequence[float],
        identifier_id: str,
        k: int | None = DEFAULT_K,
        distance_method: DistanceMethod | str | None = None,
        include_embeddings: bool = False,
    ):
        """SELECT ranked by the chosen distance function, tenant-filtered."""
        method = resolve_distance_method(distance_method)
        _check_k(k)

        distance_fn = getattr(func, method.value)
        distance = distance_fn(
            self.table.c.embedding,
            literal(to_vector_literal(query_embedding), type_=String),
        ).label("distance")

        columns = [self.table.c.id, self.table.c.text, distance]
        if include_embeddings:
            columns.append(self.table.c.embedding)

        stmt = (
            select(*columns)
            .where(self.table.c.identifierId == identifier_id)
            .order_by(distance.asc())
        )
        if k is not None:
            stmt = stmt.limit(k)
        return stmt

    def query(
        self,
        query_embedding: Sequence[float],
        identifier_id: str,
        k: int | None = DEFAULT_K,
        distance_method: DistanceMethod | str | None = None,
        include_embeddings: bool = False,
    ) -> QueryResponse:
        """
        Nearest-neighbor search within one tenant.

        Raises:
            QueryError: bad distance method / k, or the database rejected
                the query (e.g. dimension mismatch)
        """
        stmt = self.build_query(
            query_embedding,
            identifier_id,
            k=k,
            distance_method=distance_method,
            include_embeddings=include_embeddings,
        )
        logger.debug(f"Querying {self.table.name} for {identifier_id!r} (k={k})")

        try:
            with self._engine.connect() as conn:
                rows = conn.execute(stmt).fetchall()
        except SQLAlchemyError as e:
            logger.error(f"Query against {self.table.name} failed: {e}")
            raise QueryError(str(e)) from e

        return QueryResponse(
            ids=[row[0] for row in rows],
            documents=[row[1] for row in rows],
            distances=[float(row[2]) for row in rows],
            embeddings=[parse_vector_value(row[3]) for row in rows] if include_embeddings else None,
        )


# ---------------------------------------------------------------------------
# IN-MEMORY STORE (Testing/Development)
# ---------------------------------------------------------------------------


def _l2(a: np.ndarray, b: np.ndarray) -> float:
    return float(np.linalg.norm(a - b))


def _cosine(a: np.ndarray, b: np.ndarray) -> float:
    return float(1.0 - np.dot(a, b) / (np.linalg.norm(a) * np.linalg.norm(b)))


def _negative_inner_product(a: np.ndarray, b: np.ndarray) -> float:
    return float(-np.dot(a, b))


def _l1(a: np.ndarray, b: np.ndarray) -> float:
    return float(np.sum(np.abs(a - b)))


_DISTANCE_FUNCTIONS = {
    DistanceMethod.L2: _l2,
    DistanceMethod.COSINE: _cosine,
    DistanceMethod.NEGATIVE_INNER_PRODUCT: _negative_inner_product,
    DistanceMethod.L1: _l1,
}


class InMemoryVectorStore:
    """
    In-memory vector store for development/testing.

    Same contract as TiDBVectorStore without a database. Distances are
    computed with numpy using the same definitions as the VEC_*
    functions.
    """

    def __init__(self, table_name: str = "documents"):
        self.table_name = table_name
        # id -> (identifier_id, text, embedding)
        self._records: dict[str, tuple[str, str | None, np.ndarray]] = {}
        self.schema_synced = False

    def close(self) -> None:
        """No-op for in-memory store."""
        pass

    def create_schema(self) -> None:
        """No-op for in-memory store."""
        self.schema_synced = True

    def __len__(self) -> int:
        return len(self._records)

    def add(
        self,
        identifier_id: str,
        ids: Sequence[str],
        embeddings: Sequence[Sequence[float]],
        documents: Sequence[str | None],
    ) -> None:
        """Upsert a batch; nothing is stored if any embedding is invalid."""
        _check_batch(ids, embeddings, documents)

        staged = {}
        for record_id, embedding, document in zip(ids, embeddings, documents):
            vector = np.asarray(embedding, dtype=np.float32)
            if vector.ndim != 1:
                raise IndexingError(f"Embedding for {record_id} is not a flat vector")
            staged[record_id] = (identifier_id, document, vector)

        self._records.update(staged)

    def query(
        self,
        query_embedding: Sequence[float],
        identifier_id: str,
        k: int | None = DEFAULT_K,
        distance_method: DistanceMethod | str | None = None,
        include_embeddings: bool = False,
    ) -> QueryResponse:
        """Nearest-neighbor search within one tenant."""
        method = resolve_distance_method(distance_method)
        _check_k(k)
        distance_fn = _DISTANCE_FUNCTIONS[method]
        query_vec = np.asarray(query_embedding, dtype=np.float32)

        scored = []
        for record_id, (tenant, document, vector) in self._records.items():
            if tenant != identifier_id:
                continue
            if vector.shape != query_vec.shape:
                raise QueryError(
                    f"Vector dimension mismatch: stored {vector.shape[0]}, query {query_vec.shape[0]}"
                )
            scored.append((distance_fn(vector, query_vec), record_id, document, vector))

        scored.sort(key=lambda x: x[0])
        if k is not None:
            scored = scored[:k]

        return QueryResponse(
            ids=[record_id for _, record_id, _, _ in scored],
            documents=[document for _, _, document, _ in scored],
            distances=[distance for distance, _, _, _ in scored],
            embeddings=[vector for _, _, _, vector in scored] if include_embeddings else None,
        )


# ---------------------------------------------------------------------------
# FACTORY FUNCTION
# ---------------------------------------------------------------------------


def get_vector_store(
    table_name: str,
    use_tidb: bool = False,
    params: ClientParamsLike = None,
    dimensions: int | None = None,
) -> TiDBVectorStore | InMemoryVectorStore:
    """
    Factory function to get the appropriate vector store.

    Args:
        table_name: Logical collection name (lower-cased for the table)
        use_tidb: Connect to a database (default: False for dev)
        params: Connection params, dict, or callable (see resolve_client_params)
        dimensions: Optional fixed VECTOR dimension for new tables

    Returns:
        VectorStore implementation
    """
    if use_tidb:
        return TiDBVectorStore(connect(params), table_name, dimensions=dimensions)
    return InMemoryVectorStore(table_name)
