"""
Unit Tests for TiDBVectorStore

Tests the production store without a database. SQL is verified by
compiling statements against the MySQL dialect; execution goes through
a mocked engine.
"""

from unittest.mock import MagicMock, patch

import numpy as np
import pytest
from sqlalchemy.dialects import mysql
from sqlalchemy.exc import IntegrityError, OperationalError

from tidb_retriever.core.errors import IndexingError, QueryError
from tidb_retriever.retrieval.distance import DistanceMethod
from tidb_retriever.retrieval.store import (
    DEFAULT_K,
    InMemoryVectorStore,
    TiDBVectorStore,
    get_vector_store,
)


# ---------------------------------------------------------------------------
# FIXTURES
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_conn():
    conn = MagicMock()
    conn.execute.return_value.fetchall.return_value = []
    return conn


@pytest.fixture
def mock_engine(mock_conn):
    engine = MagicMock()
    engine.begin.return_value.__enter__.return_value = mock_conn
    engine.connect.return_value.__enter__.return_value = mock_conn
    return engine


@pytest.fixture
def store(mock_engine):
    return TiDBVectorStore(mock_engine, "Docs")


def compile_sql(stmt) -> str:
    return str(stmt.compile(dialect=mysql.dialect(), compile_kwargs={"literal_binds": True}))


# ---------------------------------------------------------------------------
# QUERY CONSTRUCTION
# ---------------------------------------------------------------------------


class TestBuildQuery:
    """The ranking SELECT must filter by tenant, order ascending, limit k."""

    def test_default_uses_cosine(self, store):
        sql = compile_sql(store.build_query([1.0, 0.0, 0.0], "tenant-a"))

        assert "VEC_COSINE_DISTANCE(docs.embedding, '[1,0,0]')" in sql
        assert "identifierId" in sql
        assert "'tenant-a'" in sql
        assert "ORDER BY distance ASC" in sql
        assert f"LIMIT {DEFAULT_K}" in sql

    @pytest.mark.parametrize("method", list(DistanceMethod))
    def test_each_distance_method(self, store, method):
        sql = compile_sql(store.build_query([0.5], "t", distance_method=method))

        assert f"{method.value}(docs.embedding, '[0.5]')" in sql

    def test_string_distance_method(self, store):
        sql = compile_sql(store.build_query([0.5], "t", distance_method="L1"))

        assert "VEC_L1_DISTANCE(" in sql

    def test_k_truncates(self, store):
        sql = compile_sql(store.build_query([0.5], "t", k=2))

        assert "LIMIT 2" in sql

    def test_k_none_is_unbounded(self, store):
        sql = compile_sql(store.build_query([0.5], "t", k=None))

        assert "LIMIT" not in sql

    def test_embeddings_only_selected_on_request(self, store):
        without = compile_sql(store.build_query([0.5], "t"))
        with_emb = compile_sql(store.build_query([0.5], "t", include_embeddings=True))

        assert without.count("docs.embedding") == 1
        assert with_emb.count("docs.embedding") == 2

    def test_invalid_k(self, store):
        with pytest.raises(QueryError):
            store.build_query([0.5], "t", k=0)

    def test_invalid_distance_method(self, store):
        with pytest.raises(QueryError):
            store.build_query([0.5], "t", distance_method="hamming")


# ---------------------------------------------------------------------------
# QUERY EXECUTION
# ---------------------------------------------------------------------------


class TestQuery:
    """query() maps rows into a QueryResponse."""

    def test_returns_rows_in_order(self, store, mock_conn):
        mock_conn.execute.return_value.fetchall.return_value = [
            ("id-1", "closest", 0.1),
            ("id-2", None, 0.4),
        ]

        response = store.query([1.0, 0.0], "tenant-a", k=2)

        assert response.ids == ["id-1", "id-2"]
        assert response.documents == ["closest", None]
        assert response.distances == [0.1, 0.4]
        assert response.embeddings is None
        assert len(response) == 2

    def test_include_embeddings_decodes(self, store, mock_conn):
        mock_conn.execute.return_value.fetchall.return_value = [
            ("id-1", "doc", 0.0, "[1,0]"),
        ]

        response = store.query([1.0, 0.0], "t", include_embeddings=True)

        np.testing.assert_allclose(response.embeddings[0], [1.0, 0.0])

    def test_database_error_raises_query_error(self, store, mock_conn):
        mock_conn.execute.side_effect = OperationalError(
            "SELECT", {}, Exception("vector dimension mismatch")
        )

        with pytest.raises(QueryError, match="dimension mismatch"):
            store.query([1.0], "t")


# ---------------------------------------------------------------------------
# INSERT
# ---------------------------------------------------------------------------


class TestAdd:
    """add() writes one upsert batch inside a transaction."""

    def test_insert_statement_is_upsert(self, store):
        sql = str(store.build_insert().compile(dialect=mysql.dialect()))

        assert sql.startswith("INSERT INTO docs")
        assert "ON DUPLICATE KEY UPDATE" in sql

    def test_upsert_reassigns_tenant(self, store):
        sql = str(store.build_insert().compile(dialect=mysql.dialect()))
        update_clause = sql.split("ON DUPLICATE KEY UPDATE", 1)[1]

        assert "identifierId" in update_clause
        assert "text" in update_clause
        assert "embedding" in update_clause

    def test_add_executes_single_batch(self, store, mock_engine, mock_conn):
        store.add(
            "tenant-a",
            ids=["a", "b"],
            embeddings=[[0.1, 0.25, -3.0], np.array([1.0, 2.0, 3.0])],
            documents=["first", "second"],
        )

        mock_engine.begin.assert_called_once()
        mock_conn.execute.assert_called_once()
        records = mock_conn.execute.call_args.args[1]
        assert records == [
            {"id": "a", "identifierId": "tenant-a", "text": "first", "embedding": "[0.1,0.25,-3]"},
            {"id": "b", "identifierId": "tenant-a", "text": "second", "embedding": "[1,2,3]"},
        ]

    def test_empty_batch_is_noop(self, store, mock_engine):
        store.add("tenant-a", ids=[], embeddings=[], documents=[])

        mock_engine.begin.assert_not_called()

    def test_length_mismatch(self, store):
        with pytest.raises(ValueError, match="length mismatch"):
            store.add("t", ids=["a"], embeddings=[], documents=["x"])

    def test_failure_raises_indexing_error(self, store, mock_conn):
        mock_conn.execute.side_effect = IntegrityError(
            "INSERT", {}, Exception("Column 'identifierId' cannot be null")
        )

        with pytest.raises(IndexingError, match="cannot be null") as excinfo:
            store.add("t", ids=["a"], embeddings=[[1.0]], documents=["x"])

        assert isinstance(excinfo.value.__cause__, IntegrityError)


# ---------------------------------------------------------------------------
# LIFECYCLE
# ---------------------------------------------------------------------------


class TestLifecycle:

    def test_create_schema_syncs_table(self, store, mock_engine):
        with patch("tidb_retriever.retrieval.store.sync_schema") as mock_sync:
            store.create_schema()

        mock_sync.assert_called_once_with(mock_engine, store.table)

    def test_close_disposes_engine(self, store, mock_engine):
        store.close()

        mock_engine.dispose.assert_called_once()

    def test_logical_and_physical_names(self, store):
        assert store.table_name == "Docs"
        assert store.table.name == "docs"


# ---------------------------------------------------------------------------
# FACTORY
# ---------------------------------------------------------------------------


class TestGetVectorStore:

    def test_returns_in_memory_by_default(self):
        store = get_vector_store("Docs")

        assert isinstance(store, InMemoryVectorStore)

    def test_returns_tidb_when_requested(self, mock_engine):
        with patch("tidb_retriever.retrieval.store.connect", return_value=mock_engine) as mock_connect:
            store = get_vector_store("Docs", use_tidb=True, params={"host": "db"}, dimensions=3)

        mock_connect.assert_called_once_with({"host": "db"})
        assert isinstance(store, TiDBVectorStore)
        assert store.table.c.embedding.type.dimensions == 3
