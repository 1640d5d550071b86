"""
Unit Tests for Observability Module

Tests the optional OpenTelemetry integration with focus on:
1. Graceful degradation (no-op span when disabled or not installed)
2. Configuration loading from environment
3. Spans around indexer and retriever calls
4. Span attribute helpers
"""

import sys
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from tidb_retriever.core.protocols import QueryResponse
from tidb_retriever.embeddings import MockEmbeddings
from tidb_retriever.observability import (
    DB_COLLECTION_NAME,
    DB_OPERATION_NAME,
    DB_SYSTEM,
    TIDB_DISTANCE_METHOD,
    TIDB_DOCUMENT_COUNT,
    TIDB_IDENTIFIER_ID,
    TIDB_K,
    TIDB_QUERY_TEXT,
    TIDB_RESULT_COUNT,
    NoOpSpan,
    TracingConfig,
    index_attributes,
    operation_span,
    reset_tracing,
    retrieve_attributes,
    tracing_config,
)
from tidb_retriever.plugin import TiDBIndexer, TiDBRetriever


@pytest.fixture(autouse=True)
def clean_caches():
    """Drop cached config and tracer around each test."""
    reset_tracing()
    yield
    reset_tracing()


@pytest.fixture
def fake_otel():
    """opentelemetry module whose tracer hands out one MagicMock span."""
    span = MagicMock()
    fake_trace = MagicMock()
    tracer = fake_trace.get_tracer.return_value
    tracer.start_as_current_span.return_value.__enter__.return_value = span
    modules = {"opentelemetry": MagicMock(trace=fake_trace), "opentelemetry.trace": fake_trace}
    with patch.dict(sys.modules, modules):
        yield fake_trace, tracer, span


# ---------------------------------------------------------------------------
# CONFIG TESTS
# ---------------------------------------------------------------------------


class TestTracingConfig:
    """Test configuration loading."""

    def test_config_defaults(self):
        """Tracing is off and content capture is off by default."""
        with patch.dict("os.environ", {}, clear=True):
            config = TracingConfig.from_env()

        assert config.enabled is False
        assert config.service_name == "tidb-retriever"
        assert config.capture_content is False

    @pytest.mark.parametrize("value", ["true", "1", "yes", "TRUE"])
    def test_config_enabled_values(self, value):
        with patch.dict("os.environ", {"TIDB_RETRIEVER_TRACING_ENABLED": value}):
            assert TracingConfig.from_env().enabled is True

    @pytest.mark.parametrize("value", ["false", "0", "no", ""])
    def test_config_disabled_values(self, value):
        with patch.dict("os.environ", {"TIDB_RETRIEVER_TRACING_ENABLED": value}):
            assert TracingConfig.from_env().enabled is False

    def test_config_service_name(self):
        with patch.dict("os.environ", {"TIDB_RETRIEVER_SERVICE_NAME": "rag-api"}):
            assert TracingConfig.from_env().service_name == "rag-api"

    def test_config_read_once(self):
        with patch.dict("os.environ", {"TIDB_RETRIEVER_SERVICE_NAME": "first"}):
            first = tracing_config()
        with patch.dict("os.environ", {"TIDB_RETRIEVER_SERVICE_NAME": "second"}):
            assert tracing_config() is first

        reset_tracing()
        assert tracing_config() is not first


# ---------------------------------------------------------------------------
# SPAN TESTS
# ---------------------------------------------------------------------------


class TestOperationSpan:
    """operation_span() picks a live or no-op span from the environment."""

    def test_disabled_yields_noop(self, fake_otel):
        fake_trace, _, _ = fake_otel
        with patch.dict("os.environ", {"TIDB_RETRIEVER_TRACING_ENABLED": "false"}):
            with operation_span("tidb.index", attributes={"a": 1}) as span:
                assert isinstance(span, NoOpSpan)
                span.set_attribute("k", "v")
                span.record_exception(RuntimeError("ignored"))

        fake_trace.get_tracer.assert_not_called()

    def test_enabled_without_otel_yields_noop(self):
        with patch.dict("os.environ", {"TIDB_RETRIEVER_TRACING_ENABLED": "true"}):
            with patch.dict(sys.modules, {"opentelemetry": None}):
                with operation_span("tidb.index") as span:
                    assert isinstance(span, NoOpSpan)

    def test_enabled_yields_live_span(self, fake_otel):
        fake_trace, tracer, live_span = fake_otel
        with patch.dict("os.environ", {"TIDB_RETRIEVER_TRACING_ENABLED": "true"}):
            with operation_span("tidb.retrieve", attributes={"a": 1}) as span:
                span.set_attribute("tidb.result_count", 2)

        assert span is live_span
        fake_trace.get_tracer.assert_called_once_with("tidb-retriever")
        tracer.start_as_current_span.assert_called_once_with("tidb.retrieve", attributes={"a": 1})
        live_span.set_attribute.assert_called_once_with("tidb.result_count", 2)

    def test_tracer_looked_up_once(self, fake_otel):
        fake_trace, _, _ = fake_otel
        with patch.dict("os.environ", {"TIDB_RETRIEVER_TRACING_ENABLED": "true"}):
            for _ in range(3):
                with operation_span("tidb.index"):
                    pass

        fake_trace.get_tracer.assert_called_once()

    def test_exception_propagates_unchanged(self):
        with pytest.raises(KeyError):
            with operation_span("tidb.index"):
                raise KeyError("boom")


class TestActionSpans:
    """Indexer and retriever calls open one span each."""

    @pytest.fixture
    def store(self):
        store = MagicMock()
        store.query.return_value = QueryResponse(
            ids=["a", "b"], documents=["one", "two"], distances=np.array([0.1, 0.2])
        )
        return store

    def test_retrieve_span_attributes(self, fake_otel, store):
        _, tracer, span = fake_otel
        retriever = TiDBRetriever("Docs", MockEmbeddings(), store=store)
        env = {"TIDB_RETRIEVER_TRACING_ENABLED": "true", "TIDB_RETRIEVER_CAPTURE_CONTENT": "false"}

        with patch.dict("os.environ", env):
            retriever.retrieve("secret question", {"identifierId": "A", "k": 2})

        name = tracer.start_as_current_span.call_args.args[0]
        attributes = tracer.start_as_current_span.call_args.kwargs["attributes"]
        assert name == "tidb.retrieve"
        assert attributes[DB_COLLECTION_NAME] == "docs"
        assert attributes[TIDB_K] == 2
        span.set_attribute.assert_called_once_with(TIDB_RESULT_COUNT, 2)

    def test_query_text_captured_only_when_enabled(self, fake_otel, store):
        _, _, span = fake_otel
        retriever = TiDBRetriever("Docs", MockEmbeddings(), store=store)
        env = {"TIDB_RETRIEVER_TRACING_ENABLED": "true", "TIDB_RETRIEVER_CAPTURE_CONTENT": "true"}

        with patch.dict("os.environ", env):
            retriever.retrieve("secret question", {"identifierId": "A"})

        span.set_attribute.assert_any_call(TIDB_QUERY_TEXT, "secret question")

    def test_index_span_wraps_store_failure(self, fake_otel):
        _, tracer, _ = fake_otel
        store = MagicMock()
        store.add.side_effect = RuntimeError("write failed")
        indexer = TiDBIndexer("Docs", MockEmbeddings(), store=store)

        with patch.dict("os.environ", {"TIDB_RETRIEVER_TRACING_ENABLED": "true"}):
            with pytest.raises(RuntimeError, match="write failed"):
                indexer.index(["a", "b"], {"identifierId": "A"})

        assert tracer.start_as_current_span.call_args.args[0] == "tidb.index"
        attributes = tracer.start_as_current_span.call_args.kwargs["attributes"]
        assert attributes[TIDB_DOCUMENT_COUNT] == 2


# ---------------------------------------------------------------------------
# ATTRIBUTE HELPERS
# ---------------------------------------------------------------------------


class TestAttributes:

    def test_index_attributes(self):
        attrs = index_attributes("docs", "tenant-a", 3)

        assert attrs[DB_SYSTEM] == "tidb"
        assert attrs[DB_COLLECTION_NAME] == "docs"
        assert attrs[DB_OPERATION_NAME] == "index"
        assert attrs[TIDB_IDENTIFIER_ID] == "tenant-a"
        assert attrs[TIDB_DOCUMENT_COUNT] == 3

    def test_retrieve_attributes(self):
        attrs = retrieve_attributes("docs", "tenant-a", "VEC_L2_DISTANCE", 5)

        assert attrs[DB_OPERATION_NAME] == "retrieve"
        assert attrs[TIDB_DISTANCE_METHOD] == "VEC_L2_DISTANCE"
        assert attrs[TIDB_K] == 5

    def test_retrieve_attributes_omit_unbounded_k(self):
        assert TIDB_K not in retrieve_attributes("docs", "t", "VEC_L2_DISTANCE", None)
