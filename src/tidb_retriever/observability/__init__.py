"""
Observability Module - optional OpenTelemetry spans.

USAGE:
------
from tidb_retriever.observability import operation_span

with operation_span("tidb.retrieve", attributes={"key": "value"}) as span:
    span.set_attribute("tidb.result_count", 3)

Spans are only emitted when TIDB_RETRIEVER_TRACING_ENABLED=true and
opentelemetry-api is installed.
"""

from tidb_retriever.observability.tracing import (
    NoOpSpan,
    TracingConfig,
    operation_span,
    reset_tracing,
    tracing_config,
)
from tidb_retriever.observability.attributes import (
    DB_SYSTEM,
    DB_COLLECTION_NAME,
    DB_OPERATION_NAME,
    TIDB_IDENTIFIER_ID,
    TIDB_DISTANCE_METHOD,
    TIDB_K,
    TIDB_DOCUMENT_COUNT,
    TIDB_RESULT_COUNT,
    TIDB_QUERY_TEXT,
    index_attributes,
    retrieve_attributes,
)

__all__ = [
    # Tracing
    "NoOpSpan",
    "TracingConfig",
    "operation_span",
    "reset_tracing",
    "tracing_config",
    # Attributes
    "DB_SYSTEM",
    "DB_COLLECTION_NAME",
    "DB_OPERATION_NAME",
    "TIDB_IDENTIFIER_ID",
    "TIDB_DISTANCE_METHOD",
    "TIDB_K",
    "TIDB_DOCUMENT_COUNT",
    "TIDB_RESULT_COUNT",
    "TIDB_QUERY_TEXT",
    "index_attributes",
    "retrieve_attributes",
]
