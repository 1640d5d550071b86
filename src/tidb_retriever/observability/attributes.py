"""
Span attribute keys.

Database keys follow the OpenTelemetry database semantic conventions;
the ``tidb.*`` namespace is specific to this package.

Reference: https://opentelemetry.io/docs/specs/semconv/database/
"""

from __future__ import annotations

from typing import Any

# ---------------------------------------------------------------------------
# DB NAMESPACE (OTel standard)
# ---------------------------------------------------------------------------

DB_SYSTEM = "db.system"  # always "tidb"
DB_COLLECTION_NAME = "db.collection.name"  # physical table name
DB_OPERATION_NAME = "db.operation.name"  # "index", "retrieve"

# ---------------------------------------------------------------------------
# TIDB NAMESPACE (custom)
# ---------------------------------------------------------------------------

TIDB_IDENTIFIER_ID = "tidb.identifier_id"
TIDB_DISTANCE_METHOD = "tidb.distance_method"
TIDB_K = "tidb.k"
TIDB_DOCUMENT_COUNT = "tidb.document_count"
TIDB_RESULT_COUNT = "tidb.result_count"
TIDB_QUERY_TEXT = "tidb.query.text"  # only with capture_content


def index_attributes(table: str, identifier_id: str, document_count: int) -> dict[str, Any]:
    return {
        DB_SYSTEM: "tidb",
        DB_COLLECTION_NAME: table,
        DB_OPERATION_NAME: "index",
        TIDB_IDENTIFIER_ID: identifier_id,
        TIDB_DOCUMENT_COUNT: document_count,
    }


def retrieve_attributes(
    table: str,
    identifier_id: str,
    distance_method: str,
    k: int | None,
) -> dict[str, Any]:
    attrs: dict[str, Any] = {
        DB_SYSTEM: "tidb",
        DB_COLLECTION_NAME: table,
        DB_OPERATION_NAME: "retrieve",
        TIDB_IDENTIFIER_ID: identifier_id,
        TIDB_DISTANCE_METHOD: distance_method,
    }
    # OTel attributes cannot be None
    if k is not None:
        attrs[TIDB_K] = k
    return attrs
