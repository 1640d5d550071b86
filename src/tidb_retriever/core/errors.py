"""
Error taxonomy for the TiDB retriever/indexer.

Every database-facing failure is wrapped in one of these types with
``raise ... from exc`` so the driver message survives in ``str(err)``
and the original exception stays on ``__cause__``. Nothing here is
retried; callers own retry policy.
"""


class TiDBRetrieverError(Exception):
    """Base class for all errors raised by this package."""


class TiDBConnectionError(TiDBRetrieverError, ConnectionError):
    """Authentication or network failure while connecting."""


class SchemaError(TiDBRetrieverError):
    """Table creation (DDL) failed."""


class IndexingError(TiDBRetrieverError):
    """Bulk insert failed. No rows from the batch should be assumed stored."""


class QueryError(TiDBRetrieverError):
    """Nearest-neighbor query failed or was malformed."""


class VectorDecodeError(TiDBRetrieverError, TypeError):
    """A stored vector value arrived in an unsupported wire shape."""
