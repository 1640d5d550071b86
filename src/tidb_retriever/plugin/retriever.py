"""
Retriever - embeds a query and returns a tenant's nearest documents.

Only document text is returned; ids, distances and stored embeddings
stay inside the store response.
"""

from __future__ import annotations

import logging
from typing import Any

from tidb_retriever.observability import (
    TIDB_QUERY_TEXT,
    TIDB_RESULT_COUNT,
    operation_span,
    retrieve_attributes,
    tracing_config,
)
from tidb_retriever.plugin.base import TiDBAction
from tidb_retriever.plugin.document import Document, coerce_document
from tidb_retriever.plugin.options import TiDBRetrieverOptions, parse_retriever_options

logger = logging.getLogger(__name__)


class TiDBRetriever(TiDBAction):
    """Retriever action registered as ``tidb/<tableName>``."""

    def retrieve(
        self,
        query: Document | str | dict,
        options: TiDBRetrieverOptions | dict | None = None,
    ) -> list[Document]:
        """
        Rank the tenant's documents against the query.

        Raises:
            QueryError: invalid options or the database rejected the query
            TiDBConnectionError: first-use connection failed
            Any embedding provider error, unchanged
        """
        opts = parse_retriever_options(options)
        query_doc = coerce_document(query)

        with operation_span(
            "tidb.retrieve",
            attributes=retrieve_attributes(
                self.table_name.lower(),
                opts.identifier_id,
                opts.distance_method.value,
                opts.k,
            ),
        ) as span:
            if tracing_config().capture_content:
                span.set_attribute(TIDB_QUERY_TEXT, query_doc.text())
            embedding = self.embedder.embed(query_doc, self.embedder_options)
            response = self.store.query(
                embedding,
                opts.identifier_id,
                k=opts.k,
                distance_method=opts.distance_method,
            )
            span.set_attribute(TIDB_RESULT_COUNT, len(response))

        logger.debug(f"{self.name}: {len(response)} results for {opts.identifier_id!r}")
        return [Document.from_text(text) for text in response.documents]

    def __call__(
        self,
        query: Document | str | dict,
        options: TiDBRetrieverOptions | dict | None = None,
    ) -> dict[str, Any]:
        """Host framework entry point: ``{"documents": [...]}``."""
        return {"documents": [doc.to_dict() for doc in self.retrieve(query, options)]}
