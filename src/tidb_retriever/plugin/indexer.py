"""
Indexer - embeds documents and upserts them into a tenant's table.

Flow for one call:
1. Validate options (identifier id is required)
2. Sync the table schema (idempotent)
3. Embed every document concurrently, keeping input order
4. Derive each record id from the document's content hash
5. Write the whole batch in one bulk upsert
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Iterable, Sequence

import numpy as np

from tidb_retriever.core.protocols import EmbeddingProvider
from tidb_retriever.observability import index_attributes, operation_span
from tidb_retriever.plugin.base import TiDBAction
from tidb_retriever.plugin.document import Document, coerce_document
from tidb_retriever.plugin.options import TiDBIndexerOptions, parse_indexer_options

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8


def embed_documents(
    embedder: EmbeddingProvider,
    documents: Sequence[Document],
    options: dict[str, Any] | None = None,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> list[np.ndarray]:
    """
    Embed a batch concurrently.

    Results are paired with documents by position, not completion
    order. The first provider error propagates unchanged.
    """
    if not documents:
        return []
    if len(documents) == 1 or max_workers <= 1:
        return [embedder.embed(doc, options) for doc in documents]

    with ThreadPoolExecutor(max_workers=min(max_workers, len(documents))) as pool:
        return list(pool.map(lambda doc: embedder.embed(doc, options), documents))


class TiDBIndexer(TiDBAction):
    """Indexer action registered as ``tidb/<tableName>``."""

    def __init__(self, *args: Any, max_workers: int = DEFAULT_MAX_WORKERS, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.max_workers = max_workers

    def index(
        self,
        documents: Iterable[Document | str | dict],
        options: TiDBIndexerOptions | dict | None = None,
    ) -> None:
        """
        Embed and store a batch of documents for one tenant.

        Raises:
            IndexingError: invalid options or the bulk insert failed
            SchemaError: the table could not be created
            TiDBConnectionError: first-use connection failed
        """
        opts = parse_indexer_options(options)
        docs = [coerce_document(doc) for doc in documents]

        with operation_span(
            "tidb.index",
            attributes=index_attributes(self.table_name.lower(), opts.identifier_id, len(docs)),
        ):
            store = self.store
            store.create_schema()

            embeddings = embed_documents(
                self.embedder, docs, self.embedder_options, self.max_workers
            )
            ids = [doc.content_hash() for doc in docs]

            store.add(
                opts.identifier_id,
                ids=ids,
                embeddings=embeddings,
                documents=[doc.text() for doc in docs],
            )

        logger.info(f"{self.name}: indexed {len(docs)} documents for {opts.identifier_id!r}")

    __call__ = index
