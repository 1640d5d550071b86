"""
Plugin module - retriever and indexer actions for the host framework.

USAGE:
------
from tidb_retriever.plugin import tidb, Document
from tidb_retriever.embeddings import OpenAIEmbeddings
from tidb_retriever.retrieval import TiDBClientParams

plugin = tidb([
    {
        "tableName": "Handbook",
        "embedder": OpenAIEmbeddings(),
        "clientParams": TiDBClientParams.from_env,
    }
])
plugin.indexer("Handbook")([Document.from_text("...")], {"identifierId": "acme"})
plugin.retriever("Handbook")("vacation policy", {"identifierId": "acme", "k": 3})
"""

from tidb_retriever.plugin.document import Document, coerce_document
from tidb_retriever.plugin.options import (
    TiDBIndexerOptions,
    TiDBRetrieverOptions,
    parse_indexer_options,
    parse_retriever_options,
)
from tidb_retriever.plugin.base import PLUGIN_NAMESPACE, action_name
from tidb_retriever.plugin.indexer import TiDBIndexer, embed_documents
from tidb_retriever.plugin.retriever import TiDBRetriever
from tidb_retriever.plugin.registry import (
    ActionRef,
    TiDBPlugin,
    TiDBPluginConfig,
    tidb,
    create_indexer,
    tidb_indexer_ref,
    create_retriever,
    tidb_retriever_ref,
)

__all__ = [
    # Document
    "Document",
    "coerce_document",
    # Options
    "TiDBIndexerOptions",
    "TiDBRetrieverOptions",
    "parse_indexer_options",
    "parse_retriever_options",
    # Actions
    "PLUGIN_NAMESPACE",
    "action_name",
    "TiDBIndexer",
    "TiDBRetriever",
    "embed_documents",
    # Registration
    "ActionRef",
    "TiDBPlugin",
    "TiDBPluginConfig",
    "tidb",
    "create_indexer",
    "create_retriever",
    "tidb_indexer_ref",
    "tidb_retriever_ref",
]
