"""
Plugin registration.

``tidb([...])`` takes one config per table and produces one retriever
and one indexer per table, both named ``tidb/<tableName>``. The ref
helpers let callers point at those actions by name without holding the
plugin object.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from tidb_retriever.plugin.base import PLUGIN_NAMESPACE, action_name
from tidb_retriever.plugin.indexer import TiDBIndexer
from tidb_retriever.plugin.options import TiDBIndexerOptions, TiDBRetrieverOptions
from tidb_retriever.plugin.retriever import TiDBRetriever


class TiDBPluginConfig(BaseModel):
    """One table's worth of plugin configuration."""

    model_config = ConfigDict(
        populate_by_name=True, arbitrary_types_allowed=True, extra="forbid"
    )

    table_name: str = Field(alias="tableName", min_length=1)
    embedder: Any
    embedder_options: dict[str, Any] | None = Field(default=None, alias="embedderOptions")
    client_params: Any = Field(
        default=None,
        validation_alias=AliasChoices("clientParams", "connectionParams", "client_params"),
    )
    dimensions: int | None = Field(default=None, ge=1)


@dataclass
class TiDBPlugin:
    """Retrievers and indexers keyed by action name."""

    retrievers: dict[str, TiDBRetriever]
    indexers: dict[str, TiDBIndexer]
    name: str = PLUGIN_NAMESPACE

    def retriever(self, table_name: str) -> TiDBRetriever:
        return self.retrievers[action_name(table_name)]

    def indexer(self, table_name: str) -> TiDBIndexer:
        return self.indexers[action_name(table_name)]


def create_retriever(config: TiDBPluginConfig | dict) -> TiDBRetriever:
    config = TiDBPluginConfig.model_validate(config)
    return TiDBRetriever(
        config.table_name,
        config.embedder,
        embedder_options=config.embedder_options,
        client_params=config.client_params,
        dimensions=config.dimensions,
    )


def create_indexer(config: TiDBPluginConfig | dict) -> TiDBIndexer:
    config = TiDBPluginConfig.model_validate(config)
    return TiDBIndexer(
        config.table_name,
        config.embedder,
        embedder_options=config.embedder_options,
        client_params=config.client_params,
        dimensions=config.dimensions,
    )


def tidb(configs: Iterable[TiDBPluginConfig | dict]) -> TiDBPlugin:
    """
    Build the plugin.

    Example:
        plugin = tidb([{"tableName": "Docs", "embedder": MockEmbeddings()}])
        plugin.indexer("Docs")([...], {"identifierId": "tenant-a"})
        plugin.retriever("Docs")("query", {"identifierId": "tenant-a", "k": 3})

    Raises:
        ValueError: two configs share a table name
    """
    retrievers: dict[str, TiDBRetriever] = {}
    indexers: dict[str, TiDBIndexer] = {}

    for raw in configs:
        config = TiDBPluginConfig.model_validate(raw)
        name = action_name(config.table_name)
        if name in retrievers:
            raise ValueError(f"Duplicate table in plugin config: {config.table_name}")
        retrievers[name] = create_retriever(config)
        indexers[name] = create_indexer(config)

    return TiDBPlugin(retrievers=retrievers, indexers=indexers)


# ---------------------------------------------------------------------------
# REFERENCES
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ActionRef:
    """Name, label and options schema of a registered action."""

    name: str
    label: str
    config_schema: type[BaseModel]


def tidb_retriever_ref(table_name: str, display_name: str | None = None) -> ActionRef:
    return ActionRef(
        name=action_name(table_name),
        label=display_name or f"TiDB - {table_name}",
        config_schema=TiDBRetrieverOptions,
    )


def tidb_indexer_ref(table_name: str, display_name: str | None = None) -> ActionRef:
    return ActionRef(
        name=action_name(table_name),
        label=display_name or f"TiDB - {table_name}",
        config_schema=TiDBIndexerOptions,
    )
