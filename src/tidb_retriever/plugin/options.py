"""
Option schemas for the retriever and indexer.

Keys are accepted in snake_case or in the host framework's camelCase
(``identifierId``, ``distanceMethod``).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from tidb_retriever.core.errors import IndexingError, QueryError
from tidb_retriever.retrieval.distance import (
    DEFAULT_DISTANCE_METHOD,
    DistanceMethod,
    resolve_distance_method,
)
from tidb_retriever.retrieval.store import DEFAULT_K


class TiDBIndexerOptions(BaseModel):
    """Per-call indexer options."""

    model_config = ConfigDict(populate_by_name=True)

    identifier_id: str = Field(alias="identifierId", min_length=1)


class TiDBRetrieverOptions(BaseModel):
    """Per-call retriever options.

    ``k`` defaults to DEFAULT_K; an explicit None returns every match
    for the tenant.
    """

    model_config = ConfigDict(populate_by_name=True)

    k: int | None = Field(default=DEFAULT_K, ge=1)
    identifier_id: str = Field(alias="identifierId", min_length=1)
    distance_method: DistanceMethod = Field(
        default=DEFAULT_DISTANCE_METHOD,
        alias="distanceMethod",
    )

    @field_validator("distance_method", mode="before")
    @classmethod
    def _resolve_distance_method(cls, value: Any) -> DistanceMethod:
        return resolve_distance_method(value)


def parse_indexer_options(options: TiDBIndexerOptions | dict | None) -> TiDBIndexerOptions:
    """Validate indexer options; failures surface as IndexingError."""
    if isinstance(options, TiDBIndexerOptions):
        return options
    try:
        return TiDBIndexerOptions.model_validate(options or {})
    except ValidationError as e:
        raise IndexingError(f"Invalid indexer options: {e}") from e


def parse_retriever_options(options: TiDBRetrieverOptions | dict | None) -> TiDBRetrieverOptions:
    """Validate retriever options; failures surface as QueryError."""
    if isinstance(options, TiDBRetrieverOptions):
        return options
    try:
        return TiDBRetrieverOptions.model_validate(options or {})
    except ValidationError as e:
        raise QueryError(f"Invalid retriever options: {e}") from e
