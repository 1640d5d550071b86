"""
Table layout for one logical collection.

Each collection gets its own table (named by the lower-cased collection
name) with an explicit SQLAlchemy Core descriptor, no ORM mapping.
"""

from __future__ import annotations

import logging

from sqlalchemy import Column, MetaData, String, Table, Text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from tidb_retriever.core.errors import SchemaError
from tidb_retriever.retrieval.vector_type import VectorType

logger = logging.getLogger(__name__)

ID_LENGTH = 255


def table_name_for(collection: str) -> str:
    """Physical table name for a logical collection."""
    return collection.lower()


def embedding_table(
    collection: str,
    metadata: MetaData | None = None,
    dimensions: int | None = None,
) -> Table:
    """
    Build the table descriptor for a collection.

    Columns:
        id           VARCHAR(255) primary key, content hash
        identifierId VARCHAR(255) not null, tenant discriminator
        text         TEXT null, original document content
        embedding    VECTOR[(n)] not null
    """
    return Table(
        table_name_for(collection),
        metadata if metadata is not None else MetaData(),
        Column("id", String(ID_LENGTH), primary_key=True, nullable=False),
        Column("identifierId", String(ID_LENGTH), nullable=False),
        Column("text", Text, nullable=True),
        Column("embedding", VectorType(dimensions), nullable=False),
    )


def sync_schema(engine: Engine, table: Table) -> None:
    """
    Create the table if it does not exist. No-op when it does.

    Concurrent creators of the same brand-new table may race; whether
    the loser errors is up to the database.

    Raises:
        SchemaError: DDL failed
    """
    try:
        table.create(engine, checkfirst=True)
    except SQLAlchemyError as e:
        logger.error(f"Schema sync failed for {table.name}: {e}")
        raise SchemaError(str(e)) from e
    logger.info(f"Schema synced for table {table.name}")
