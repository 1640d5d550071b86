"""
CLI module - the ``tidb-retriever`` command.

Provides subcommands for:
- Checking connectivity
- Creating a collection's table
- Indexing files
- Running retrieval queries
"""

from tidb_retriever.cli.commands import (
    main,
    build_parser,
    run_ping,
    run_sync_schema,
    run_index,
    run_retrieve,
)

__all__ = [
    "main",
    "build_parser",
    "run_ping",
    "run_sync_schema",
    "run_index",
    "run_retrieve",
]
