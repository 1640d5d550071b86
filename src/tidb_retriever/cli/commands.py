"""
CLI commands - operator entry points for a TiDB vector table.

Each command follows a consistent pattern:
1. Parse arguments
2. Load environment (.env + TIDB_* variables)
3. Call the plugin / store
4. Print results
5. Return exit code
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from tidb_retriever.core.errors import TiDBRetrieverError
from tidb_retriever.embeddings import get_embedding_provider
from tidb_retriever.plugin import Document, TiDBIndexer, TiDBRetriever
from tidb_retriever.retrieval import (
    DistanceMethod,
    TiDBClientParams,
    TiDBVectorStore,
    connect,
)

logger = logging.getLogger(__name__)


def _load_env() -> None:
    """Load environment variables from .env file."""
    load_dotenv()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _read_documents(paths: list[str]) -> list[Document]:
    """One document per file; ``-`` reads one document per stdin line."""
    docs = []
    for path in paths:
        if path == "-":
            docs.extend(
                Document.from_text(line.rstrip("\n"))
                for line in sys.stdin
                if line.strip()
            )
        else:
            file_path = Path(path)
            docs.append(
                Document.from_text(
                    file_path.read_text(encoding="utf-8"),
                    metadata={"source": file_path.name},
                )
            )
    return docs


def run_ping(args: argparse.Namespace) -> int:
    """Connect once and report."""
    params = TiDBClientParams.from_env()
    engine = connect(params)
    engine.dispose()
    print(f"Connected to {params.host}:{params.port}/{params.database}")
    return 0


def run_sync_schema(args: argparse.Namespace) -> int:
    """Create the table for a collection if missing."""
    store = TiDBVectorStore(
        connect(TiDBClientParams.from_env()),
        args.table,
        dimensions=args.dimensions,
    )
    try:
        store.create_schema()
    finally:
        store.close()
    print(f"Table {store.table.name} is ready")
    return 0


def run_index(args: argparse.Namespace) -> int:
    """Embed and index files for one tenant."""
    docs = _read_documents(args.files)
    if not docs:
        print("No documents to index")
        return 1

    indexer = TiDBIndexer(
        args.table,
        get_embedding_provider(use_mock=args.mock_embeddings),
        client_params=TiDBClientParams.from_env,
        dimensions=args.dimensions,
    )
    indexer.index(docs, {"identifierId": args.identifier})
    print(f"Indexed {len(docs)} documents into {indexer.name} for {args.identifier}")
    return 0


def run_retrieve(args: argparse.Namespace) -> int:
    """Print the nearest documents for a query."""
    retriever = TiDBRetriever(
        args.table,
        get_embedding_provider(use_mock=args.mock_embeddings),
        client_params=TiDBClientParams.from_env,
    )
    options = {"identifierId": args.identifier, "distanceMethod": args.distance}
    if args.k is not None:
        options["k"] = args.k
    docs = retriever.retrieve(args.query, options)

    print("=" * 60)
    print(f"{len(docs)} RESULTS FROM {retriever.name}")
    print("=" * 60)
    for rank, doc in enumerate(docs, start=1):
        preview = doc.text().replace("\n", " ")
        print(f"  {rank:>3}. {preview[:100]}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tidb-retriever",
        description="Index and query TiDB vector tables",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Connection settings come from TIDB_HOST, TIDB_PORT, TIDB_USER,
TIDB_PASSWORD, TIDB_DATABASE and TIDB_SSL_CA (a .env file is honored).

Examples:
  tidb-retriever ping
  tidb-retriever sync-schema --table Handbook --dimensions 1536
  tidb-retriever index --table Handbook --identifier acme docs/*.md
  tidb-retriever retrieve --table Handbook --identifier acme --k 3 "vacation policy"
        """,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    ping = sub.add_parser("ping", help="Check connectivity and credentials")
    ping.set_defaults(func=run_ping)

    sync = sub.add_parser("sync-schema", help="Create the table if missing")
    sync.add_argument("--table", required=True, help="Logical collection name")
    sync.add_argument("--dimensions", type=int, default=None, help="Fixed VECTOR dimension")
    sync.set_defaults(func=run_sync_schema)

    index = sub.add_parser("index", help="Embed and store documents")
    index.add_argument("--table", required=True, help="Logical collection name")
    index.add_argument("--identifier", required=True, help="Tenant identifier id")
    index.add_argument("--dimensions", type=int, default=None, help="Fixed VECTOR dimension")
    index.add_argument("--mock-embeddings", action="store_true", help="Use hash-based embeddings")
    index.add_argument("files", nargs="+", help="Files to index, or - for stdin lines")
    index.set_defaults(func=run_index)

    retrieve = sub.add_parser("retrieve", help="Query nearest documents")
    retrieve.add_argument("--table", required=True, help="Logical collection name")
    retrieve.add_argument("--identifier", required=True, help="Tenant identifier id")
    retrieve.add_argument("--k", type=int, default=None, help="Number of results (default: 10)")
    retrieve.add_argument(
        "--distance",
        choices=[m.name for m in DistanceMethod],
        default=DistanceMethod.COSINE.name,
        help="Distance method",
    )
    retrieve.add_argument("--mock-embeddings", action="store_true", help="Use hash-based embeddings")
    retrieve.add_argument("query", help="Query text")
    retrieve.set_defaults(func=run_retrieve)

    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main CLI entry point with subcommands.

    Usage:
        tidb-retriever ping
        tidb-retriever sync-schema --table NAME
        tidb-retriever index --table NAME --identifier ID FILE...
        tidb-retriever retrieve --table NAME --identifier ID QUERY
    """
    _load_env()

    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    try:
        return args.func(args)
    except TiDBRetrieverError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
