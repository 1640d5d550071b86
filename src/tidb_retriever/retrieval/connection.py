"""
Connection manager for TiDB (or any MySQL-compatible endpoint with
vector functions).

Connections always use TLS 1.2+ with certificate and hostname
verification. ``connect()`` performs one round-trip so bad credentials
or an unreachable host fail here, not on first use.
"""

from __future__ import annotations

import logging
import os
import ssl
from dataclasses import asdict, dataclass
from typing import Any, Callable, Union

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import SQLAlchemyError

from tidb_retriever.core.errors import TiDBConnectionError
from tidb_retriever.retrieval.vector_type import register_vector_type

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# CONFIGURATION
# ---------------------------------------------------------------------------


@dataclass
class TiDBClientParams:
    """Connection parameters.

    Defaults point at a local development instance. Relying on them
    against a real cluster is a caller error and is not checked.

    Environment Variables (see from_env):
        TIDB_HOST, TIDB_PORT, TIDB_USER, TIDB_PASSWORD, TIDB_DATABASE,
        TIDB_SSL_CA
    """

    host: str = "localhost"
    port: int = 4000
    user: str = "root"
    password: str = "root"
    database: str = "test"
    ssl_ca: str | None = None  # CA bundle path; system store when None

    @classmethod
    def from_env(cls) -> "TiDBClientParams":
        """Load params from environment variables."""
        return cls(
            host=os.environ.get("TIDB_HOST", "localhost"),
            port=int(os.environ.get("TIDB_PORT", "4000")),
            user=os.environ.get("TIDB_USER", "root"),
            password=os.environ.get("TIDB_PASSWORD", "root"),
            database=os.environ.get("TIDB_DATABASE", "test"),
            ssl_ca=os.environ.get("TIDB_SSL_CA") or None,
        )

    def url(self) -> URL:
        """SQLAlchemy URL for the mysql+pymysql dialect."""
        return URL.create(
            "mysql+pymysql",
            username=self.user,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
        )

    def redacted(self) -> dict[str, Any]:
        """Params as a dict with the password masked, for logging."""
        data = asdict(self)
        data["password"] = "***"
        return data


ClientParamsLike = Union[
    TiDBClientParams,
    dict,
    Callable[[], Union[TiDBClientParams, dict, None]],
    None,
]


def resolve_client_params(params: ClientParamsLike) -> TiDBClientParams:
    """
    Turn any accepted params shape into TiDBClientParams.

    Accepts None (all defaults), a TiDBClientParams, a dict of fields
    (missing or None fields fall back to defaults) or a zero-argument
    callable returning one of those. The callable form lets secrets be
    fetched lazily at first use.
    """
    if callable(params) and not isinstance(params, TiDBClientParams):
        params = params()
    if params is None:
        return TiDBClientParams()
    if isinstance(params, TiDBClientParams):
        return params
    if isinstance(params, dict):
        return TiDBClientParams(**{k: v for k, v in params.items() if v is not None})
    raise TypeError(f"Unsupported client params: {type(params).__name__}")


def build_ssl_context(ca_path: str | None = None) -> ssl.SSLContext:
    """TLS context enforcing TLS 1.2+ and full certificate validation."""
    context = ssl.create_default_context(cafile=ca_path)
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    context.check_hostname = True
    context.verify_mode = ssl.CERT_REQUIRED
    return context


# ---------------------------------------------------------------------------
# CONNECT
# ---------------------------------------------------------------------------


def connect(params: ClientParamsLike = None) -> Engine:
    """
    Establish and authenticate a connection.

    On success the VECTOR column type is registered with the schema
    layer (idempotent, process-wide).

    Returns:
        SQLAlchemy Engine used as the connection handle

    Raises:
        TiDBConnectionError: authentication failed or host unreachable
    """
    resolved = resolve_client_params(params)
    engine = create_engine(
        resolved.url(),
        connect_args={"ssl": build_ssl_context(resolved.ssl_ca)},
        pool_pre_ping=True,
    )

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        engine.dispose()
        logger.error(f"Failed to connect with {resolved.redacted()}: {e}")
        raise TiDBConnectionError(str(e)) from e

    register_vector_type()
    logger.info(f"Connected with {resolved.redacted()}")
    return engine
