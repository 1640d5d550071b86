"""
Span helper for indexer and retriever calls.

``operation_span()`` yields the live OpenTelemetry span when tracing is
enabled and opentelemetry-api is importable, and a no-op span otherwise.
Exporters and tracer providers are the host application's business;
spans here only go to whatever global provider is installed.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Iterator

_TRUTHY = ("true", "1", "yes")


@dataclass(frozen=True)
class TracingConfig:
    """Configuration for OpenTelemetry tracing.

    Environment Variables:
        TIDB_RETRIEVER_TRACING_ENABLED: Emit spans (default: false)
        TIDB_RETRIEVER_SERVICE_NAME: Tracer name (default: tidb-retriever)
        TIDB_RETRIEVER_CAPTURE_CONTENT: Put query text on spans (default: false)
    """

    enabled: bool = False
    service_name: str = "tidb-retriever"
    capture_content: bool = False  # query text may be sensitive

    @classmethod
    def from_env(cls) -> "TracingConfig":
        env = os.environ
        return cls(
            enabled=env.get("TIDB_RETRIEVER_TRACING_ENABLED", "").lower() in _TRUTHY,
            service_name=env.get("TIDB_RETRIEVER_SERVICE_NAME", "tidb-retriever"),
            capture_content=env.get("TIDB_RETRIEVER_CAPTURE_CONTENT", "").lower() in _TRUTHY,
        )


@lru_cache(maxsize=1)
def tracing_config() -> TracingConfig:
    """Config read from the environment on first use."""
    return TracingConfig.from_env()


@lru_cache(maxsize=None)
def _otel_tracer(service_name: str) -> Any | None:
    try:
        from opentelemetry import trace
    except ImportError:
        return None
    return trace.get_tracer(service_name)


class NoOpSpan:
    """Stands in for a span when tracing is off."""

    def set_attribute(self, key: str, value: Any) -> None:
        pass

    def record_exception(self, exception: BaseException) -> None:
        pass


@contextmanager
def operation_span(name: str, attributes: dict[str, Any] | None = None) -> Iterator[Any]:
    """
    Span around one action call.

    Exceptions raised in the block propagate unchanged; on a live span
    OpenTelemetry records them and marks the span as errored.
    """
    config = tracing_config()
    tracer = _otel_tracer(config.service_name) if config.enabled else None
    if tracer is None:
        yield NoOpSpan()
        return

    with tracer.start_as_current_span(name, attributes=attributes) as span:
        yield span


def reset_tracing() -> None:
    """Forget cached config and tracer (tests change env between cases)."""
    tracing_config.cache_clear()
    _otel_tracer.cache_clear()
