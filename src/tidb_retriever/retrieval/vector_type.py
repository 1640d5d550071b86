"""
Vector column type and its wire format.

On the wire a vector is a bracketed, comma-joined literal such as
``"[0.1,0.25,-3]"``. Values read back from the database may arrive as
an already-decoded array, raw bytes, or that literal string.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Sequence

import numpy as np
from sqlalchemy.dialects.mysql import base as mysql_base
from sqlalchemy.types import UserDefinedType

from tidb_retriever.core.errors import VectorDecodeError

logger = logging.getLogger(__name__)


def to_vector_literal(values: Sequence[float]) -> str:
    """Serialize a numeric vector as ``[v0,v1,...,vn]``."""
    return "[" + ",".join(_format_float(v) for v in values) + "]"


def _format_float(value: float) -> str:
    # repr keeps full precision; integral floats drop the trailing ".0"
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def parse_vector_value(value: Any) -> np.ndarray | None:
    """
    Decode a stored vector value into a float32 array.

    Raises:
        VectorDecodeError: for anything that is not an array, bytes or str,
            or a string that is not a bracketed list of numbers
    """
    if value is None or isinstance(value, np.ndarray):
        return value
    if isinstance(value, (list, tuple)):
        return np.asarray(value, dtype=np.float32)
    if isinstance(value, (bytes, bytearray, memoryview)):
        value = bytes(value).decode("utf-8")
    if isinstance(value, str):
        if value == "[]":
            return np.array([], dtype=np.float32)
        try:
            parts = [float(part) for part in value[1:-1].split(",")]
        except ValueError as e:
            raise VectorDecodeError(f"Malformed vector literal: {value!r}") from e
        return np.array(parts, dtype=np.float32)
    raise VectorDecodeError(f"Unsupported input type: {type(value).__name__}")


class VectorType(UserDefinedType):
    """SQLAlchemy column type for the database-native ``VECTOR`` type."""

    cache_ok = True

    def __init__(self, dimensions: int | None = None):
        self.dimensions = dimensions

    def get_col_spec(self, **kw: Any) -> str:
        if self.dimensions is None:
            return "VECTOR"
        return f"VECTOR({self.dimensions})"

    def bind_processor(self, dialect):
        def process(value):
            if value is None or isinstance(value, str):
                return value
            return to_vector_literal(value)

        return process

    def result_processor(self, dialect, coltype):
        return parse_vector_value


# ---------------------------------------------------------------------------
# REGISTRATION
# ---------------------------------------------------------------------------

_registration_lock = threading.Lock()
_registered = False


def register_vector_type() -> bool:
    """
    Make the MySQL dialect recognize ``vector`` columns.

    Safe to call any number of times from any thread.

    Returns:
        True if this call performed the registration, False if it was
        already in place.
    """
    global _registered
    with _registration_lock:
        if _registered:
            return False
        mysql_base.ischema_names["vector"] = VectorType
        _registered = True
        logger.debug("Registered VECTOR column type with the MySQL dialect")
        return True


def is_vector_type_registered() -> bool:
    return _registered
