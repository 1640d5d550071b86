"""
Distance method registry.

Maps each supported vector-distance method to the SQL function the
database exposes for it. Smaller is closer for all four.
"""

from __future__ import annotations

from enum import Enum

from tidb_retriever.core.errors import QueryError


class DistanceMethod(str, Enum):
    """Supported vector-distance functions, valued by SQL function name."""

    L2 = "VEC_L2_DISTANCE"
    COSINE = "VEC_COSINE_DISTANCE"
    NEGATIVE_INNER_PRODUCT = "VEC_NEGATIVE_INNER_PRODUCT"
    L1 = "VEC_L1_DISTANCE"


DEFAULT_DISTANCE_METHOD = DistanceMethod.COSINE

# Friendly spellings accepted from config files and the CLI
_ALIASES = {
    "euclidean": DistanceMethod.L2,
    "cosine": DistanceMethod.COSINE,
    "inner_product": DistanceMethod.NEGATIVE_INNER_PRODUCT,
    "negative_inner_product": DistanceMethod.NEGATIVE_INNER_PRODUCT,
    "manhattan": DistanceMethod.L1,
}


def resolve_distance_method(method: DistanceMethod | str | None) -> DistanceMethod:
    """
    Normalize a distance method tag.

    Accepts an enum member, a member name ("COSINE"), an SQL function
    name ("VEC_COSINE_DISTANCE") or a friendly alias ("manhattan").
    None resolves to the default (cosine).

    Raises:
        QueryError: if the tag names no supported method
    """
    if method is None:
        return DEFAULT_DISTANCE_METHOD
    if isinstance(method, DistanceMethod):
        return method
    if isinstance(method, str):
        tag = method.strip()
        if tag.upper() in DistanceMethod.__members__:
            return DistanceMethod[tag.upper()]
        try:
            return DistanceMethod(tag.upper())
        except ValueError:
            pass
        if tag.lower() in _ALIASES:
            return _ALIASES[tag.lower()]
    raise QueryError(f"Unsupported distance method: {method!r}")


def distance_function_name(method: DistanceMethod | str | None = None) -> str:
    """Return the SQL function name used in the ranking expression."""
    return resolve_distance_method(method).value
