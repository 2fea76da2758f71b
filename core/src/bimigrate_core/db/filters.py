from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any


def build_where(
    filters: Mapping[str, Any],
    *,
    allowed: Iterable[str],
) -> tuple[str, list[Any]]:
    """Build an AND-combined equality WHERE clause from optional filters.

    `None` values mean "no filter" and are skipped. Returns ("", []) when nothing
    applies so callers can interpolate the clause unconditionally. Column names
    must appear in `allowed`; they are interpolated into SQL, values are bound.
    """

    allowed_cols = set(allowed)
    clauses: list[str] = []
    params: list[Any] = []

    for column, value in filters.items():
        if column not in allowed_cols:
            raise ValueError(f"Unsupported filter column: {column}")
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        clauses.append(f"{column} = ?")
        params.append(value.strip() if isinstance(value, str) else value)

    if not clauses:
        return "", []
    return "WHERE " + " AND ".join(clauses), params
