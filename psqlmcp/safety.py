"""Syntactic read-only classification for ad-hoc SQL."""

from __future__ import annotations

from enum import Enum

READ_ONLY_PREFIXES = ("SELECT", "WITH", "EXPLAIN", "VALUES")


class QueryKind(str, Enum):
    """Outcome of classifying a statement."""

    READ_ONLY = "read_only"
    MUTATING = "mutating"


def classify(sql: str) -> QueryKind:
    """Classify ``sql`` by its leading keyword.

    This is a prefix check, not a parser. A ``WITH`` statement whose body
    writes (``WITH d AS (DELETE ...) SELECT ...``) is reported as read-only,
    and callers rely on exactly this rule.
    """

    normalized = sql.strip().upper()
    if normalized.startswith(READ_ONLY_PREFIXES):
        return QueryKind.READ_ONLY
    return QueryKind.MUTATING


def is_read_only(sql: str) -> bool:
    return classify(sql) is QueryKind.READ_ONLY


__all__ = ["QueryKind", "READ_ONLY_PREFIXES", "classify", "is_read_only"]
