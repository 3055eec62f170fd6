"""Tests for the read-only prefix classifier."""

from __future__ import annotations

import pytest

from psqlmcp.safety import QueryKind, classify, is_read_only


@pytest.mark.parametrize(
    "sql",
    [
        "  select 1",
        "SELECT * FROM users",
        "\nwith t AS (SELECT 1) SELECT * FROM t",
        "explain select 1",
        "VALUES (1), (2)",
    ],
)
def test_read_only_prefixes(sql: str) -> None:
    assert classify(sql) is QueryKind.READ_ONLY
    assert is_read_only(sql)


@pytest.mark.parametrize(
    "sql",
    [
        "UPDATE t SET x=1",
        "insert into t values (1)",
        "DELETE FROM t",
        "DROP TABLE t",
        "",
        "-- comment\nSELECT 1",
    ],
)
def test_mutating_statements(sql: str) -> None:
    assert classify(sql) is QueryKind.MUTATING
    assert not is_read_only(sql)


def test_writable_cte_is_still_classified_read_only() -> None:
    assert classify("WITH d AS (DELETE FROM t RETURNING *) SELECT * FROM d") is QueryKind.READ_ONLY
