"""Catalog queries and statement builders for the PostgreSQL operations."""

from __future__ import annotations

from typing import Sequence

from sqlglot import exp

DIALECT = "postgres"
PREVIEW_LIMIT = 100
SEARCH_LIMIT = 50

LIST_TABLES = """
    SELECT table_schema, table_name, table_type
    FROM information_schema.tables
    WHERE table_schema NOT IN ('information_schema', 'pg_catalog')
    ORDER BY table_schema, table_name
"""

DESCRIBE_TABLE = """
    SELECT column_name, data_type, is_nullable, column_default
    FROM information_schema.columns
    WHERE table_name = $1
    ORDER BY ordinal_position
"""

LIST_INDEXES = """
    SELECT
        i.relname AS index_name,
        a.attname AS column_name,
        ix.indisunique AS is_unique,
        ix.indisprimary AS is_primary
    FROM pg_class t
    JOIN pg_index ix ON t.oid = ix.indrelid
    JOIN pg_class i ON i.oid = ix.indexrelid
    JOIN pg_attribute a ON a.attrelid = t.oid AND a.attnum = ANY(ix.indkey)
    WHERE t.relkind = 'r'
      AND t.relname = $1
    ORDER BY t.relname, i.relname
"""

LIST_CONSTRAINTS = """
    SELECT
        conname AS constraint_name,
        contype AS constraint_type,
        pg_get_constraintdef(oid) AS definition
    FROM pg_constraint
    WHERE conrelid = $1::regclass
"""

TEXT_COLUMNS = """
    SELECT column_name
    FROM information_schema.columns
    WHERE table_name = $1
      AND data_type IN ('text', 'character varying', 'character', 'char', 'name')
    ORDER BY ordinal_position
"""

CONSTRAINT_TYPES: dict[str, str] = {
    "p": "PRIMARY KEY",
    "f": "FOREIGN KEY",
    "u": "UNIQUE",
    "c": "CHECK",
    "t": "TRIGGER",
    "x": "EXCLUSION",
}


def constraint_label(code: str) -> str:
    """Readable label for a ``pg_constraint.contype`` code."""

    return CONSTRAINT_TYPES.get(code, code)


def quote_identifier(name: str) -> str:
    """Render ``name`` as a quoted PostgreSQL identifier."""

    return exp.to_identifier(name, quoted=True).sql(dialect=DIALECT)


def preview_statement(schema: str, table: str, limit: int = PREVIEW_LIMIT) -> str:
    """First rows of a table; callers validate both identifiers beforehand."""

    return f"SELECT * FROM {quote_identifier(schema)}.{quote_identifier(table)} LIMIT {int(limit)}"


def search_statement(table: str, columns: Sequence[str], limit: int = SEARCH_LIMIT) -> str:
    """Case-insensitive partial match of ``$1`` across ``columns``."""

    if not columns:
        raise ValueError("search_statement needs at least one column")
    predicate = " OR ".join(f"{quote_identifier(column)} ILIKE $1" for column in columns)
    return f"SELECT * FROM {quote_identifier(table)} WHERE {predicate} LIMIT {int(limit)}"


def explain_statement(sql: str) -> str:
    return f"EXPLAIN (FORMAT JSON) {sql}"


__all__ = [
    "CONSTRAINT_TYPES",
    "DESCRIBE_TABLE",
    "LIST_CONSTRAINTS",
    "LIST_INDEXES",
    "LIST_TABLES",
    "PREVIEW_LIMIT",
    "SEARCH_LIMIT",
    "TEXT_COLUMNS",
    "constraint_label",
    "explain_statement",
    "preview_statement",
    "quote_identifier",
    "search_statement",
]
