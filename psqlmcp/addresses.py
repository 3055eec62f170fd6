"""Resource address parsing.

Two address shapes are accepted for compatibility:

* ``postgres://database/schema/table`` when the host names a known database
* ``postgres://schema/table`` (the single-database shape), which targets the
  default database

A known database name always wins over the positional reading. Schema and
table names are restricted to ``[A-Za-z0-9_]`` because they end up quoted in
identifier position of the preview statement.
"""

from __future__ import annotations

import re
from typing import Collection
from urllib.parse import urlsplit

from .errors import AddressError
from .models import ResourceAddress

SCHEME = "postgres"
IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")


def is_identifier(value: str) -> bool:
    """True when ``value`` is safe to quote into identifier position."""

    return bool(IDENTIFIER_PATTERN.match(value))


def parse_address(
    uri: str,
    known_databases: Collection[str],
    default_database: str | None = None,
) -> ResourceAddress:
    """Split ``uri`` into a validated (database, schema, table) triple."""

    try:
        parts = urlsplit(uri.strip())
    except ValueError as exc:
        raise AddressError(f"Invalid resource URI '{uri}': {exc}") from exc
    if parts.scheme.lower() != SCHEME:
        raise AddressError(f"Invalid resource protocol in '{uri}'. Expected {SCHEME}://")

    # netloc keeps the host's case; .hostname would lower-case it.
    host = parts.netloc
    segments = [segment for segment in parts.path.split("/") if segment]

    database: str | None
    if host:
        if host in known_databases:
            if len(segments) < 2:
                raise AddressError(
                    f"Invalid resource URI '{uri}'. Expected {SCHEME}://{host}/schema/table"
                )
            database, schema, table = host, segments[0], segments[1]
        else:
            database = default_database
            schema = host
            table = segments[0] if segments else ""
    elif len(segments) >= 3 and segments[0] in known_databases:
        database, schema, table = segments[0], segments[1], segments[2]
    else:
        # A lone segment reads as a schema without a table and is rejected below.
        database = default_database
        schema = segments[0] if segments else ""
        table = segments[1] if len(segments) > 1 else ""

    if not database:
        raise AddressError(
            f"Cannot determine database for '{uri}'. "
            f"Use {SCHEME}://database/schema/table or configure a default database"
        )
    if not schema or not table:
        raise AddressError(
            f"Invalid resource URI format '{uri}'. Expected {SCHEME}://[database/]schema/table"
        )
    if not is_identifier(schema) or not is_identifier(table):
        raise AddressError(f"Invalid schema or table name in URI '{uri}'")
    return ResourceAddress(database=database, schema=schema, table=table)


def format_address(database: str, schema: str, table: str) -> str:
    """Canonical address for a table in a named database."""

    return f"{SCHEME}://{database}/{schema}/{table}"


__all__ = [
    "IDENTIFIER_PATTERN",
    "SCHEME",
    "format_address",
    "is_identifier",
    "parse_address",
]
