"""Statement execution against a registered pool."""

from __future__ import annotations

import logging
import time
from typing import Any, Iterable, Sequence

from .errors import DatabaseError
from .models import QueryResult

LOG = logging.getLogger(__name__)


class QueryExecutor:
    """Runs parameterized statements on a pool connection.

    Each call checks out exactly one connection through ``pool.acquire()``
    and hands it back when the ``async with`` block exits, whatever happened
    inside it. Parameters are bound positionally (``$1``, ``$2``, ...); the
    executor never interpolates values into the SQL text.
    """

    async def execute(self, pool: Any, sql: str, params: Sequence[object] = ()) -> QueryResult:
        statement = sql.strip()
        if not statement:
            raise DatabaseError("Provide SQL to execute.")
        started = time.perf_counter()
        try:
            async with pool.acquire() as conn:
                prepared = await conn.prepare(statement)
                records = await prepared.fetch(*params)
                command_tag = prepared.get_statusmsg() or ""
        except Exception as exc:
            raise DatabaseError(str(exc)) from exc
        rows = _records_to_rows(records)
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        LOG.debug("Statement executed", extra={"command": command_tag, "elapsed_ms": elapsed_ms})
        return QueryResult(
            rows=rows,
            row_count=_row_count(command_tag, len(rows)),
            command_tag=command_tag,
        )


def _records_to_rows(records: Iterable[Any]) -> tuple[dict[str, Any], ...]:
    return tuple(dict(record.items()) for record in records)


def _row_count(command_tag: str, fetched: int) -> int:
    """Trailing integer of the command tag (``INSERT 0 3`` -> 3)."""

    parts = command_tag.split()
    if parts and parts[-1].isdigit():
        return int(parts[-1])
    return fetched


__all__ = ["QueryExecutor"]
