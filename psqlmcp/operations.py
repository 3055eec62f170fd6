"""Operation handlers and the dispatcher that routes calls to them."""

from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable, Mapping

from . import catalog
from .addresses import is_identifier
from .errors import GatewayError, ValidationError
from .models import OperationArgument, OperationResponse, OperationSpec, QueryResult
from .query import QueryExecutor
from .registry import PoolRegistry
from .safety import is_read_only

LOG = logging.getLogger(__name__)

OperationHandler = Callable[..., Awaitable[object]]

_DATABASE = OperationArgument(
    "database",
    "Name of the configured database to use. Optional when a default database exists.",
    required=False,
)
_TABLE = OperationArgument("table_name", "Name of the table.")
_SQL = OperationArgument("sql_query", "SQL statement to execute.")

OPERATIONS: tuple[OperationSpec, ...] = (
    OperationSpec(
        "list_tables",
        "List all tables and views in the database (includes schema information)",
        (_DATABASE,),
    ),
    OperationSpec("describe_table", "Get schema information for a table", (_TABLE, _DATABASE)),
    OperationSpec("list_indexes", "List indexes for a specific table", (_TABLE, _DATABASE)),
    OperationSpec(
        "list_constraints",
        "List constraints (PK, FK, Unique, Check) for a specific table",
        (_TABLE, _DATABASE),
    ),
    OperationSpec(
        "search_in_table",
        "Search for a text string in all text columns of a table",
        (_TABLE, OperationArgument("search_term", "Text to look for."), _DATABASE),
    ),
    OperationSpec(
        "run_read_only_query",
        "Execute a read-only SQL query (SELECT). Send one statement per call.",
        (_SQL, _DATABASE),
    ),
    OperationSpec("explain_query", "Get the execution plan for a query (EXPLAIN)", (_SQL, _DATABASE)),
    OperationSpec(
        "run_modification_query",
        "Execute a modification SQL query (INSERT, UPDATE, DELETE, etc.). "
        "Send one statement per call; semicolon-separated scripts are rejected.",
        (_SQL, _DATABASE),
    ),
    OperationSpec("list_databases", "List the configured databases and the default selection"),
)


class TextPayload(str):
    """Handler output returned verbatim instead of JSON-encoded."""


class DatabaseOperations:
    """Handlers composing the registry, safety check and executor."""

    def __init__(self, registry: PoolRegistry, executor: QueryExecutor | None = None) -> None:
        self._registry = registry
        self._executor = executor or QueryExecutor()

    async def list_tables(self, database: str | None = None) -> object:
        result = await self._run(database, catalog.LIST_TABLES)
        return list(result.rows)

    async def describe_table(self, table_name: str, database: str | None = None) -> object:
        result = await self._run(database, catalog.DESCRIBE_TABLE, table_name)
        return list(result.rows)

    async def list_indexes(self, table_name: str, database: str | None = None) -> object:
        result = await self._run(database, catalog.LIST_INDEXES, table_name)
        return list(result.rows)

    async def list_constraints(self, table_name: str, database: str | None = None) -> object:
        result = await self._run(database, catalog.LIST_CONSTRAINTS, table_name)
        return [
            {**row, "constraint_type_desc": catalog.constraint_label(str(row["constraint_type"]))}
            for row in result.rows
        ]

    async def search_in_table(
        self,
        table_name: str,
        search_term: str,
        database: str | None = None,
    ) -> object:
        pool = self._registry.resolve(database)
        columns_result = await self._executor.execute(pool, catalog.TEXT_COLUMNS, (table_name,))
        columns = [str(row["column_name"]) for row in columns_result.rows]
        if not columns:
            return TextPayload(f"No text columns found in table '{table_name}' to search.")
        if not is_identifier(table_name):
            raise ValidationError("Invalid table name for search")
        statement = catalog.search_statement(table_name, columns)
        result = await self._executor.execute(pool, statement, (f"%{search_term}%",))
        return list(result.rows)

    async def run_read_only_query(self, sql_query: str, database: str | None = None) -> object:
        if not is_read_only(sql_query):
            raise ValidationError(
                "Query is not read-only. Use run_modification_query for this operation."
            )
        result = await self._run(database, sql_query)
        return list(result.rows)

    async def explain_query(self, sql_query: str, database: str | None = None) -> object:
        result = await self._run(database, catalog.explain_statement(sql_query))
        if not result.rows:
            return []
        plan = result.rows[0].get("QUERY PLAN")
        # asyncpg hands json columns back as text unless a codec is registered.
        if isinstance(plan, str):
            try:
                return json.loads(plan)
            except ValueError:
                return plan
        return plan

    async def run_modification_query(self, sql_query: str, database: str | None = None) -> object:
        result = await self._run(database, sql_query)
        return {
            "rowCount": result.row_count,
            "command": result.command_tag.split(" ", 1)[0] if result.command_tag else "",
            "rows": list(result.rows),
        }

    async def list_databases(self) -> object:
        return {
            "databases": list(self._registry.names),
            "default": self._registry.default_name,
            "failures": self._registry.failures,
        }

    async def _run(self, database: str | None, sql: str, *params: object) -> QueryResult:
        pool = self._registry.resolve(database)
        return await self._executor.execute(pool, sql, params)


class OperationDispatcher:
    """Maps operation names onto handlers and wraps every outcome."""

    def __init__(
        self,
        registry: PoolRegistry,
        executor: QueryExecutor | None = None,
        *,
        specs: tuple[OperationSpec, ...] = OPERATIONS,
    ) -> None:
        operations = DatabaseOperations(registry, executor)
        self._specs = {spec.name: spec for spec in specs}
        self._handlers: dict[str, OperationHandler] = {
            name: getattr(operations, name) for name in self._specs
        }

    @property
    def specs(self) -> tuple[OperationSpec, ...]:
        """Operations advertised to clients."""

        return tuple(self._specs.values())

    async def call(self, name: str, arguments: Mapping[str, Any] | None = None) -> OperationResponse:
        """Run ``name``; errors come back flagged instead of raising."""

        try:
            spec = self._specs.get(name)
            if spec is None:
                raise ValidationError(f"Tool not found: {name}")
            kwargs = _bind_arguments(spec, arguments or {})
            payload = await self._handlers[name](**kwargs)
        except GatewayError as exc:
            LOG.info("Operation failed", extra={"operation": name, "error": str(exc)})
            return OperationResponse(text=f"Error: {exc}", is_error=True)
        except Exception as exc:
            LOG.exception("Operation raised unexpectedly", extra={"operation": name})
            return OperationResponse(text=f"Error: {exc}", is_error=True)
        return OperationResponse(text=render_payload(payload))


def render_payload(payload: object) -> str:
    """Serialize a handler result for the response envelope."""

    if isinstance(payload, TextPayload):
        return str(payload)
    return json.dumps(payload, indent=2, default=str)


def _bind_arguments(spec: OperationSpec, arguments: Mapping[str, Any]) -> dict[str, Any]:
    kwargs: dict[str, Any] = {}
    for argument in spec.arguments:
        value = arguments.get(argument.name)
        if value is None or (value == "" and not argument.required):
            if argument.required:
                raise ValidationError(f"Missing required argument '{argument.name}' for {spec.name}")
            continue
        if not isinstance(value, str):
            raise ValidationError(f"Argument '{argument.name}' must be a string")
        kwargs[argument.name] = value
    return kwargs


__all__ = [
    "DatabaseOperations",
    "OPERATIONS",
    "OperationDispatcher",
    "TextPayload",
    "render_payload",
]
