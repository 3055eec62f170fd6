"""Tables exposed as addressable resources."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from . import catalog
from .addresses import format_address, parse_address
from .errors import GatewayError
from .query import QueryExecutor
from .registry import PoolRegistry

LOG = logging.getLogger(__name__)

MIME_TYPE = "application/json"


@dataclass(frozen=True, slots=True)
class TableResource:
    """Listing entry for one table."""

    uri: str
    name: str
    description: str
    mime_type: str = MIME_TYPE


class ResourceCatalog:
    """Lists tables across databases and previews them by address."""

    def __init__(self, registry: PoolRegistry, executor: QueryExecutor | None = None) -> None:
        self._registry = registry
        self._executor = executor or QueryExecutor()

    async def list_resources(self) -> list[TableResource]:
        names = self._registry.names
        qualify = len(names) > 1
        resources: list[TableResource] = []
        for database in names:
            try:
                result = await self._executor.execute(self._registry.resolve(database), catalog.LIST_TABLES)
            except GatewayError as exc:
                LOG.warning("Skipping database while listing resources", extra={"database": database, "error": str(exc)})
                continue
            for row in result.rows:
                schema = str(row["table_schema"])
                table = str(row["table_name"])
                label = f"{schema}.{table}"
                resources.append(
                    TableResource(
                        uri=format_address(database, schema, table),
                        name=f"{database}:{label}" if qualify else label,
                        description=f"Table {table} in schema {schema} of database {database}",
                    )
                )
        return resources

    async def read_resource(self, uri: str) -> str:
        """JSON preview of the first rows of the addressed table."""

        address = parse_address(uri, set(self._registry.names), self._registry.default_name)
        pool = self._registry.resolve(address.database)
        statement = catalog.preview_statement(address.schema, address.table)
        result = await self._executor.execute(pool, statement)
        return json.dumps(list(result.rows), indent=2, default=str)


__all__ = ["MIME_TYPE", "ResourceCatalog", "TableResource"]
