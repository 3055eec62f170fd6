"""Named asyncpg pools and target-database resolution."""

from __future__ import annotations

import logging
from typing import Any

import asyncpg

from .config import DatabaseConnectionConfig, GatewayConfig, fallback_database
from .errors import ConfigurationError, NotFoundError

LOG = logging.getLogger(__name__)


class PoolRegistry:
    """Owns one pool per configured database name.

    The mapping only ever holds pools that opened successfully. It is filled
    once at startup and read concurrently afterwards, so it is never locked.
    """

    def __init__(self, *, min_size: int = 1, max_size: int = 10) -> None:
        self._min_size = min_size
        self._max_size = max_size
        self._pools: dict[str, Any] = {}
        self._default_name: str | None = None
        self._failures: dict[str, str] = {}

    @classmethod
    async def from_config(cls, config: GatewayConfig) -> PoolRegistry:
        """Register every configured database, or the environment fallback."""

        registry = cls(min_size=config.pool_min_size, max_size=config.pool_max_size)
        entries = list(config.databases)
        if not entries:
            LOG.info("No databases configured; using environment connection settings")
            entries = [fallback_database()]
        for entry in entries:
            await registry.register(entry)
        if not registry.names:
            LOG.error("No database pools could be opened", extra={"failures": dict(registry.failures)})
        return registry

    @property
    def names(self) -> tuple[str, ...]:
        """Registered names in registration order."""

        return tuple(self._pools)

    @property
    def failures(self) -> dict[str, str]:
        """Registration errors keyed by database name."""

        return dict(self._failures)

    @property
    def default_name(self) -> str | None:
        """Designated default, or the only registered name."""

        if self._default_name is not None and self._default_name in self._pools:
            return self._default_name
        if len(self._pools) == 1:
            return next(iter(self._pools))
        return None

    async def register(self, config: DatabaseConnectionConfig) -> None:
        """Open a pool for ``config``; failures are logged, never raised."""

        try:
            pool = await asyncpg.create_pool(
                dsn=config.connection_string,
                min_size=self._min_size,
                max_size=self._max_size,
            )
        except Exception as exc:
            self._failures[config.name] = str(exc)
            LOG.error(
                "Failed to open database pool",
                extra={"database": config.name, "error": str(exc)},
            )
            return
        if config.name in self._pools:
            LOG.warning("Replacing existing pool registration", extra={"database": config.name})
            await _close_quietly(self._pools[config.name])
        self._pools[config.name] = pool
        self._failures.pop(config.name, None)
        if config.is_default:
            if self._default_name is not None and self._default_name != config.name:
                LOG.warning(
                    "Several databases are marked default; using the last one",
                    extra={"previous": self._default_name, "default": config.name},
                )
            self._default_name = config.name
        LOG.info("Registered database pool", extra={"database": config.name, "default": config.is_default})

    def resolve(self, requested_name: str | None = None) -> Any:
        """Return the pool targeted by a request."""

        if requested_name:
            pool = self._pools.get(requested_name)
            if pool is None:
                raise NotFoundError(requested_name, self.names)
            return pool
        default = self.default_name
        if default is None:
            raise ConfigurationError("No database selected and no default configured", self.names)
        return self._pools[default]

    async def close(self) -> None:
        """Close every registered pool."""

        pools = list(self._pools.values())
        self._pools.clear()
        for pool in pools:
            await _close_quietly(pool)


async def _close_quietly(pool: Any) -> None:
    try:
        await pool.close()
    except Exception:  # pragma: no cover - best effort cleanup
        LOG.debug("Pool close failed", exc_info=True)


__all__ = ["PoolRegistry"]
