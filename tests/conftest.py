"""Shared fakes standing in for asyncpg pools."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from psqlmcp.config import DatabaseConnectionConfig
from psqlmcp.registry import PoolRegistry

Responder = Callable[[str, tuple[object, ...]], tuple[list[dict[str, Any]], str]]


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


class FakePreparedStatement:
    def __init__(self, pool: "FakePool", sql: str) -> None:
        self._pool = pool
        self._sql = sql
        self._status = ""

    async def fetch(self, *params: object) -> list[dict[str, Any]]:
        self._pool.statements.append((self._sql, params))
        rows, status = self._pool.responder(self._sql, params)
        self._status = status
        return rows

    def get_statusmsg(self) -> str:
        return self._status


class FakeConnection:
    def __init__(self, pool: "FakePool") -> None:
        self._pool = pool

    async def prepare(self, sql: str) -> FakePreparedStatement:
        return FakePreparedStatement(self._pool, sql)


class _FakeAcquire:
    def __init__(self, pool: "FakePool") -> None:
        self._pool = pool

    async def __aenter__(self) -> FakeConnection:
        self._pool.available -= 1
        return FakeConnection(self._pool)

    async def __aexit__(self, *exc_info: object) -> bool:
        self._pool.available += 1
        return False


def _empty_responder(sql: str, params: tuple[object, ...]) -> tuple[list[dict[str, Any]], str]:
    return [], "SELECT 0"


class FakePool:
    """Counts checked-out connections and records every statement."""

    def __init__(self, responder: Responder | None = None, *, size: int = 3) -> None:
        self.responder: Responder = responder or _empty_responder
        self.size = size
        self.available = size
        self.statements: list[tuple[str, tuple[object, ...]]] = []
        self.closed = False

    def acquire(self) -> _FakeAcquire:
        return _FakeAcquire(self)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_pool() -> Callable[..., FakePool]:
    return FakePool


@pytest.fixture
def build_registry(monkeypatch: pytest.MonkeyPatch):
    """Return an async factory registering fake pools under their names."""

    async def _build(pools: dict[str, FakePool], default: str | None = None) -> PoolRegistry:
        async def _create_pool(*, dsn: str | None = None, **kwargs: Any) -> FakePool:
            return pools[dsn or ""]

        monkeypatch.setattr("psqlmcp.registry.asyncpg.create_pool", _create_pool)
        registry = PoolRegistry()
        for name in pools:
            await registry.register(
                DatabaseConnectionConfig(name=name, connection_string=name, is_default=name == default)
            )
        return registry

    return _build
