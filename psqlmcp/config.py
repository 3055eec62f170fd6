"""Gateway configuration loading helpers."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import tomllib

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field

LOG = logging.getLogger(__name__)

CONFIG_FILE = Path.home() / ".config" / "psqlmcp" / "config.toml"
CONFIG_ENV_VAR = "PSQLMCP_CONFIG"
DATABASE_URL_ENV_VAR = "DATABASE_URL"
FALLBACK_DATABASE_NAME = "default"


class DatabaseConnectionConfig(BaseModel):
    """One named database entry from config.toml."""

    name: str
    connection_string: str | None = None
    is_default: bool = False


class GatewayConfig(BaseModel):
    """Shape of the gateway configuration file."""

    databases: list[DatabaseConnectionConfig] = Field(default_factory=list)
    pool_min_size: int = 1
    pool_max_size: int = 10
    log_level: str = "INFO"
    env_file: str | None = None


def config_path(override: str | Path | None = None) -> Path:
    """Resolve the config file path from an explicit override or the environment."""

    if override:
        return Path(override).expanduser()
    from_env = os.environ.get(CONFIG_ENV_VAR)
    if from_env:
        return Path(from_env).expanduser()
    return CONFIG_FILE


def load_config(path: str | Path | None = None) -> GatewayConfig:
    """Load configuration from disk; fall back to defaults if missing."""

    target = config_path(path)
    try:
        data = _read_config_file(target)
    except FileNotFoundError:
        return GatewayConfig()
    except (tomllib.TOMLDecodeError, OSError):
        LOG.warning("Ignoring unreadable config file", extra={"path": str(target)}, exc_info=True)
        return GatewayConfig()
    return GatewayConfig(**data)


def load_environment(env_file: str | Path | None = None) -> None:
    """Populate os.environ from a .env file without overriding existing values."""

    if env_file:
        load_dotenv(env_file, override=False)
    else:
        load_dotenv(find_dotenv(usecwd=True), override=False)


def load_settings(path: str | Path | None = None, env_file: str | Path | None = None) -> GatewayConfig:
    """Load ``.env``, then the config file, then the ``.env`` file it names.

    An explicit ``env_file`` takes precedence over the config's ``env_file``.
    """

    load_environment(env_file)
    config = load_config(path)
    if config.env_file and not env_file:
        load_environment(config.env_file)
    return config


def fallback_database() -> DatabaseConnectionConfig:
    """Single implicit default used when no databases are configured.

    A ``DATABASE_URL`` connection string is preferred; without one the
    connection string stays empty and the driver falls back to libpq
    environment variables (``PGHOST``, ``PGUSER``, ...).
    """

    return DatabaseConnectionConfig(
        name=FALLBACK_DATABASE_NAME,
        connection_string=os.environ.get(DATABASE_URL_ENV_VAR) or None,
        is_default=True,
    )


def _read_config_file(path: Path) -> dict[str, object]:
    with path.open("rb") as handle:
        raw = tomllib.load(handle)
    data: dict[str, object] = {}
    if not isinstance(raw, dict):
        return data
    for key in ("pool_min_size", "pool_max_size"):
        value = raw.get(key)
        if isinstance(value, int) and not isinstance(value, bool) and value > 0:
            data[key] = value
    log_level = raw.get("log_level")
    if isinstance(log_level, str):
        data["log_level"] = log_level.upper()
    env_file = raw.get("env_file")
    if isinstance(env_file, str) and env_file:
        data["env_file"] = str(Path(env_file).expanduser())
    databases = raw.get("databases")
    if isinstance(databases, list):
        parsed: dict[str, DatabaseConnectionConfig] = {}
        for entry in databases:
            if not isinstance(entry, dict):
                continue
            name = entry.get("name")
            if not isinstance(name, str) or not name:
                continue
            connection_string = entry.get("connection_string")
            if not isinstance(connection_string, str):
                connection_string = None
            is_default = entry.get("default", entry.get("is_default", False))
            if name in parsed:
                LOG.warning("Duplicate database name in config; later entry wins", extra={"database": name})
                parsed.pop(name)
            parsed[name] = DatabaseConnectionConfig(
                name=name,
                connection_string=connection_string,
                is_default=is_default is True,
            )
        data["databases"] = list(parsed.values())
    return data


__all__ = [
    "CONFIG_FILE",
    "DatabaseConnectionConfig",
    "FALLBACK_DATABASE_NAME",
    "GatewayConfig",
    "config_path",
    "fallback_database",
    "load_config",
    "load_environment",
    "load_settings",
]
