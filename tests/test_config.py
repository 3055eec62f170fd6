"""Tests for GatewayConfig helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from psqlmcp import config as config_module
from psqlmcp.config import (
    FALLBACK_DATABASE_NAME,
    GatewayConfig,
    config_path,
    fallback_database,
    load_config,
    load_environment,
    load_settings,
)


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PSQLMCP_CONFIG", raising=False)
    monkeypatch.setattr(config_module, "CONFIG_FILE", tmp_path / "missing.toml")


def test_load_config_returns_defaults_when_missing() -> None:
    result = load_config()

    assert result == GatewayConfig()
    assert result.databases == []


def test_load_config_reads_values(tmp_path: Path) -> None:
    config_path_ = tmp_path / "config.toml"
    config_path_.write_text(
        """
log_level = "debug"
pool_max_size = 4

[[databases]]
name = "main"
connection_string = "postgresql://app@localhost/main"
default = true

[[databases]]
name = "analytics"
connection_string = "postgresql://app@localhost/analytics"
"""
    )

    result = load_config(config_path_)

    assert result.log_level == "DEBUG"
    assert result.pool_max_size == 4
    assert [entry.name for entry in result.databases] == ["main", "analytics"]
    assert result.databases[0].is_default is True
    assert result.databases[1].is_default is False


def test_load_config_handles_toml_errors(tmp_path: Path) -> None:
    config_path_ = tmp_path / "config.toml"
    config_path_.write_text("databases = [unterminated")

    result = load_config(config_path_)

    assert result == GatewayConfig()


def test_load_config_skips_malformed_entries(tmp_path: Path) -> None:
    config_path_ = tmp_path / "config.toml"
    config_path_.write_text(
        """
databases = [
    { connection_string = "postgresql://nameless" },
    { name = "ok", connection_string = "postgresql://ok", default = "yes" },
    "not-a-table",
]
"""
    )

    result = load_config(config_path_)

    assert [entry.name for entry in result.databases] == ["ok"]
    assert result.databases[0].is_default is False


def test_duplicate_names_keep_the_later_entry(tmp_path: Path) -> None:
    config_path_ = tmp_path / "config.toml"
    config_path_.write_text(
        """
[[databases]]
name = "main"
connection_string = "postgresql://first"

[[databases]]
name = "main"
connection_string = "postgresql://second"
"""
    )

    result = load_config(config_path_)

    assert len(result.databases) == 1
    assert result.databases[0].connection_string == "postgresql://second"


def test_config_path_prefers_override_then_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PSQLMCP_CONFIG", str(tmp_path / "env.toml"))

    assert config_path(tmp_path / "cli.toml") == tmp_path / "cli.toml"
    assert config_path() == tmp_path / "env.toml"


def test_load_config_uses_environment_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path_ = tmp_path / "env.toml"
    config_path_.write_text('[[databases]]\nname = "env"\nconnection_string = "postgresql://env"\n')
    monkeypatch.setenv("PSQLMCP_CONFIG", str(config_path_))

    result = load_config()

    assert result.databases[0].name == "env"


def test_fallback_database_uses_database_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql://app@db/main")

    entry = fallback_database()

    assert entry.name == FALLBACK_DATABASE_NAME
    assert entry.connection_string == "postgresql://app@db/main"
    assert entry.is_default is True


def test_fallback_database_defers_to_libpq_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "")
    monkeypatch.delenv("DATABASE_URL")

    entry = fallback_database()

    assert entry.connection_string is None
    assert entry.is_default is True


def test_load_environment_reads_env_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("DATABASE_URL=postgresql://from-dotenv/main\n")
    monkeypatch.setenv("DATABASE_URL", "")
    monkeypatch.delenv("DATABASE_URL")

    load_environment(env_file)

    assert fallback_database().connection_string == "postgresql://from-dotenv/main"


def test_load_settings_loads_env_file_named_in_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    env_file = tmp_path / "gateway.env"
    env_file.write_text("DATABASE_URL=postgresql://from-config-env/main\n")
    config_path_ = tmp_path / "config.toml"
    config_path_.write_text(f'env_file = "{env_file.as_posix()}"\n')
    monkeypatch.setenv("DATABASE_URL", "")
    monkeypatch.delenv("DATABASE_URL")
    monkeypatch.chdir(tmp_path)

    result = load_settings(config_path_)

    assert result.env_file == str(env_file)
    assert fallback_database().connection_string == "postgresql://from-config-env/main"


def test_load_settings_prefers_explicit_env_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    configured = tmp_path / "configured.env"
    configured.write_text("DATABASE_URL=postgresql://configured/main\n")
    explicit = tmp_path / "explicit.env"
    explicit.write_text("DATABASE_URL=postgresql://explicit/main\n")
    config_path_ = tmp_path / "config.toml"
    config_path_.write_text(f'env_file = "{configured.as_posix()}"\n')
    monkeypatch.setenv("DATABASE_URL", "")
    monkeypatch.delenv("DATABASE_URL")

    load_settings(config_path_, explicit)

    assert fallback_database().connection_string == "postgresql://explicit/main"
