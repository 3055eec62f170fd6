"""PostgreSQL gateway exposing introspection and queries over MCP."""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
