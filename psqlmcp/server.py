"""MCP stdio entry point wiring the dispatcher and resources into a server."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Any, Sequence

from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server

from . import __version__
from .config import GatewayConfig, load_settings
from .models import OperationSpec
from .operations import OperationDispatcher
from .registry import PoolRegistry
from .resources import MIME_TYPE, ResourceCatalog

LOG = logging.getLogger(__name__)

SERVER_NAME = "psqlmcp"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class OperationFailed(RuntimeError):
    """Carries a flagged operation response through the SDK's error path."""


def tool_descriptor(spec: OperationSpec) -> types.Tool:
    """JSON-schema tool definition for an operation."""

    properties = {
        argument.name: {"type": "string", "description": argument.description}
        for argument in spec.arguments
    }
    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if spec.required:
        schema["required"] = list(spec.required)
    return types.Tool(name=spec.name, description=spec.description, inputSchema=schema)


def build_server(dispatcher: OperationDispatcher, resources: ResourceCatalog) -> Server:
    """Register tool and resource handlers on a low-level MCP server."""

    server: Server = Server(SERVER_NAME)

    @server.list_tools()
    async def _list_tools() -> list[types.Tool]:
        return [tool_descriptor(spec) for spec in dispatcher.specs]

    @server.call_tool()
    async def _call_tool(name: str, arguments: dict[str, Any] | None) -> list[types.TextContent]:
        response = await dispatcher.call(name, arguments or {})
        if response.is_error:
            # The SDK turns handler exceptions into results flagged with isError.
            raise OperationFailed(response.text)
        return [types.TextContent(type="text", text=response.text)]

    @server.list_resources()
    async def _list_resources() -> list[types.Resource]:
        entries = await resources.list_resources()
        return [
            types.Resource(
                uri=entry.uri,
                name=entry.name,
                description=entry.description,
                mimeType=entry.mime_type,
            )
            for entry in entries
        ]

    @server.read_resource()
    async def _read_resource(uri: Any) -> list[ReadResourceContents]:
        text = await resources.read_resource(str(uri))
        return [ReadResourceContents(content=text, mime_type=MIME_TYPE)]

    return server


async def serve(config: GatewayConfig) -> None:
    """Open the configured pools and serve MCP over stdio until EOF."""

    registry = await PoolRegistry.from_config(config)
    try:
        dispatcher = OperationDispatcher(registry)
        catalog = ResourceCatalog(registry)
        server = build_server(dispatcher, catalog)
        LOG.info(
            "Starting %s %s",
            SERVER_NAME,
            __version__,
            extra={"databases": list(registry.names), "default": registry.default_name},
        )
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        await registry.close()


def configure_logging(level: str) -> None:
    """Send logs to stderr; stdout carries the protocol."""

    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=SERVER_NAME, description="PostgreSQL MCP gateway")
    parser.add_argument("--config", help="Path to config.toml (defaults to $PSQLMCP_CONFIG or ~/.config/psqlmcp/config.toml)")
    parser.add_argument("--env-file", help="Path to a .env file loaded before reading the environment (overrides env_file in config.toml)")
    parser.add_argument("--log-level", help="Override the configured log level")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """Console entry point."""

    args = build_parser().parse_args(argv)
    config = load_settings(args.config, args.env_file)
    configure_logging(args.log_level or config.log_level)
    try:
        asyncio.run(serve(config))
    except KeyboardInterrupt:  # pragma: no cover - interactive shutdown
        LOG.info("Interrupted; shutting down")


__all__ = ["OperationFailed", "build_parser", "build_server", "configure_logging", "main", "serve", "tool_descriptor"]
