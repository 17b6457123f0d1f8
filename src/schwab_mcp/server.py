"""
MCP stdio server.

Tool handlers are synchronous (schwab-py's blocking client), so each call runs
in a worker thread. Every outgoing text is passed through redaction.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import mcp.types as types
from mcp.server import Server
from mcp.server.stdio import stdio_server

from schwab_mcp import __version__
from schwab_mcp.config import Settings
from schwab_mcp.tools import ToolContext, ToolRegistry, build_registry
from schwab_mcp.utils.redaction import redact, redact_formatted_text

logger = logging.getLogger(__name__)

SERVER_NAME = "schwab_mcp"


def dispatch(ctx: ToolContext, registry: ToolRegistry, name: str, arguments: Optional[Dict[str, Any]]) -> str:
    """Run one tool call and return its redacted response text."""
    spec = registry.get(name)
    if spec is None:
        logger.warning("Unknown tool requested: %s", name)
        text = f"**Error**: Unknown tool '{name}'"
    else:
        logger.debug("Calling %s", name)
        text = spec.run(ctx, arguments)
    return redact_formatted_text(redact(text))


def build_server(ctx: ToolContext, registry: Optional[ToolRegistry] = None) -> Server:
    if registry is None:
        registry = build_registry()
    app = Server(SERVER_NAME, version=__version__)

    @app.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [spec.to_tool() for spec in registry.specs()]

    @app.call_tool()
    async def call_tool(name: str, arguments: Dict[str, Any]) -> list[types.TextContent]:
        text = await asyncio.to_thread(dispatch, ctx, registry, name, arguments)
        return [types.TextContent(type="text", text=text)]

    return app


async def serve(ctx: ToolContext) -> None:
    registry = build_registry()
    app = build_server(ctx, registry)
    logger.info("Starting %s %s with %d tools", SERVER_NAME, __version__, len(registry))
    try:
        async with stdio_server() as (read_stream, write_stream):
            await app.run(read_stream, write_stream, app.create_initialization_options())
    except Exception:
        logger.exception("Server error")
        raise
    finally:
        logger.info("Server stopped")


def run(settings: Settings) -> None:
    asyncio.run(serve(ToolContext(settings=settings)))
