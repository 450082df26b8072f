"""MCP stdio server exposing the SQLite operation catalog.

Run:  mcp-server-sqlite <database-path>
      python -m sqlite_mcp.server <database-path>

The handlers on ToolServer are plain coroutines; build_server() registers
them on the low-level MCP Server. stdout carries the protocol, so all
diagnostics go to stderr through logging_util.
"""
from __future__ import annotations
import argparse, asyncio, sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server

from . import MEMO_URI, PACKAGE_VERSION, SERVER_NAME
from .errors import EngineError
from .logging_util import error, info
from .tools import SQLiteTools


class ToolServer:
    def __init__(self, tools: SQLiteTools):
        self.tools = tools

    async def list_tools(self) -> List[types.Tool]:
        return [
            types.Tool(name=d.name, description=d.description, inputSchema=d.input_schema())
            for d in self.tools.catalog()
        ]

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]]) -> types.CallToolResult:
        envelope = self.tools.dispatch(name, arguments)
        return types.CallToolResult(
            content=[types.TextContent(type="text", text=envelope.text)],
            isError=envelope.is_error,
        )

    async def list_resources(self) -> List[types.Resource]:
        return [
            types.Resource(
                uri=MEMO_URI,
                name="Business Insights Memo",
                description="A living document of discovered business insights",
                mimeType="text/plain",
            )
        ]

    async def read_resource(self, uri) -> List[ReadResourceContents]:
        if str(uri) != MEMO_URI:
            raise ValueError(f"Unknown resource: {uri}")
        return [ReadResourceContents(content=self.tools.synthesize_memo(), mime_type="text/plain")]


def build_server(tools: SQLiteTools) -> Server:
    handlers = ToolServer(tools)
    server = Server(SERVER_NAME, version=PACKAGE_VERSION)
    server.list_tools()(handlers.list_tools)
    # Argument errors come from the core validator, not the SDK's jsonschema pass
    server.call_tool(validate_input=False)(handlers.call_tool)
    server.list_resources()(handlers.list_resources)
    server.read_resource()(handlers.read_resource)
    return server


async def serve(tools: SQLiteTools) -> None:
    server = build_server(tools)
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(prog="mcp-server-sqlite", description="SQLite MCP server over stdio")
    ap.add_argument("db_path", help="Path to the SQLite database file (created if missing)")
    return ap.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    db_path = str(Path(args.db_path).resolve())
    try:
        tools = SQLiteTools(db_path)
    except (EngineError, ValueError) as e:
        error("backend_open_failed", db_path=db_path, error=str(e))
        return 1
    info("server_started", transport="stdio", db_path=db_path, version=PACKAGE_VERSION)
    try:
        asyncio.run(serve(tools))
    finally:
        tools.close()
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
