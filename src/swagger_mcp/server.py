"""Expose registered tools over the Model Context Protocol.

Two transports are supported: stdio (default) and SSE over HTTP. In SSE
mode, configured header names are copied from the inbound HTTP request
of each tool call onto the outbound API request.
"""

import functools
from urllib.parse import urlsplit

import anyio
import mcp.types as types
import structlog
import uvicorn
from mcp.server.lowlevel import Server
from mcp.server.sse import SseServerTransport
from mcp.server.stdio import stdio_server
from starlette.applications import Starlette
from starlette.responses import Response
from starlette.routing import Mount, Route

from swagger_mcp.registry import ToolRegistry

logger = structlog.get_logger(__name__)

SERVER_NAME = "swagger-mcp"
DEFAULT_VERSION = "1.0.0"
SSE_PATH = "/sse"
MESSAGE_PATH = "/messages/"


class ToolCallError(Exception):
    """Raised inside the MCP handler so the SDK flags the result as an error."""


def resolve_sse_endpoint(sse_url: str, sse_addr: str) -> tuple[str, str]:
    """Derive the public SSE URL and the listen address from whichever is given.

    Raises ValueError when neither is usable.
    """
    if not sse_url and not sse_addr:
        raise ValueError("either an SSE URL or an SSE listen address is required")
    if sse_url and sse_addr:
        return sse_url, sse_addr

    if sse_addr:
        host, sep, port = sse_addr.rpartition(":")
        if not sep or not port.isdigit():
            raise ValueError(f"invalid SSE address: {sse_addr!r}")
        return f"http://{host or 'localhost'}:{port}", sse_addr

    parts = urlsplit(sse_url)
    if parts.scheme not in ("http", "https") or not parts.hostname:
        raise ValueError(f"invalid SSE URL: {sse_url!r}")
    port = parts.port or (443 if parts.scheme == "https" else 80)
    return sse_url, f"{parts.hostname}:{port}"


def capture_headers(request, names: list[str]) -> dict[str, str]:
    """Copy the named headers present on an inbound HTTP request."""
    if request is None or not names:
        return {}
    captured = {}
    for name in names:
        value = request.headers.get(name)
        if value is not None:
            captured[name] = value
    return captured


def build_server(registry: ToolRegistry, version: str = DEFAULT_VERSION) -> Server:
    """Create an MCP server whose tools are backed by `registry`."""
    server = Server(SERVER_NAME, version=version)
    header_names = registry.config.sse_header_names()

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [
            types.Tool(name=tool.name, description=tool.description, inputSchema=tool.input_schema())
            for tool in registry.tools()
        ]

    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict) -> list[types.TextContent]:
        inbound = getattr(server.request_context, "request", None)
        context_headers = capture_headers(inbound, header_names)
        result = await anyio.to_thread.run_sync(
            functools.partial(registry.invoke, name, arguments or {}, context_headers)
        )
        if result.is_error:
            raise ToolCallError(result.text)
        return [types.TextContent(type="text", text=result.text)]

    return server


async def _serve_stdio(server: Server) -> None:
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def run_stdio(server: Server) -> None:
    logger.info("starting_stdio_server")
    anyio.run(_serve_stdio, server)


def build_sse_app(server: Server) -> Starlette:
    transport = SseServerTransport(MESSAGE_PATH)

    async def handle_sse(request):
        async with transport.connect_sse(request.scope, request.receive, request._send) as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
        return Response()

    return Starlette(
        routes=[
            Route(SSE_PATH, endpoint=handle_sse, methods=["GET"]),
            Mount(MESSAGE_PATH, app=transport.handle_post_message),
        ]
    )


def run_sse(server: Server, sse_url: str, sse_addr: str) -> None:
    url, addr = resolve_sse_endpoint(sse_url, sse_addr)
    host, _, port = addr.rpartition(":")
    logger.info("starting_sse_server", addr=addr, endpoint=url.rstrip("/") + SSE_PATH)
    uvicorn.run(build_sse_app(server), host=host or "0.0.0.0", port=int(port), log_level="warning")
