"""MCP server wiring for the fetch-url tool over stdio or streamable HTTP."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from functools import partial
from typing import Any, AsyncIterator, Optional

import anyio
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.routing import Route
from starlette.types import Message, Receive, Scope, Send

from .config import Settings
from .fetcher import fetch_html
from .schemas import TOOL_NAME, ToolResult
from .tools import TOOL_DESCRIPTION, Fetch, fetch_url_tool, input_schema

logger = logging.getLogger(__name__)

SERVER_NAME = "fetch-url"
SERVER_VERSION = "0.2.0"
MCP_PATH = "/mcp"


def tool_definitions(settings: Settings) -> list[types.Tool]:
    return [
        types.Tool(
            name=TOOL_NAME,
            description=TOOL_DESCRIPTION,
            inputSchema=input_schema(settings),
        )
    ]


def _to_call_result(result: ToolResult) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=result.text)],
        isError=result.is_error,
    )


async def call_tool(
    name: str,
    arguments: Optional[dict[str, Any]],
    settings: Settings,
    fetch: Fetch = fetch_html,
) -> types.CallToolResult:
    """Dispatch a ``tools/call`` request.

    The blocking fetch and the extraction run in a worker thread so that
    concurrent calls do not stall the event loop.
    """

    if name != TOOL_NAME:
        logger.warning("Unknown tool requested: %s", name)
        return _to_call_result(ToolResult(text=f"Tool not found: {name}", is_error=True))
    result = await anyio.to_thread.run_sync(partial(fetch_url_tool, arguments, settings, fetch))
    return _to_call_result(result)


def create_server(settings: Settings, fetch: Fetch = fetch_html) -> Server:
    server: Server = Server(SERVER_NAME, version=SERVER_VERSION)

    @server.list_tools()
    async def handle_list_tools() -> list[types.Tool]:
        return tool_definitions(settings)

    # Arguments are validated by RequestPayload so errors share one format.
    @server.call_tool(validate_input=False)
    async def handle_call_tool(name: str, arguments: dict[str, Any]) -> types.CallToolResult:
        return await call_tool(name, arguments, settings, fetch)

    return server


async def run_stdio(settings: Settings) -> None:
    server = create_server(settings)
    async with stdio_server() as (read_stream, write_stream):
        logger.info("MCP Fetch Server (stdio) started")
        await server.run(read_stream, write_stream, server.create_initialization_options())


def _jsonrpc_error(code: int, message: str) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "error": {"code": code, "message": message}, "id": None}


class StreamableHTTPEndpoint:
    """ASGI endpoint handing ``POST /mcp`` to the session manager.

    A failure before any response bytes are sent becomes a JSON-RPC internal
    error with status 500.
    """

    def __init__(self, session_manager: StreamableHTTPSessionManager) -> None:
        self._session_manager = session_manager

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        started = False

        async def tracking_send(message: Message) -> None:
            nonlocal started
            if message["type"] == "http.response.start":
                started = True
            await send(message)

        try:
            await self._session_manager.handle_request(scope, receive, tracking_send)
        except Exception:
            logger.exception("Error handling MCP request")
            if started:
                raise
            response = JSONResponse(_jsonrpc_error(-32603, "Internal server error"), status_code=500)
            await response(scope, receive, send)


def create_http_app(settings: Settings, fetch: Fetch = fetch_html) -> FastAPI:
    """Build the FastAPI application serving stateless MCP requests on ``/mcp``."""
    server = create_server(settings, fetch)
    session_manager = StreamableHTTPSessionManager(
        app=server,
        event_store=None,
        json_response=True,
        stateless=True,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        async with session_manager.run():
            logger.info("MCP Fetch Server (HTTP) running on http://localhost:%s%s", settings.port, MCP_PATH)
            yield
        logger.info("MCP Fetch Server (HTTP) stopped")

    app = FastAPI(title="fetch-url MCP server", version=SERVER_VERSION, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Mcp-Session-Id"],
    )

    @app.get(MCP_PATH)
    async def reject_get() -> JSONResponse:
        logger.info("Received GET MCP request")
        return JSONResponse(
            _jsonrpc_error(-32000, "Method not allowed. Use POST for MCP requests."),
            status_code=405,
        )

    @app.delete(MCP_PATH)
    async def reject_delete() -> JSONResponse:
        logger.info("Received DELETE MCP request")
        return JSONResponse(
            _jsonrpc_error(-32000, "Method not allowed. Use POST for MCP requests."),
            status_code=405,
        )

    app.router.routes.append(Route(MCP_PATH, endpoint=StreamableHTTPEndpoint(session_manager), methods=["POST"]))
    return app


def run_http(settings: Settings) -> None:
    app = create_http_app(settings)
    # log_config=None keeps the handlers installed by configure_logging.
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_config=None)
