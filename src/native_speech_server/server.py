#
# Copyright (c) 2026, Daily
#
# SPDX-License-Identifier: BSD 2-Clause License
#

"""MCP stdio front-end for the native speech server.

Exposes the host speech engine as MCP tools so any MCP client can speak and
listen through it.

Tools:
    text_to_speech: Speak text aloud (voice enum comes from the live voice list).
    speech_to_text: Record from the microphone and return the transcript.

The low-level ``Server`` is used instead of ``FastMCP`` because the tool
schemas are built per ``tools/list`` request from the engine's installed
voices.
"""

from typing import Any

from loguru import logger
from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, METHOD_NOT_FOUND, ErrorData, TextContent, Tool

from native_speech_server.capabilities import CapabilityRegistry
from native_speech_server.dispatcher import Dispatcher
from native_speech_server.domain.errors import UnknownOperation
from native_speech_server.domain.outcome import OperationOutcome
from native_speech_server.domain.schema import get_operation

SERVER_NAME = "native-speech-server"

_CODE_BY_KIND = {
    "InvalidArguments": INVALID_PARAMS,
    "MethodNotFound": METHOD_NOT_FOUND,
}


async def list_tools(registry: CapabilityRegistry) -> list[Tool]:
    """Build the ``tools/list`` response from the capability registry."""
    return [
        Tool(name=tool["name"], description=tool["description"], inputSchema=tool["inputSchema"])
        for tool in await registry.describe_tools()
    ]


def outcome_to_content(name: str, outcome: OperationOutcome) -> list[TextContent]:
    """Convert an outcome into tool content, or raise the matching MCP error."""
    if not outcome.ok:
        code = _CODE_BY_KIND.get(outcome.error_kind or "", INTERNAL_ERROR)
        raise McpError(ErrorData(code=code, message=outcome.message or "Operation failed"))

    if name == "speech_to_text":
        text = outcome.payload["text"]
    else:
        text = "Successfully spoke text"
    return [TextContent(type="text", text=text)]


async def call_tool(
    dispatcher: Dispatcher, name: str, arguments: dict[str, Any] | None
) -> list[TextContent]:
    """Run one tool call through the dispatcher.

    Raises:
        McpError: METHOD_NOT_FOUND for unknown tools, INVALID_PARAMS for bad
            arguments, INTERNAL_ERROR for engine and capture failures.

    """
    try:
        spec = get_operation(name)
        if not spec.tool:
            raise UnknownOperation(f"Unknown tool: {name}")
    except UnknownOperation as e:
        raise McpError(ErrorData(code=METHOD_NOT_FOUND, message=e.message)) from None

    logger.info(f"Tool call: {name}")
    outcome = await dispatcher.dispatch(name, arguments or {})
    return outcome_to_content(name, outcome)


def create_server(dispatcher: Dispatcher) -> Server:
    """Create the MCP server with tool handlers bound to ``dispatcher``."""
    server: Server = Server(SERVER_NAME)

    @server.list_tools()
    async def handle_list_tools() -> list[Tool]:
        return await list_tools(dispatcher.registry)

    # McpError must reach the session to go out as a JSON-RPC error code;
    # @server.call_tool() would wrap it in an isError result instead.
    # Arguments are validated by the dispatcher.
    async def handle_call_tool(req: types.CallToolRequest) -> types.ServerResult:
        content = await call_tool(dispatcher, req.params.name, req.params.arguments)
        return types.ServerResult(types.CallToolResult(content=content, isError=False))

    server.request_handlers[types.CallToolRequest] = handle_call_tool

    return server


async def run_stdio(dispatcher: Dispatcher) -> None:
    """Serve MCP over stdin/stdout until the client disconnects."""
    server = create_server(dispatcher)
    logger.info("Native speech MCP server running on stdio")
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
