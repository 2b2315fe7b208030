# byte_vision/web/routes_mcp.py
"""
The MCP endpoint: JSON-RPC 2.0 over HTTP POST.

Supported methods are `initialize`, `ping`, `tools/list` and `tools/call`
for the single `generate_completion` tool. Tool failures (timeouts, process
errors, empty prompts) are returned as tool content, never as JSON-RPC
errors; protocol errors are reserved for malformed requests.
"""
import json
from typing import Any, Dict

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from byte_vision import __version__
from byte_vision.schemas.completion import CompletionArguments
from byte_vision.schemas.mcp import (
    INVALID_PARAMS,
    INVALID_REQUEST,
    JSONRPC_VERSION,
    MCP_PROTOCOL_VERSION,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    JsonRpcRequest,
    JsonRpcResponse,
    ToolCallParams,
)
from byte_vision.utils.logger import setup_logger

logger = setup_logger(__name__)

SERVER_NAME = "byte-vision-mcp"
TOOL_NAME = "generate_completion"
TOOL_DESCRIPTION = "Generate text completion using the local LLM"


def tool_definition() -> Dict[str, Any]:
    schema = CompletionArguments.model_json_schema()
    schema["required"] = ["prompt"]
    return {"name": TOOL_NAME, "description": TOOL_DESCRIPTION, "inputSchema": schema}


def _reply(response: JsonRpcResponse) -> JSONResponse:
    body = response.model_dump(exclude_none=True)
    body["id"] = response.id
    return JSONResponse(content=body)


async def _call_tool(request: Request, rpc: JsonRpcRequest) -> JsonRpcResponse:
    try:
        params = ToolCallParams.model_validate(rpc.params or {})
    except ValidationError as e:
        return JsonRpcResponse.fail(
            rpc.id, INVALID_PARAMS, "Invalid tool call params", str(e)
        )
    if params.name != TOOL_NAME:
        return JsonRpcResponse.fail(
            rpc.id, INVALID_PARAMS, f"Unknown tool: {params.name}"
        )
    try:
        arguments = CompletionArguments.model_validate(params.arguments)
    except ValidationError as e:
        return JsonRpcResponse.fail(
            rpc.id, INVALID_PARAMS, "Invalid tool arguments", str(e)
        )

    service = request.app.state.completion_service
    shutdown_ctx = request.app.state.shutdown_context
    tool_response = await service.generate(arguments, shutdown_ctx)
    return JsonRpcResponse.ok(rpc.id, tool_response.model_dump())


async def _dispatch(request: Request, rpc: JsonRpcRequest) -> JsonRpcResponse:
    if rpc.method == "initialize":
        return JsonRpcResponse.ok(
            rpc.id,
            {
                "protocolVersion": MCP_PROTOCOL_VERSION,
                "capabilities": {"tools": {"listChanged": False}},
                "serverInfo": {"name": SERVER_NAME, "version": __version__},
            },
        )
    if rpc.method == "ping":
        return JsonRpcResponse.ok(rpc.id, {})
    if rpc.method == "tools/list":
        return JsonRpcResponse.ok(rpc.id, {"tools": [tool_definition()]})
    if rpc.method == "tools/call":
        return await _call_tool(request, rpc)
    return JsonRpcResponse.fail(
        rpc.id, METHOD_NOT_FOUND, f"Method not found: {rpc.method}"
    )


def build_router(endpoint: str) -> APIRouter:
    """Create the router serving MCP requests at `endpoint`."""
    router = APIRouter()

    @router.post(endpoint, tags=["MCP"])
    async def mcp_endpoint(request: Request) -> Response:
        try:
            payload = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return _reply(JsonRpcResponse.fail(None, PARSE_ERROR, "Parse error"))

        if not isinstance(payload, dict):
            return _reply(
                JsonRpcResponse.fail(
                    None, INVALID_REQUEST, "Batch requests are not supported"
                )
            )
        try:
            rpc = JsonRpcRequest.model_validate(payload)
        except ValidationError as e:
            raw_id = payload.get("id")
            if not isinstance(raw_id, (int, str)):
                raw_id = None
            return _reply(
                JsonRpcResponse.fail(raw_id, INVALID_REQUEST, "Invalid request", str(e))
            )
        if rpc.jsonrpc != JSONRPC_VERSION:
            return _reply(
                JsonRpcResponse.fail(
                    rpc.id, INVALID_REQUEST, "Unsupported jsonrpc version"
                )
            )

        if rpc.is_notification:
            logger.debug(f"Notification received: {rpc.method}")
            return Response(status_code=202)

        logger.info(f"MCP request: {rpc.method}")
        return _reply(await _dispatch(request, rpc))

    return router
