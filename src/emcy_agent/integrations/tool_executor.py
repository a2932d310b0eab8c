"""
Executes one tool call against its MCP server.

The server URL comes from the tool call event, falling back to the agent's
single configured server. A session is ensured first; a 404 while a session
id was in use means the server forgot the session, so the id is cleared, the
handshake is repeated and the call retried exactly once.
"""

from __future__ import annotations

import json

from collections.abc import Callable
from typing import Any

import httpx

from pydantic import ValidationError

from emcy_agent.core.cancellation import CancellationToken
from emcy_agent.core.constants import (
    EVENT_STREAM_CONTENT_TYPE,
    HTTP_STATUS_SESSION_NOT_FOUND,
    HTTP_STATUS_UNAUTHORIZED,
    MCP_METHOD_TOOLS_CALL,
)
from emcy_agent.integrations.mcp_session import McpSessionManager
from emcy_agent.integrations.sse_client import join_sse_data
from emcy_agent.models.config_models import AgentConfig
from emcy_agent.models.error_models import (
    McpAuthenticationError,
    McpProtocolError,
    McpRpcError,
    McpServerUnresolvedError,
    McpSessionExpiredError,
    McpTransportError,
)
from emcy_agent.models.mcp_models import AuthStatus, JsonRpcRequest, MCPResult
from emcy_agent.models.stream_models import ToolCallEvent
from emcy_agent.utils.logger import logger


def parse_mcp_response(response: httpx.Response, url: str) -> Any:
    """Decode a JSON-RPC response sent as plain JSON or as an SSE body.

    Raises:
        McpProtocolError: Empty SSE body or invalid JSON
    """
    content_type = response.headers.get("content-type", "").lower()

    if EVENT_STREAM_CONTENT_TYPE in content_type:
        document = join_sse_data(response.text)
        if not document:
            raise McpProtocolError("No data received from MCP server SSE response", url)
    else:
        document = response.text

    try:
        return json.loads(document)
    except json.JSONDecodeError as e:
        raise McpProtocolError(f"Invalid JSON from MCP server: {e.msg}", url) from e


def extract_tool_result(body: Any) -> Any:
    """Reduce a tools/call response body to the value handed back to the model.

    Text parts of ``result.content`` are joined with newlines; when there is
    no text the raw result object is returned instead.
    """
    if not isinstance(body, dict):
        return body

    result = body.get("result")
    if result is None:
        return body

    if isinstance(result, dict) and result.get("content") is not None:
        try:
            text = MCPResult.model_validate(result).text_content()
        except ValidationError:
            text = ""
        return text or result

    return result


class ToolExecutor:
    """Runs tools/call requests through an McpSessionManager."""

    def __init__(
        self,
        sessions: McpSessionManager,
        config_getter: Callable[[], AgentConfig | None],
    ):
        self._sessions = sessions
        self._config_getter = config_getter

    def resolve_server_url(self, tool_call: ToolCallEvent) -> str:
        """URL named by the event, else the agent's single configured server.

        Raises:
            McpServerUnresolvedError: Neither source names a server
        """
        if tool_call.mcp_server_url:
            return tool_call.mcp_server_url

        config = self._config_getter()
        url = config.default_mcp_server_url() if config is not None else None
        if not url:
            raise McpServerUnresolvedError(tool_call.tool_name)
        return url

    async def _call(self, url: str, tool_call: ToolCallEvent) -> httpx.Response:
        request = JsonRpcRequest(
            id=self._sessions.next_request_id(),
            method=MCP_METHOD_TOOLS_CALL,
            params={"name": tool_call.tool_name, "arguments": tool_call.arguments},
        )
        return await self._sessions.send(url, request.model_dump())

    async def execute(self, tool_call: ToolCallEvent, token: CancellationToken | None = None) -> Any:
        """Execute ``tool_call`` and return its result.

        Raises:
            ToolExecutionError: Any failure (unresolved server, handshake,
                transport status, JSON-RPC error, unreadable body)
            asyncio.CancelledError: ``token`` was cancelled, before or
                during a request
        """
        if token is None:
            return await self._execute(tool_call, None)
        async with token.cancellation_scope():
            return await self._execute(tool_call, token)

    async def _execute(self, tool_call: ToolCallEvent, token: CancellationToken | None) -> Any:
        url = self.resolve_server_url(tool_call)

        if token is not None:
            token.check()
        await self._sessions.ensure_session(url)

        had_session = self._sessions.session_id_of(url) is not None
        response = await self._call(url, tool_call)
        retried = False

        if response.status_code == HTTP_STATUS_SESSION_NOT_FOUND and had_session:
            logger.info(f"MCP session expired for {url}, re-initializing", mcp_server_url=url)
            self._sessions.clear_session(url)
            if token is not None:
                token.check()
            await self._sessions.ensure_session(url)
            response = await self._call(url, tool_call)
            retried = True

        if response.status_code == HTTP_STATUS_UNAUTHORIZED:
            self._sessions.update_auth_status(url, AuthStatus.NEEDS_AUTH)
            raise McpAuthenticationError(response.text, url)

        if not response.is_success:
            if retried and response.status_code == HTTP_STATUS_SESSION_NOT_FOUND:
                raise McpSessionExpiredError(response.text, url)
            raise McpTransportError(response.status_code, response.text, url)

        if self._sessions.auth_status_of(url) == AuthStatus.NEEDS_AUTH:
            self._sessions.update_auth_status(url, AuthStatus.CONNECTED)

        body = parse_mcp_response(response, url)
        if isinstance(body, dict) and body.get("error"):
            error = body["error"]
            if isinstance(error, dict):
                raise McpRpcError(error.get("code", "unknown"), str(error.get("message", "")), url)
            raise McpRpcError("unknown", str(error), url)

        result = extract_tool_result(body)
        logger.log_tool_call(tool_call.tool_name, tool_call.arguments, result, mcp_server_url=url)
        return result


__all__ = ["ToolExecutor", "extract_tool_result", "parse_mcp_response"]
