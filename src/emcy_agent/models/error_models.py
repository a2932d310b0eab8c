"""
Error codes and exception hierarchy for the Emcy Agent SDK.

Every failure raised by the SDK derives from EmcyAgentError and carries an
ErrorCode, so the chat loop can turn it into an ErrorNotification without
inspecting the exception type.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes surfaced in ErrorNotification.code."""

    # Codes published by the chat loop
    SDK_ERROR = "sdk_error"
    TOOL_ERROR = "tool_error"

    # Chat API (transport) errors
    CHAT_API_ERROR = "chat_api_error"
    CONFIG_FETCH_FAILED = "config_fetch_failed"

    # MCP errors
    MCP_SERVER_UNRESOLVED = "mcp_server_unresolved"
    MCP_INIT_FAILED = "mcp_init_failed"
    MCP_AUTH_REQUIRED = "mcp_auth_required"
    MCP_SESSION_EXPIRED = "mcp_session_expired"
    MCP_TRANSPORT_ERROR = "mcp_transport_error"
    MCP_PROTOCOL_ERROR = "mcp_protocol_error"
    MCP_RPC_ERROR = "mcp_rpc_error"

    # Caller errors
    AGENT_BUSY = "agent_busy"


class EmcyAgentError(Exception):
    """Base SDK exception with error code support.

    Example:
        raise EmcyAgentError(
            code=ErrorCode.SDK_ERROR,
            message="Something went wrong",
            details={"agent_id": agent_id},
        )
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)


class AgentBusyError(EmcyAgentError):
    """send_message was called while another call is in flight."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.AGENT_BUSY,
            message="send_message is already in progress; await it or call cancel() first",
        )


# ============================================================================
# Chat API
# ============================================================================


class ChatApiError(EmcyAgentError):
    """Non-success response from the chat backend."""

    def __init__(
        self,
        message: str,
        status_code: int,
        code: ErrorCode = ErrorCode.CHAT_API_ERROR,
        body: str | None = None,
    ):
        self.status_code = status_code
        self.body = body
        super().__init__(code=code, message=message, details={"status_code": status_code})


# ============================================================================
# Tool execution (MCP)
# ============================================================================


class ToolExecutionError(EmcyAgentError):
    """Base class for every failure of a single tool call."""


class McpServerUnresolvedError(ToolExecutionError):
    """Neither the tool call nor the agent config names an MCP server."""

    def __init__(self, tool_name: str):
        super().__init__(
            code=ErrorCode.MCP_SERVER_UNRESOLVED,
            message="No MCP server URL for tool call",
            details={"tool_name": tool_name},
        )


class McpTransportError(ToolExecutionError):
    """Non-success HTTP status from an MCP server."""

    prefix = "Tool execution failed"

    def __init__(
        self,
        status_code: int,
        body: str,
        mcp_server_url: str,
        code: ErrorCode = ErrorCode.MCP_TRANSPORT_ERROR,
    ):
        self.status_code = status_code
        self.body = body
        self.mcp_server_url = mcp_server_url
        super().__init__(
            code=code,
            message=f"{self.prefix} ({status_code}): {body}",
            details={"status_code": status_code, "mcp_server_url": mcp_server_url},
        )


class McpInitializationError(McpTransportError):
    """The initialize handshake was rejected."""

    prefix = "MCP initialization failed"

    def __init__(self, status_code: int, body: str, mcp_server_url: str):
        code = ErrorCode.MCP_AUTH_REQUIRED if status_code == 401 else ErrorCode.MCP_INIT_FAILED
        super().__init__(status_code, body, mcp_server_url, code=code)


class McpAuthenticationError(McpTransportError):
    """The MCP server answered 401 to a tool call."""

    def __init__(self, body: str, mcp_server_url: str):
        super().__init__(401, body, mcp_server_url, code=ErrorCode.MCP_AUTH_REQUIRED)


class McpSessionExpiredError(McpTransportError):
    """The server still reported the session unknown after re-initialization."""

    prefix = "Tool execution failed after MCP session re-initialization"

    def __init__(self, body: str, mcp_server_url: str):
        super().__init__(404, body, mcp_server_url, code=ErrorCode.MCP_SESSION_EXPIRED)


class McpProtocolError(ToolExecutionError):
    """MCP response body could not be interpreted."""

    def __init__(self, message: str, mcp_server_url: str):
        super().__init__(
            code=ErrorCode.MCP_PROTOCOL_ERROR,
            message=message,
            details={"mcp_server_url": mcp_server_url},
        )


class McpRpcError(ToolExecutionError):
    """JSON-RPC error object returned by the MCP server."""

    def __init__(self, rpc_code: int | str, rpc_message: str, mcp_server_url: str):
        self.rpc_code = rpc_code
        self.rpc_message = rpc_message
        super().__init__(
            code=ErrorCode.MCP_RPC_ERROR,
            message=f"MCP error ({rpc_code}): {rpc_message}",
            details={"rpc_code": rpc_code, "mcp_server_url": mcp_server_url},
        )


__all__ = [
    "AgentBusyError",
    "ChatApiError",
    "EmcyAgentError",
    "ErrorCode",
    "McpAuthenticationError",
    "McpInitializationError",
    "McpProtocolError",
    "McpRpcError",
    "McpServerUnresolvedError",
    "McpSessionExpiredError",
    "McpTransportError",
    "ToolExecutionError",
]
