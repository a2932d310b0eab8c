"""
Pydantic models for MCP (Model Context Protocol) traffic and session state.

- AuthStatus / McpSession: per-server session bookkeeping
- McpServerStatus: read-only view handed to callers
- JsonRpcRequest / JsonRpcNotification: outgoing JSON-RPC envelopes
- MCPResult: tools/call result with typed content parts
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from emcy_agent.core.constants import JSONRPC_VERSION


class AuthStatus(str, Enum):
    """Authentication state of one MCP server."""

    CONNECTED = "connected"
    NEEDS_AUTH = "needs_auth"


@dataclass(slots=True)
class McpSession:
    """Session state for one MCP server URL."""

    session_id: str | None = None
    auth_status: AuthStatus = AuthStatus.CONNECTED


class McpServerStatus(BaseModel):
    """Server entry returned by EmcyAgent.get_mcp_servers()."""

    model_config = ConfigDict(frozen=True)

    url: str
    name: str
    auth_status: AuthStatus


class JsonRpcRequest(BaseModel):
    """JSON-RPC request expecting a response."""

    jsonrpc: str = JSONRPC_VERSION
    id: int
    method: str
    params: dict[str, Any] = Field(default_factory=dict)


class JsonRpcNotification(BaseModel):
    """JSON-RPC notification (no id, no response expected)."""

    jsonrpc: str = JSONRPC_VERSION
    method: str


class ContentPart(BaseModel):
    """One typed part of a tools/call result."""

    model_config = ConfigDict(extra="allow")

    type: str
    text: str | None = None


class MCPResult(BaseModel):
    """Model for an MCP tool execution result."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    content: list[ContentPart] | None = None
    isError: bool = False

    def text_content(self) -> str:
        """Newline-joined text of all text parts."""
        return "\n".join(part.text or "" for part in self.content or [] if part.type == "text")
