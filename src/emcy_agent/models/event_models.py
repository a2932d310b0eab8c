"""
Notification models published on the agent's event bus.

Observers subscribe by class (``agent.on(ToolResultNotification, handler)``),
so each handler receives exactly the payload shape of its event. The ``type``
field carries the wire-style name for logging and serialization.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from emcy_agent.core.constants import (
    MSG_TYPE_CONTENT_DELTA,
    MSG_TYPE_ERROR,
    MSG_TYPE_LOADING,
    MSG_TYPE_MCP_AUTH_STATUS,
    MSG_TYPE_MESSAGE,
    MSG_TYPE_MESSAGE_END,
    MSG_TYPE_THINKING,
    MSG_TYPE_TOOL_CALL,
    MSG_TYPE_TOOL_ERROR,
    MSG_TYPE_TOOL_RESULT,
)
from emcy_agent.models.mcp_models import AuthStatus
from emcy_agent.models.message_models import ChatMessage


class BaseNotification(BaseModel):
    model_config = ConfigDict(frozen=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class MessageNotification(BaseNotification):
    """A user or assistant message was appended (copy of the entry)."""

    type: Literal["message"] = MSG_TYPE_MESSAGE
    message: ChatMessage


class ContentDeltaNotification(BaseNotification):
    """Assistant text delta streamed to observers."""

    type: Literal["content_delta"] = MSG_TYPE_CONTENT_DELTA
    text: str


class ToolCallNotification(BaseNotification):
    """Tool call notification used when the backend requests a tool."""

    type: Literal["tool_call"] = MSG_TYPE_TOOL_CALL
    tool_call_id: str
    tool_name: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    mcp_server_url: str | None = None
    mcp_server_name: str | None = None


class ToolResultNotification(BaseNotification):
    """Tool result notification used after a successful tool call."""

    type: Literal["tool_result"] = MSG_TYPE_TOOL_RESULT
    tool_call_id: str
    result: Any
    duration_ms: float


class ToolErrorNotification(BaseNotification):
    """Structured failure of one tool call."""

    type: Literal["tool_error"] = MSG_TYPE_TOOL_ERROR
    tool_call_id: str
    error: str
    duration_ms: float


class MessageEndNotification(BaseNotification):
    """Assistant turn finished."""

    type: Literal["message_end"] = MSG_TYPE_MESSAGE_END
    input_tokens: int = 0
    output_tokens: int = 0
    tool_calls: int = 0


class ErrorNotification(BaseNotification):
    """Error notification to observers."""

    type: Literal["error"] = MSG_TYPE_ERROR
    code: str  # e.g. "tool_error", "sdk_error", or a backend code
    message: str


class LoadingNotification(BaseNotification):
    type: Literal["loading"] = MSG_TYPE_LOADING
    loading: bool


class ThinkingNotification(BaseNotification):
    type: Literal["thinking"] = MSG_TYPE_THINKING
    thinking: bool


class McpAuthStatusNotification(BaseNotification):
    """Auth status of an MCP server changed."""

    type: Literal["mcp_auth_status"] = MSG_TYPE_MCP_AUTH_STATUS
    mcp_server_url: str
    mcp_server_name: str
    auth_status: AuthStatus


AgentNotification = (
    MessageNotification
    | ContentDeltaNotification
    | ToolCallNotification
    | ToolResultNotification
    | ToolErrorNotification
    | MessageEndNotification
    | ErrorNotification
    | LoadingNotification
    | ThinkingNotification
    | McpAuthStatusNotification
)
