"""
Chat API stream models.

SseEvent is the raw ``{type, data}`` frame produced by SSE framing. The
StreamEvent variants are the typed protocol events the chat loop consumes;
wire payloads are camelCase JSON. StreamOutcome variants describe how one
response stream finished.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from emcy_agent.core.constants import (
    SSE_CONTENT_DELTA,
    SSE_ERROR,
    SSE_MESSAGE_END,
    SSE_MESSAGE_START,
    SSE_TOOL_CALL,
)


@dataclass(frozen=True, slots=True)
class SseEvent:
    """One parsed SSE frame."""

    type: str
    data: Any


class _StreamModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, extra="ignore")


class MessageStart(_StreamModel):
    conversation_id: str


class ContentDelta(_StreamModel):
    text: str


class ToolCallEvent(_StreamModel):
    """Backend request to execute a tool."""

    tool_call_id: str
    tool_name: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    mcp_server_url: str | None = None
    mcp_server_name: str | None = None


class MessageEnd(_StreamModel):
    """Usage stats for the finished assistant turn."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, extra="allow")

    input_tokens: int = 0
    output_tokens: int = 0
    tool_calls: int = 0


class StreamError(_StreamModel):
    code: str
    message: str


StreamEvent = MessageStart | ContentDelta | ToolCallEvent | MessageEnd | StreamError

#: Wire event type -> payload model.
STREAM_EVENT_MODELS: dict[str, type[_StreamModel]] = {
    SSE_MESSAGE_START: MessageStart,
    SSE_CONTENT_DELTA: ContentDelta,
    SSE_TOOL_CALL: ToolCallEvent,
    SSE_MESSAGE_END: MessageEnd,
    SSE_ERROR: StreamError,
}


# ============================================================================
# Stream outcomes
# ============================================================================


@dataclass(frozen=True, slots=True)
class MessageEnded:
    """The backend sent message_end."""

    usage: MessageEnd


@dataclass(frozen=True, slots=True)
class StreamFailed:
    """The backend sent an error event."""

    error: StreamError


@dataclass(frozen=True, slots=True)
class ToolCallPending:
    """A tool call was received; the rest of the stream is not consumed."""

    tool_call: ToolCallEvent


@dataclass(frozen=True, slots=True)
class StreamClosed:
    """The stream ended without a terminal event (implicit message end)."""


StreamOutcome = MessageEnded | StreamFailed | ToolCallPending | StreamClosed
