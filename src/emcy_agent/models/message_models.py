"""
Transcript message models.

A conversation is an ordered list of ChatMessage variants discriminated by
``role``. ToolCallMessage is the only mutable entry after append: its status
moves from ``calling`` to ``completed`` or ``error`` once the tool resolves.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field


class ToolCallStatus(str, Enum):
    """Lifecycle of a tool call entry."""

    CALLING = "calling"
    COMPLETED = "completed"
    ERROR = "error"


class BaseChatMessage(BaseModel):
    """Fields shared by every transcript entry."""

    id: str
    content: str
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for observers and export."""
        return self.model_dump(mode="json", exclude_none=True)


class UserMessage(BaseChatMessage):
    """Text sent by the caller."""

    role: Literal["user"] = "user"


class AssistantMessage(BaseChatMessage):
    """Accumulated assistant text for one stream."""

    role: Literal["assistant"] = "assistant"


class ToolCallMessage(BaseChatMessage):
    """A tool call requested by the backend and executed locally."""

    role: Literal["tool_call"] = "tool_call"
    tool_name: str
    tool_call_id: str
    status: ToolCallStatus = ToolCallStatus.CALLING
    start_time: float = Field(..., description="Clock reading when the call started (seconds)")
    duration_ms: float | None = None
    result: str | None = None
    error: str | None = None

    def complete(self, result: str, duration_ms: float) -> None:
        self.status = ToolCallStatus.COMPLETED
        self.duration_ms = duration_ms
        self.result = result

    def fail(self, error: str, duration_ms: float) -> None:
        self.status = ToolCallStatus.ERROR
        self.duration_ms = duration_ms
        self.error = error


class ToolResultMessage(BaseChatMessage):
    """Bookkeeping entry recording what was sent back to the backend."""

    role: Literal["tool_result"] = "tool_result"
    tool_name: str
    tool_call_id: str


ChatMessage = Annotated[
    UserMessage | AssistantMessage | ToolCallMessage | ToolResultMessage,
    Field(discriminator="role"),
]
