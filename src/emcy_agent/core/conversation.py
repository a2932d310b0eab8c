"""
Conversation transcript owned by the chat loop.

Callers only ever receive copies of the entries; the live list never
leaves this class.
"""

from __future__ import annotations

from emcy_agent.models.message_models import BaseChatMessage, ToolCallMessage


class Conversation:
    """Ordered transcript plus the backend-assigned conversation id."""

    def __init__(self) -> None:
        self._messages: list[BaseChatMessage] = []
        self._tool_calls: dict[str, ToolCallMessage] = {}
        self.conversation_id: str | None = None

    def append(self, message: BaseChatMessage) -> None:
        self._messages.append(message)
        if isinstance(message, ToolCallMessage):
            self._tool_calls[message.tool_call_id] = message

    def find_tool_call(self, tool_call_id: str) -> ToolCallMessage | None:
        """Live entry for ``tool_call_id`` (internal use, for in-place updates)."""
        return self._tool_calls.get(tool_call_id)

    def messages(self) -> list[BaseChatMessage]:
        """Deep copies of every entry, in order."""
        return [message.model_copy(deep=True) for message in self._messages]

    def reset(self) -> None:
        """Empty the transcript and forget the conversation id."""
        self._messages = []
        self._tool_calls = {}
        self.conversation_id = None

    def __len__(self) -> int:
        return len(self._messages)
