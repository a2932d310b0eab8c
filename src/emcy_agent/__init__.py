"""
Emcy Agent SDK - client-side orchestration for tool-augmented chat.

Drives a multi-turn conversation against the Emcy chat API (streamed over
SSE) and executes tool calls against MCP servers directly from the caller's
environment, using caller-supplied credentials.
"""

from __future__ import annotations

from emcy_agent.core.agent import EmcyAgent, EmcyAgentConfig
from emcy_agent.core.chat_loop import LoopState
from emcy_agent.core.constants import SDK_VERSION, Settings, get_settings
from emcy_agent.integrations.credentials import CallbackTokenProvider, NoTokenProvider, TokenProvider
from emcy_agent.models.config_models import AgentConfig, McpServerInfo
from emcy_agent.models.error_models import (
    AgentBusyError,
    ChatApiError,
    EmcyAgentError,
    ErrorCode,
    McpAuthenticationError,
    McpInitializationError,
    McpSessionExpiredError,
    ToolExecutionError,
)
from emcy_agent.models.event_models import (
    ContentDeltaNotification,
    ErrorNotification,
    LoadingNotification,
    McpAuthStatusNotification,
    MessageEndNotification,
    MessageNotification,
    ThinkingNotification,
    ToolCallNotification,
    ToolErrorNotification,
    ToolResultNotification,
)
from emcy_agent.models.mcp_models import AuthStatus, McpServerStatus
from emcy_agent.models.message_models import (
    AssistantMessage,
    ToolCallMessage,
    ToolCallStatus,
    ToolResultMessage,
    UserMessage,
)

__version__ = SDK_VERSION

__all__ = [
    "AgentBusyError",
    "AgentConfig",
    "AssistantMessage",
    "AuthStatus",
    "CallbackTokenProvider",
    "ChatApiError",
    "ContentDeltaNotification",
    "EmcyAgent",
    "EmcyAgentConfig",
    "EmcyAgentError",
    "ErrorCode",
    "ErrorNotification",
    "LoadingNotification",
    "LoopState",
    "McpAuthStatusNotification",
    "McpAuthenticationError",
    "McpInitializationError",
    "McpServerInfo",
    "McpServerStatus",
    "McpSessionExpiredError",
    "MessageEndNotification",
    "MessageNotification",
    "NoTokenProvider",
    "Settings",
    "ThinkingNotification",
    "TokenProvider",
    "ToolCallMessage",
    "ToolCallNotification",
    "ToolCallStatus",
    "ToolErrorNotification",
    "ToolExecutionError",
    "ToolResultMessage",
    "ToolResultNotification",
    "UserMessage",
    "get_settings",
]
