"""
Constants and configuration for the Emcy Agent SDK.
Centralizes protocol names, magic numbers and configuration values.
Includes Pydantic validation for environment variables.
"""

from __future__ import annotations

import threading

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ============================================================================
# SDK Identity
# ============================================================================

#: SDK name reported to MCP servers in the initialize handshake.
SDK_NAME = "emcy-agent-sdk"

#: SDK version reported to MCP servers in the initialize handshake.
SDK_VERSION = "0.1.0"

#: Default Emcy API base URL.
DEFAULT_AGENT_SERVICE_URL = "https://api.emcy.ai"

# ============================================================================
# Chat API Endpoints
# ============================================================================

#: Path prefix shared by every chat API endpoint.
API_PREFIX = "/api/v1"

#: Endpoint for the first turn of a user message.
CHAT_ENDPOINT = "chat"

#: Endpoint used to hand a tool result back to the backend.
TOOL_RESULT_ENDPOINT = "chat/tool-result"

#: Path segments accepted for the config fetch.
ConfigScope = Literal["workspaces", "agents"]

# ============================================================================
# SSE Event Types (chat API stream)
# ============================================================================

#: Backend assigned (or confirmed) the conversation id.
SSE_MESSAGE_START = "message_start"

#: Incremental assistant text.
SSE_CONTENT_DELTA = "content_delta"

#: Backend asks the client to execute a tool.
SSE_TOOL_CALL = "tool_call"

#: Assistant turn finished, carries usage stats.
SSE_MESSAGE_END = "message_end"

#: Backend reported an error for this turn.
SSE_ERROR = "error"

# ============================================================================
# MCP Protocol
# ============================================================================

#: MCP protocol version sent in the initialize request.
MCP_PROTOCOL_VERSION = "2025-03-26"

#: JSON-RPC version tag.
JSONRPC_VERSION = "2.0"

MCP_METHOD_INITIALIZE = "initialize"
MCP_METHOD_INITIALIZED = "notifications/initialized"
MCP_METHOD_TOOLS_CALL = "tools/call"

#: Header carrying the server-issued session id (request and response).
MCP_SESSION_HEADER = "Mcp-Session-Id"

#: Accept header value for MCP requests (JSON or SSE responses).
MCP_ACCEPT = "application/json, text/event-stream"

#: Content type marking an SSE-framed MCP response.
EVENT_STREAM_CONTENT_TYPE = "text/event-stream"

#: HTTP status returned by MCP servers for an unknown session.
HTTP_STATUS_SESSION_NOT_FOUND = 404

#: HTTP status returned when credentials are missing or invalid.
HTTP_STATUS_UNAUTHORIZED = 401

# ============================================================================
# Notification Types (observer surface)
# ============================================================================

#: A message was appended to the transcript.
MSG_TYPE_MESSAGE = "message"

#: Incremental assistant text was received.
MSG_TYPE_CONTENT_DELTA = "content_delta"

#: A tool call was requested by the backend.
MSG_TYPE_TOOL_CALL = "tool_call"

#: A tool call completed successfully.
MSG_TYPE_TOOL_RESULT = "tool_result"

#: A tool call failed.
MSG_TYPE_TOOL_ERROR = "tool_error"

#: The assistant turn ended with usage stats.
MSG_TYPE_MESSAGE_END = "message_end"

#: Generic error notification.
MSG_TYPE_ERROR = "error"

#: Loading bracket around a send_message call.
MSG_TYPE_LOADING = "loading"

#: Thinking indicator (waiting on the model).
MSG_TYPE_THINKING = "thinking"

#: Per-server MCP auth status changed.
MSG_TYPE_MCP_AUTH_STATUS = "mcp_auth_status"

# ============================================================================
# Logging
# ============================================================================

#: Max size of a rotating log file before rollover.
LOG_MAX_SIZE = 10 * 1024 * 1024

#: Rotated conversation log files kept.
LOG_BACKUP_COUNT_CONVERSATIONS = 5

#: Rotated error log files kept.
LOG_BACKUP_COUNT_ERRORS = 3

#: Characters of user/assistant content shown in log previews.
LOG_PREVIEW_LENGTH = 50

#: Length of the per-logger component id.
SESSION_ID_LENGTH = 8

# ============================================================================
# HTTP Timeouts
# ============================================================================

#: Time to establish a connection.
DEFAULT_CONNECT_TIMEOUT = 30.0

#: Read timeout; long because the model may pause while thinking mid-stream.
DEFAULT_READ_TIMEOUT = 600.0

#: Time to send a request.
DEFAULT_WRITE_TIMEOUT = 30.0

#: Time to acquire a pooled connection.
DEFAULT_POOL_TIMEOUT = 30.0


class Settings(BaseSettings):
    """Environment settings for the SDK.

    Configuration priority (highest to lowest):
    1. Values passed to Settings() constructor
    2. Environment variables prefixed with EMCY_
    3. .env file in the working directory

    Nothing is required here: an EmcyAgent can be built entirely from
    constructor arguments, and these values only fill the gaps.
    """

    api_key: str | None = Field(default=None, description="API key for the Emcy chat API")
    agent_id: str | None = Field(default=None, description="Agent id from the Emcy dashboard")
    agent_service_url: str = Field(default=DEFAULT_AGENT_SERVICE_URL, description="Emcy API base URL")
    config_scope: ConfigScope = Field(default="workspaces", description="Path segment used for the config fetch")

    use_cookies: bool = Field(default=False, description="Send the cookie jar with MCP requests")
    external_user_id: str | None = Field(default=None, description="External user id attached to conversations")

    debug: bool = Field(default=False, description="Enable debug logging")
    http_request_logging: bool = Field(default=False, description="Enable HTTP request/response logging")
    enable_content_logging: bool = Field(default=False, description="Log (redacted) message content previews")
    log_dir: Path | None = Field(default=None, description="Directory for JSON log files (disabled when unset)")

    http_connect_timeout: float = Field(default=DEFAULT_CONNECT_TIMEOUT, description="HTTP connect timeout (seconds)")
    http_read_timeout: float = Field(default=DEFAULT_READ_TIMEOUT, description="HTTP read timeout (seconds)")

    config_hot_reload: bool = Field(
        default=False,
        description="Reload settings on every get_settings() call (development only)",
    )

    model_config = SettingsConfigDict(
        env_prefix="EMCY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("agent_service_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the service URL so endpoint paths can be appended."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"agent_service_url must be an http(s) URL, got '{v}'")
        return v.rstrip("/")

    @field_validator("config_scope", mode="before")
    @classmethod
    def normalize_scope(cls, v: str) -> str:
        """Accept any casing for the config scope."""
        return str(v).lower()

    @field_validator("http_connect_timeout", "http_read_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be positive")
        return v


# ============================================================================
# Settings Management (Thread-safe with Hot-Reload Support)
# ============================================================================


class _SettingsManager:
    """Thread-safe settings manager with optional hot-reload support.

    Uses a class to avoid global statement warnings from linters.
    """

    __slots__ = ("_instance", "_lock")

    def __init__(self) -> None:
        self._instance: Settings | None = None
        self._lock = threading.Lock()

    def get(self) -> Settings:
        """Get settings instance, loading it on first use.

        Returns:
            Validated Settings instance.

        Raises:
            ValueError: If configuration is invalid.
        """
        if self._instance is not None and not self._instance.config_hot_reload:
            return self._instance

        with self._lock:
            # Double-check after acquiring lock
            if self._instance is not None and not self._instance.config_hot_reload:
                return self._instance

            self._instance = Settings()
            return self._instance

    def reload(self) -> Settings:
        """Force reload settings from the environment."""
        with self._lock:
            self._instance = Settings()
            return self._instance

    def clear(self) -> None:
        """Clear cached settings instance."""
        with self._lock:
            self._instance = None


# Module-level singleton manager
_settings_manager = _SettingsManager()


def get_settings() -> Settings:
    """Get the cached settings instance.

    Returns:
        Validated Settings instance.

    Raises:
        ValueError: If configuration is invalid.
    """
    return _settings_manager.get()


def reload_settings() -> Settings:
    """Force reload settings from the environment."""
    return _settings_manager.reload()


def clear_settings_cache() -> None:
    """Clear cached settings instance.

    Primarily useful for testing to ensure fresh settings on each test.
    """
    _settings_manager.clear()
