"""
EmcyAgent - top-level orchestrator.

Wires the chat API client, MCP session manager, tool executor and chat loop
around one httpx.AsyncClient and one EventBus. Tool calls run from the
caller's environment with the caller's credentials; the chat backend never
sees MCP tokens.

Usage:
    config = EmcyAgentConfig(api_key="...", agent_id="...", token_provider=get_token)

    async with EmcyAgent(config) as agent:
        agent.on(ContentDeltaNotification, lambda e: print(e.text, end=""))
        await agent.send_message("What is the status of order 42?")
"""

from __future__ import annotations

import asyncio
import time

from collections.abc import Callable
from types import TracebackType
from typing import Any

import httpx

from pydantic import BaseModel, ConfigDict, Field, field_validator

from emcy_agent.core.chat_loop import ChatLoopController, LoopState, default_id_factory
from emcy_agent.core.constants import DEFAULT_AGENT_SERVICE_URL, ConfigScope, Settings, get_settings
from emcy_agent.core.event_bus import EventBus, N
from emcy_agent.integrations.chat_api import ChatApiClient
from emcy_agent.integrations.credentials import CallbackTokenProvider, TokenProvider
from emcy_agent.integrations.mcp_session import McpSessionManager
from emcy_agent.integrations.tool_executor import ToolExecutor
from emcy_agent.models.config_models import AgentConfig
from emcy_agent.models.mcp_models import McpServerStatus, McpSession
from emcy_agent.models.message_models import BaseChatMessage
from emcy_agent.utils.client_factory import create_http_client
from emcy_agent.utils.logger import logger


class EmcyAgentConfig(BaseModel):
    """Constructor configuration for EmcyAgent."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    api_key: str = Field(..., min_length=1)
    agent_id: str = Field(..., min_length=1)
    agent_service_url: str = DEFAULT_AGENT_SERVICE_URL
    config_scope: ConfigScope = "workspaces"

    # TokenProvider instance, or an async callable (mcp_server_url) -> token
    token_provider: Any = None
    use_cookies: bool = False
    cookies: dict[str, str] | None = None

    external_user_id: str | None = None
    context: dict[str, Any] | None = None

    http_request_logging: bool = False
    http_connect_timeout: float | None = None
    http_read_timeout: float | None = None

    @field_validator("agent_service_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("token_provider")
    @classmethod
    def adapt_token_provider(cls, v: Any) -> TokenProvider | None:
        """Wrap a bare async callable in a CallbackTokenProvider."""
        if v is None or isinstance(v, TokenProvider):
            return v
        if callable(v):
            return CallbackTokenProvider(v)
        raise ValueError("token_provider must be a TokenProvider or an async callable")

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **overrides: Any) -> EmcyAgentConfig:
        """Build a config from EMCY_* environment settings.

        Keyword overrides win over settings (e.g. ``token_provider=...``).

        Raises:
            pydantic.ValidationError: api_key or agent_id missing
        """
        settings = settings or get_settings()
        values: dict[str, Any] = {
            "api_key": settings.api_key,
            "agent_id": settings.agent_id,
            "agent_service_url": settings.agent_service_url,
            "config_scope": settings.config_scope,
            "use_cookies": settings.use_cookies,
            "external_user_id": settings.external_user_id,
            "http_request_logging": settings.http_request_logging,
            "http_connect_timeout": settings.http_connect_timeout,
            "http_read_timeout": settings.http_read_timeout,
        }
        values.update(overrides)
        return cls(**values)


class EmcyAgent:
    """Client-side orchestrator for one agent conversation."""

    def __init__(
        self,
        config: EmcyAgentConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        id_factory: Callable[[], str] = default_id_factory,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config
        self._owns_client = http_client is None
        self._http = http_client or create_http_client(
            enable_logging=config.http_request_logging,
            read_timeout=config.http_read_timeout,
            connect_timeout=config.http_connect_timeout,
            cookies=config.cookies,
        )

        self._bus = EventBus()
        self._agent_config: AgentConfig | None = None
        self._init_lock = asyncio.Lock()

        self._chat_api = ChatApiClient(
            self._http,
            service_url=config.agent_service_url,
            api_key=config.api_key,
            config_scope=config.config_scope,
        )
        self._sessions = McpSessionManager(
            self._http,
            token_provider=config.token_provider,
            bus=self._bus,
            use_cookies=config.use_cookies,
        )
        self._executor = ToolExecutor(self._sessions, self.get_agent_config)
        self._loop = ChatLoopController(
            self._chat_api,
            self._executor,
            self._bus,
            config.agent_id,
            external_user_id=config.external_user_id,
            context=config.context,
            before_send=self._ensure_initialized,
            id_factory=id_factory,
            clock=clock,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def init(self, refresh: bool = False) -> AgentConfig:
        """Fetch the agent config (cached unless ``refresh``) and seed MCP sessions.

        Raises:
            ChatApiError: The config endpoint returned a non-2xx status
        """
        async with self._init_lock:
            if self._agent_config is not None and not refresh:
                return self._agent_config

            config = await self._chat_api.fetch_config(self.config.agent_id)
            self._agent_config = config
            self._sessions.register_servers(config.mcp_servers)
            return config

    async def _ensure_initialized(self) -> None:
        if self._agent_config is None:
            await self.init()

    async def aclose(self) -> None:
        """Cancel any in-flight call and close the HTTP client if we created it."""
        self.cancel()
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> EmcyAgent:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Conversation
    # ------------------------------------------------------------------

    async def send_message(self, message: str) -> LoopState:
        """Send a user message and run the chat/tool loop to completion.

        Raises:
            AgentBusyError: A previous send_message is still in flight
        """
        return await self._loop.send_message(message)

    def cancel(self) -> bool:
        """Cancel the in-flight send_message, if any."""
        return self._loop.cancel()

    def new_conversation(self) -> None:
        """Forget the transcript and the conversation id."""
        self._loop.conversation.reset()
        logger.info("Started new conversation", agent_id=self.config.agent_id)

    def get_messages(self) -> list[BaseChatMessage]:
        return self._loop.conversation.messages()

    def get_conversation_id(self) -> str | None:
        return self._loop.conversation.conversation_id

    @property
    def is_loading(self) -> bool:
        return self._loop.is_running

    @property
    def state(self) -> LoopState:
        return self._loop.state

    # ------------------------------------------------------------------
    # Config and MCP servers
    # ------------------------------------------------------------------

    def get_agent_config(self) -> AgentConfig | None:
        return self._agent_config

    def get_mcp_servers(self) -> list[McpServerStatus]:
        """Configured MCP servers with their current auth status."""
        if self._agent_config is None:
            return []
        return self._sessions.server_statuses(self._agent_config.mcp_servers)

    def get_mcp_sessions(self) -> dict[str, McpSession]:
        """Snapshot of every MCP session, keyed by server URL."""
        return self._sessions.sessions()

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def on(self, event_type: type[N], handler: Callable[[N], None]) -> None:
        """Subscribe ``handler`` to notifications of ``event_type``."""
        self._bus.subscribe(event_type, handler)

    def off(self, event_type: type[N], handler: Callable[[N], None]) -> None:
        self._bus.unsubscribe(event_type, handler)


__all__ = ["EmcyAgent", "EmcyAgentConfig"]
