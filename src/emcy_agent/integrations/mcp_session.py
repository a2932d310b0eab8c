"""
Per-server MCP session lifecycle over streamable HTTP.

Each MCP server URL has one McpSession: the server-issued session id (once
the initialize handshake succeeded) and the auth status last observed for
that server. The handshake is:

1. POST ``initialize`` (protocol version, empty capabilities, client info);
   the ``Mcp-Session-Id`` response header becomes the session id
2. POST ``notifications/initialized`` carrying that session id

Auth status changes are published as McpAuthStatusNotification.
"""

from __future__ import annotations

import itertools

from collections.abc import Iterable
from typing import Any

import httpx

from emcy_agent.core.constants import (
    HTTP_STATUS_UNAUTHORIZED,
    MCP_ACCEPT,
    MCP_METHOD_INITIALIZE,
    MCP_METHOD_INITIALIZED,
    MCP_PROTOCOL_VERSION,
    MCP_SESSION_HEADER,
    SDK_NAME,
    SDK_VERSION,
)
from emcy_agent.core.event_bus import EventBus
from emcy_agent.integrations.credentials import NoTokenProvider, TokenProvider
from emcy_agent.models.config_models import McpServerInfo
from emcy_agent.models.error_models import McpInitializationError
from emcy_agent.models.event_models import McpAuthStatusNotification
from emcy_agent.models.mcp_models import (
    AuthStatus,
    JsonRpcNotification,
    JsonRpcRequest,
    McpServerStatus,
    McpSession,
)
from emcy_agent.utils.logger import logger


class McpSessionManager:
    """Owns the session map for every MCP server the agent talks to.

    Usage:
        sessions = McpSessionManager(client, token_provider, bus)
        sessions.register_servers(config.mcp_servers)

        await sessions.ensure_session(url)
        response = await sessions.send(url, {"jsonrpc": "2.0", ...})
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        token_provider: TokenProvider | None = None,
        bus: EventBus | None = None,
        use_cookies: bool = False,
    ):
        self._client = http_client
        self._tokens = token_provider or NoTokenProvider()
        self._bus = bus
        self._use_cookies = use_cookies
        self._sessions: dict[str, McpSession] = {}
        self._names: dict[str, str] = {}
        self._request_ids = itertools.count(1)

    # ------------------------------------------------------------------
    # Session map
    # ------------------------------------------------------------------

    def register_servers(self, servers: Iterable[McpServerInfo]) -> None:
        """Seed sessions from the agent config; existing entries are kept."""
        for server in servers:
            self._names[server.url] = server.name
            if server.url not in self._sessions:
                self._sessions[server.url] = McpSession(auth_status=server.auth_status)

    def _session(self, url: str) -> McpSession:
        return self._sessions.setdefault(url, McpSession())

    def session_id_of(self, url: str) -> str | None:
        session = self._sessions.get(url)
        return session.session_id if session else None

    def clear_session(self, url: str) -> None:
        """Forget the session id so the next ensure_session re-handshakes."""
        session = self._sessions.get(url)
        if session is not None:
            session.session_id = None

    def auth_status_of(self, url: str) -> AuthStatus:
        session = self._sessions.get(url)
        return session.auth_status if session else AuthStatus.CONNECTED

    def update_auth_status(self, url: str, status: AuthStatus) -> None:
        """Record ``status`` for ``url`` and notify observers."""
        self._session(url).auth_status = status
        name = self._names.get(url, url)

        logger.info(f"MCP server {name} auth status: {status.value}", mcp_server_url=url)
        if self._bus is not None:
            self._bus.publish(
                McpAuthStatusNotification(
                    mcp_server_url=url,
                    mcp_server_name=name,
                    auth_status=status,
                )
            )

    def sessions(self) -> dict[str, McpSession]:
        """Snapshot copy of the session map."""
        return {
            url: McpSession(session_id=session.session_id, auth_status=session.auth_status)
            for url, session in self._sessions.items()
        }

    def server_statuses(self, servers: Iterable[McpServerInfo]) -> list[McpServerStatus]:
        """Configured servers with their current auth status."""
        return [
            McpServerStatus(
                url=server.url,
                name=server.name,
                auth_status=self._sessions[server.url].auth_status
                if server.url in self._sessions
                else server.auth_status,
            )
            for server in servers
        ]

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def next_request_id(self) -> int:
        return next(self._request_ids)

    def build_headers(self, url: str, token: str | None) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": MCP_ACCEPT,
        }
        session_id = self.session_id_of(url)
        if session_id:
            headers[MCP_SESSION_HEADER] = session_id
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def send(self, url: str, payload: dict[str, Any]) -> httpx.Response:
        """POST one JSON-RPC message to ``url`` and read the full response.

        A fresh token is requested from the TokenProvider for every call.
        """
        token = await self._tokens.get_token(url)
        request = self._client.build_request("POST", url, json=payload, headers=self.build_headers(url, token))
        if not self._use_cookies:
            request.headers.pop("Cookie", None)
        return await self._client.send(request)

    async def ensure_session(self, url: str) -> None:
        """Run the initialize handshake unless a session id is already held.

        Raises:
            McpInitializationError: ``initialize`` returned a non-success status
        """
        if self.session_id_of(url):
            return

        initialize = JsonRpcRequest(
            id=self.next_request_id(),
            method=MCP_METHOD_INITIALIZE,
            params={
                "protocolVersion": MCP_PROTOCOL_VERSION,
                "capabilities": {},
                "clientInfo": {"name": SDK_NAME, "version": SDK_VERSION},
            },
        )
        response = await self.send(url, initialize.model_dump())

        if not response.is_success:
            if response.status_code == HTTP_STATUS_UNAUTHORIZED:
                self.update_auth_status(url, AuthStatus.NEEDS_AUTH)
            logger.warning(f"MCP initialize failed ({response.status_code}) for {url}", mcp_server_url=url)
            raise McpInitializationError(response.status_code, response.text, url)

        self._session(url).session_id = response.headers.get(MCP_SESSION_HEADER)
        logger.info(f"MCP session initialized for {self._names.get(url, url)}", mcp_server_url=url)

        notified = await self.send(url, JsonRpcNotification(method=MCP_METHOD_INITIALIZED).model_dump())
        if not notified.is_success:
            logger.debug(f"MCP initialized notification returned {notified.status_code}", mcp_server_url=url)


__all__ = ["McpSessionManager"]
