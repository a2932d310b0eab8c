"""
Credential capability for MCP requests.

The agent never stores MCP credentials itself: before every MCP request it
asks its TokenProvider for a bearer token for that server.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable


@runtime_checkable
class TokenProvider(Protocol):
    """Supplies bearer tokens for MCP servers."""

    async def get_token(self, mcp_server_url: str | None) -> str | None:
        """Return a token for ``mcp_server_url``, or None to send no Authorization header."""
        ...


class NoTokenProvider:
    """Default provider: never supplies a token."""

    async def get_token(self, mcp_server_url: str | None) -> str | None:
        return None


class CallbackTokenProvider:
    """Adapts an async callable ``(mcp_server_url) -> token | None``."""

    def __init__(self, callback: Callable[[str | None], Awaitable[str | None]]):
        self._callback = callback

    async def get_token(self, mcp_server_url: str | None) -> str | None:
        return await self._callback(mcp_server_url)


__all__ = ["CallbackTokenProvider", "NoTokenProvider", "TokenProvider"]
