"""
Client for the Emcy chat API.

- GET  /api/v1/{workspaces|agents}/{agentId}/config   agent configuration
- POST /api/v1/chat                                    first turn (SSE response)
- POST /api/v1/chat/tool-result                        continuation (SSE response)
"""

from __future__ import annotations

import json

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from pydantic import ValidationError

from emcy_agent.core.constants import API_PREFIX, ConfigScope
from emcy_agent.models.config_models import AgentConfig
from emcy_agent.models.error_models import ChatApiError, ErrorCode
from emcy_agent.utils.logger import logger


def _error_text(body: str, status_code: int, keys: tuple[str, ...]) -> str:
    """First non-empty ``keys`` field of a JSON error body, else ``HTTP {status}``."""
    try:
        payload = json.loads(body) if body else None
    except json.JSONDecodeError:
        payload = None

    if isinstance(payload, dict):
        for key in keys:
            value = payload.get(key)
            if value:
                return str(value)
    return f"HTTP {status_code}"


class ChatApiClient:
    """Thin async wrapper around the chat API endpoints."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        service_url: str,
        api_key: str,
        config_scope: ConfigScope = "workspaces",
    ):
        self._client = http_client
        self._base_url = f"{service_url.rstrip('/')}{API_PREFIX}"
        self._api_key = api_key
        self._config_scope = config_scope

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }

    async def fetch_config(self, agent_id: str) -> AgentConfig:
        """Fetch and validate the agent configuration.

        Raises:
            ChatApiError: Non-2xx response or a body that is not a valid config
        """
        url = f"{self._base_url}/{self._config_scope}/{agent_id}/config"
        response = await self._client.get(url, headers=self._headers())

        if not response.is_success:
            message = _error_text(response.text, response.status_code, ("message",))
            raise ChatApiError(
                message,
                status_code=response.status_code,
                code=ErrorCode.CONFIG_FETCH_FAILED,
                body=response.text,
            )

        try:
            config = AgentConfig.model_validate(response.json())
        except (json.JSONDecodeError, ValidationError) as e:
            raise ChatApiError(
                f"Invalid agent config response: {e}",
                status_code=response.status_code,
                code=ErrorCode.CONFIG_FETCH_FAILED,
                body=response.text,
            ) from e

        logger.info(
            f"Loaded agent config '{config.name or agent_id}' with {len(config.mcp_servers)} MCP server(s)",
            agent_id=agent_id,
        )
        return config

    @asynccontextmanager
    async def open_stream(self, endpoint: str, body: dict[str, Any]) -> AsyncIterator[httpx.Response]:
        """POST ``body`` to ``endpoint`` and yield the streaming response.

        The response is closed when the block exits.

        Raises:
            ChatApiError: Non-2xx response (body read for the error text)
        """
        url = f"{self._base_url}/{endpoint}"
        async with self._client.stream("POST", url, json=body, headers=self._headers()) as response:
            if not response.is_success:
                text = (await response.aread()).decode("utf-8", errors="replace")
                message = _error_text(text, response.status_code, ("error", "message"))
                raise ChatApiError(message, status_code=response.status_code, body=text)

            yield response


__all__ = ["ChatApiClient"]
