"""
HTTP request/response logging for debugging chat API and MCP traffic.

Captures request payloads and response metadata using httpx event hooks.
Streaming responses (the chat SSE stream) are never consumed by the hooks.
"""

from __future__ import annotations

import json

from typing import Any

import httpx

from emcy_agent.utils.logger import logger

#: Headers whose values are masked before logging.
SENSITIVE_HEADERS = ("authorization", "cookie", "set-cookie", "mcp-session-id")


class HTTPLogger:
    """Logs HTTP requests and responses for debugging."""

    def __init__(self, enabled: bool = True):
        """Initialize HTTP logger.

        Args:
            enabled: Whether to enable HTTP logging (default: True)
        """
        self.enabled = enabled
        self._request_data: dict[Any, dict[str, Any]] = {}

    async def log_request(self, request: httpx.Request) -> None:
        """Log outgoing HTTP request.

        Args:
            request: The httpx request object
        """
        if not self.enabled:
            return

        try:
            body_str = request.content.decode("utf-8") if request.content else ""
            body_json = json.loads(body_str) if body_str else {}

            # Store request data for correlation with response
            self._request_data[id(request)] = {
                "method": request.method,
                "url": str(request.url),
            }

            logger.info(
                f"HTTP Request: {request.method} {request.url}",
                http_request=True,
                method=request.method,
                url=str(request.url),
                headers=self._sanitize_headers(dict(request.headers)),
                payload=body_json,
            )

            if body_json:
                logger.debug(f"Request Payload:\n{json.dumps(body_json, indent=2)}")

        except (UnicodeDecodeError, json.JSONDecodeError, httpx.RequestNotRead) as e:
            logger.warning(f"Could not decode HTTP request body for logging: {e}")

    async def log_response(self, response: httpx.Response) -> None:
        """Log HTTP response metadata.

        Args:
            response: The httpx response object
        """
        if not self.enabled:
            return

        request_data = self._request_data.pop(id(response.request), {})

        logger.info(
            f"HTTP Response: {response.status_code} "
            f"{request_data.get('method', 'UNKNOWN')} {request_data.get('url', 'UNKNOWN')}",
            http_response=True,
            status_code=response.status_code,
            headers=self._sanitize_headers(dict(response.headers)),
            request=request_data,
        )

    def _sanitize_headers(self, headers: dict[str, str]) -> dict[str, str]:
        """Remove sensitive data from headers.

        Args:
            headers: Original headers dictionary

        Returns:
            Sanitized headers with sensitive values redacted
        """
        sanitized = headers.copy()
        for key, value in headers.items():
            if key.lower() in SENSITIVE_HEADERS:
                # Show last 4 chars only
                sanitized[key] = f"***{value[-4:]}" if len(value) > 4 else "***"
        return sanitized


def create_logging_client(
    enabled: bool = True,
    timeout: httpx.Timeout | None = None,
    cookies: dict[str, str] | None = None,
) -> httpx.AsyncClient:
    """Create an httpx client with request/response logging.

    Args:
        enabled: Whether to enable HTTP logging
        timeout: Optional timeout configuration
        cookies: Optional initial cookie jar contents

    Returns:
        Configured httpx.AsyncClient with event hooks
    """
    http_logger = HTTPLogger(enabled=enabled)

    event_hooks: dict[str, list[Any]] = {
        "request": [http_logger.log_request],
        "response": [http_logger.log_response],
    }

    return httpx.AsyncClient(event_hooks=event_hooks, timeout=timeout, cookies=cookies)
