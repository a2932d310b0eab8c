"""
HTTP client factory utilities.
Centralizes httpx.AsyncClient creation with consistent configuration.
"""

from __future__ import annotations

import httpx

from emcy_agent.core.constants import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_POOL_TIMEOUT,
    DEFAULT_READ_TIMEOUT,
    DEFAULT_WRITE_TIMEOUT,
)
from emcy_agent.utils.http_logger import create_logging_client


def create_http_client(
    enable_logging: bool = False,
    read_timeout: float | None = None,
    connect_timeout: float | None = None,
    cookies: dict[str, str] | None = None,
) -> httpx.AsyncClient:
    """Create HTTP client with proper timeouts for streaming.

    The chat stream can sit idle while the model is thinking, so the read
    timeout is much longer than the others.

    Args:
        enable_logging: Enable HTTP request/response logging
        read_timeout: Read timeout in seconds (default: 600s)
        connect_timeout: Connect timeout in seconds (default: 30s)
        cookies: Initial cookies for cookie-based MCP auth

    Returns:
        Configured httpx.AsyncClient
    """
    timeout = httpx.Timeout(
        connect=connect_timeout if connect_timeout is not None else DEFAULT_CONNECT_TIMEOUT,
        read=read_timeout if read_timeout is not None else DEFAULT_READ_TIMEOUT,
        write=DEFAULT_WRITE_TIMEOUT,
        pool=DEFAULT_POOL_TIMEOUT,
    )

    if enable_logging:
        client: httpx.AsyncClient = create_logging_client(enabled=True, timeout=timeout, cookies=cookies)
        return client

    return httpx.AsyncClient(timeout=timeout, cookies=cookies)
