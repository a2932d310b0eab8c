"""Tests for HTTP request/response logging utilities.

Tests HTTPLogger class and create_logging_client function.
"""

from __future__ import annotations

import json

from unittest.mock import Mock, patch

import httpx
import pytest

from emcy_agent.utils.http_logger import HTTPLogger, create_logging_client


def make_request(method: str, url: str, headers: dict[str, str], content: bytes) -> Mock:
    mock_request = Mock(spec=httpx.Request)
    mock_request.method = method
    mock_request.url = httpx.URL(url)
    mock_request.headers = headers
    mock_request.content = content
    return mock_request


class TestHTTPLogger:
    """Tests for HTTPLogger class."""

    def test_init_enabled(self) -> None:
        """Test HTTPLogger initialization with logging enabled."""
        logger = HTTPLogger(enabled=True)

        assert logger.enabled is True
        assert logger._request_data == {}

    @pytest.mark.asyncio
    async def test_log_request_when_disabled(self) -> None:
        """Test log_request does nothing when disabled."""
        logger = HTTPLogger(enabled=False)

        with patch("emcy_agent.utils.http_logger.logger") as mock_logger:
            await logger.log_request(Mock(spec=httpx.Request))

            mock_logger.info.assert_not_called()

    @pytest.mark.asyncio
    async def test_log_request_with_json_body(self) -> None:
        """Test logging a JSON-RPC request to an MCP server."""
        logger = HTTPLogger(enabled=True)
        payload = {"jsonrpc": "2.0", "id": 1, "method": "tools/call", "params": {"name": "Echo"}}
        request = make_request(
            "POST",
            "https://mcp.example.test/mcp",
            {"content-type": "application/json"},
            json.dumps(payload).encode("utf-8"),
        )

        with patch("emcy_agent.utils.http_logger.logger") as mock_logger:
            await logger.log_request(request)

            mock_logger.info.assert_called_once()
            call_args = mock_logger.info.call_args
            assert "HTTP Request" in call_args[0][0]
            assert call_args[1]["http_request"] is True
            assert call_args[1]["method"] == "POST"
            assert call_args[1]["payload"] == payload

    @pytest.mark.asyncio
    async def test_log_request_sanitizes_headers(self) -> None:
        """Test bearer tokens, cookies and MCP session ids are masked."""
        logger = HTTPLogger(enabled=True)
        request = make_request(
            "POST",
            "https://mcp.example.test/mcp",
            {
                "authorization": "Bearer user-token-123456",
                "cookie": "sid=abcdefghij",
                "mcp-session-id": "session-secret-42",
                "content-type": "application/json",
            },
            b"{}",
        )

        with patch("emcy_agent.utils.http_logger.logger") as mock_logger:
            await logger.log_request(request)

            headers = mock_logger.info.call_args[1]["headers"]
            assert headers["authorization"] == "***3456"
            assert headers["cookie"] == "***ghij"
            assert headers["mcp-session-id"] == "***t-42"
            assert headers["content-type"] == "application/json"

    @pytest.mark.asyncio
    async def test_log_request_invalid_body(self) -> None:
        """Test an undecodable body logs a warning instead of raising."""
        logger = HTTPLogger(enabled=True)
        request = make_request("POST", "https://api.emcy.test/api/v1/chat", {}, b"not json")

        with patch("emcy_agent.utils.http_logger.logger") as mock_logger:
            await logger.log_request(request)

            mock_logger.warning.assert_called_once()
            mock_logger.info.assert_not_called()

    @pytest.mark.asyncio
    async def test_log_response_correlates_request(self) -> None:
        """Test the response log carries the method and URL of its request."""
        logger = HTTPLogger(enabled=True)
        request = make_request("GET", "https://api.emcy.test/api/v1/workspaces/a/config", {}, b"")
        response = Mock(spec=httpx.Response)
        response.request = request
        response.status_code = 200
        response.headers = {"content-type": "application/json"}

        with patch("emcy_agent.utils.http_logger.logger") as mock_logger:
            await logger.log_request(request)
            await logger.log_response(response)

            call_args = mock_logger.info.call_args
            assert call_args[0][0] == "HTTP Response: 200 GET https://api.emcy.test/api/v1/workspaces/a/config"
            assert call_args[1]["status_code"] == 200
        assert logger._request_data == {}

    def test_sanitize_short_values(self) -> None:
        """Test values of four characters or fewer are fully masked."""
        logger = HTTPLogger()

        assert logger._sanitize_headers({"Authorization": "abc"}) == {"Authorization": "***"}


class TestCreateLoggingClient:
    """Tests for create_logging_client function."""

    @pytest.mark.asyncio
    async def test_hooks_installed(self) -> None:
        """Test the client has request and response hooks."""
        client = create_logging_client(enabled=True, cookies={"sid": "1"})

        assert len(client.event_hooks["request"]) == 1
        assert len(client.event_hooks["response"]) == 1
        assert client.cookies.get("sid") == "1"
        await client.aclose()
