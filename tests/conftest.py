"""Shared test fixtures for the Emcy Agent SDK test suite.

Provides scripted fakes for the chat API and an MCP server, both served
through httpx.MockTransport so no network is touched.
"""

from __future__ import annotations

import asyncio
import itertools
import json

from collections.abc import Callable, Generator
from typing import Any

import httpx
import pytest

from emcy_agent.core.agent import EmcyAgent, EmcyAgentConfig
from emcy_agent.core.constants import clear_settings_cache

SERVICE_URL = "https://api.emcy.test"
MCP_URL = "https://mcp.example.test/mcp"
OTHER_MCP_URL = "https://tools.example.test/mcp"


# ============================================================================
# Test Isolation: Settings Cache
# ============================================================================


@pytest.fixture(autouse=True)
def clear_settings() -> Generator[None, None, None]:
    """Clear cached settings between tests so env patches take effect."""
    clear_settings_cache()
    yield
    clear_settings_cache()


# ============================================================================
# SSE helpers
# ============================================================================


def encode_sse(events: list[tuple[str, Any]]) -> bytes:
    """Encode ``(event_type, data)`` pairs as an SSE body."""
    return "".join(f"event: {event_type}\ndata: {json.dumps(data)}\n\n" for event_type, data in events).encode("utf-8")


class BlockingStream(httpx.AsyncByteStream):
    """Yields its chunks, then blocks until released (or the task is cancelled)."""

    def __init__(self, chunks: list[bytes]):
        self.chunks = chunks
        self.release = asyncio.Event()
        self.closed = False

    async def __aiter__(self):  # type: ignore[override]
        for chunk in self.chunks:
            yield chunk
        await self.release.wait()

    async def aclose(self) -> None:
        self.closed = True


# ============================================================================
# Fake chat API
# ============================================================================


def make_agent_config(**overrides: Any) -> dict[str, Any]:
    """Wire-format (camelCase) agent config with one MCP server."""
    config: dict[str, Any] = {
        "workspaceId": "ws_1",
        "name": "Support Agent",
        "mcpServers": [
            {
                "id": "srv_1",
                "name": "Orders",
                "url": MCP_URL,
                "authStatus": "connected",
                "tools": [{"name": "get_order", "description": "Look up an order"}],
            }
        ],
        "tools": [{"name": "get_order", "description": "Look up an order", "inputSchemaJson": "{}"}],
        "widgetConfig": {"title": "Help", "welcomeMessage": "Hi there"},
    }
    config.update(overrides)
    return config


class FakeChatBackend:
    """Scripted chat API: one queued response per chat / tool-result POST."""

    def __init__(self, config: dict[str, Any] | None = None):
        self.config = config if config is not None else make_agent_config()
        self.config_status = 200
        self.responses: list[httpx.Response] = []
        self.requests: list[tuple[str, dict[str, Any]]] = []
        self.config_requests: list[httpx.Request] = []

    def add_turn(self, *events: tuple[str, Any]) -> None:
        self.responses.append(
            httpx.Response(200, headers={"content-type": "text/event-stream"}, content=encode_sse(list(events)))
        )

    def add_response(self, response: httpx.Response) -> None:
        self.responses.append(response)

    @property
    def paths(self) -> list[str]:
        return [path for path, _ in self.requests]

    def handle(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET" and request.url.path.endswith("/config"):
            self.config_requests.append(request)
            if self.config_status != 200:
                return httpx.Response(self.config_status, json={"message": "Agent not found"})
            return httpx.Response(200, json=self.config)

        self.requests.append((request.url.path, json.loads(request.content)))
        if not self.responses:
            return httpx.Response(500, json={"error": "No scripted response"})
        return self.responses.pop(0)


# ============================================================================
# Fake MCP server
# ============================================================================


class FakeMcpServer:
    """Streamable-HTTP MCP server issuing session ids ``session-1``, ``session-2``, ..."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.initialize_count = 0
        self.initialize_status = 200
        self.tool_calls: list[dict[str, Any]] = []
        self.tool_responses: list[httpx.Response] = []

    def methods(self) -> list[str]:
        return [json.loads(request.content)["method"] for request in self.requests]

    def queue_tool_response(self, status_code: int = 200, **kwargs: Any) -> None:
        self.tool_responses.append(httpx.Response(status_code, **kwargs))

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        body = json.loads(request.content)
        method = body.get("method")

        if method == "initialize":
            self.initialize_count += 1
            if self.initialize_status != 200:
                return httpx.Response(self.initialize_status, text="Unauthorized")
            return httpx.Response(
                200,
                headers={"mcp-session-id": f"session-{self.initialize_count}"},
                json={"jsonrpc": "2.0", "id": body["id"], "result": {"protocolVersion": "2025-03-26"}},
            )

        if method == "notifications/initialized":
            return httpx.Response(202)

        if method == "tools/call":
            self.tool_calls.append(body)
            if self.tool_responses:
                return self.tool_responses.pop(0)
            return httpx.Response(
                200,
                json={"jsonrpc": "2.0", "id": body["id"], "result": {"content": [{"type": "text", "text": "ok"}]}},
            )

        return httpx.Response(400, text=f"Unknown method {method}")


# ============================================================================
# Fixtures
# ============================================================================


class FakeClock:
    """Deterministic epoch-seconds clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def chat_backend() -> FakeChatBackend:
    return FakeChatBackend()


@pytest.fixture
def mcp_server() -> FakeMcpServer:
    return FakeMcpServer()


@pytest.fixture
def http_client(chat_backend: FakeChatBackend, mcp_server: FakeMcpServer) -> httpx.AsyncClient:
    """AsyncClient routing the MCP host to the fake server, everything else to the chat API."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host in {httpx.URL(MCP_URL).host, httpx.URL(OTHER_MCP_URL).host}:
            return mcp_server.handle(request)
        return chat_backend.handle(request)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def id_factory() -> Callable[[], str]:
    counter = itertools.count(1)
    return lambda: f"msg-{next(counter)}"


@pytest.fixture
def agent_config() -> EmcyAgentConfig:
    return EmcyAgentConfig(api_key="test-api-key", agent_id="agent-1", agent_service_url=SERVICE_URL)


@pytest.fixture
def agent(
    agent_config: EmcyAgentConfig,
    http_client: httpx.AsyncClient,
    id_factory: Callable[[], str],
    clock: FakeClock,
) -> EmcyAgent:
    return EmcyAgent(agent_config, http_client=http_client, id_factory=id_factory, clock=clock)


class Recorder:
    """Collects notifications delivered to it, in order."""

    def __init__(self) -> None:
        self.events: list[Any] = []

    def __call__(self, event: Any) -> None:
        self.events.append(event)

    def of_type(self, event_type: type) -> list[Any]:
        return [event for event in self.events if isinstance(event, event_type)]


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()
