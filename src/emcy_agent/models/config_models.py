"""
Agent configuration models.

AgentConfig mirrors the JSON returned by
GET /api/v1/{workspaces|agents}/{agentId}/config. Wire names are camelCase;
Python attributes are snake_case. All models are frozen: the config only
changes through a fresh fetch.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from emcy_agent.models.mcp_models import AuthStatus


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class AgentToolSchema(_WireModel):
    """A tool declared on the agent."""

    name: str
    description: str | None = None
    input_schema_json: str | None = Field(default=None, description="JSON schema of the tool input, as a string")


class WidgetConfig(_WireModel):
    """Optional display hints for a chat widget."""

    theme: str | None = None
    position: str | None = None
    title: str | None = None
    placeholder: str | None = None
    welcome_message: str | None = None


class McpServerInfo(_WireModel):
    """An MCP server the agent's tools live on."""

    id: str | None = None
    name: str
    url: str
    auth_status: AuthStatus = AuthStatus.CONNECTED
    tools: tuple[AgentToolSchema, ...] = ()


class AgentConfig(_WireModel):
    """Server-provided agent configuration."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "workspaceId": "ws_123",
                "name": "Support Agent",
                "mcpServers": [
                    {"id": "srv_1", "name": "Orders", "url": "https://mcp.example.com/mcp", "authStatus": "connected"}
                ],
                "tools": [{"name": "get_order", "description": "Look up an order"}],
                "widgetConfig": None,
            }
        },
    )

    workspace_id: str | None = None
    name: str | None = None
    # Deprecated single-server field, still honored as a tool-call fallback
    mcp_server_url: str | None = None
    mcp_servers: tuple[McpServerInfo, ...] = ()
    tools: tuple[AgentToolSchema, ...] = ()
    widget_config: WidgetConfig | None = None

    @field_validator("mcp_servers", "tools", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        """The backend sends null instead of an empty list for some workspaces."""
        return () if v is None else v

    def default_mcp_server_url(self) -> str | None:
        """URL used for tool calls that do not name a server."""
        if self.mcp_server_url:
            return self.mcp_server_url
        if len(self.mcp_servers) == 1:
            return self.mcp_servers[0].url
        return None

    def server_name_for(self, url: str) -> str | None:
        for server in self.mcp_servers:
            if server.url == url:
                return server.name
        return None

    def to_dict(self) -> dict[str, Any]:
        """Wire-format (camelCase) dictionary."""
        return self.model_dump(by_alias=True)
