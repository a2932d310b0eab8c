"""
Models Module - Data Models and Type Definitions
=================================================

Provides Pydantic models for type safety and runtime validation.
All models use Pydantic v2.

Modules:
    config_models: AgentConfig fetched from the chat API (camelCase wire format)
    message_models: Transcript entries (user, assistant, tool_call, tool_result)
    stream_models: Raw SSE frames, typed stream events and stream outcomes
    event_models: Notifications published to observers
    mcp_models: MCP session state and JSON-RPC envelopes
    error_models: Error codes and the SDK exception hierarchy
"""
