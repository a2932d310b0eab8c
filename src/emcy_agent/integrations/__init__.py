"""
Integrations Module - External System Integrations
===================================================

Provides the HTTP-facing half of the SDK: the chat API client, SSE stream
decoding, and MCP session management and tool execution.

Modules:
    sse_client: Incremental SSE framing and typed stream event decoding
    chat_api: Config fetch, chat turn and tool-result continuation requests
    credentials: TokenProvider capability used for MCP bearer tokens
    mcp_session: Per-server MCP session map and initialize handshake
    tool_executor: tools/call with single retry on expired session

Key Components:

SSE Client (sse_client.py):
    - Chunk-boundary independent framing (incremental UTF-8 decoding)
    - Malformed frames are dropped, logged and counted
    - The underlying byte iterator is always closed

MCP Session Manager (mcp_session.py):
    - initialize / notifications/initialized handshake per server URL
    - Mcp-Session-Id tracking and auth status notifications
    - Bearer token requested from the TokenProvider for every request

Tool Executor (tool_executor.py):
    - JSON or text/event-stream responses
    - 404 with a live session: re-handshake and retry once
    - 401: server marked needs_auth; next success marks it connected
"""
