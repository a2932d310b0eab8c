"""
Core Module - Orchestration and Configuration
=============================================

Provides the agent orchestrator, the chat loop state machine and the
in-process state it owns.

Modules:
    agent: EmcyAgent and EmcyAgentConfig, the public entry point
    chat_loop: send_message state machine (stream, tool call, resume)
    conversation: Transcript store handing out copies only
    event_bus: Typed publish/subscribe keyed by notification class
    cancellation: CancellationToken shared by one send_message call
    constants: Protocol constants and pydantic-settings configuration

Chat Loop (chat_loop.py):
    States: idle -> sending -> streaming -> (tool_executing -> streaming)* -> done | failed

    Brackets every call with loading/thinking notifications that are
    always closed, including on errors and cancellation.

Configuration (constants.py):
    Settings are read from EMCY_* environment variables or a .env file and
    cached through get_settings(); reload_settings() re-reads them.
"""
