"""Tests for logger module.

Tests logging configuration, handlers, and structured logging.
"""

from __future__ import annotations

import logging

from pathlib import Path
from unittest.mock import patch

from emcy_agent.utils.logger import AgentLogger, ConversationFilter, ConversationTurn, ErrorFilter, setup_logging


def make_record(level: int) -> logging.LogRecord:
    return logging.LogRecord(name="test", level=level, pathname="", lineno=0, msg="test", args=(), exc_info=None)


class TestConversationTurn:
    """Tests for ConversationTurn dataclass."""

    def test_conversation_turn_basic(self) -> None:
        """Test basic ConversationTurn creation."""
        turn = ConversationTurn(user_input="Hello", response="Hi there!")

        assert turn.tool_calls == []
        assert turn.duration_ms is None
        assert turn.conversation_id == ""
        assert turn.timestamp is not None


class TestFilters:
    """Tests for ConversationFilter and ErrorFilter."""

    def test_conversation_filter(self) -> None:
        """Test INFO and above pass, DEBUG is blocked."""
        conv_filter = ConversationFilter()

        assert conv_filter.filter(make_record(logging.INFO)) is True
        assert conv_filter.filter(make_record(logging.DEBUG)) is False

    def test_error_filter(self) -> None:
        """Test only ERROR and above pass."""
        error_filter = ErrorFilter()

        assert error_filter.filter(make_record(logging.ERROR)) is True
        assert error_filter.filter(make_record(logging.WARNING)) is False


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_console_only_by_default(self) -> None:
        """Test no file handlers without a log directory."""
        logger = setup_logging("emcy-test-console", debug=False)

        assert len(logger.handlers) == 1
        assert logger.handlers[0].level == logging.INFO

    def test_debug_level(self) -> None:
        """Test debug lowers the console level."""
        logger = setup_logging("emcy-test-debug", debug=True)

        assert logger.handlers[0].level == logging.DEBUG

    def test_file_handlers(self, tmp_path: Path) -> None:
        """Test JSON file handlers are attached when a directory is given."""
        logger = setup_logging("emcy-test-files", debug=False, log_dir=tmp_path / "logs")

        assert len(logger.handlers) == 3
        assert (tmp_path / "logs").is_dir()
        for handler in logger.handlers:
            handler.close()

    def test_setup_is_idempotent(self) -> None:
        """Test calling setup twice does not duplicate handlers."""
        setup_logging("emcy-test-repeat", debug=False)
        logger = setup_logging("emcy-test-repeat", debug=False)

        assert len(logger.handlers) == 1


class TestAgentLogger:
    """Tests for AgentLogger."""

    def test_extra_fields(self) -> None:
        """Test keyword arguments become record extras with the session id."""
        agent_logger = AgentLogger("emcy-test-extra")

        with patch.object(agent_logger, "logger") as mock_logger:
            agent_logger.info("hello", agent_id="agent-1")

            extra = mock_logger.info.call_args[1]["extra"]
            assert extra["agent_id"] == "agent-1"
            assert extra["session_id"] == agent_logger.session_id

    def test_conversation_turn_hides_content(self) -> None:
        """Test content is hidden unless content logging is enabled."""
        agent_logger = AgentLogger("emcy-test-turn")

        with (
            patch.object(agent_logger, "_should_log_content", return_value=False),
            patch.object(agent_logger, "logger") as mock_logger,
        ):
            agent_logger.log_conversation_turn(
                user_input="my email is a@b.com",
                response="ok",
                tool_calls=["get_order"],
                duration_ms=1500.0,
                conversation_id="conv-1",
            )

            message = mock_logger.info.call_args[0][0]
            extra = mock_logger.info.call_args[1]["extra"]
            assert "[HIDDEN]" in message
            assert "[1 tools]" in message
            assert "[1500ms]" in message
            assert extra["conversation_id"] == "conv-1"
            assert extra["tool_names"] == ["get_order"]
            assert extra["ms"] == 1500

    def test_conversation_turn_redacts_content(self) -> None:
        """Test previews are redacted when content logging is enabled."""
        agent_logger = AgentLogger("emcy-test-redact")

        with (
            patch.object(agent_logger, "_should_log_content", return_value=True),
            patch.object(agent_logger, "logger") as mock_logger,
        ):
            agent_logger.log_conversation_turn(user_input="mail a@b.com", response="token: abc123")

            message = mock_logger.info.call_args[0][0]
            assert "[EMAIL]" in message
            assert "abc123" not in message

    def test_tool_call_hidden(self) -> None:
        """Test tool call logs hide arguments by default."""
        agent_logger = AgentLogger("emcy-test-tool")

        with (
            patch.object(agent_logger, "_should_log_content", return_value=False),
            patch.object(agent_logger, "logger") as mock_logger,
        ):
            agent_logger.log_tool_call("get_order", {"id": 42}, "shipped", mcp_server_url="https://mcp.test")

            message = mock_logger.info.call_args[0][0]
            extra = mock_logger.info.call_args[1]["extra"]
            assert message == "Tool call: get_order(...) -> [HIDDEN]"
            assert extra["func"] == "get_order"
            assert extra["mcp_server_url"] == "https://mcp.test"

    def test_redact_bearer(self) -> None:
        """Test bearer tokens are redacted."""
        agent_logger = AgentLogger("emcy-test-bearer")

        assert agent_logger._redact_content("Authorization: Bearer abc.def") == "Authorization: Bearer [REDACTED]"
