"""
Chat loop state machine for one send_message call.

    Idle -> Sending -> Streaming -> (ToolExecuting -> Streaming)* -> Done | Failed

Each response stream is consumed until it yields an explicit StreamOutcome.
A tool call ends the current stream; the tool result is POSTed to the
continuation endpoint and the new response is streamed in turn.

Every send_message is bracketed by loading/thinking notifications that are
always closed, whatever happens inside the loop.
"""

from __future__ import annotations

import asyncio
import time
import uuid

from collections.abc import Awaitable, Callable
from contextlib import aclosing
from datetime import UTC, datetime
from enum import Enum
from typing import Any

import httpx

from emcy_agent.core.cancellation import CancellationToken
from emcy_agent.core.constants import CHAT_ENDPOINT, TOOL_RESULT_ENDPOINT
from emcy_agent.core.conversation import Conversation
from emcy_agent.core.event_bus import EventBus
from emcy_agent.integrations.chat_api import ChatApiClient
from emcy_agent.integrations.sse_client import SseDecoder
from emcy_agent.integrations.tool_executor import ToolExecutor
from emcy_agent.models.error_models import AgentBusyError, EmcyAgentError, ErrorCode
from emcy_agent.models.event_models import (
    AgentNotification,
    ContentDeltaNotification,
    ErrorNotification,
    LoadingNotification,
    MessageEndNotification,
    MessageNotification,
    ThinkingNotification,
    ToolCallNotification,
    ToolErrorNotification,
    ToolResultNotification,
)
from emcy_agent.models.message_models import (
    AssistantMessage,
    BaseChatMessage,
    ToolCallMessage,
    ToolResultMessage,
    UserMessage,
)
from emcy_agent.models.stream_models import (
    ContentDelta,
    MessageEnd,
    MessageEnded,
    MessageStart,
    StreamClosed,
    StreamError,
    StreamFailed,
    StreamOutcome,
    ToolCallEvent,
    ToolCallPending,
)
from emcy_agent.utils.json_utils import stringify_result
from emcy_agent.utils.logger import logger


class LoopState(str, Enum):
    """Where the current (or last) send_message call is."""

    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"
    TOOL_EXECUTING = "tool_executing"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


def default_id_factory() -> str:
    return str(uuid.uuid4())


class ChatLoopController:
    """Drives the conversation against the chat API and MCP tools.

    Owns the Conversation and the cancellation token of the in-flight call.
    Not reentrant: a second send_message while one is running raises
    AgentBusyError.
    """

    def __init__(
        self,
        chat_api: ChatApiClient,
        executor: ToolExecutor,
        bus: EventBus,
        agent_id: str,
        *,
        conversation: Conversation | None = None,
        external_user_id: str | None = None,
        context: dict[str, Any] | None = None,
        before_send: Callable[[], Awaitable[None]] | None = None,
        id_factory: Callable[[], str] = default_id_factory,
        clock: Callable[[], float] = time.time,
    ):
        self._chat_api = chat_api
        self._executor = executor
        self._bus = bus
        self._agent_id = agent_id
        self._external_user_id = external_user_id
        self._context = context
        self._before_send = before_send
        self._id_factory = id_factory
        self._clock = clock

        self.conversation = conversation or Conversation()
        self._state = LoopState.IDLE
        self._token: CancellationToken | None = None

        # Per-call bookkeeping for the conversation turn log
        self._turn_text: list[str] = []
        self._turn_tools: list[str] = []

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._token is not None

    def cancel(self, reason: str = "Cancelled by caller") -> bool:
        """Cancel the in-flight call. Returns False when nothing is running."""
        if self._token is None:
            return False
        self._token.cancel(reason)
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _publish(self, event: AgentNotification) -> None:
        self._bus.publish(event)

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self._clock(), UTC)

    def _elapsed_ms(self, started: float) -> float:
        return max(0.0, (self._clock() - started) * 1000)

    def _append_and_publish(self, message: BaseChatMessage) -> None:
        self.conversation.append(message)
        self._publish(MessageNotification(message=message.model_copy(deep=True)))

    def _flush_assistant(self, buffer: list[str]) -> None:
        text = "".join(buffer)
        buffer.clear()
        if not text:
            return
        self._turn_text.append(text)
        self._append_and_publish(AssistantMessage(id=self._id_factory(), content=text, timestamp=self._now()))

    def _chat_body(self, text: str) -> dict[str, Any]:
        body: dict[str, Any] = {
            "agentId": self._agent_id,
            "conversationId": self.conversation.conversation_id,
            "message": text,
        }
        if self._external_user_id is not None:
            body["externalUserId"] = self._external_user_id
        if self._context is not None:
            body["context"] = self._context
        return body

    # ------------------------------------------------------------------
    # send_message
    # ------------------------------------------------------------------

    async def send_message(self, text: str) -> LoopState:
        """Run one user turn to completion and return the final state.

        Failures are published as ErrorNotification rather than raised;
        cancellation through cancel() returns LoopState.CANCELLED.

        Raises:
            AgentBusyError: Another send_message is in flight
        """
        if self._token is not None:
            raise AgentBusyError()

        token = CancellationToken()
        self._token = token
        self._turn_text = []
        self._turn_tools = []
        started = self._clock()

        try:
            self._state = LoopState.SENDING
            self._publish(LoadingNotification(loading=True))
            self._publish(ThinkingNotification(thinking=True))
            self._append_and_publish(UserMessage(id=self._id_factory(), content=text, timestamp=self._now()))

            async with token.cancellation_scope():
                if self._before_send is not None:
                    await self._before_send()
                await self._run(text, token)

        except asyncio.CancelledError:
            task = asyncio.current_task()
            if not token.is_cancelled or (task is not None and task.cancelling()):
                raise
            self._state = LoopState.CANCELLED
            logger.info(f"send_message cancelled: {token.cancel_reason}")

        except Exception as e:
            self._state = LoopState.FAILED
            message = e.message if isinstance(e, EmcyAgentError) else str(e) or type(e).__name__
            logger.error(f"send_message failed: {message}", exc_info=not isinstance(e, EmcyAgentError | httpx.HTTPError))
            self._publish(ErrorNotification(code=ErrorCode.SDK_ERROR.value, message=message))

        finally:
            self._token = None
            self._publish(LoadingNotification(loading=False))
            self._publish(ThinkingNotification(thinking=False))
            logger.log_conversation_turn(
                user_input=text,
                response="".join(self._turn_text),
                tool_calls=self._turn_tools,
                duration_ms=self._elapsed_ms(started),
                conversation_id=self.conversation.conversation_id,
            )

        return self._state

    async def _run(self, text: str, token: CancellationToken) -> None:
        endpoint = CHAT_ENDPOINT
        body = self._chat_body(text)

        while True:
            token.check()
            self._state = LoopState.STREAMING
            async with self._chat_api.open_stream(endpoint, body) as response:
                outcome = await self._consume(response, token)

            if isinstance(outcome, MessageEnded | StreamClosed):
                self._state = LoopState.DONE
                return

            if isinstance(outcome, StreamFailed):
                self._state = LoopState.FAILED
                return

            tool_call = outcome.tool_call
            self._state = LoopState.TOOL_EXECUTING
            result = await self._execute_tool(tool_call, token)
            if self._state is LoopState.FAILED:
                return

            self._publish(ThinkingNotification(thinking=True))
            endpoint = TOOL_RESULT_ENDPOINT
            body = {
                "conversationId": self.conversation.conversation_id,
                "toolCallId": tool_call.tool_call_id,
                "result": result,
            }

    async def _consume(self, response: httpx.Response, token: CancellationToken) -> StreamOutcome:
        """Consume one response stream until it produces an outcome."""
        decoder = SseDecoder()
        buffer: list[str] = []
        thinking_ended = False

        def end_thinking() -> None:
            nonlocal thinking_ended
            if not thinking_ended:
                thinking_ended = True
                self._publish(ThinkingNotification(thinking=False))

        async with aclosing(decoder.events(response.aiter_bytes(), token)) as events:
            async for event in events:
                token.check()

                if isinstance(event, MessageStart):
                    self.conversation.conversation_id = event.conversation_id

                elif isinstance(event, ContentDelta):
                    end_thinking()
                    buffer.append(event.text)
                    self._publish(ContentDeltaNotification(text=event.text))

                elif isinstance(event, ToolCallEvent):
                    end_thinking()
                    self._flush_assistant(buffer)
                    self._start_tool_call(event)
                    return ToolCallPending(tool_call=event)

                elif isinstance(event, MessageEnd):
                    self._flush_assistant(buffer)
                    self._publish(
                        MessageEndNotification(
                            input_tokens=event.input_tokens,
                            output_tokens=event.output_tokens,
                            tool_calls=event.tool_calls,
                        )
                    )
                    return MessageEnded(usage=event)

                elif isinstance(event, StreamError):
                    logger.warning(f"Chat stream error {event.code}: {event.message}")
                    self._publish(ErrorNotification(code=event.code, message=event.message))
                    return StreamFailed(error=event)

        token.check()
        if decoder.dropped_frames:
            logger.warning(f"Stream closed after dropping {decoder.dropped_frames} malformed frame(s)")

        # Closed without a terminal event: implicit message end, no usage to report
        self._flush_assistant(buffer)
        return StreamClosed()

    def _start_tool_call(self, event: ToolCallEvent) -> None:
        self._turn_tools.append(event.tool_name)
        self.conversation.append(
            ToolCallMessage(
                id=self._id_factory(),
                content=f"Calling {event.tool_name}...",
                timestamp=self._now(),
                tool_name=event.tool_name,
                tool_call_id=event.tool_call_id,
                start_time=self._clock(),
            )
        )
        self._publish(
            ToolCallNotification(
                tool_call_id=event.tool_call_id,
                tool_name=event.tool_name,
                arguments=event.arguments,
                mcp_server_url=event.mcp_server_url,
                mcp_server_name=event.mcp_server_name,
            )
        )

    async def _execute_tool(self, tool_call: ToolCallEvent, token: CancellationToken) -> Any:
        """Run the tool and record its outcome; sets FAILED on error."""
        entry = self.conversation.find_tool_call(tool_call.tool_call_id)
        started = entry.start_time if entry is not None else self._clock()

        try:
            result = await self._executor.execute(tool_call, token)
        except Exception as e:
            token.check()
            error = e.message if isinstance(e, EmcyAgentError) else str(e) or "Tool execution failed"
            duration = self._elapsed_ms(started)
            logger.warning(f"Tool {tool_call.tool_name} failed: {error}")

            if entry is not None:
                entry.fail(error, duration)
            self._publish(ToolErrorNotification(tool_call_id=tool_call.tool_call_id, error=error, duration_ms=duration))
            self._publish(ErrorNotification(code=ErrorCode.TOOL_ERROR.value, message=error))
            self._state = LoopState.FAILED
            return None

        token.check()
        duration = self._elapsed_ms(started)
        result_text = stringify_result(result)

        if entry is not None:
            entry.complete(result_text, duration)
        self._publish(ToolResultNotification(tool_call_id=tool_call.tool_call_id, result=result, duration_ms=duration))
        self.conversation.append(
            ToolResultMessage(
                id=self._id_factory(),
                content=result_text,
                timestamp=self._now(),
                tool_name=tool_call.tool_name,
                tool_call_id=tool_call.tool_call_id,
            )
        )
        return result


__all__ = ["ChatLoopController", "LoopState"]
