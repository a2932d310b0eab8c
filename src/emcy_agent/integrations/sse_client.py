"""
Server-Sent Events decoding for the chat API stream.

Framing rules:
- Events are separated by a blank line
- ``event: `` sets the event type, ``data: `` sets the payload (last wins)
- The payload is a JSON document; malformed payloads are dropped

Decoding is incremental and independent of how the byte stream is chunked.
A decoder sequence is bound to one response body and is not restartable.
"""

from __future__ import annotations

import codecs
import json

from collections.abc import AsyncIterable, AsyncIterator
from contextlib import aclosing

from pydantic import ValidationError

from emcy_agent.core.cancellation import CancellationToken
from emcy_agent.models.stream_models import STREAM_EVENT_MODELS, SseEvent, StreamEvent
from emcy_agent.utils.logger import logger

EVENT_PREFIX = "event: "
DATA_PREFIX = "data: "


class SseDecoder:
    """Turns a byte stream into SSE frames and typed stream events.

    ``dropped_frames`` counts frames skipped because their payload was not
    valid JSON or did not match the event's schema.
    """

    def __init__(self) -> None:
        self.dropped_frames = 0

    async def frames(
        self,
        chunks: AsyncIterable[bytes],
        token: CancellationToken | None = None,
    ) -> AsyncIterator[SseEvent]:
        """Yield raw ``{type, data}`` frames from ``chunks``.

        The chunk iterator is closed when this sequence finishes, is
        cancelled, or is abandoned by the consumer.
        """
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        buffer = ""

        try:
            async for chunk in chunks:
                if token is not None and token.is_cancelled:
                    return

                buffer = (buffer + decoder.decode(chunk)).replace("\r\n", "\n")
                *blocks, buffer = buffer.split("\n\n")

                for block in blocks:
                    frame = self._parse_block(block)
                    if frame is not None:
                        yield frame
                    # The consumer may have cancelled while handling the frame
                    if token is not None and token.is_cancelled:
                        return
        finally:
            aclose = getattr(chunks, "aclose", None)
            if aclose is not None:
                await aclose()

    async def events(
        self,
        chunks: AsyncIterable[bytes],
        token: CancellationToken | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Yield typed stream events; unknown event types are skipped."""
        async with aclosing(self.frames(chunks, token)) as frames:
            async for frame in frames:
                model = STREAM_EVENT_MODELS.get(frame.type)
                if model is None:
                    logger.debug(f"Ignoring unknown stream event type: {frame.type}")
                    continue

                try:
                    event = model.model_validate(frame.data)
                except ValidationError as e:
                    self.dropped_frames += 1
                    logger.warning(f"Dropping {frame.type} event with invalid payload: {e.error_count()} error(s)")
                    continue

                yield event  # type: ignore[misc]

    def _parse_block(self, block: str) -> SseEvent | None:
        event_type = ""
        event_data = ""

        for line in block.split("\n"):
            if line.startswith(EVENT_PREFIX):
                event_type = line[len(EVENT_PREFIX) :]
            elif line.startswith(DATA_PREFIX):
                event_data = line[len(DATA_PREFIX) :]

        if not event_type or not event_data:
            return None

        try:
            data = json.loads(event_data)
        except json.JSONDecodeError:
            self.dropped_frames += 1
            logger.warning(f"Dropping {event_type} event with malformed JSON payload")
            return None

        return SseEvent(type=event_type, data=data)


def parse_sse_stream(
    chunks: AsyncIterable[bytes],
    token: CancellationToken | None = None,
) -> AsyncIterator[SseEvent]:
    """Yield raw SSE frames from a byte stream."""
    return SseDecoder().frames(chunks, token)


def decode_stream_events(
    chunks: AsyncIterable[bytes],
    token: CancellationToken | None = None,
) -> AsyncIterator[StreamEvent]:
    """Yield typed chat stream events from a byte stream."""
    return SseDecoder().events(chunks, token)


def join_sse_data(text: str) -> str:
    """Concatenate the ``data: `` payloads of an SSE-framed body.

    MCP servers answering with ``text/event-stream`` put one JSON-RPC
    message in the data lines; the joined string is that document. Only
    LF ends a line, since U+2028 and U+2029 may appear raw inside JSON.
    """
    lines = (line.removesuffix("\r") for line in text.split("\n"))
    return "".join(line[len(DATA_PREFIX) :] for line in lines if line.startswith(DATA_PREFIX))
