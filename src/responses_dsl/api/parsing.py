"""Streaming parser that turns Server-Sent Events text into ResponseEvent objects."""

from __future__ import annotations

import codecs
import json
import logging
import re
from collections.abc import AsyncIterator, Iterator
from dataclasses import dataclass

from responses_dsl.api.errors import DecodingFailedError, JSONParsingError, NetworkError
from responses_dsl.api.events import KNOWN_EVENT_TYPES, TERMINAL_EVENTS, ResponseEvent, UnknownEvent, decode_event

_LOGGER = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True, slots=True)
class ServerSentEvent:
    """One dispatched SSE block before its payload is decoded."""

    event: str | None
    data: str


class SSEDecoder:
    """Incremental SSE framing.

    Accepts text or bytes in arbitrary chunk sizes, splits lines on ``\\n``,
    ``\\r\\n`` or ``\\r`` and dispatches an event on each blank line. Only the
    event being assembled is buffered.
    """

    def __init__(self) -> None:
        self._utf8 = codecs.getincrementaldecoder("utf-8")()
        self._partial = ""
        self._pending_cr = False
        self._event: str | None = None
        self._data: list[str] = []

    @property
    def has_pending(self) -> bool:
        return self._event is not None or bool(self._data)

    def feed(self, chunk: str | bytes) -> Iterator[ServerSentEvent]:
        """Consume one chunk, yielding each event it completes."""

        if isinstance(chunk, (bytes, bytearray)):
            text = self._decode(bytes(chunk))
        else:
            text = chunk
        for line in self._split_lines(text):
            event = self.feed_line(line)
            if event is not None:
                yield event

    def flush(self) -> Iterator[ServerSentEvent]:
        """Finish the stream: process an unterminated last line and pending event."""

        tail = self._decode(b"", final=True)
        if tail:
            yield from self.feed(tail)
        if self._partial:
            line, self._partial = self._partial, ""
            event = self.feed_line(line)
            if event is not None:
                yield event
        if self.has_pending:
            yield self._dispatch()

    def _decode(self, data: bytes, final: bool = False) -> str:
        try:
            return self._utf8.decode(data, final)
        except UnicodeDecodeError as exc:
            raise DecodingFailedError(f"stream is not valid UTF-8: {exc.reason}") from exc

    def feed_line(self, line: str) -> ServerSentEvent | None:
        """Process one complete line (without its terminator)."""

        if not line:
            if not self.has_pending:
                return None
            return self._dispatch()
        if line.startswith(":"):
            return None

        name, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]
        if name == "event":
            self._event = value
        elif name == "data":
            self._data.append(value)
        # id, retry and unknown fields carry nothing this client uses.
        return None

    def _dispatch(self) -> ServerSentEvent:
        event = ServerSentEvent(event=self._event, data="\n".join(self._data))
        self._event = None
        self._data = []
        return event

    def _split_lines(self, text: str) -> list[str]:
        # A "\r\n" split across chunks: the "\r" already ended the line.
        if self._pending_cr and text.startswith("\n"):
            text = text[1:]
        self._pending_cr = False

        buffer = self._partial + text
        lines: list[str] = []
        start = 0
        for match in _LINE_BREAK.finditer(buffer):
            lines.append(buffer[start : match.start()])
            start = match.end()
        self._partial = buffer[start:]
        self._pending_cr = buffer.endswith("\r")
        return lines


def _is_done(sse: ServerSentEvent) -> bool:
    return sse.data.strip() == DONE_SENTINEL


def _event_from_sse(sse: ServerSentEvent) -> ResponseEvent | None:
    """Decode one dispatched block; ``None`` means there is nothing to surface."""

    data = sse.data.strip()
    if not data:
        if not sse.event:
            return None
        # Keepalives and other data-less notifications; modelled events need a payload.
        if sse.event in KNOWN_EVENT_TYPES:
            raise DecodingFailedError(f"event {sse.event!r} has no data")
        return UnknownEvent(type=sse.event, payload={})
    try:
        payload = json.loads(data)
    except json.JSONDecodeError as exc:
        raise JSONParsingError(f"invalid JSON in {sse.event or 'event'} data: {exc.msg}") from exc
    if not isinstance(payload, dict):
        raise DecodingFailedError(f"event {sse.event!r} data must be a JSON object")

    event_type = sse.event or payload.get("type")
    if not isinstance(event_type, str) or not event_type:
        raise DecodingFailedError("event has no type")
    return decode_event(event_type, payload)


async def parse_stream(chunks: AsyncIterator[str | bytes]) -> AsyncIterator[ResponseEvent]:
    """Parse SSE chunks into ResponseEvent objects.

    Reading is driven by the consumer: a chunk is pulled only when no decoded
    event is waiting. The stream ends after ``response.completed`` (or
    ``response.incomplete`` / ``[DONE]``); if the source ends first a
    ``NetworkError`` is raised. Closing this generator closes ``chunks``.
    """

    decoder = SSEDecoder()
    try:
        async for chunk in chunks:
            for sse in decoder.feed(chunk):
                if _is_done(sse):
                    _LOGGER.debug("stream terminated by %s", DONE_SENTINEL)
                    return
                event = _event_from_sse(sse)
                if event is None:
                    continue
                yield event
                if isinstance(event, TERMINAL_EVENTS):
                    return

        for sse in decoder.flush():
            if _is_done(sse):
                return
            event = _event_from_sse(sse)
            if event is None:
                continue
            yield event
            if isinstance(event, TERMINAL_EVENTS):
                return
    finally:
        aclose = getattr(chunks, "aclose", None)
        if callable(aclose):
            await aclose()

    raise NetworkError("connection closed before response.completed")


__all__ = ["DONE_SENTINEL", "SSEDecoder", "ServerSentEvent", "parse_stream"]
