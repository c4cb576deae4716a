import json
from collections.abc import AsyncIterator, Iterable

import pytest

from responses_dsl.api.errors import DecodingFailedError, JSONParsingError, NetworkError, ServerError
from responses_dsl.api.events import (
    OutputItemAdded,
    OutputTextDelta,
    OutputTextDone,
    ResponseCompleted,
    ResponseCreated,
    ResponseIncomplete,
    UnknownEvent,
)
from responses_dsl.api.parsing import ServerSentEvent, SSEDecoder, parse_stream


class ChunkSource:
    """Async chunk iterator that records how far it was read and whether it was closed."""

    def __init__(self, chunks: Iterable[str | bytes]) -> None:
        self._chunks = list(chunks)
        self.pulled = 0
        self.closed = False

    def __aiter__(self) -> "ChunkSource":
        return self

    async def __anext__(self) -> str | bytes:
        if self.closed or self.pulled >= len(self._chunks):
            raise StopAsyncIteration
        chunk = self._chunks[self.pulled]
        self.pulled += 1
        return chunk

    async def aclose(self) -> None:
        self.closed = True


async def _collect(chunks: Iterable[str | bytes]) -> list:
    return [event async for event in parse_stream(ChunkSource(chunks))]


# ---------------------------------------------------------------------------
# SSE framing
# ---------------------------------------------------------------------------


def test_decoder_dispatches_on_blank_line() -> None:
    decoder = SSEDecoder()

    assert list(decoder.feed("event: ping\ndata: {}\n")) == []
    assert decoder.has_pending
    assert list(decoder.feed("\n")) == [ServerSentEvent(event="ping", data="{}")]
    assert not decoder.has_pending


def test_decoder_joins_multiline_data_and_skips_comments() -> None:
    decoder = SSEDecoder()

    events = list(decoder.feed(": keep-alive\nid: 7\nretry: 100\ndata: line one\ndata:line two\n\n"))

    assert events == [ServerSentEvent(event=None, data="line one\nline two")]


def test_decoder_handles_crlf_split_across_chunks() -> None:
    decoder = SSEDecoder()

    events = list(decoder.feed("event: a\r"))
    events += list(decoder.feed("\ndata: 1\r\n\r"))
    events += list(decoder.feed("\n"))

    assert events == [ServerSentEvent(event="a", data="1")]


def test_decoder_handles_bare_cr_line_endings() -> None:
    decoder = SSEDecoder()

    assert list(decoder.feed("event: a\rdata: 1\r\r")) == [ServerSentEvent(event="a", data="1")]


def test_decoder_reassembles_multibyte_utf8_split_across_chunks() -> None:
    decoder = SSEDecoder()
    raw = "data: café\n\n".encode("utf-8")
    split = raw.index(b"\xa9")

    events = list(decoder.feed(raw[:split])) + list(decoder.feed(raw[split:]))

    assert events == [ServerSentEvent(event=None, data="café")]


def test_decoder_rejects_invalid_utf8() -> None:
    decoder = SSEDecoder()

    with pytest.raises(DecodingFailedError):
        list(decoder.feed(b"data: \xff\xfe\n\n"))


def test_flush_dispatches_unterminated_event() -> None:
    decoder = SSEDecoder()
    assert list(decoder.feed("event: tail\ndata: {}")) == []

    assert list(decoder.flush()) == [ServerSentEvent(event="tail", data="{}")]
    assert list(decoder.flush()) == []


# ---------------------------------------------------------------------------
# Event stream
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_parse_stream_yields_typed_events_in_order(text_stream_factory) -> None:
    events = await _collect(text_stream_factory(["Hel", "lo", "!"]))

    assert [type(event) for event in events] == [
        ResponseCreated,
        OutputItemAdded,
        OutputTextDelta,
        OutputTextDelta,
        OutputTextDelta,
        OutputTextDone,
        ResponseCompleted,
    ]
    deltas = "".join(event.delta for event in events if isinstance(event, OutputTextDelta))
    done = next(event for event in events if isinstance(event, OutputTextDone))
    assert deltas == done.text == "Hello!"
    assert events[-1].response.output_text == "Hello!"


@pytest.mark.asyncio
async def test_parse_stream_is_independent_of_chunk_boundaries(text_stream_factory) -> None:
    text = "".join(text_stream_factory(["a", "b"]))
    whole = await _collect([text])

    one_char_at_a_time = await _collect(list(text))
    as_bytes = await _collect([text.encode("utf-8")[i : i + 7] for i in range(0, len(text.encode("utf-8")), 7)])

    assert one_char_at_a_time == whole
    assert as_bytes == whole


@pytest.mark.asyncio
async def test_unknown_event_type_is_surfaced(sse_block, response_factory) -> None:
    events = await _collect(
        [
            sse_block(
                "response.reasoning_summary_text.delta",
                {"type": "response.reasoning_summary_text.delta", "delta": "hm"},
            ),
            sse_block("response.completed", {"type": "response.completed", "response": response_factory()}),
        ]
    )

    assert events[0] == UnknownEvent(
        type="response.reasoning_summary_text.delta",
        payload={"type": "response.reasoning_summary_text.delta", "delta": "hm"},
    )
    assert isinstance(events[1], ResponseCompleted)


@pytest.mark.asyncio
async def test_dataless_unknown_event_does_not_end_stream(sse_block, response_factory) -> None:
    events = await _collect(
        [
            "event: keepalive\n\n",
            "data:\n\n",
            sse_block("response.completed", {"type": "response.completed", "response": response_factory()}),
        ]
    )

    assert events[0] == UnknownEvent(type="keepalive", payload={})
    assert len(events) == 2
    assert isinstance(events[1], ResponseCompleted)


@pytest.mark.asyncio
async def test_event_type_falls_back_to_payload_type(sse_block, response_factory) -> None:
    events = await _collect([sse_block(None, {"type": "response.completed", "response": response_factory()})])

    assert isinstance(events[0], ResponseCompleted)


@pytest.mark.asyncio
async def test_stream_stops_reading_after_completion(sse_block, response_factory) -> None:
    completed = sse_block("response.completed", {"type": "response.completed", "response": response_factory()})
    source = ChunkSource([completed, "data: never read\n\n"])

    events = [event async for event in parse_stream(source)]

    assert len(events) == 1
    assert source.pulled == 1
    assert source.closed


@pytest.mark.asyncio
async def test_incomplete_response_is_terminal(sse_block, response_factory) -> None:
    events = await _collect(
        [
            sse_block(
                "response.incomplete",
                {"type": "response.incomplete", "response": response_factory(status="incomplete")},
            )
        ]
    )

    assert isinstance(events[0], ResponseIncomplete)
    assert events[0].response.status == "incomplete"


@pytest.mark.asyncio
async def test_done_sentinel_ends_stream_quietly(text_stream_factory) -> None:
    events = await _collect([*text_stream_factory(["x"], completed=False), "data: [DONE]\n\n"])

    assert isinstance(events[-1], OutputTextDone)


@pytest.mark.asyncio
async def test_eof_before_completion_raises_network_error(text_stream_factory) -> None:
    seen = []

    with pytest.raises(NetworkError):
        async for event in parse_stream(ChunkSource(text_stream_factory(["partial"], completed=False))):
            seen.append(event)

    assert isinstance(seen[-1], OutputTextDone)


@pytest.mark.asyncio
async def test_final_event_without_trailing_blank_line_is_flushed(response_factory) -> None:
    payload = {"type": "response.completed", "response": response_factory()}
    tail = f"event: response.completed\ndata: {json.dumps(payload)}"

    events = await _collect([tail])

    assert isinstance(events[0], ResponseCompleted)


@pytest.mark.asyncio
async def test_invalid_json_raises_json_parsing_error() -> None:
    with pytest.raises(JSONParsingError):
        await _collect(["event: response.output_text.delta\ndata: {not json}\n\n"])


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "block",
    [
        "event: response.created\ndata: [1, 2]\n\n",
        "event: response.created\n\n",
        'data: {"no_type": true}\n\n',
        'event: response.output_text.delta\ndata: {"item_id": "m", "delta": "x"}\n\n',
    ],
)
async def test_malformed_events_raise_decoding_failed(block: str) -> None:
    with pytest.raises(DecodingFailedError):
        await _collect([block])


@pytest.mark.asyncio
async def test_response_failed_raises_server_error(sse_block, response_factory) -> None:
    failed = response_factory(status="failed", error={"code": "server_error", "message": "model crashed"})

    with pytest.raises(ServerError) as excinfo:
        await _collect([sse_block("response.failed", {"type": "response.failed", "response": failed})])

    assert excinfo.value == ServerError(None, "model crashed")


@pytest.mark.asyncio
async def test_error_event_raises_server_error(sse_block) -> None:
    with pytest.raises(ServerError, match="overloaded"):
        await _collect([sse_block("error", {"type": "error", "code": "server_busy", "message": "overloaded"})])


@pytest.mark.asyncio
async def test_pull_driven_reading(text_stream_factory) -> None:
    source = ChunkSource(text_stream_factory(["a", "b", "c"]))
    events = parse_stream(source)

    first = await events.__anext__()
    assert isinstance(first, ResponseCreated)
    assert source.pulled == 1

    await events.aclose()
    assert source.closed


@pytest.mark.asyncio
async def test_parse_stream_closes_async_generator_source(text_stream_factory) -> None:
    closed = False

    async def source() -> AsyncIterator[str]:
        nonlocal closed
        try:
            for chunk in text_stream_factory(["a", "b"]):
                yield chunk
        finally:
            closed = True

    events = parse_stream(source())
    await events.__anext__()
    await events.aclose()

    assert closed
