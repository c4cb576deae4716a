import json
import pathlib
import sys
from collections.abc import AsyncIterator, Mapping
from typing import Any

import httpx
import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"

# Ensure src/ is importable when running tests without installing the package.
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


# ============================================================================
# Wire payload builders
# ============================================================================


def response_object(
    response_id: str = "resp_1",
    *,
    status: str = "completed",
    text: str | None = None,
    output: list[dict[str, Any]] | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Build a minimal Responses API response object."""

    if output is None:
        output = []
        if text is not None:
            output.append(
                {
                    "type": "message",
                    "id": "msg_1",
                    "role": "assistant",
                    "status": "completed",
                    "content": [{"type": "output_text", "text": text, "annotations": []}],
                }
            )
    data: dict[str, Any] = {
        "id": response_id,
        "object": "response",
        "created_at": 1700000000,
        "status": status,
        "model": "gpt-4",
        "output": output,
        "usage": {"input_tokens": 5, "output_tokens": 7, "total_tokens": 12},
    }
    data.update(extra)
    return data


def sse(event_type: str | None, payload: Mapping[str, Any] | str) -> str:
    """Frame one SSE block."""

    data = payload if isinstance(payload, str) else json.dumps(payload)
    header = f"event: {event_type}\n" if event_type else ""
    return f"{header}data: {data}\n\n"


def text_stream(deltas: list[str], *, completed: bool = True) -> list[str]:
    """SSE blocks for created -> item added -> deltas -> text done -> completed."""

    full = "".join(deltas)
    blocks = [
        sse("response.created", {"type": "response.created", "response": response_object(status="in_progress")}),
        sse(
            "response.output_item.added",
            {
                "type": "response.output_item.added",
                "output_index": 0,
                "item": {"type": "message", "id": "msg_1", "role": "assistant", "status": "in_progress", "content": []},
            },
        ),
    ]
    for delta in deltas:
        blocks.append(
            sse(
                "response.output_text.delta",
                {
                    "type": "response.output_text.delta",
                    "item_id": "msg_1",
                    "output_index": 0,
                    "content_index": 0,
                    "delta": delta,
                },
            )
        )
    blocks.append(
        sse(
            "response.output_text.done",
            {"type": "response.output_text.done", "item_id": "msg_1", "output_index": 0, "content_index": 0, "text": full},
        )
    )
    if completed:
        blocks.append(
            sse("response.completed", {"type": "response.completed", "response": response_object(text=full)})
        )
    return blocks


@pytest.fixture
def response_factory():
    return response_object


@pytest.fixture
def sse_block():
    return sse


@pytest.fixture
def text_stream_factory():
    return text_stream


# ============================================================================
# Transport fixtures
# ============================================================================


class CapturingTransport:
    """Transport that captures the last payload and replays predefined data."""

    def __init__(self, chunks: list[str] | None = None, body: bytes = b"") -> None:
        self.chunks = chunks or []
        self.body = body
        self.last_payload: Mapping[str, Any] | None = None
        self.closed = False
        self.pulled = 0

    async def create_response(self, payload: Mapping[str, Any]) -> bytes:
        self.last_payload = payload
        return self.body

    async def stream_response(self, payload: Mapping[str, Any]) -> AsyncIterator[str]:
        self.last_payload = payload
        try:
            for chunk in self.chunks:
                self.pulled += 1
                yield chunk
        finally:
            self.closed = True


class ErrorTransport:
    """Transport that raises the given exception from every call."""

    def __init__(self, error: BaseException, *, after: list[str] | None = None) -> None:
        self.error = error
        self.after = after or []

    async def create_response(self, payload: Mapping[str, Any]) -> bytes:
        raise self.error

    async def stream_response(self, payload: Mapping[str, Any]) -> AsyncIterator[str]:
        for chunk in self.after:
            yield chunk
        raise self.error


@pytest.fixture
def capturing_transport():
    """Factory fixture for CapturingTransport."""
    return CapturingTransport


@pytest.fixture
def error_transport_factory():
    """Factory fixture for transports that fail with a given exception."""
    return ErrorTransport


@pytest.fixture
def httpx_status_error():
    """Build an httpx.HTTPStatusError for a status code, body and headers."""

    def _error(status_code: int, text: str = "", headers: dict[str, str] | None = None) -> httpx.HTTPStatusError:
        request = httpx.Request("POST", "https://api.test/v1/responses")
        response = httpx.Response(status_code, text=text, headers=headers or {}, request=request)
        return httpx.HTTPStatusError("status error", request=request, response=response)

    return _error


@pytest.fixture
def mock_http_handler():
    """Factory fixture for creating httpx request handlers with custom responses."""

    def _handler(
        status_code: int = 200,
        text: str = "",
        headers: dict[str, str] | None = None,
        record_request: dict[str, Any] | None = None,
    ):
        def handler(request: httpx.Request) -> httpx.Response:
            if record_request is not None:
                record_request["headers"] = dict(request.headers)
                record_request["url"] = str(request.url)
                record_request["payload"] = json.loads(request.content.decode()) if request.content else None
            return httpx.Response(status_code, text=text, headers=headers or {}, request=request)

        return handler

    return _handler


@pytest.fixture
def mock_http_client(mock_http_handler):
    """Fixture factory that provides an httpx.AsyncClient with MockTransport."""

    def _client(handler=None):
        if handler is None:
            handler = mock_http_handler()
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _client
