"""Transport abstraction for the Responses client."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import AsyncIterator, Callable, Mapping, Sequence
from typing import Any, Protocol

import httpx
import openai
from openai import AsyncOpenAI

from responses_dsl import __version__
from responses_dsl.api.errors import EncodingFailedError, InvalidURLError, MissingBaseURLError

_LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_TIMEOUT = httpx.Timeout(60.0, connect=5.0)
DEFAULT_USER_AGENT = f"responses-dsl/{__version__}"
RESPONSES_PATH = "/responses"

TransportLogger = Callable[[str, dict[str, object]], None]


class ResponsesTransport(Protocol):
    """Protocol for moving Responses API payloads over the wire.

    Implementations raise ``httpx`` exceptions for HTTP and network failures;
    the client maps them onto the error taxonomy.
    """

    async def create_response(self, payload: Mapping[str, Any]) -> bytes:
        """POST a payload and return the raw response body."""

    def stream_response(self, payload: Mapping[str, Any]) -> AsyncIterator[str | bytes]:
        """POST a payload and yield raw SSE text as it arrives."""


def resolve_endpoint(base_url: str | None) -> str:
    """Return the ``/responses`` endpoint for a base URL, validating it."""

    if base_url is None or not base_url.strip():
        raise MissingBaseURLError()
    candidate = base_url.strip().rstrip("/")
    try:
        url = httpx.URL(candidate)
    except (httpx.InvalidURL, TypeError) as exc:
        raise InvalidURLError(base_url) from exc
    if url.scheme not in {"http", "https"} or not url.host:
        raise InvalidURLError(base_url)
    if candidate.endswith(RESPONSES_PATH):
        return candidate
    return candidate + RESPONSES_PATH


def dump_payload(payload: Mapping[str, Any]) -> bytes:
    try:
        return json.dumps(payload, ensure_ascii=False, allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise EncodingFailedError(str(exc)) from exc


class HttpResponsesTransport:
    """httpx-based transport for any OpenAI-compatible Responses endpoint."""

    def __init__(
        self,
        base_url: str | None = DEFAULT_BASE_URL,
        api_key: str | None = None,
        *,
        timeout: httpx.Timeout | float | None = None,
        client: httpx.AsyncClient | None = None,
        user_agent: str | None = DEFAULT_USER_AGENT,
        logger: TransportLogger | None = None,
    ) -> None:
        self.endpoint = resolve_endpoint(base_url)
        self.base_url = self.endpoint[: -len(RESPONSES_PATH)]
        self.api_key = api_key.strip() if api_key and api_key.strip() else None
        self.timeout = timeout or DEFAULT_TIMEOUT
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.timeout)
        self._user_agent = user_agent
        self._logger = logger

    @property
    def has_credentials(self) -> bool:
        return self.api_key is not None

    def _headers(self, *, streaming: bool) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        if self._user_agent:
            headers["User-Agent"] = self._user_agent
        if streaming:
            headers["Accept"] = "text/event-stream"
            headers["Cache-Control"] = "no-cache"
            headers["Connection"] = "keep-alive"
        else:
            headers["Accept"] = "application/json"
        return headers

    async def create_response(self, payload: Mapping[str, Any]) -> bytes:
        body = dump_payload(payload)
        start = time.perf_counter()
        response = await self._client.post(
            self.endpoint, content=body, headers=self._headers(streaming=False), timeout=self.timeout
        )
        _LOGGER.debug("POST %s -> %s", self.endpoint, response.status_code)
        response.raise_for_status()
        self._log_complete(response, start)
        return response.content

    async def stream_response(self, payload: Mapping[str, Any]) -> AsyncIterator[str | bytes]:
        body = dump_payload(payload)
        start = time.perf_counter()
        async with self._client.stream(
            "POST", self.endpoint, content=body, headers=self._headers(streaming=True), timeout=self.timeout
        ) as response:
            _LOGGER.debug("POST %s (stream) -> %s", self.endpoint, response.status_code)
            if response.is_error:
                await response.aread()
            response.raise_for_status()
            async for text in response.aiter_text():
                if text:
                    yield text
        self._log_complete(response, start)

    def _log_complete(self, response: httpx.Response, start: float) -> None:
        if self._logger:
            self._logger(
                "response_complete",
                {
                    "status": response.status_code,
                    "request_id": response.headers.get("x-request-id"),
                    "duration_sec": time.perf_counter() - start,
                    "base_url": self.base_url,
                },
            )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpResponsesTransport:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


class MockResponsesTransport:
    """In-memory transport that replays predefined data for tests/offline mode."""

    def __init__(
        self,
        chunks: Sequence[str | bytes] = (),
        *,
        body: str | bytes = b"",
        status_code: int = 200,
        headers: Mapping[str, str] | None = None,
        logger: TransportLogger | None = None,
    ) -> None:
        self._chunks = list(chunks)
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        self.status_code = status_code
        self._headers = dict(headers or {})
        self._logger = logger
        self.payloads: list[dict[str, Any]] = []
        self.chunks_sent = 0
        self.stream_closed = False

    def _raise_for_status(self) -> None:
        if self.status_code >= 400:
            request = httpx.Request("POST", "mock://responses")
            response = httpx.Response(self.status_code, content=self._body, headers=self._headers, request=request)
            raise httpx.HTTPStatusError("mock transport error", request=request, response=response)

    async def create_response(self, payload: Mapping[str, Any]) -> bytes:
        dump_payload(payload)
        self.payloads.append(dict(payload))
        self._raise_for_status()
        self._log_complete()
        return self._body

    async def stream_response(self, payload: Mapping[str, Any]) -> AsyncIterator[str | bytes]:
        dump_payload(payload)
        self.payloads.append(dict(payload))
        self._raise_for_status()
        try:
            for chunk in self._chunks:
                self.chunks_sent += 1
                yield chunk
        finally:
            self.stream_closed = True
        self._log_complete()

    def _log_complete(self) -> None:
        if self._logger:
            self._logger(
                "response_complete",
                {"status": self.status_code, "request_id": None, "duration_sec": 0.0, "base_url": "mock://responses"},
            )


class OpenAISDKResponsesTransport:
    """Transport backed by the official openai Python SDK (Responses API).

    SDK stream events are re-framed as SSE text so they flow through the same
    parser as raw HTTP streams; SDK exceptions are converted to their httpx
    counterparts.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        organization: str | None = None,
        project: str | None = None,
        client: Any | None = None,
    ) -> None:
        self._client = client or AsyncOpenAI(
            api_key=api_key.strip() if api_key else None,
            base_url=base_url,
            organization=organization,
            project=project,
        )

    async def create_response(self, payload: Mapping[str, Any]) -> bytes:
        request_payload = dict(payload)
        request_payload.pop("stream", None)
        try:
            response = await self._client.responses.create(**request_payload)
        except openai.OpenAIError as exc:
            raise _to_httpx_error(exc) from exc
        return json.dumps(response.model_dump(mode="json")).encode("utf-8")

    async def stream_response(self, payload: Mapping[str, Any]) -> AsyncIterator[str | bytes]:
        request_payload = dict(payload)
        request_payload.pop("stream", None)
        try:
            stream = await self._client.responses.create(stream=True, **request_payload)
        except openai.OpenAIError as exc:
            raise _to_httpx_error(exc) from exc

        try:
            async for event in stream:
                event_type = getattr(event, "type", None)
                data = event.model_dump(mode="json") if hasattr(event, "model_dump") else dict(vars(event))
                header = f"event: {event_type}\n" if event_type else ""
                yield f"{header}data: {json.dumps(data)}\n\n"
        except openai.OpenAIError as exc:
            raise _to_httpx_error(exc) from exc
        finally:
            close = getattr(stream, "close", None)
            if callable(close):
                await close()


def _to_httpx_error(exc: openai.OpenAIError) -> Exception:
    """Convert SDK exceptions into the httpx exceptions the client maps."""

    if isinstance(exc, openai.APIStatusError):
        return httpx.HTTPStatusError(str(exc), request=exc.request, response=exc.response)
    if isinstance(exc, openai.APITimeoutError):
        return httpx.TimeoutException(str(exc), request=exc.request)
    if isinstance(exc, openai.APIConnectionError):
        return httpx.ConnectError(str(exc), request=exc.request)
    return exc


__all__ = [
    "DEFAULT_BASE_URL",
    "DEFAULT_TIMEOUT",
    "HttpResponsesTransport",
    "MockResponsesTransport",
    "OpenAISDKResponsesTransport",
    "ResponsesTransport",
    "dump_payload",
    "resolve_endpoint",
]
