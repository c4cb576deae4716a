"""Responses API client: non-streaming calls and typed event streams."""

from __future__ import annotations

import json
import logging
import ssl
from collections.abc import AsyncGenerator
from contextlib import aclosing
from typing import TYPE_CHECKING, Any

import httpx

from responses_dsl.api.errors import (
    AuthenticationFailedError,
    HttpError,
    InvalidResponseError,
    LLMError,
    NetworkError,
    RateLimitError,
    RequestTimeoutError,
    ServerError,
    SslError,
    error_message_from_body,
)
from responses_dsl.api.events import OutputTextDelta, ResponseEvent
from responses_dsl.api.parsing import parse_stream
from responses_dsl.api.request import Request
from responses_dsl.api.response import Response, parse_response_body
from responses_dsl.api.transport import (
    DEFAULT_BASE_URL,
    DEFAULT_USER_AGENT,
    HttpResponsesTransport,
    ResponsesTransport,
    TransportLogger,
)

if TYPE_CHECKING:
    from responses_dsl.config import Settings

_LOGGER = logging.getLogger(__name__)


class LLMClient:
    """Async client for an OpenAI-compatible Responses endpoint.

    The client holds no mutable state after construction and can be shared
    by concurrent tasks. Nothing is retried: every failure is raised as an
    ``LLMError`` for the caller's own resilience policy.
    """

    def __init__(
        self,
        base_url: str | None = DEFAULT_BASE_URL,
        api_key: str | None = None,
        *,
        transport: ResponsesTransport | None = None,
        timeout: httpx.Timeout | float | None = None,
        http_client: httpx.AsyncClient | None = None,
        user_agent: str | None = DEFAULT_USER_AGENT,
        logger: TransportLogger | None = None,
    ) -> None:
        self._api_key = api_key.strip() if api_key and api_key.strip() else None
        if transport is None:
            transport = HttpResponsesTransport(
                base_url,
                self._api_key,
                timeout=timeout,
                client=http_client,
                user_agent=user_agent,
                logger=logger,
            )
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> LLMClient:
        return cls(
            settings.base_url,
            settings.api_key,
            timeout=settings.timeout,
            user_agent=settings.user_agent,
            **kwargs,
        )

    @property
    def has_authentication(self) -> bool:
        """Whether a credential is configured (no network round-trip)."""

        if self._api_key is not None:
            return True
        return bool(getattr(self._transport, "has_credentials", False))

    @property
    def transport(self) -> ResponsesTransport:
        return self._transport

    async def respond(self, request: Request) -> Response:
        """Send a non-streaming request and decode the full response."""

        payload = request.with_stream(False).to_payload()
        _LOGGER.debug("sending request model=%s messages=%d", request.model, len(request.messages))
        try:
            body = await self._transport.create_response(payload)
        except LLMError:
            raise
        except httpx.HTTPStatusError as exc:
            raise _map_status_error(exc) from exc
        except httpx.RequestError as exc:
            raise _map_request_error(exc) from exc

        if not body or not body.strip():
            raise InvalidResponseError("empty response body")
        response = parse_response_body(body)
        if response.status == "failed" and response.error:
            raise ServerError(None, error_message_from_body(response.raw) or "response failed")
        _LOGGER.debug("received response id=%s status=%s", response.id, response.status)
        return response

    def stream(self, request: Request) -> ResponseStream:
        """Open a streaming request.

        ``stream`` is forced on for the copy that is sent. Nothing happens on
        the network until the first event is pulled.
        """

        return ResponseStream(self._events(request.with_stream(True)))

    async def _events(self, request: Request) -> AsyncGenerator[ResponseEvent, None]:
        payload = request.to_payload()
        _LOGGER.debug("opening stream model=%s messages=%d", request.model, len(request.messages))
        try:
            async with aclosing(parse_stream(self._transport.stream_response(payload))) as events:
                async for event in events:
                    yield event
        except LLMError:
            raise
        except httpx.HTTPStatusError as exc:
            raise _map_status_error(exc) from exc
        except httpx.RequestError as exc:
            raise _map_request_error(exc) from exc
        except httpx.StreamError as exc:
            raise NetworkError(str(exc) or type(exc).__name__) from exc

    async def aclose(self) -> None:
        aclose = getattr(self._transport, "aclose", None)
        if callable(aclose):
            await aclose()

    async def __aenter__(self) -> LLMClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


class ResponseStream:
    """Single-consumer async iterator over the events of one streamed response.

    Leaving an ``async with`` block or calling :meth:`aclose` closes the
    underlying connection even if events remain unread. Breaking out of a bare
    ``async for`` does not: the connection stays open until the stream is
    garbage collected, so abandon a stream early only inside ``async with`` or
    follow the break with ``await stream.aclose()``.
    """

    def __init__(self, events: AsyncGenerator[ResponseEvent, None]) -> None:
        self._events = events
        self._iterating = False
        self._closed = False

    def __aiter__(self) -> ResponseStream:
        if self._iterating:
            raise RuntimeError("a response stream can only be iterated once")
        self._iterating = True
        return self

    async def __anext__(self) -> ResponseEvent:
        if self._closed:
            raise StopAsyncIteration
        try:
            return await self._events.__anext__()
        except BaseException:
            self._closed = True
            raise

    @property
    def closed(self) -> bool:
        return self._closed

    async def aclose(self) -> None:
        self._closed = True
        await self._events.aclose()

    async def __aenter__(self) -> ResponseStream:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def collect_text(self) -> str:
        """Consume the stream and return the concatenated text deltas."""

        parts: list[str] = []
        async with self:
            async for event in self:
                if isinstance(event, OutputTextDelta):
                    parts.append(event.delta)
        return "".join(parts)


def _map_status_error(exc: httpx.HTTPStatusError) -> LLMError:
    response = exc.response
    status = response.status_code
    if status == 401:
        return AuthenticationFailedError()
    if status == 429:
        return RateLimitError(_retry_after(response))
    return HttpError(status, _server_message(response))


def _server_message(response: httpx.Response) -> str:
    try:
        text = response.text
    except httpx.ResponseNotRead:
        return ""
    if not text:
        return ""
    try:
        body = json.loads(text)
    except json.JSONDecodeError:
        return text.strip()
    return error_message_from_body(body) or text.strip()


def _retry_after(response: httpx.Response) -> float | None:
    value = response.headers.get("retry-after")
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _map_request_error(exc: httpx.RequestError) -> LLMError:
    if isinstance(exc, httpx.TimeoutException):
        return RequestTimeoutError()
    ssl_error = _find_ssl_error(exc)
    if ssl_error is not None:
        return SslError(str(ssl_error) or type(ssl_error).__name__)
    return NetworkError(str(exc) or type(exc).__name__)


def _find_ssl_error(exc: BaseException) -> ssl.SSLError | None:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        if isinstance(current, ssl.SSLError):
            return current
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return None


__all__ = ["LLMClient", "ResponseStream", "_map_request_error", "_map_status_error"]
