"""Error taxonomy for the Responses client.

Every failure the client surfaces is an ``LLMError`` subclass. Errors compare
structurally (same class, same fields) so callers and tests can match on them
directly instead of parsing messages.
"""

from __future__ import annotations

from typing import Any


class LLMError(Exception):
    """Base class for all client errors."""

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.args == other.args  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self), self.args))

    @property
    def description(self) -> str:
        return str(self)


class InvalidURLError(LLMError):
    """The configured endpoint is not a usable http(s) URL."""

    def __init__(self, url: str = "") -> None:
        super().__init__(url)
        self.url = url

    def __str__(self) -> str:
        return f"invalid URL: {self.url!r}"


class MissingModelError(LLMError):
    """A request was built without a model identifier."""

    def __str__(self) -> str:
        return "model is required"


class MissingBaseURLError(LLMError):
    """No endpoint was configured for the client."""

    def __str__(self) -> str:
        return "base URL is required"


class InvalidValueError(LLMError, ValueError):
    """A value failed validation at construction time."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class InvalidParameterError(LLMError):
    """A configuration parameter could not be applied to a request."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(name, reason)
        self.name = name
        self.reason = reason

    def __str__(self) -> str:
        return f"invalid parameter {self.name}: {self.reason}"


class EncodingFailedError(LLMError):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"request encoding failed: {self.message}"


class DecodingFailedError(LLMError):
    """A payload did not have the expected shape."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"decoding failed: {self.message}"


class JSONParsingError(DecodingFailedError):
    """A payload was not valid JSON."""

    def __str__(self) -> str:
        return f"invalid JSON: {self.message}"


class NetworkError(LLMError):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"network error: {self.message}"


class RequestTimeoutError(LLMError):
    def __str__(self) -> str:
        return "request timed out"


class SslError(LLMError):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"TLS error: {self.message}"


class AuthenticationFailedError(LLMError):
    """The server rejected the credential (HTTP 401)."""

    def __str__(self) -> str:
        return "authentication failed"


class RateLimitError(LLMError):
    """The server throttled the request (HTTP 429).

    ``retry_after`` carries the server hint in seconds when one was sent. It is
    informational only and does not take part in equality.
    """

    def __init__(self, retry_after: float | None = None) -> None:
        super().__init__()
        self.retry_after = retry_after

    def __str__(self) -> str:
        if self.retry_after is not None:
            return f"rate limited (retry after {self.retry_after:g}s)"
        return "rate limited"


class HttpError(LLMError):
    """Non-2xx status not covered by a more specific error."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(status, message)
        self.status = status
        self.message = message

    def __str__(self) -> str:
        if self.message:
            return f"HTTP {self.status}: {self.message}"
        return f"HTTP {self.status}"


class ServerError(LLMError):
    """The server reported a failure inside an otherwise successful exchange."""

    def __init__(self, status: int | None, message: str) -> None:
        super().__init__(status, message)
        self.status = status
        self.message = message

    def __str__(self) -> str:
        prefix = f"server error {self.status}" if self.status is not None else "server error"
        return f"{prefix}: {self.message}" if self.message else prefix


class InvalidResponseError(LLMError):
    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"invalid response: {self.message}" if self.message else "invalid response"


def error_message_from_body(body: Any) -> str:
    """Extract the server's ``error.message`` from a decoded error body."""

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        if isinstance(error, str):
            return error
        if isinstance(body.get("message"), str):
            return body["message"]
    return ""


__all__ = [
    "AuthenticationFailedError",
    "DecodingFailedError",
    "EncodingFailedError",
    "HttpError",
    "InvalidParameterError",
    "InvalidResponseError",
    "InvalidURLError",
    "InvalidValueError",
    "JSONParsingError",
    "LLMError",
    "MissingBaseURLError",
    "MissingModelError",
    "NetworkError",
    "RateLimitError",
    "RequestTimeoutError",
    "ServerError",
    "SslError",
    "error_message_from_body",
]
