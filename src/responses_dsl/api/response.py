"""Decoded Responses API objects and their JSON decoders."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from responses_dsl.api.errors import DecodingFailedError, JSONParsingError
from responses_dsl.api.types import JSONObject, JSONValue, Role


@dataclass(frozen=True, slots=True)
class OutputText:
    text: str
    annotations: tuple[JSONValue, ...] = ()


@dataclass(frozen=True, slots=True)
class Refusal:
    refusal: str


@dataclass(frozen=True, slots=True)
class UnknownContent:
    type: str
    raw: JSONObject


OutputContent: TypeAlias = OutputText | Refusal | UnknownContent


@dataclass(frozen=True, slots=True)
class OutputMessage:
    id: str
    role: Role
    content: tuple[OutputContent, ...] = ()
    status: str | None = None

    @property
    def text(self) -> str:
        return "".join(part.text for part in self.content if isinstance(part, OutputText))


@dataclass(frozen=True, slots=True)
class FunctionCall:
    id: str | None
    call_id: str
    name: str
    arguments: str
    status: str | None = None

    def parsed_arguments(self) -> Any:
        """Decode ``arguments`` as JSON; an empty string yields an empty object."""

        if not self.arguments:
            return {}
        try:
            return json.loads(self.arguments)
        except json.JSONDecodeError as exc:
            raise JSONParsingError(f"arguments of {self.name}: {exc.msg}") from exc


@dataclass(frozen=True, slots=True)
class FileSearchCall:
    id: str
    status: str | None = None
    queries: tuple[str, ...] = ()
    results: tuple[JSONValue, ...] | None = None


@dataclass(frozen=True, slots=True)
class WebSearchCall:
    id: str
    status: str | None = None
    action: JSONObject | None = None


@dataclass(frozen=True, slots=True)
class ToolCall:
    """Any other non-message output item, kept verbatim."""

    id: str | None
    type: str
    status: str | None = None
    raw: JSONObject = field(default_factory=dict)


OutputItem: TypeAlias = OutputMessage | FunctionCall | FileSearchCall | WebSearchCall | ToolCall


@dataclass(frozen=True, slots=True)
class Usage:
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    input_tokens_details: JSONObject | None = None
    output_tokens_details: JSONObject | None = None


@dataclass(frozen=True, slots=True)
class Response:
    """Decoded non-streaming response envelope."""

    id: str
    status: str | None
    model: str | None
    output: tuple[OutputItem, ...] = ()
    usage: Usage | None = None
    created_at: float | None = None
    previous_response_id: str | None = None
    error: JSONObject | None = None
    metadata: JSONObject | None = None
    raw: JSONObject = field(default_factory=dict, compare=False, repr=False)

    @property
    def assistant_messages(self) -> tuple[OutputMessage, ...]:
        return tuple(
            item for item in self.output if isinstance(item, OutputMessage) and item.role is Role.ASSISTANT
        )

    @property
    def tool_calls(self) -> tuple[FunctionCall | FileSearchCall | WebSearchCall | ToolCall, ...]:
        return tuple(item for item in self.output if not isinstance(item, OutputMessage))

    @property
    def output_text(self) -> str:
        return "".join(message.text for message in self.assistant_messages)


# ---------------------------------------------------------------------------
# Decoders
# ---------------------------------------------------------------------------


def _require(data: Mapping[str, Any], key: str, kind: type | tuple[type, ...], context: str) -> Any:
    value = data.get(key)
    if not isinstance(value, kind):
        raise DecodingFailedError(f"{context} field {key!r} is missing or has the wrong type")
    return value


def _optional_str(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    return value if isinstance(value, str) else None


def decode_output_content(data: Any) -> OutputContent:
    if not isinstance(data, dict):
        raise DecodingFailedError("output content part must be an object")
    kind = data.get("type")
    if kind == "output_text":
        text = _require(data, "text", str, "output_text")
        annotations = data.get("annotations") or []
        return OutputText(text=text, annotations=tuple(annotations))
    if kind == "refusal":
        return Refusal(refusal=_require(data, "refusal", str, "refusal"))
    return UnknownContent(type=str(kind), raw=dict(data))


def decode_output_item(data: Any) -> OutputItem:
    """Decode one entry of ``output`` by its ``type`` tag."""

    if not isinstance(data, dict):
        raise DecodingFailedError("output item must be an object")
    kind = data.get("type")
    if not isinstance(kind, str):
        raise DecodingFailedError("output item is missing its type")

    if kind == "message":
        role_value = _require(data, "role", str, "message")
        try:
            role = Role(role_value)
        except ValueError as exc:
            raise DecodingFailedError(f"unsupported message role: {role_value!r}") from exc
        content = data.get("content") or []
        if not isinstance(content, list):
            raise DecodingFailedError("message content must be a list")
        return OutputMessage(
            id=_require(data, "id", str, "message"),
            role=role,
            content=tuple(decode_output_content(part) for part in content),
            status=_optional_str(data, "status"),
        )

    if kind == "function_call":
        return FunctionCall(
            id=_optional_str(data, "id"),
            call_id=_require(data, "call_id", str, "function_call"),
            name=_require(data, "name", str, "function_call"),
            arguments=data.get("arguments") if isinstance(data.get("arguments"), str) else "",
            status=_optional_str(data, "status"),
        )

    if kind == "file_search_call":
        queries = data.get("queries") or []
        results = data.get("results")
        return FileSearchCall(
            id=_require(data, "id", str, "file_search_call"),
            status=_optional_str(data, "status"),
            queries=tuple(q for q in queries if isinstance(q, str)),
            results=tuple(results) if isinstance(results, list) else None,
        )

    if kind == "web_search_call":
        action = data.get("action")
        return WebSearchCall(
            id=_require(data, "id", str, "web_search_call"),
            status=_optional_str(data, "status"),
            action=dict(action) if isinstance(action, dict) else None,
        )

    return ToolCall(id=_optional_str(data, "id"), type=kind, status=_optional_str(data, "status"), raw=dict(data))


def decode_usage(data: Any) -> Usage | None:
    if data is None:
        return None
    if not isinstance(data, dict):
        raise DecodingFailedError("usage must be an object")

    def _count(key: str) -> int:
        value = data.get(key, 0)
        if isinstance(value, bool) or not isinstance(value, int):
            raise DecodingFailedError(f"usage field {key!r} must be an integer")
        return value

    input_details = data.get("input_tokens_details")
    output_details = data.get("output_tokens_details")
    return Usage(
        input_tokens=_count("input_tokens"),
        output_tokens=_count("output_tokens"),
        total_tokens=_count("total_tokens"),
        input_tokens_details=input_details if isinstance(input_details, dict) else None,
        output_tokens_details=output_details if isinstance(output_details, dict) else None,
    )


def decode_response(data: Any) -> Response:
    """Decode a response object (the body of a POST or an event's ``response``)."""

    if not isinstance(data, dict):
        raise DecodingFailedError("response must be a JSON object")
    output = data.get("output") or []
    if not isinstance(output, list):
        raise DecodingFailedError("response output must be a list")
    created_at = data.get("created_at")
    error = data.get("error")
    metadata = data.get("metadata")
    return Response(
        id=_require(data, "id", str, "response"),
        status=_optional_str(data, "status"),
        model=_optional_str(data, "model"),
        output=tuple(decode_output_item(item) for item in output),
        usage=decode_usage(data.get("usage")),
        created_at=created_at if isinstance(created_at, (int, float)) and not isinstance(created_at, bool) else None,
        previous_response_id=_optional_str(data, "previous_response_id"),
        error=error if isinstance(error, dict) else None,
        metadata=metadata if isinstance(metadata, dict) else None,
        raw=data,
    )


def parse_response_body(body: str | bytes) -> Response:
    """Parse raw JSON text into a Response."""

    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise JSONParsingError(str(exc)) from exc
    return decode_response(data)


__all__ = [
    "FileSearchCall",
    "FunctionCall",
    "OutputContent",
    "OutputItem",
    "OutputMessage",
    "OutputText",
    "Refusal",
    "Response",
    "ToolCall",
    "UnknownContent",
    "Usage",
    "WebSearchCall",
    "decode_output_content",
    "decode_output_item",
    "decode_response",
    "decode_usage",
    "parse_response_body",
]
