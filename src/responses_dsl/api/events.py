"""Typed streaming events and their payload decoders."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, TypeAlias

from responses_dsl.api.errors import DecodingFailedError, ServerError, error_message_from_body
from responses_dsl.api.response import (
    OutputContent,
    OutputItem,
    Response,
    decode_output_content,
    decode_output_item,
    decode_response,
)
from responses_dsl.api.types import JSONObject


@dataclass(frozen=True, slots=True)
class ResponseCreated:
    response: Response
    sequence_number: int | None = None


@dataclass(frozen=True, slots=True)
class ResponseInProgress:
    response: Response
    sequence_number: int | None = None


@dataclass(frozen=True, slots=True)
class OutputItemAdded:
    output_index: int
    item: OutputItem
    sequence_number: int | None = None


@dataclass(frozen=True, slots=True)
class ContentPartAdded:
    item_id: str
    output_index: int
    content_index: int
    part: OutputContent
    sequence_number: int | None = None


@dataclass(frozen=True, slots=True)
class OutputTextDelta:
    item_id: str
    output_index: int
    content_index: int
    delta: str
    sequence_number: int | None = None


@dataclass(frozen=True, slots=True)
class OutputTextDone:
    item_id: str
    output_index: int
    content_index: int
    text: str
    sequence_number: int | None = None


@dataclass(frozen=True, slots=True)
class ContentPartDone:
    item_id: str
    output_index: int
    content_index: int
    part: OutputContent
    sequence_number: int | None = None


@dataclass(frozen=True, slots=True)
class OutputItemDone:
    output_index: int
    item: OutputItem
    sequence_number: int | None = None


@dataclass(frozen=True, slots=True)
class FunctionCallArgumentsDelta:
    item_id: str
    output_index: int
    delta: str
    sequence_number: int | None = None


@dataclass(frozen=True, slots=True)
class FunctionCallArgumentsDone:
    item_id: str
    output_index: int
    arguments: str
    sequence_number: int | None = None


@dataclass(frozen=True, slots=True)
class ResponseCompleted:
    response: Response
    sequence_number: int | None = None


@dataclass(frozen=True, slots=True)
class ResponseIncomplete:
    response: Response
    sequence_number: int | None = None


@dataclass(frozen=True, slots=True)
class UnknownEvent:
    """Event type this client does not model; the payload is kept as-is."""

    type: str
    payload: JSONObject


ResponseEvent: TypeAlias = (
    ResponseCreated
    | ResponseInProgress
    | OutputItemAdded
    | ContentPartAdded
    | OutputTextDelta
    | OutputTextDone
    | ContentPartDone
    | OutputItemDone
    | FunctionCallArgumentsDelta
    | FunctionCallArgumentsDone
    | ResponseCompleted
    | ResponseIncomplete
    | UnknownEvent
)

# Events after which the server sends nothing more.
TERMINAL_EVENTS = (ResponseCompleted, ResponseIncomplete)


def _int(payload: Mapping[str, Any], key: str, event_type: str) -> int:
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodingFailedError(f"{event_type} field {key!r} must be an integer")
    return value


def _str(payload: Mapping[str, Any], key: str, event_type: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise DecodingFailedError(f"{event_type} field {key!r} must be a string")
    return value


def _seq(payload: Mapping[str, Any]) -> int | None:
    value = payload.get("sequence_number")
    return value if isinstance(value, int) and not isinstance(value, bool) else None


def _response_field(payload: Mapping[str, Any], event_type: str) -> Response:
    if "response" not in payload:
        raise DecodingFailedError(f"{event_type} is missing its response")
    return decode_response(payload["response"])


def _decode_created(event_type: str, payload: Mapping[str, Any]) -> ResponseEvent:
    return ResponseCreated(response=_response_field(payload, event_type), sequence_number=_seq(payload))


def _decode_in_progress(event_type: str, payload: Mapping[str, Any]) -> ResponseEvent:
    return ResponseInProgress(response=_response_field(payload, event_type), sequence_number=_seq(payload))


def _decode_completed(event_type: str, payload: Mapping[str, Any]) -> ResponseEvent:
    return ResponseCompleted(response=_response_field(payload, event_type), sequence_number=_seq(payload))


def _decode_incomplete(event_type: str, payload: Mapping[str, Any]) -> ResponseEvent:
    return ResponseIncomplete(response=_response_field(payload, event_type), sequence_number=_seq(payload))


def _decode_item_added(event_type: str, payload: Mapping[str, Any]) -> ResponseEvent:
    return OutputItemAdded(
        output_index=_int(payload, "output_index", event_type),
        item=decode_output_item(payload.get("item")),
        sequence_number=_seq(payload),
    )


def _decode_item_done(event_type: str, payload: Mapping[str, Any]) -> ResponseEvent:
    return OutputItemDone(
        output_index=_int(payload, "output_index", event_type),
        item=decode_output_item(payload.get("item")),
        sequence_number=_seq(payload),
    )


def _decode_part_added(event_type: str, payload: Mapping[str, Any]) -> ResponseEvent:
    return ContentPartAdded(
        item_id=_str(payload, "item_id", event_type),
        output_index=_int(payload, "output_index", event_type),
        content_index=_int(payload, "content_index", event_type),
        part=decode_output_content(payload.get("part")),
        sequence_number=_seq(payload),
    )


def _decode_part_done(event_type: str, payload: Mapping[str, Any]) -> ResponseEvent:
    return ContentPartDone(
        item_id=_str(payload, "item_id", event_type),
        output_index=_int(payload, "output_index", event_type),
        content_index=_int(payload, "content_index", event_type),
        part=decode_output_content(payload.get("part")),
        sequence_number=_seq(payload),
    )


def _decode_text_delta(event_type: str, payload: Mapping[str, Any]) -> ResponseEvent:
    return OutputTextDelta(
        item_id=_str(payload, "item_id", event_type),
        output_index=_int(payload, "output_index", event_type),
        content_index=_int(payload, "content_index", event_type),
        delta=_str(payload, "delta", event_type),
        sequence_number=_seq(payload),
    )


def _decode_text_done(event_type: str, payload: Mapping[str, Any]) -> ResponseEvent:
    return OutputTextDone(
        item_id=_str(payload, "item_id", event_type),
        output_index=_int(payload, "output_index", event_type),
        content_index=_int(payload, "content_index", event_type),
        text=_str(payload, "text", event_type),
        sequence_number=_seq(payload),
    )


def _decode_arguments_delta(event_type: str, payload: Mapping[str, Any]) -> ResponseEvent:
    return FunctionCallArgumentsDelta(
        item_id=_str(payload, "item_id", event_type),
        output_index=_int(payload, "output_index", event_type),
        delta=_str(payload, "delta", event_type),
        sequence_number=_seq(payload),
    )


def _decode_arguments_done(event_type: str, payload: Mapping[str, Any]) -> ResponseEvent:
    return FunctionCallArgumentsDone(
        item_id=_str(payload, "item_id", event_type),
        output_index=_int(payload, "output_index", event_type),
        arguments=_str(payload, "arguments", event_type),
        sequence_number=_seq(payload),
    )


def _raise_failed(event_type: str, payload: Mapping[str, Any]) -> ResponseEvent:
    response = payload.get("response")
    message = error_message_from_body(response) if isinstance(response, dict) else ""
    raise ServerError(None, message or "response failed")


def _raise_error(event_type: str, payload: Mapping[str, Any]) -> ResponseEvent:
    message = payload.get("message")
    if not isinstance(message, str):
        message = error_message_from_body(payload)
    raise ServerError(None, message or "stream error")


_DECODERS: dict[str, Callable[[str, Mapping[str, Any]], ResponseEvent]] = {
    "response.created": _decode_created,
    "response.in_progress": _decode_in_progress,
    "response.output_item.added": _decode_item_added,
    "response.content_part.added": _decode_part_added,
    "response.output_text.delta": _decode_text_delta,
    "response.output_text.done": _decode_text_done,
    "response.content_part.done": _decode_part_done,
    "response.output_item.done": _decode_item_done,
    "response.function_call_arguments.delta": _decode_arguments_delta,
    "response.function_call_arguments.done": _decode_arguments_done,
    "response.completed": _decode_completed,
    "response.incomplete": _decode_incomplete,
    "response.failed": _raise_failed,
    "error": _raise_error,
}

KNOWN_EVENT_TYPES = frozenset(_DECODERS)


def decode_event(event_type: str, payload: JSONObject) -> ResponseEvent:
    """Decode one event payload by its type; unknown types become UnknownEvent."""

    decoder = _DECODERS.get(event_type)
    if decoder is None:
        return UnknownEvent(type=event_type, payload=payload)
    return decoder(event_type, payload)


__all__ = [
    "ContentPartAdded",
    "ContentPartDone",
    "FunctionCallArgumentsDelta",
    "FunctionCallArgumentsDone",
    "KNOWN_EVENT_TYPES",
    "OutputItemAdded",
    "OutputItemDone",
    "OutputTextDelta",
    "OutputTextDone",
    "ResponseCompleted",
    "ResponseCreated",
    "ResponseEvent",
    "ResponseInProgress",
    "ResponseIncomplete",
    "TERMINAL_EVENTS",
    "UnknownEvent",
    "decode_event",
]
