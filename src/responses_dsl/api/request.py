"""Request envelope, builder and conversation history."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from responses_dsl.api.errors import DecodingFailedError, InvalidParameterError, InvalidValueError, MissingModelError
from responses_dsl.api.parameters import PARAMETERS_BY_FIELD, ConfigParameter, ToolChoiceMode
from responses_dsl.api.types import (
    AssistantMessage,
    ContentPart,
    Message,
    SystemMessage,
    Tool,
    ToolMessage,
    UserMessage,
    message_from_dict,
)

# Wire fields populated by ConfigParameters, in payload order.
OPTIONAL_FIELDS: tuple[str, ...] = (
    "instructions",
    "temperature",
    "top_p",
    "max_output_tokens",
    "frequency_penalty",
    "presence_penalty",
    "max_tool_calls",
    "tool_choice",
    "tools",
    "parallel_tool_calls",
    "top_logprobs",
    "seed",
    "stream_options",
    "truncation",
    "store",
    "reasoning",
    "metadata",
)


@dataclass(frozen=True, slots=True)
class Request:
    """Immutable request for a Responses endpoint.

    Build it with :func:`build_request` (or :meth:`Conversation.generate_request`)
    so configuration parameters are validated and applied in order. Fields set
    directly hold wire values and are checked by the same parameter classes,
    raising InvalidValueError. Requests hold mappings and are unhashable.
    """

    __hash__ = None  # type: ignore[assignment]

    model: str
    messages: tuple[Message, ...] = ()
    previous_response_id: str | None = None
    stream: bool = False
    instructions: str | None = None
    temperature: float | None = None
    top_p: float | None = None
    max_output_tokens: int | None = None
    frequency_penalty: float | None = None
    presence_penalty: float | None = None
    max_tool_calls: int | None = None
    tool_choice: str | None = None
    tools: tuple[Tool, ...] | None = None
    parallel_tool_calls: bool | None = None
    top_logprobs: int | None = None
    seed: int | None = None
    stream_options: Mapping[str, bool] | None = None
    truncation: str | None = None
    store: bool | None = None
    reasoning: Mapping[str, str] | None = None
    metadata: Mapping[str, str] | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.model, str) or not self.model.strip():
            raise MissingModelError()
        object.__setattr__(self, "messages", tuple(self.messages))
        for name in OPTIONAL_FIELDS:
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, PARAMETERS_BY_FIELD[name].from_wire(value).wire_value())

    def with_stream(self, stream: bool = True) -> Request:
        if self.stream == stream:
            return self
        return dataclasses.replace(self, stream=stream)

    def to_payload(self) -> dict[str, Any]:
        """Wire representation with snake_case keys; unset fields are omitted."""

        payload: dict[str, Any] = {
            "model": self.model,
            "input": [message.to_dict() for message in self.messages],
            "stream": self.stream,
        }
        if self.previous_response_id is not None:
            payload["previous_response_id"] = self.previous_response_id
        for name in OPTIONAL_FIELDS:
            value = getattr(self, name)
            if value is None:
                continue
            if name == "tools":
                payload[name] = [tool.to_dict() for tool in value]
            elif isinstance(value, Mapping):
                payload[name] = dict(value)
            else:
                payload[name] = value
        return payload

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Request:
        """Decode a wire payload produced by :meth:`to_payload`."""

        raw_input = payload.get("input", [])
        if isinstance(raw_input, str):
            messages: tuple[Message, ...] = (UserMessage(raw_input),)
        elif isinstance(raw_input, list):
            messages = tuple(message_from_dict(item) for item in raw_input)
        else:
            raise DecodingFailedError("input must be a string or a list of items")

        fields: dict[str, Any] = {}
        for name in OPTIONAL_FIELDS:
            if payload.get(name) is None:
                continue
            value = payload[name]
            if name == "tools":
                if not isinstance(value, list) or not all(isinstance(item, Mapping) for item in value):
                    raise DecodingFailedError("tools must be a list of tool objects")
                value = tuple(Tool.from_dict(item) for item in value)
            fields[name] = value

        model = payload.get("model")
        if not isinstance(model, str):
            raise DecodingFailedError("model must be a string")
        try:
            return cls(
                model=model,
                messages=messages,
                previous_response_id=payload.get("previous_response_id"),
                stream=bool(payload.get("stream", False)),
                **fields,
            )
        except InvalidValueError as exc:
            raise DecodingFailedError(str(exc)) from exc


def build_request(
    model: str,
    messages: Iterable[Message] = (),
    config: Iterable[ConfigParameter] = (),
    *,
    previous_response_id: str | None = None,
    stream: bool = False,
) -> Request:
    """Validate inputs and assemble a Request.

    Parameters are applied in the order given; later parameters overwrite
    earlier ones targeting the same field. The first failing parameter aborts
    the build and nothing partial is returned.
    """

    if not isinstance(model, str) or not model.strip():
        raise MissingModelError()

    draft: dict[str, Any] = {}
    for parameter in config:
        if not isinstance(parameter, ConfigParameter):
            raise InvalidParameterError(type(parameter).__name__, "not a configuration parameter")
        parameter.apply(draft)

    if draft.get("tool_choice") == ToolChoiceMode.REQUIRED.value and not draft.get("tools"):
        raise InvalidParameterError("tool_choice", "'required' needs at least one tool")

    return Request(
        model=model,
        messages=tuple(messages),
        previous_response_id=previous_response_id,
        stream=stream,
        **draft,
    )


class Conversation:
    """Append-only message history that materializes new requests."""

    def __init__(self, messages: Iterable[Message] = ()) -> None:
        self._messages: list[Message] = list(messages)

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))

    def append(self, message: Message) -> None:
        if not isinstance(message, Message):
            raise TypeError(f"expected a Message, got {message!r}")
        self._messages.append(message)

    def append_system(self, content: str | Sequence[ContentPart]) -> None:
        self.append(SystemMessage(content))

    def append_user(self, content: str | Sequence[ContentPart]) -> None:
        self.append(UserMessage(content))

    def append_assistant(self, content: str | Sequence[ContentPart]) -> None:
        self.append(AssistantMessage(content))

    def append_tool(self, call_id: str, output: str) -> None:
        self.append(ToolMessage(call_id, output))

    def generate_request(
        self,
        model: str,
        *,
        config: Iterable[ConfigParameter] = (),
        input: Iterable[Message] = (),
        previous_response_id: str | None = None,
        stream: bool = False,
    ) -> Request:
        """Build a request from the history plus ``input``.

        Fresh input is appended to the history only once the request builds.
        """

        fresh = list(input)
        request = build_request(
            model,
            [*self._messages, *fresh],
            config,
            previous_response_id=previous_response_id,
            stream=stream,
        )
        self._messages.extend(fresh)
        return request


__all__ = ["Conversation", "OPTIONAL_FIELDS", "Request", "build_request"]
