"""Validated configuration parameters for Responses requests.

Each parameter checks its value when constructed, so an instance that exists
is always safe to apply. Applying a parameter is plain assignment into the
request draft: when two parameters target the same field the later one wins.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, MutableMapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, TypeAlias, get_args

from responses_dsl.api.errors import InvalidValueError
from responses_dsl.api.types import Tool


class ToolChoiceMode(str, Enum):
    NONE = "none"
    AUTO = "auto"
    REQUIRED = "required"


class TruncationMode(str, Enum):
    AUTO = "auto"
    DISABLED = "disabled"


class ReasoningEffort(str, Enum):
    MINIMAL = "minimal"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _check_number(name: str, value: Any, low: float, high: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
        raise InvalidValueError(f"{name} must be a number")
    if not low <= value <= high:
        raise InvalidValueError(f"{name} must be between {low:g} and {high:g}, got {value}")
    return value


def _check_int(name: str, value: Any, low: int, high: int | None = None) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidValueError(f"{name} must be an integer")
    if value < low or (high is not None and value > high):
        bounds = f"between {low} and {high}" if high is not None else f"at least {low}"
        raise InvalidValueError(f"{name} must be {bounds}, got {value}")
    return value


def _check_bool(name: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise InvalidValueError(f"{name} must be a boolean")
    return value


class ConfigParameter:
    """Base for request parameters; subclasses set ``field`` and ``value``."""

    __slots__ = ()

    field: ClassVar[str]

    @classmethod
    def from_wire(cls, value: Any) -> ConfigParameter:
        """Rebuild the parameter from its wire value, validating it again."""

        return cls(value)  # type: ignore[call-arg]

    def wire_value(self) -> Any:
        return getattr(self, "value")

    def apply(self, draft: MutableMapping[str, Any]) -> None:
        draft[self.field] = self.wire_value()


@dataclass(frozen=True, slots=True)
class Temperature(ConfigParameter):
    value: float
    field: ClassVar[str] = "temperature"

    def __post_init__(self) -> None:
        _check_number("temperature", self.value, 0.0, 2.0)


@dataclass(frozen=True, slots=True)
class TopP(ConfigParameter):
    value: float
    field: ClassVar[str] = "top_p"

    def __post_init__(self) -> None:
        _check_number("top_p", self.value, 0.0, 1.0)


@dataclass(frozen=True, slots=True)
class MaxOutputTokens(ConfigParameter):
    value: int
    field: ClassVar[str] = "max_output_tokens"

    def __post_init__(self) -> None:
        _check_int("max_output_tokens", self.value, 1)


@dataclass(frozen=True, slots=True)
class FrequencyPenalty(ConfigParameter):
    value: float
    field: ClassVar[str] = "frequency_penalty"

    def __post_init__(self) -> None:
        _check_number("frequency_penalty", self.value, -2.0, 2.0)


@dataclass(frozen=True, slots=True)
class PresencePenalty(ConfigParameter):
    value: float
    field: ClassVar[str] = "presence_penalty"

    def __post_init__(self) -> None:
        _check_number("presence_penalty", self.value, -2.0, 2.0)


@dataclass(frozen=True, slots=True)
class MaxToolCalls(ConfigParameter):
    value: int
    field: ClassVar[str] = "max_tool_calls"

    def __post_init__(self) -> None:
        _check_int("max_tool_calls", self.value, 1, 128)


@dataclass(frozen=True, slots=True)
class ToolChoice(ConfigParameter):
    value: ToolChoiceMode
    field: ClassVar[str] = "tool_choice"

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "value", ToolChoiceMode(self.value))
        except ValueError as exc:
            allowed = ", ".join(mode.value for mode in ToolChoiceMode)
            raise InvalidValueError(f"tool_choice must be one of {allowed}, got {self.value!r}") from exc

    def wire_value(self) -> str:
        return self.value.value


@dataclass(frozen=True, slots=True)
class ToolsList(ConfigParameter):
    __hash__ = None  # type: ignore[assignment]

    value: tuple[Tool, ...]
    field: ClassVar[str] = "tools"

    def __post_init__(self) -> None:
        if isinstance(self.value, Tool):
            object.__setattr__(self, "value", (self.value,))
        try:
            tools = tuple(self.value)
        except TypeError as exc:
            raise InvalidValueError("tools must be a sequence of Tool instances") from exc
        if not tools:
            raise InvalidValueError("tools list cannot be empty")
        for tool in tools:
            if not isinstance(tool, Tool):
                raise InvalidValueError(f"tools must be Tool instances, got {tool!r}")
        object.__setattr__(self, "value", tools)

    def wire_value(self) -> tuple[Tool, ...]:
        return self.value


@dataclass(frozen=True, slots=True)
class TopLogprobs(ConfigParameter):
    value: int
    field: ClassVar[str] = "top_logprobs"

    def __post_init__(self) -> None:
        _check_int("top_logprobs", self.value, 0, 20)


@dataclass(frozen=True, slots=True)
class Seed(ConfigParameter):
    value: int
    field: ClassVar[str] = "seed"

    def __post_init__(self) -> None:
        _check_int("seed", self.value, 0)


@dataclass(frozen=True, slots=True)
class StreamOptions(ConfigParameter):
    include_usage: bool | None = None
    include_obfuscation: bool | None = None
    field: ClassVar[str] = "stream_options"

    def __post_init__(self) -> None:
        if self.include_usage is None and self.include_obfuscation is None:
            raise InvalidValueError("stream_options needs at least one option")
        if self.include_usage is not None:
            _check_bool("include_usage", self.include_usage)
        if self.include_obfuscation is not None:
            _check_bool("include_obfuscation", self.include_obfuscation)

    @classmethod
    def from_wire(cls, value: Any) -> StreamOptions:
        if not isinstance(value, Mapping):
            raise InvalidValueError("stream_options must be a mapping")
        try:
            return cls(**value)
        except TypeError as exc:
            raise InvalidValueError(f"unsupported stream_options: {', '.join(map(str, value))}") from exc

    def wire_value(self) -> dict[str, bool]:
        options: dict[str, bool] = {}
        if self.include_usage is not None:
            options["include_usage"] = self.include_usage
        if self.include_obfuscation is not None:
            options["include_obfuscation"] = self.include_obfuscation
        return options


@dataclass(frozen=True, slots=True)
class ParallelToolCalls(ConfigParameter):
    value: bool
    field: ClassVar[str] = "parallel_tool_calls"

    def __post_init__(self) -> None:
        _check_bool("parallel_tool_calls", self.value)


@dataclass(frozen=True, slots=True)
class Truncation(ConfigParameter):
    value: TruncationMode
    field: ClassVar[str] = "truncation"

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "value", TruncationMode(self.value))
        except ValueError as exc:
            raise InvalidValueError(f"truncation must be auto or disabled, got {self.value!r}") from exc

    def wire_value(self) -> str:
        return self.value.value


@dataclass(frozen=True, slots=True)
class Store(ConfigParameter):
    value: bool
    field: ClassVar[str] = "store"

    def __post_init__(self) -> None:
        _check_bool("store", self.value)


@dataclass(frozen=True, slots=True)
class Reasoning(ConfigParameter):
    effort: ReasoningEffort
    field: ClassVar[str] = "reasoning"

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "effort", ReasoningEffort(self.effort))
        except ValueError as exc:
            raise InvalidValueError(f"unsupported reasoning effort: {self.effort!r}") from exc

    @classmethod
    def from_wire(cls, value: Any) -> Reasoning:
        if not isinstance(value, Mapping) or set(value) != {"effort"}:
            raise InvalidValueError("reasoning must be a mapping with only an effort")
        return cls(value["effort"])

    def wire_value(self) -> dict[str, str]:
        return {"effort": self.effort.value}


MAX_METADATA_PAIRS = 16
MAX_METADATA_KEY_LENGTH = 64
MAX_METADATA_VALUE_LENGTH = 512


@dataclass(frozen=True, slots=True)
class Metadata(ConfigParameter):
    """String key/value pairs attached to the response; unhashable."""

    __hash__ = None  # type: ignore[assignment]

    value: Mapping[str, str]
    field: ClassVar[str] = "metadata"

    def __post_init__(self) -> None:
        if not isinstance(self.value, Mapping):
            raise InvalidValueError("metadata must be a mapping of strings")
        if len(self.value) > MAX_METADATA_PAIRS:
            raise InvalidValueError(f"metadata supports at most {MAX_METADATA_PAIRS} pairs")
        for key, item in self.value.items():
            if not isinstance(key, str) or not isinstance(item, str):
                raise InvalidValueError("metadata keys and values must be strings")
            if len(key) > MAX_METADATA_KEY_LENGTH:
                raise InvalidValueError(f"metadata key {key!r} exceeds {MAX_METADATA_KEY_LENGTH} characters")
            if len(item) > MAX_METADATA_VALUE_LENGTH:
                raise InvalidValueError(f"metadata value for {key!r} exceeds {MAX_METADATA_VALUE_LENGTH} characters")
        object.__setattr__(self, "value", dict(self.value))

    def wire_value(self) -> dict[str, str]:
        return dict(self.value)


@dataclass(frozen=True, slots=True)
class Instructions(ConfigParameter):
    value: str
    field: ClassVar[str] = "instructions"

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value.strip():
            raise InvalidValueError("instructions cannot be empty")


Parameter: TypeAlias = (
    Temperature
    | TopP
    | MaxOutputTokens
    | FrequencyPenalty
    | PresencePenalty
    | MaxToolCalls
    | ToolChoice
    | ToolsList
    | TopLogprobs
    | Seed
    | StreamOptions
    | ParallelToolCalls
    | Truncation
    | Store
    | Reasoning
    | Metadata
    | Instructions
)

# Parameter class for each request field it populates.
PARAMETERS_BY_FIELD: dict[str, type[ConfigParameter]] = {
    parameter.field: parameter for parameter in get_args(Parameter)
}


def tools(*items: Tool | Sequence[Tool]) -> ToolsList:
    """Build a ToolsList from tools given inline or as sequences."""

    flat: list[Tool] = []
    for item in items:
        if isinstance(item, Tool):
            flat.append(item)
        else:
            flat.extend(item)
    return ToolsList(tuple(flat))


__all__ = [
    "ConfigParameter",
    "FrequencyPenalty",
    "Instructions",
    "MaxOutputTokens",
    "MaxToolCalls",
    "Metadata",
    "PARAMETERS_BY_FIELD",
    "ParallelToolCalls",
    "Parameter",
    "PresencePenalty",
    "Reasoning",
    "ReasoningEffort",
    "Seed",
    "Store",
    "StreamOptions",
    "Temperature",
    "ToolChoice",
    "ToolChoiceMode",
    "ToolsList",
    "TopLogprobs",
    "TopP",
    "Truncation",
    "TruncationMode",
    "tools",
]
