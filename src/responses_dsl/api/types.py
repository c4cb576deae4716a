"""Domain models for requests sent to a Responses endpoint."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeAlias

from responses_dsl.api.errors import DecodingFailedError, InvalidValueError

JSONValue: TypeAlias = None | bool | int | float | str | list["JSONValue"] | dict[str, "JSONValue"]
JSONObject: TypeAlias = dict[str, JSONValue]


class Role(str, Enum):
    """Speaker of a message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ImageDetail(str, Enum):
    AUTO = "auto"
    LOW = "low"
    HIGH = "high"


# ---------------------------------------------------------------------------
# Content parts
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Text:
    text: str

    def __post_init__(self) -> None:
        if not isinstance(self.text, str):
            raise InvalidValueError("text content must be a string")

    def to_dict(self, role: Role = Role.USER) -> dict[str, Any]:
        kind = "output_text" if role is Role.ASSISTANT else "input_text"
        return {"type": kind, "text": self.text}


@dataclass(frozen=True, slots=True)
class ImageRef:
    url: str
    detail: ImageDetail | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.url, str) or not self.url.strip():
            raise InvalidValueError("image url cannot be empty")
        if self.detail is not None and not isinstance(self.detail, ImageDetail):
            try:
                object.__setattr__(self, "detail", ImageDetail(self.detail))
            except ValueError as exc:
                raise InvalidValueError(f"unsupported image detail: {self.detail!r}") from exc

    def to_dict(self, role: Role = Role.USER) -> dict[str, Any]:
        data: dict[str, Any] = {"type": "input_image", "image_url": self.url}
        if self.detail is not None:
            data["detail"] = self.detail.value
        return data


@dataclass(frozen=True, slots=True)
class FileRef:
    file_id: str

    def __post_init__(self) -> None:
        if not isinstance(self.file_id, str) or not self.file_id.strip():
            raise InvalidValueError("file_id cannot be empty")

    def to_dict(self, role: Role = Role.USER) -> dict[str, Any]:
        return {"type": "input_file", "file_id": self.file_id}


@dataclass(frozen=True, slots=True)
class FileData:
    """Inline file sent as a base64 ``data:`` URL."""

    data_url: str
    filename: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.data_url, str) or not self.data_url.startswith("data:"):
            raise InvalidValueError("file data must be a data: URL")

    def to_dict(self, role: Role = Role.USER) -> dict[str, Any]:
        data: dict[str, Any] = {"type": "input_file", "file_data": self.data_url}
        if self.filename:
            data["filename"] = self.filename
        return data


ContentPart: TypeAlias = Text | ImageRef | FileRef | FileData

_CONTENT_PART_TYPES = (Text, ImageRef, FileRef, FileData)


def content_part_from_dict(data: Mapping[str, Any]) -> ContentPart:
    """Decode one input content part from its wire mapping."""

    kind = data.get("type")
    try:
        if kind in {"input_text", "output_text", "text"}:
            return Text(text=data["text"])
        if kind == "input_image":
            return ImageRef(url=data["image_url"], detail=data.get("detail"))
        if kind == "input_file":
            if "file_id" in data:
                return FileRef(file_id=data["file_id"])
            return FileData(data_url=data["file_data"], filename=data.get("filename"))
    except KeyError as exc:
        raise DecodingFailedError(f"content part {kind!r} missing field {exc.args[0]!r}") from exc
    except InvalidValueError as exc:
        raise DecodingFailedError(f"content part {kind!r}: {exc}") from exc
    raise DecodingFailedError(f"unsupported content part type: {kind!r}")


def _normalize_content(content: str | Sequence[ContentPart]) -> tuple[ContentPart, ...]:
    if isinstance(content, str):
        return (Text(content),)
    parts = tuple(content)
    if not parts:
        raise InvalidValueError("message content cannot be empty")
    for part in parts:
        if not isinstance(part, _CONTENT_PART_TYPES):
            raise InvalidValueError(f"unsupported content part: {part!r}")
    return parts


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Message:
    """Single message in a conversation.

    Use the role-specific subclasses; ``content`` accepts a plain string as a
    shorthand for one ``Text`` part.
    """

    role: Role
    content: tuple[ContentPart, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "role", Role(self.role))
        object.__setattr__(self, "content", _normalize_content(self.content))

    @property
    def text(self) -> str:
        """Concatenated text of all ``Text`` parts."""

        return "".join(part.text for part in self.content if isinstance(part, Text))

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role.value,
            "content": [part.to_dict(self.role) for part in self.content],
        }


@dataclass(frozen=True, init=False)
class SystemMessage(Message):
    def __init__(self, content: str | Sequence[ContentPart]) -> None:
        super().__init__(Role.SYSTEM, content)  # type: ignore[arg-type]


@dataclass(frozen=True, init=False)
class UserMessage(Message):
    def __init__(self, content: str | Sequence[ContentPart]) -> None:
        super().__init__(Role.USER, content)  # type: ignore[arg-type]


@dataclass(frozen=True, init=False)
class AssistantMessage(Message):
    def __init__(self, content: str | Sequence[ContentPart]) -> None:
        super().__init__(Role.ASSISTANT, content)  # type: ignore[arg-type]


@dataclass(frozen=True, init=False)
class ToolMessage(Message):
    """Output of a tool call, fed back to the model as ``function_call_output``."""

    call_id: str = ""

    def __init__(self, call_id: str, output: str) -> None:
        if not isinstance(call_id, str) or not call_id.strip():
            raise InvalidValueError("call_id cannot be empty")
        super().__init__(Role.TOOL, output)  # type: ignore[arg-type]
        object.__setattr__(self, "call_id", call_id)

    def to_dict(self) -> dict[str, Any]:
        return {"type": "function_call_output", "call_id": self.call_id, "output": self.text}


_ROLE_CLASSES: dict[Role, type[Message]] = {
    Role.SYSTEM: SystemMessage,
    Role.USER: UserMessage,
    Role.ASSISTANT: AssistantMessage,
}


def message_from_dict(data: Mapping[str, Any]) -> Message:
    """Decode one ``input`` item back into a Message."""

    if data.get("type") == "function_call_output":
        try:
            return ToolMessage(call_id=data["call_id"], output=data["output"])
        except KeyError as exc:
            raise DecodingFailedError(f"function_call_output missing field {exc.args[0]!r}") from exc
        except InvalidValueError as exc:
            raise DecodingFailedError(str(exc)) from exc

    try:
        role = Role(data.get("role"))
    except ValueError as exc:
        raise DecodingFailedError(f"unsupported message role: {data.get('role')!r}") from exc
    message_cls = _ROLE_CLASSES.get(role)
    if message_cls is None:
        raise DecodingFailedError("tool messages must be function_call_output items")

    raw_content = data.get("content")
    if isinstance(raw_content, str):
        content: str | list[ContentPart] = raw_content
    elif isinstance(raw_content, list) and raw_content:
        content = [content_part_from_dict(part) for part in raw_content]
    else:
        raise DecodingFailedError("message content must be a string or a non-empty list")
    return message_cls(content)  # type: ignore[call-arg]


def system(content: str | Sequence[ContentPart]) -> SystemMessage:
    return SystemMessage(content)


def user(content: str | Sequence[ContentPart]) -> UserMessage:
    return UserMessage(content)


def assistant(content: str | Sequence[ContentPart]) -> AssistantMessage:
    return AssistantMessage(content)


def tool_output(call_id: str, output: str) -> ToolMessage:
    return ToolMessage(call_id, output)


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


class ToolType(str, Enum):
    FUNCTION = "function"
    FILE_SEARCH = "file_search"
    WEB_SEARCH_PREVIEW = "web_search_preview"


class SearchContextSize(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True, slots=True)
class FunctionTool:
    """JSON-schema function advertised to the model.

    Unhashable, since ``parameters`` is a mapping.
    """

    __hash__ = None  # type: ignore[assignment]

    name: str
    description: str | None = None
    parameters: Mapping[str, Any] = field(default_factory=dict)
    strict: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidValueError("function name cannot be empty")
        if not isinstance(self.parameters, Mapping):
            raise InvalidValueError("function parameters must be a JSON schema object")


@dataclass(frozen=True, slots=True)
class FileSearchTool:
    __hash__ = None  # type: ignore[assignment]

    vector_store_ids: tuple[str, ...]
    max_num_results: int | None = None
    filters: Mapping[str, Any] | None = None
    ranking_options: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        ids = tuple(self.vector_store_ids)
        if not ids or any(not isinstance(i, str) or not i for i in ids):
            raise InvalidValueError("file_search requires at least one vector store id")
        object.__setattr__(self, "vector_store_ids", ids)
        if self.max_num_results is not None and not 1 <= self.max_num_results <= 50:
            raise InvalidValueError("max_num_results must be between 1 and 50")


@dataclass(frozen=True, slots=True)
class WebSearchPreviewTool:
    __hash__ = None  # type: ignore[assignment]

    search_context_size: SearchContextSize | None = None
    user_location: Mapping[str, Any] | None = None
    allowed_domains: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.search_context_size is not None:
            try:
                object.__setattr__(self, "search_context_size", SearchContextSize(self.search_context_size))
            except ValueError as exc:
                raise InvalidValueError(f"unsupported search_context_size: {self.search_context_size!r}") from exc
        object.__setattr__(self, "allowed_domains", tuple(self.allowed_domains))


@dataclass(frozen=True, slots=True)
class Tool:
    """Capability exposed to the model; exactly one payload matches ``type``.

    Tools carry mappings (schemas, filters, locations) and are unhashable.
    """

    __hash__ = None  # type: ignore[assignment]

    type: ToolType
    function: FunctionTool | None = None
    file_search: FileSearchTool | None = None
    web_search_preview: WebSearchPreviewTool | None = None

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "type", ToolType(self.type))
        except ValueError as exc:
            raise InvalidValueError(f"unsupported tool type: {self.type!r}") from exc
        payloads = {
            ToolType.FUNCTION: self.function,
            ToolType.FILE_SEARCH: self.file_search,
            ToolType.WEB_SEARCH_PREVIEW: self.web_search_preview,
        }
        if payloads[self.type] is None:
            raise InvalidValueError(f"{self.type.value} tool requires a {self.type.value} payload")
        extra = [kind.value for kind, payload in payloads.items() if kind is not self.type and payload is not None]
        if extra:
            raise InvalidValueError(f"{self.type.value} tool cannot carry {', '.join(extra)} payloads")

    @classmethod
    def function_tool(
        cls,
        name: str,
        description: str | None = None,
        parameters: Mapping[str, Any] | None = None,
        *,
        strict: bool = True,
    ) -> Tool:
        return cls(ToolType.FUNCTION, function=FunctionTool(name, description, parameters or {}, strict))

    @classmethod
    def file_search_tool(cls, vector_store_ids: Sequence[str], **options: Any) -> Tool:
        return cls(ToolType.FILE_SEARCH, file_search=FileSearchTool(tuple(vector_store_ids), **options))

    @classmethod
    def web_search_tool(cls, **options: Any) -> Tool:
        return cls(ToolType.WEB_SEARCH_PREVIEW, web_search_preview=WebSearchPreviewTool(**options))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type.value}
        if self.function is not None:
            data["name"] = self.function.name
            if self.function.description is not None:
                data["description"] = self.function.description
            data["parameters"] = dict(self.function.parameters)
            data["strict"] = self.function.strict
        elif self.file_search is not None:
            data["vector_store_ids"] = list(self.file_search.vector_store_ids)
            if self.file_search.max_num_results is not None:
                data["max_num_results"] = self.file_search.max_num_results
            if self.file_search.filters is not None:
                data["filters"] = dict(self.file_search.filters)
            if self.file_search.ranking_options is not None:
                data["ranking_options"] = dict(self.file_search.ranking_options)
        elif self.web_search_preview is not None:
            web = self.web_search_preview
            if web.search_context_size is not None:
                data["search_context_size"] = web.search_context_size.value
            if web.user_location is not None:
                data["user_location"] = dict(web.user_location)
            if web.allowed_domains:
                data["filters"] = {"allowed_domains": list(web.allowed_domains)}
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Tool:
        kind = data.get("type")
        try:
            if kind == ToolType.FUNCTION.value:
                return cls.function_tool(
                    data["name"],
                    data.get("description"),
                    data.get("parameters") or {},
                    strict=bool(data.get("strict", True)),
                )
            if kind == ToolType.FILE_SEARCH.value:
                return cls.file_search_tool(
                    data["vector_store_ids"],
                    max_num_results=data.get("max_num_results"),
                    filters=data.get("filters"),
                    ranking_options=data.get("ranking_options"),
                )
            if kind == ToolType.WEB_SEARCH_PREVIEW.value:
                filters = data.get("filters") or {}
                return cls.web_search_tool(
                    search_context_size=data.get("search_context_size"),
                    user_location=data.get("user_location"),
                    allowed_domains=tuple(filters.get("allowed_domains", ())),
                )
        except KeyError as exc:
            raise DecodingFailedError(f"{kind} tool missing field {exc.args[0]!r}") from exc
        except InvalidValueError as exc:
            raise DecodingFailedError(str(exc)) from exc
        raise DecodingFailedError(f"unsupported tool type: {kind!r}")


__all__ = [
    "AssistantMessage",
    "ContentPart",
    "FileData",
    "FileRef",
    "FileSearchTool",
    "FunctionTool",
    "ImageDetail",
    "ImageRef",
    "JSONObject",
    "JSONValue",
    "Message",
    "Role",
    "SearchContextSize",
    "SystemMessage",
    "Text",
    "Tool",
    "ToolMessage",
    "ToolType",
    "UserMessage",
    "WebSearchPreviewTool",
    "assistant",
    "content_part_from_dict",
    "message_from_dict",
    "system",
    "tool_output",
    "user",
]
