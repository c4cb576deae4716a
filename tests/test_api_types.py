import pytest

from responses_dsl.api.errors import DecodingFailedError, InvalidValueError
from responses_dsl.api.types import (
    AssistantMessage,
    FileData,
    FileRef,
    ImageDetail,
    ImageRef,
    Role,
    SearchContextSize,
    SystemMessage,
    Text,
    Tool,
    ToolMessage,
    ToolType,
    UserMessage,
    assistant,
    content_part_from_dict,
    message_from_dict,
    system,
    tool_output,
    user,
)


def test_string_content_becomes_single_text_part() -> None:
    message = SystemMessage("You are a helpful assistant.")

    assert message.role is Role.SYSTEM
    assert message.content == (Text("You are a helpful assistant."),)
    assert message.text == "You are a helpful assistant."


def test_message_helpers_build_role_specific_messages() -> None:
    assert system("s") == SystemMessage("s")
    assert user("u") == UserMessage("u")
    assert assistant("a") == AssistantMessage("a")
    assert tool_output("call_1", "42") == ToolMessage("call_1", "42")
    assert user("u") != assistant("u")


def test_empty_content_is_rejected() -> None:
    with pytest.raises(InvalidValueError):
        UserMessage([])


def test_unknown_content_part_is_rejected() -> None:
    with pytest.raises(InvalidValueError):
        UserMessage(["not a part"])  # type: ignore[list-item]


def test_messages_are_immutable() -> None:
    message = UserMessage("hi")
    with pytest.raises(AttributeError):
        message.content = ()  # type: ignore[misc]


def test_user_message_wire_shape_with_mixed_parts() -> None:
    message = UserMessage(
        [
            Text("What is in this image?"),
            ImageRef("https://example.com/cat.png", detail=ImageDetail.LOW),
            FileRef("file-123"),
            FileData("data:application/pdf;base64,AAAA", filename="doc.pdf"),
        ]
    )

    assert message.to_dict() == {
        "role": "user",
        "content": [
            {"type": "input_text", "text": "What is in this image?"},
            {"type": "input_image", "image_url": "https://example.com/cat.png", "detail": "low"},
            {"type": "input_file", "file_id": "file-123"},
            {"type": "input_file", "file_data": "data:application/pdf;base64,AAAA", "filename": "doc.pdf"},
        ],
    }


def test_assistant_text_uses_output_text_tag() -> None:
    assert AssistantMessage("done").to_dict() == {
        "role": "assistant",
        "content": [{"type": "output_text", "text": "done"}],
    }


def test_tool_message_serializes_as_function_call_output() -> None:
    message = ToolMessage("call_9", '{"temp": 21}')

    assert message.role is Role.TOOL
    assert message.to_dict() == {"type": "function_call_output", "call_id": "call_9", "output": '{"temp": 21}'}


def test_tool_message_requires_call_id() -> None:
    with pytest.raises(InvalidValueError):
        ToolMessage(" ", "out")


@pytest.mark.parametrize(
    "factory",
    [
        lambda: ImageRef(""),
        lambda: ImageRef("https://x", detail="huge"),
        lambda: FileRef(""),
        lambda: FileData("https://not-a-data-url"),
    ],
)
def test_content_part_validation(factory) -> None:
    with pytest.raises(InvalidValueError):
        factory()


def test_image_detail_accepts_plain_string() -> None:
    assert ImageRef("https://x", detail="high").detail is ImageDetail.HIGH


def test_message_round_trips_through_wire_dict() -> None:
    original = UserMessage([Text("hello"), ImageRef("https://example.com/a.png")])

    assert message_from_dict(original.to_dict()) == original
    assert message_from_dict(ToolMessage("c1", "ok").to_dict()) == ToolMessage("c1", "ok")


def test_message_from_dict_accepts_plain_text_tag_and_string_content() -> None:
    assert message_from_dict({"role": "user", "content": [{"type": "text", "text": "hi"}]}) == UserMessage("hi")
    assert message_from_dict({"role": "system", "content": "be brief"}) == SystemMessage("be brief")


@pytest.mark.parametrize(
    "data",
    [
        {"role": "narrator", "content": "x"},
        {"role": "tool", "content": "x"},
        {"role": "user", "content": []},
        {"role": "user", "content": [{"type": "input_audio", "data": "..."}]},
        {"type": "function_call_output", "output": "x"},
    ],
)
def test_message_from_dict_rejects_bad_items(data) -> None:
    with pytest.raises(DecodingFailedError):
        message_from_dict(data)


def test_content_part_from_dict_reports_missing_field() -> None:
    with pytest.raises(DecodingFailedError, match="image_url"):
        content_part_from_dict({"type": "input_image"})


def test_function_tool_wire_shape() -> None:
    tool = Tool.function_tool(
        "get_weather",
        "Look up the weather",
        {"type": "object", "properties": {"city": {"type": "string"}}, "required": ["city"]},
    )

    assert tool.type is ToolType.FUNCTION
    assert tool.to_dict() == {
        "type": "function",
        "name": "get_weather",
        "description": "Look up the weather",
        "parameters": {"type": "object", "properties": {"city": {"type": "string"}}, "required": ["city"]},
        "strict": True,
    }


def test_file_search_and_web_search_tools() -> None:
    file_search = Tool.file_search_tool(["vs_1"], max_num_results=5)
    web = Tool.web_search_tool(search_context_size="high", allowed_domains=("example.com",))

    assert file_search.to_dict() == {"type": "file_search", "vector_store_ids": ["vs_1"], "max_num_results": 5}
    assert web.web_search_preview is not None
    assert web.web_search_preview.search_context_size is SearchContextSize.HIGH
    assert web.to_dict() == {
        "type": "web_search_preview",
        "search_context_size": "high",
        "filters": {"allowed_domains": ["example.com"]},
    }
    assert Tool.from_dict(web.to_dict()) == web
    assert Tool.from_dict(file_search.to_dict()) == file_search


def test_tool_payload_must_match_type() -> None:
    with pytest.raises(InvalidValueError):
        Tool(ToolType.FUNCTION)
    with pytest.raises(InvalidValueError):
        Tool(
            ToolType.FILE_SEARCH,
            file_search=Tool.file_search_tool(["vs"]).file_search,
            function=Tool.function_tool("f").function,
        )
    with pytest.raises(InvalidValueError):
        Tool("computer_use")  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "factory",
    [
        lambda: Tool.function_tool(""),
        lambda: Tool.file_search_tool([]),
        lambda: Tool.file_search_tool(["vs"], max_num_results=51),
        lambda: Tool.web_search_tool(search_context_size="maximum"),
    ],
)
def test_tool_payload_validation(factory) -> None:
    with pytest.raises(InvalidValueError):
        factory()


def test_tool_from_dict_rejects_unknown_type() -> None:
    with pytest.raises(DecodingFailedError):
        Tool.from_dict({"type": "code_interpreter"})
    with pytest.raises(DecodingFailedError):
        Tool.from_dict({"type": "function"})
