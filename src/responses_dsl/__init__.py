"""Declarative client for OpenAI-compatible Responses endpoints."""

from __future__ import annotations

__version__ = "0.1.0"

from responses_dsl.api import (  # noqa: E402,F401
    AssistantMessage,
    Conversation,
    FileData,
    FileRef,
    ImageRef,
    LLMClient,
    LLMError,
    Request,
    Response,
    ResponseStream,
    SystemMessage,
    Text,
    Tool,
    ToolMessage,
    UserMessage,
    assistant,
    build_request,
    system,
    tool_output,
    user,
)
from responses_dsl.config import LogLevel, Settings, load_settings  # noqa: E402,F401
from responses_dsl.logging import configure_logger  # noqa: E402,F401
