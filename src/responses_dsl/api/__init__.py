"""Responses API client package."""

from __future__ import annotations

from .client import LLMClient, ResponseStream  # noqa: F401
from .errors import (  # noqa: F401
    AuthenticationFailedError,
    DecodingFailedError,
    EncodingFailedError,
    HttpError,
    InvalidParameterError,
    InvalidResponseError,
    InvalidURLError,
    InvalidValueError,
    JSONParsingError,
    LLMError,
    MissingBaseURLError,
    MissingModelError,
    NetworkError,
    RateLimitError,
    RequestTimeoutError,
    ServerError,
    SslError,
)
from .events import (  # noqa: F401
    ContentPartAdded,
    ContentPartDone,
    FunctionCallArgumentsDelta,
    FunctionCallArgumentsDone,
    OutputItemAdded,
    OutputItemDone,
    OutputTextDelta,
    OutputTextDone,
    ResponseCompleted,
    ResponseCreated,
    ResponseEvent,
    ResponseIncomplete,
    ResponseInProgress,
    UnknownEvent,
)
from .parameters import (  # noqa: F401
    ConfigParameter,
    FrequencyPenalty,
    Instructions,
    MaxOutputTokens,
    MaxToolCalls,
    Metadata,
    ParallelToolCalls,
    PresencePenalty,
    Reasoning,
    ReasoningEffort,
    Seed,
    Store,
    StreamOptions,
    Temperature,
    ToolChoice,
    ToolChoiceMode,
    ToolsList,
    TopLogprobs,
    TopP,
    Truncation,
    TruncationMode,
    tools,
)
from .parsing import SSEDecoder, parse_stream  # noqa: F401
from .request import Conversation, Request, build_request  # noqa: F401
from .response import (  # noqa: F401
    FileSearchCall,
    FunctionCall,
    OutputMessage,
    OutputText,
    Refusal,
    Response,
    ToolCall,
    UnknownContent,
    Usage,
    WebSearchCall,
)
from .transport import (  # noqa: F401
    HttpResponsesTransport,
    MockResponsesTransport,
    OpenAISDKResponsesTransport,
    ResponsesTransport,
)
from .types import (  # noqa: F401
    AssistantMessage,
    ContentPart,
    FileData,
    FileRef,
    FileSearchTool,
    FunctionTool,
    ImageDetail,
    ImageRef,
    JSONValue,
    Message,
    Role,
    SearchContextSize,
    SystemMessage,
    Text,
    Tool,
    ToolMessage,
    ToolType,
    UserMessage,
    WebSearchPreviewTool,
    assistant,
    system,
    tool_output,
    user,
)
