"""Core type definitions, re-exported from sub-modules."""

from .events import (
    CompletionEvent,
    ErrorEvent,
    FunctionCallStartedEvent,
    FunctionResultEvent,
    ReasoningEvent,
    StreamEvent,
    StreamOptions,
    TextEvent,
)
from .functions import FunctionDefinition, ParameterSchema
from .llm import (
    CallDelta,
    CallStart,
    ProviderAdapter,
    ProviderResponse,
    StreamChunk,
    StreamParseState,
)
from .messages import FUNCTION_CALL, FUNCTION_RESULT, FunctionCall, IdSource, Message, MetadataKeys, Role

__all__ = [
    "Message", "Role", "IdSource", "MetadataKeys", "FunctionCall", "FUNCTION_CALL", "FUNCTION_RESULT",
    "FunctionDefinition", "ParameterSchema",
    "StreamEvent", "TextEvent", "ReasoningEvent", "FunctionCallStartedEvent", "FunctionResultEvent",
    "CompletionEvent", "ErrorEvent", "StreamOptions",
    "ProviderAdapter", "ProviderResponse", "StreamChunk", "StreamParseState", "CallStart", "CallDelta",
]
