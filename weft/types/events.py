"""Stream event types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class TextEvent:
    text: str
    metadata: dict[str, Any] | None = None
    type: str = "text"


@dataclass
class ReasoningEvent:
    text: str
    metadata: dict[str, Any] | None = None
    type: str = "reasoning"


@dataclass
class FunctionCallStartedEvent:
    call_id: str
    name: str
    metadata: dict[str, Any] | None = None
    type: str = "function_call_started"


@dataclass
class FunctionResultEvent:
    call_id: str
    name: str
    result: str
    duration_ms: int = 0
    metadata: dict[str, Any] | None = None
    type: str = "function_result"


@dataclass
class CompletionEvent:
    content: str
    rounds: int = 0
    metadata: dict[str, Any] | None = None
    type: str = "completion"


@dataclass
class ErrorEvent:
    error: str
    code: str = "UNKNOWN"
    metadata: dict[str, Any] | None = None
    type: str = "error"


StreamEvent = (
    TextEvent
    | ReasoningEvent
    | FunctionCallStartedEvent
    | FunctionResultEvent
    | CompletionEvent
    | ErrorEvent
)


@dataclass(frozen=True)
class StreamOptions:
    include_function_calls: bool = True
    include_reasoning: bool = False
    include_metadata: bool = False

    @classmethod
    def default(cls) -> StreamOptions:
        return cls()

    @classmethod
    def text_only(cls) -> StreamOptions:
        return cls(include_function_calls=False)

    @classmethod
    def full(cls) -> StreamOptions:
        return cls(include_reasoning=True, include_metadata=True)
