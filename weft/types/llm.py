"""Provider adapter contract."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from .functions import FunctionDefinition
from .messages import FunctionCall, IdSource, Message

if TYPE_CHECKING:
    from ..config import FunctionCallingPolicy


@dataclass
class ProviderResponse:
    text: str = ""
    function_calls: list[FunctionCall] = field(default_factory=list)
    model: str | None = None


@dataclass
class CallStart:
    index: int
    call_id: str
    name: str


@dataclass
class CallDelta:
    index: int
    partial_args: str = ""


@dataclass
class StreamChunk:
    """One adapter-level signal decoded from a raw stream frame."""

    text: str | None = None
    reasoning: str | None = None
    call_start: CallStart | None = None
    call_delta: CallDelta | None = None
    call_end: int | None = None
    finish_reason: str | None = None


@dataclass
class StreamParseState:
    """Mutable per-round state an adapter threads through ``parse_stream_frame``."""

    model: str | None = None
    open_calls: set[int] = field(default_factory=set)


@runtime_checkable
class ProviderAdapter(Protocol):
    name: str
    id_source: IdSource

    def build_request(
        self,
        messages: Sequence[Message],
        system: str,
        policy: FunctionCallingPolicy,
        functions: Sequence[FunctionDefinition],
        *,
        stream: bool = False,
    ) -> dict[str, Any]: ...

    def parse_response(self, raw: Any) -> ProviderResponse: ...

    def parse_stream_frame(self, raw_frame: Any, state: StreamParseState) -> list[StreamChunk]: ...

    async def send(self, request: dict[str, Any]) -> Any: ...

    def open_stream(self, request: dict[str, Any]) -> AsyncIterator[Any]: ...
