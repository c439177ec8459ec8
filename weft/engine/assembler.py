"""Per-round assembly of adapter stream chunks into events and function calls."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from ..errors import MalformedFunctionCallError
from ..types import (
    FunctionCall,
    FunctionCallStartedEvent,
    IdSource,
    ReasoningEvent,
    StreamChunk,
    StreamEvent,
    StreamOptions,
    TextEvent,
)

logger = logging.getLogger(__name__)


@dataclass
class _CallBlock:
    call_id: str
    name: str
    args: list[str] = field(default_factory=list)
    arguments: dict[str, Any] | None = None

    @property
    def complete(self) -> bool:
        return self.arguments is not None


class FrameAssembler:
    """
    Maps one round's ``StreamChunk`` sequence to StreamEvents.

    Text and reasoning deltas are buffered and surfaced immediately. A
    function-call start is surfaced once per call block, on the block-start
    edge. A call counts as complete only when its block has ended and the
    accumulated argument text parses as a JSON object.
    """

    def __init__(
        self,
        options: StreamOptions | None = None,
        round_no: int = 1,
        source: IdSource = IdSource.OPENAI,
    ) -> None:
        self.options = options or StreamOptions()
        self.round_no = round_no
        self.source = source
        self.model: str | None = None
        self._text: list[str] = []
        self._reasoning: list[str] = []
        self._blocks: dict[int, _CallBlock] = {}

    @property
    def text(self) -> str:
        return "".join(self._text)

    @property
    def reasoning(self) -> str:
        return "".join(self._reasoning)

    @property
    def has_calls(self) -> bool:
        return bool(self._blocks)

    def feed(self, chunk: StreamChunk) -> list[StreamEvent]:
        events: list[StreamEvent] = []
        if chunk.reasoning:
            self._reasoning.append(chunk.reasoning)
            if self.options.include_reasoning:
                events.append(ReasoningEvent(chunk.reasoning, self._metadata()))
        if chunk.text:
            self._text.append(chunk.text)
            events.append(TextEvent(chunk.text, self._metadata()))
        if chunk.call_start is not None:
            start = chunk.call_start
            if start.index not in self._blocks:
                self._blocks[start.index] = _CallBlock(start.call_id, start.name)
                if self.options.include_function_calls:
                    events.append(
                        FunctionCallStartedEvent(start.call_id, start.name, self._metadata(status="started"))
                    )
        if chunk.call_delta is not None:
            block = self._blocks.get(chunk.call_delta.index)
            if block is not None and not block.complete:
                block.args.append(chunk.call_delta.partial_args)
        if chunk.call_end is not None:
            block = self._blocks.get(chunk.call_end)
            if block is not None and not block.complete:
                self._close(block)
        return events

    def finish(self) -> list[FunctionCall]:
        """Completed calls in block-start order. Raises if any block never completed."""
        calls = []
        for block in self._blocks.values():
            if not block.complete:
                raise MalformedFunctionCallError(
                    block.name, "argument stream ended without well-formed JSON"
                )
            calls.append(FunctionCall(block.call_id, block.name, block.arguments or {}, self.source))
        return calls

    def _close(self, block: _CallBlock) -> None:
        raw = "".join(block.args).strip() or "{}"
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            logger.debug("Call block %s ended with incomplete arguments: %r", block.name, raw)
            return
        if isinstance(parsed, dict):
            block.arguments = parsed

    def _metadata(self, **extra: Any) -> dict[str, Any] | None:
        if not self.options.include_metadata:
            return None
        return {"model": self.model, "round": self.round_no, **extra}
