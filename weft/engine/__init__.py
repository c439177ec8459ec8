"""Completion engine: round loop, stream assembly, decoupled runs, structured output."""

from .assembler import FrameAssembler
from .decoupler import DecoupledRun, StreamDecoupler
from .rounds import EventSink, RoundExecutor, RoundOutcome
from .structured import StructuredOutputResolver, build_correction_prompt, structured_instruction

__all__ = [
    "FrameAssembler",
    "RoundExecutor",
    "RoundOutcome",
    "EventSink",
    "DecoupledRun",
    "StreamDecoupler",
    "StructuredOutputResolver",
    "build_correction_prompt",
    "structured_instruction",
]
