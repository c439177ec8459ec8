"""Structured output: schema instruction, parse, and bounded repair rounds."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from pydantic import TypeAdapter, ValidationError

from ..errors import StructuredOutputError
from ..schema import extract_json, generate_schema, schema_text, shape_name

logger = logging.getLogger(__name__)

T = TypeVar("T")

RepairFn = Callable[[str], Awaitable[str]]

_INSTRUCTION = (
    "\n\n[STRUCTURED OUTPUT] You MUST respond with ONLY valid JSON. "
    "No markdown code blocks, no explanation, no text before or after the JSON. "
    "The JSON must conform to this schema:\n{schema}"
)

_CORRECTION = (
    "[STRUCTURED OUTPUT CORRECTION] Your previous response was not valid JSON "
    "conforming to the required schema.\n\n"
    "Your output was:\n{raw}\n\n"
    "Parse error: {error}\n\n"
    "Output ONLY valid JSON that strictly conforms to the schema. "
    "No markdown code blocks, no explanation, no text before or after the JSON."
)


def structured_instruction(schema: str) -> str:
    return _INSTRUCTION.format(schema=schema)


def build_correction_prompt(raw: str, error: str) -> str:
    return _CORRECTION.format(raw=raw, error=error)


class StructuredOutputResolver(Generic[T]):
    """
    Parses a final answer into ``target``, re-prompting on failure.

    ``max_repair_attempts`` counts correction rounds after the first parse, so
    at most ``1 + max_repair_attempts`` parses happen before
    :class:`StructuredOutputError` is raised. Only parse/validation failures
    trigger repair; an error raised by the repair round itself propagates.
    """

    def __init__(self, target: Any, max_repair_attempts: int = 2) -> None:
        self.target = target
        self.max_repair_attempts = max(0, max_repair_attempts)
        self.schema = generate_schema(target)
        self.schema_json = schema_text(self.schema)
        self._adapter: TypeAdapter[T] = TypeAdapter(target)

    @property
    def instruction(self) -> str:
        return structured_instruction(self.schema_json)

    @property
    def max_attempts(self) -> int:
        return 1 + self.max_repair_attempts

    def parse(self, raw: str) -> T:
        return self._adapter.validate_json(extract_json(raw))

    async def resolve(self, raw: str, repair: RepairFn) -> T:
        first = last = raw
        error = ""
        for attempt in range(1, self.max_attempts + 1):
            if attempt > 1:
                last = await repair(build_correction_prompt(last, error))
            try:
                value = self.parse(last)
            except ValidationError as e:
                error = str(e)
                logger.debug(
                    "Structured output attempt %d/%d for %s failed: %s",
                    attempt, self.max_attempts, shape_name(self.target), error,
                )
                continue
            if attempt > 1:
                logger.info("Structured output for %s repaired on attempt %d", shape_name(self.target), attempt)
            return value

        raise StructuredOutputError(
            shape_name(self.target), first, last, error or "Unknown error", self.max_attempts, self.schema_json
        )
