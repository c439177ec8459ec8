"""Function definition types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ParameterSchema(Protocol):
    def parse(self, raw: Any) -> Any: ...
    def to_json_schema(self) -> dict: ...


@dataclass
class FunctionDefinition:
    name: str
    description: str
    parameters: ParameterSchema
    handler: Any  # (parsed_args) -> Any | Awaitable[Any]
