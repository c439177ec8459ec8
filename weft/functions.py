"""Function registry and pydantic-backed parameter schemas."""

from __future__ import annotations

import inspect
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel, ValidationError

from .types import FunctionCall, FunctionDefinition

logger = logging.getLogger(__name__)


class ModelParameters:
    """
    Parameters declared as a pydantic model.

    The model's JSON Schema is what providers advertise, and the decoded
    call arguments are validated into a model instance before the handler
    sees them.
    """

    def __init__(self, model: type[BaseModel]) -> None:
        self.model = model
        self._schema: dict | None = None

    def parse(self, arguments: Any) -> BaseModel:
        return self.model.model_validate(arguments or {})

    def to_json_schema(self) -> dict:
        if self._schema is None:
            self._schema = self.model.model_json_schema()
        return self._schema


class JsonSchemaParameters:
    """Parameters declared as a plain JSON Schema; handlers get the argument dict unchanged."""

    def __init__(self, schema: dict[str, Any]) -> None:
        self.schema = schema

    def parse(self, arguments: Any) -> dict[str, Any]:
        # providers occasionally send null or a bare value for argument-less calls
        if not isinstance(arguments, dict):
            return {}
        return arguments

    def to_json_schema(self) -> dict:
        return self.schema


_EMPTY_OBJECT = {"type": "object", "properties": {}}


def define_function(
    name: str,
    description: str,
    handler: Callable[..., Any | Awaitable[Any]],
    parameters: type[BaseModel] | dict[str, Any] | None = None,
) -> FunctionDefinition:
    if parameters is None:
        schema: Any = JsonSchemaParameters(dict(_EMPTY_OBJECT))
    elif isinstance(parameters, dict):
        schema = JsonSchemaParameters(parameters)
    else:
        schema = ModelParameters(parameters)
    return FunctionDefinition(name=name, description=description, parameters=schema, handler=handler)


class FunctionRegistry:
    def __init__(self) -> None:
        self._functions: dict[str, FunctionDefinition] = {}

    def register(self, definition: FunctionDefinition) -> None:
        self._functions[definition.name] = definition

    def add(
        self,
        name: str,
        description: str,
        handler: Callable[..., Any],
        parameters: type[BaseModel] | dict[str, Any] | None = None,
    ) -> FunctionDefinition:
        definition = define_function(name, description, handler, parameters)
        self.register(definition)
        return definition

    def function(
        self,
        description: str = "",
        name: str | None = None,
        parameters: type[BaseModel] | dict[str, Any] | None = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator form of :meth:`add`; the docstring is the fallback description."""

        def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
            self.add(name or fn.__name__, description or inspect.getdoc(fn) or "", fn, parameters)
            return fn

        return decorator

    def get(self, name: str) -> FunctionDefinition | None:
        return self._functions.get(name)

    def list(self) -> list[FunctionDefinition]:
        return list(self._functions.values())

    def __len__(self) -> int:
        return len(self._functions)

    async def execute(self, call: FunctionCall) -> str:
        """
        Invoke the handler a model asked for and return the function-result text.

        Nothing raised here reaches the round loop. Every failure is reported back
        to the model as a JSON object with an ``error`` key so it can correct
        itself in the next round.
        """
        definition = self._functions.get(call.name)
        if definition is None:
            logger.warning("Model requested unregistered function %r", call.name)
            return _error(f"Function '{call.name}' is not registered")
        try:
            arguments = definition.parameters.parse(call.arguments)
        except ValidationError as e:
            logger.info("Rejected arguments for %s: %s", call.name, e)
            return _error(f"Invalid arguments for '{call.name}': {e}")
        try:
            result = definition.handler(arguments)
            if inspect.isawaitable(result):
                result = await result
            return _render(result)
        except Exception as e:
            logger.exception("Handler for function %s raised", call.name)
            return _error(str(e))


def _render(result: Any) -> str:
    if isinstance(result, str):
        return result
    if isinstance(result, BaseModel):
        return result.model_dump_json()
    return json.dumps(result)


def _error(message: str) -> str:
    return json.dumps({"error": message})
