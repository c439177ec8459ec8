"""Unit tests for the function registry."""

import json

from pydantic import BaseModel

from weft.functions import FunctionRegistry, JsonSchemaParameters, ModelParameters, define_function
from weft.types import FunctionCall


class CityArgs(BaseModel):
    city: str
    unit: str = "C"


class Forecast(BaseModel):
    city: str
    temp: int


class TestDefineFunction:
    def test_model_parameters(self):
        d = define_function("get_weather", "weather", lambda a: a, CityArgs)
        assert isinstance(d.parameters, ModelParameters)
        assert "city" in d.parameters.to_json_schema()["properties"]

    def test_json_schema_parameters(self):
        schema = {"type": "object", "properties": {"q": {"type": "string"}}}
        d = define_function("search", "search", lambda a: a, schema)
        assert isinstance(d.parameters, JsonSchemaParameters)
        assert d.parameters.to_json_schema() == schema

    def test_no_parameters(self):
        d = define_function("now", "time", lambda a: "noon")
        assert d.parameters.to_json_schema()["type"] == "object"


class TestFunctionRegistry:
    def test_decorator_uses_docstring(self):
        reg = FunctionRegistry()

        @reg.function()
        def lookup(args):
            """Look something up."""
            return "x"

        assert reg.get("lookup").description == "Look something up."
        assert len(reg) == 1

    async def test_execute_async_handler(self):
        reg = FunctionRegistry()

        async def get_weather(args: CityArgs):
            return f"{args.city}: sunny"

        reg.add("get_weather", "weather", get_weather, CityArgs)
        out = await reg.execute(FunctionCall("c1", "get_weather", {"city": "Paris"}))
        assert out == "Paris: sunny"

    async def test_execute_model_result(self):
        reg = FunctionRegistry()
        reg.add("forecast", "forecast", lambda a: Forecast(city=a.city, temp=22), CityArgs)
        out = await reg.execute(FunctionCall("c1", "forecast", {"city": "Oslo"}))
        assert json.loads(out) == {"city": "Oslo", "temp": 22}

    async def test_execute_dict_result_is_json(self):
        reg = FunctionRegistry()
        reg.add("echo", "echo", lambda a: {"got": a})
        out = await reg.execute(FunctionCall("c1", "echo", {"x": 1}))
        assert json.loads(out) == {"got": {"x": 1}}

    async def test_unknown_function(self):
        out = await FunctionRegistry().execute(FunctionCall("c1", "missing"))
        assert json.loads(out) == {"error": "Function 'missing' is not registered"}

    async def test_handler_error_becomes_result(self):
        reg = FunctionRegistry()

        def boom(args):
            raise RuntimeError("disk full")

        reg.add("boom", "fails", boom)
        out = await reg.execute(FunctionCall("c1", "boom"))
        assert json.loads(out) == {"error": "disk full"}

    async def test_validation_error_becomes_result(self):
        reg = FunctionRegistry()
        reg.add("get_weather", "weather", lambda a: "ok", CityArgs)
        out = await reg.execute(FunctionCall("c1", "get_weather", {}))
        assert json.loads(out)["error"].startswith("Invalid arguments for 'get_weather'")

    async def test_unserializable_result_becomes_error(self):
        reg = FunctionRegistry()
        reg.add("opaque", "returns an object", lambda a: object())
        out = await reg.execute(FunctionCall("c1", "opaque"))
        assert "not JSON serializable" in json.loads(out)["error"]

    async def test_schema_parameters_pass_arguments_through(self):
        seen = []
        reg = FunctionRegistry()
        reg.add("echo", "echo", seen.append, {"type": "object", "properties": {"x": {"type": "integer"}}})
        await reg.execute(FunctionCall("c1", "echo", {"x": "not checked"}))
        assert seen == [{"x": "not checked"}]
