"""Unit tests for schema generation and JSON extraction."""

from typing import Optional

from pydantic import BaseModel

from weft.schema import extract_json, generate_schema, shape_name


class Address(BaseModel):
    street: str
    zip_code: Optional[str] = None


class Person(BaseModel):
    name: str
    age: int = 0
    address: Address


class TestGenerateSchema:
    def test_strict_top_level(self):
        schema = generate_schema(Person)
        assert "$schema" not in schema
        assert schema["additionalProperties"] is False
        assert set(schema["required"]) == {"name", "age", "address"}

    def test_strict_nested_defs(self):
        schema = generate_schema(Person)
        address = schema["$defs"]["Address"]
        assert address["additionalProperties"] is False
        assert set(address["required"]) == {"street", "zip_code"}

    def test_list_of_models(self):
        schema = generate_schema(list[Address])
        assert schema["type"] == "array"
        assert schema["$defs"]["Address"]["additionalProperties"] is False

    def test_shape_name(self):
        assert shape_name(Person) == "Person"


class TestExtractJson:
    def test_json_fence(self):
        assert extract_json('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self):
        assert extract_json('```\n[1, 2]\n```') == "[1, 2]"

    def test_surrounding_prose(self):
        assert extract_json('Here you go: {"a": {"b": 2}} hope that helps') == '{"a": {"b": 2}}'

    def test_array_before_object(self):
        assert extract_json('result [ {"a": 1} ]') == '[ {"a": 1} ]'

    def test_no_json(self):
        assert extract_json("  plain text  ") == "plain text"

    def test_empty(self):
        assert extract_json("") == ""
