"""Unit tests for provider adapters (request building, parsing, error translation)."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from weft.config import FunctionCallingPolicy, ProviderConfig
from weft.errors import AuthenticationError, RateLimitError, TransportError
from weft.functions import define_function
from weft.providers import AnthropicAdapter, OpenAIAdapter, translate_sdk_error
from weft.providers.presets import create_deepseek, create_grok, create_ollama
from weft.types import FunctionCall, IdSource, Message, StreamParseState

POLICY = FunctionCallingPolicy()
WEATHER = define_function(
    "get_weather",
    "Weather lookup",
    lambda a: "sunny",
    {"type": "object", "properties": {"city": {"type": "string"}}},
)


def _openai_client(result=None, error=None):
    create = AsyncMock(return_value=result, side_effect=error)
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


def _anthropic_client(result=None):
    return SimpleNamespace(messages=SimpleNamespace(create=AsyncMock(return_value=result)))


def _history():
    call = FunctionCall("call_1", "get_weather", {"city": "Paris"})
    return [
        Message.user("Weather?"),
        Message.function_call(call, "Checking."),
        Message.function_result(call, "Sunny"),
    ]


class _FrameStream:
    def __init__(self, frames):
        self._frames = list(frames)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._frames:
            raise StopAsyncIteration
        return self._frames.pop(0)


class TestOpenAIAdapter:
    def _adapter(self, client=None, **kw):
        return OpenAIAdapter(ProviderConfig(model="gpt-test", **kw), client=client or _openai_client())

    def test_build_request_maps_function_messages(self):
        req = self._adapter().build_request(_history(), "Be brief.", POLICY, [WEATHER])
        msgs = req["messages"]
        assert msgs[0] == {"role": "system", "content": "Be brief."}
        assert msgs[2]["tool_calls"][0]["id"] == "call_1"
        assert msgs[2]["content"] == "Checking."
        assert msgs[3] == {"role": "tool", "tool_call_id": "call_1", "content": "Sunny"}
        assert req["tools"][0]["function"]["name"] == "get_weather"
        assert req["tool_choice"] == "auto"
        assert "stream" not in req

    def test_build_request_without_functions(self):
        req = self._adapter(temperature=None).build_request([Message.user("hi")], "", POLICY, [], stream=True)
        assert "tools" not in req
        assert "temperature" not in req
        assert req["stream"] is True

    def test_parse_response(self):
        raw = {
            "model": "gpt-test",
            "choices": [
                {
                    "message": {
                        "content": None,
                        "tool_calls": [
                            {"id": "c1", "function": {"name": "get_weather", "arguments": '{"city": "Rome"}'}}
                        ],
                    }
                }
            ],
        }
        resp = self._adapter().parse_response(raw)
        assert resp.text == ""
        assert resp.function_calls == [FunctionCall("c1", "get_weather", {"city": "Rome"}, IdSource.OPENAI)]
        assert resp.model == "gpt-test"

    def test_parse_response_bad_arguments(self):
        raw = {"choices": [{"message": {"tool_calls": [{"id": "c1", "function": {"name": "f", "arguments": "{"}}]}}]}
        assert self._adapter().parse_response(raw).function_calls[0].arguments == {}

    def test_parse_stream_frames(self):
        adapter = self._adapter()
        state = StreamParseState()
        frames = [
            {"model": "gpt-test", "choices": [{"delta": {"content": "Hi"}}]},
            {"choices": [{"delta": {"tool_calls": [{"index": 0, "id": "c1", "function": {"name": "f", "arguments": '{"a"'}}]}}]},
            {"choices": [{"delta": {"tool_calls": [{"index": 0, "function": {"arguments": ": 1}"}}]}}]},
            {"choices": [{"delta": {}, "finish_reason": "tool_calls"}]},
        ]
        chunks = [c for f in frames for c in adapter.parse_stream_frame(f, state)]
        assert state.model == "gpt-test"
        assert chunks[0].text == "Hi"
        assert chunks[1].call_start.call_id == "c1"
        assert "".join(c.call_delta.partial_args for c in chunks if c.call_delta) == '{"a": 1}'
        assert chunks[-2].call_end == 0
        assert chunks[-1].finish_reason == "tool_calls"
        assert state.open_calls == set()

    async def test_send(self):
        client = _openai_client(result={"choices": [{"message": {"content": "ok"}}]})
        adapter = self._adapter(client)
        raw = await adapter.send({"model": "gpt-test"})
        assert adapter.parse_response(raw).text == "ok"
        client.chat.completions.create.assert_awaited_once_with(model="gpt-test")

    async def test_open_stream(self):
        frames = [{"choices": [{"delta": {"content": "a"}}]}, {"choices": [{"delta": {"content": "b"}}]}]
        adapter = self._adapter(_openai_client(result=_FrameStream(frames)))
        received = [f async for f in adapter.open_stream({"stream": True})]
        assert received == frames

    async def test_send_wraps_unknown_errors(self):
        adapter = self._adapter(_openai_client(error=RuntimeError("socket closed")))
        with pytest.raises(TransportError) as exc_info:
            await adapter.send({})
        assert exc_info.value.provider == "openai"
        assert isinstance(exc_info.value.cause, RuntimeError)


class TestAnthropicAdapter:
    def _adapter(self, client=None, **kw):
        return AnthropicAdapter(ProviderConfig(model="claude-test", **kw), client=client or _anthropic_client())

    def test_build_request_regroups_calls(self):
        call_b = FunctionCall("call_2", "get_time", {}, IdSource.ANTHROPIC)
        history = _history() + [
            Message.function_call(call_b),
            Message.function_result(call_b, "noon"),
        ]
        req = self._adapter().build_request(history, "Be brief.", POLICY, [WEATHER])
        assert req["system"] == "Be brief."
        msgs = req["messages"]
        assert [m["role"] for m in msgs] == ["user", "assistant", "user"]
        uses = msgs[1]["content"]
        assert uses[0] == {"type": "text", "text": "Checking."}
        assert [u["id"] for u in uses if u["type"] == "tool_use"] == ["call_1", "call_2"]
        assert [r["tool_use_id"] for r in msgs[2]["content"]] == ["call_1", "call_2"]
        assert req["tools"][0]["input_schema"]["properties"]["city"]["type"] == "string"

    def test_temperature_capped(self):
        req = self._adapter(temperature=1.5).build_request([Message.user("hi")], "", POLICY, [])
        assert req["temperature"] == 1.0
        assert "system" not in req

    def test_parse_response(self):
        raw = {
            "model": "claude-test",
            "content": [
                {"type": "text", "text": "Looking."},
                {"type": "tool_use", "id": "tu_1", "name": "get_weather", "input": {"city": "Oslo"}},
            ],
        }
        resp = self._adapter().parse_response(raw)
        assert resp.text == "Looking."
        assert resp.function_calls[0].id == "tu_1"
        assert resp.function_calls[0].source is IdSource.ANTHROPIC

    def test_parse_stream_frames(self):
        adapter = self._adapter()
        state = StreamParseState()
        frames = [
            {"type": "message_start", "message": {"model": "claude-test"}},
            {"type": "content_block_start", "index": 0, "content_block": {"type": "text"}},
            {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": "Hm"}},
            {"type": "content_block_stop", "index": 0},
            {"type": "content_block_start", "index": 1, "content_block": {"type": "tool_use", "id": "tu_1", "name": "f"}},
            {"type": "content_block_delta", "index": 1, "delta": {"type": "input_json_delta", "partial_json": "{}"}},
            {"type": "content_block_stop", "index": 1},
            {"type": "message_delta", "delta": {"stop_reason": "tool_use"}},
        ]
        chunks = [c for f in frames for c in adapter.parse_stream_frame(f, state)]
        assert state.model == "claude-test"
        assert chunks[0].text == "Hm"
        assert chunks[1].call_start.index == 1
        assert chunks[2].call_delta.partial_args == "{}"
        assert chunks[3].call_end == 1
        assert chunks[4].finish_reason == "tool_use"

    def test_stream_error_frame(self):
        with pytest.raises(TransportError, match="overloaded"):
            self._adapter().parse_stream_frame(
                {"type": "error", "error": {"message": "overloaded"}}, StreamParseState()
            )


class TestTranslateSdkError:
    class _Status(Exception):
        def __init__(self, msg, status_code=500, headers=None):
            super().__init__(msg)
            self.status_code = status_code
            self.response = SimpleNamespace(headers=headers or {})

    class _Auth(_Status):
        pass

    class _RateLimit(_Status):
        pass

    class _Connection(Exception):
        pass

    def _sdk(self):
        return SimpleNamespace(
            AuthenticationError=self._Auth,
            RateLimitError=self._RateLimit,
            APIStatusError=self._Status,
            APIConnectionError=self._Connection,
        )

    def test_auth(self):
        err = translate_sdk_error(self._sdk(), self._Auth("nope", 401), "openai")
        assert isinstance(err, AuthenticationError)

    def test_rate_limit_retry_after(self):
        err = translate_sdk_error(self._sdk(), self._RateLimit("slow", 429, {"retry-after": "7"}), "openai")
        assert isinstance(err, RateLimitError)
        assert err.retry_after_seconds == 7.0

    def test_status(self):
        err = translate_sdk_error(self._sdk(), self._Status("bad gateway", 502), "anthropic")
        assert err.status_code == 502
        assert err.provider == "anthropic"

    def test_connection(self):
        err = translate_sdk_error(self._sdk(), self._Connection("refused"), "openai")
        assert "Connection error" in str(err)


class TestPresets:
    def test_openai_compatible_endpoints(self):
        assert create_grok("k")._config.base_url == "https://api.x.ai/v1"
        assert create_deepseek("k")._config.base_url == "https://api.deepseek.com/v1"
        assert create_ollama()._config.model == "llama3"
