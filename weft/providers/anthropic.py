"""Anthropic messages adapter."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from typing import Any

from ..config import FunctionCallingPolicy, ProviderConfig
from ..errors import TransportError
from ..types import (
    CallDelta,
    CallStart,
    FunctionCall,
    FunctionDefinition,
    IdSource,
    Message,
    MetadataKeys,
    ProviderResponse,
    Role,
    StreamChunk,
    StreamParseState,
)
from .base import BaseProviderAdapter, as_dict, translate_sdk_error
from .openai import parse_arguments


def _is_function_message(m: Message) -> bool:
    return m.is_function_call or m.is_function_result


def _messages_to_dicts(messages: Sequence[Message]) -> list[dict]:
    # Anthropic wants every tool_use of a turn in one assistant message and the
    # matching tool_result blocks in the following user message, so runs of
    # interleaved call/result messages are regrouped here.
    out: list[dict] = []
    i = 0
    while i < len(messages):
        m = messages[i]
        if m.role is Role.SYSTEM:
            i += 1
            continue
        if not _is_function_message(m):
            role = "assistant" if m.role is Role.ASSISTANT else "user"
            out.append({"role": role, "content": m.content})
            i += 1
            continue
        uses: list[dict] = []
        results: list[dict] = []
        while i < len(messages) and _is_function_message(messages[i]):
            fm = messages[i]
            if fm.is_function_call:
                call = fm.to_function_call()
                if fm.content:
                    uses.append({"type": "text", "text": fm.content})
                uses.append({"type": "tool_use", "id": call.id, "name": call.name, "input": call.arguments})
            else:
                results.append(
                    {
                        "type": "tool_result",
                        "tool_use_id": fm.metadata.get(MetadataKeys.FUNCTION_ID, ""),
                        "content": fm.content,
                    }
                )
            i += 1
        if uses:
            out.append({"role": "assistant", "content": uses})
        if results:
            out.append({"role": "user", "content": results})
    return out


def _functions_to_dicts(functions: Sequence[FunctionDefinition]) -> list[dict]:
    return [
        {"name": f.name, "description": f.description, "input_schema": f.parameters.to_json_schema()}
        for f in functions
    ]


class AnthropicAdapter(BaseProviderAdapter):
    name = "anthropic"
    id_source = IdSource.ANTHROPIC

    def __init__(self, config: ProviderConfig, client: Any = None) -> None:
        if client is None:
            try:
                from anthropic import AsyncAnthropic
            except ImportError:
                raise ImportError("pip install anthropic") from None
            client = AsyncAnthropic(api_key=config.api_key, base_url=config.base_url)
        self._client = client
        self._config = config

    def build_request(
        self,
        messages: Sequence[Message],
        system: str,
        policy: FunctionCallingPolicy,
        functions: Sequence[FunctionDefinition],
        *,
        stream: bool = False,
    ) -> dict[str, Any]:
        request: dict[str, Any] = {
            "model": self._config.model,
            "max_tokens": self._config.max_tokens,
            "messages": _messages_to_dicts(messages),
        }
        if system:
            request["system"] = system
        if self._config.temperature is not None:
            request["temperature"] = min(self._config.temperature, 1.0)
        if functions:
            request["tools"] = _functions_to_dicts(functions)
        if stream:
            request["stream"] = True
        return request

    def parse_response(self, raw: Any) -> ProviderResponse:
        data = as_dict(raw)
        text, calls = "", []
        for block in data.get("content") or []:
            if block.get("type") == "text":
                text += block.get("text") or ""
            elif block.get("type") == "tool_use":
                calls.append(
                    FunctionCall(
                        id=block.get("id") or "",
                        name=block.get("name") or "",
                        arguments=parse_arguments(block.get("input"), block.get("name")),
                        source=IdSource.ANTHROPIC,
                    )
                )
        return ProviderResponse(text=text, function_calls=calls, model=data.get("model"))

    def parse_stream_frame(self, raw_frame: Any, state: StreamParseState) -> list[StreamChunk]:
        data = as_dict(raw_frame)
        kind = data.get("type")
        idx = data.get("index", 0)

        if kind == "message_start":
            state.model = (data.get("message") or {}).get("model") or state.model
        elif kind == "content_block_start":
            block = data.get("content_block") or {}
            if block.get("type") == "tool_use":
                state.open_calls.add(idx)
                return [StreamChunk(call_start=CallStart(idx, block.get("id") or "", block.get("name") or ""))]
        elif kind == "content_block_delta":
            delta = data.get("delta") or {}
            dtype = delta.get("type")
            if dtype == "text_delta":
                return [StreamChunk(text=delta.get("text") or "")]
            if dtype == "thinking_delta":
                return [StreamChunk(reasoning=delta.get("thinking") or "")]
            if dtype == "input_json_delta":
                return [StreamChunk(call_delta=CallDelta(idx, delta.get("partial_json") or ""))]
        elif kind == "content_block_stop":
            if idx in state.open_calls:
                state.open_calls.discard(idx)
                return [StreamChunk(call_end=idx)]
        elif kind == "message_delta":
            stop = (data.get("delta") or {}).get("stop_reason")
            if stop:
                return [StreamChunk(finish_reason=stop)]
        elif kind == "error":
            error = data.get("error") or {}
            raise TransportError(self.name, error.get("message") or "Stream error", code="STREAM_ERROR")
        return []

    async def _do_send(self, request: dict[str, Any]) -> Any:
        return await self._client.messages.create(**request)

    async def _do_stream(self, request: dict[str, Any]) -> AsyncIterator[Any]:
        stream = await self._client.messages.create(**request)
        async for event in stream:
            yield event

    def _translate_error(self, err: Exception) -> TransportError:
        import anthropic

        return translate_sdk_error(anthropic, err, self.name)
