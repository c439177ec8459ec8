"""OpenAI-compatible chat-completions adapter."""

from __future__ import annotations

import json
import logging
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
    ProviderResponse,
    Role,
    StreamChunk,
    StreamParseState,
)
from .base import BaseProviderAdapter, as_dict, translate_sdk_error

logger = logging.getLogger(__name__)


def _msg_to_dict(m: Message) -> dict:
    if m.is_function_call:
        call = m.to_function_call()
        return {
            "role": "assistant",
            "content": m.content or None,
            "tool_calls": [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": call.arguments_json},
                }
            ],
        }
    if m.is_function_result:
        call_id = m.metadata.get("function_id", "")
        return {"role": "tool", "tool_call_id": call_id, "content": m.content}
    role = "user" if m.role is Role.FUNCTION else m.role.value
    return {"role": role, "content": m.content}


def _functions_to_dicts(functions: Sequence[FunctionDefinition]) -> list[dict]:
    return [
        {
            "type": "function",
            "function": {
                "name": f.name,
                "description": f.description,
                "parameters": f.parameters.to_json_schema(),
            },
        }
        for f in functions
    ]


def parse_arguments(raw: Any, name: str | None = None) -> dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Discarding unparseable arguments for function %s", name)
        return {}
    return parsed if isinstance(parsed, dict) else {}


class OpenAIAdapter(BaseProviderAdapter):
    name = "openai"

    def __init__(self, config: ProviderConfig, client: Any = None) -> None:
        if client is None:
            try:
                from openai import AsyncOpenAI
            except ImportError:
                raise ImportError("pip install openai") from None
            client = AsyncOpenAI(api_key=config.api_key, base_url=config.base_url)
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
        msgs: list[dict] = []
        if system:
            msgs.append({"role": "system", "content": system})
        msgs.extend(_msg_to_dict(m) for m in messages)
        request: dict[str, Any] = {
            "model": self._config.model,
            "messages": msgs,
            "max_tokens": self._config.max_tokens,
        }
        if self._config.temperature is not None:
            request["temperature"] = self._config.temperature
        if functions:
            request["tools"] = _functions_to_dicts(functions)
            request["tool_choice"] = "auto"
        if stream:
            request["stream"] = True
        return request

    def parse_response(self, raw: Any) -> ProviderResponse:
        data = as_dict(raw)
        choices = data.get("choices") or []
        if not choices:
            return ProviderResponse(model=data.get("model"))
        message = choices[0].get("message") or {}
        calls = []
        for tc in message.get("tool_calls") or []:
            fn = tc.get("function") or {}
            calls.append(
                FunctionCall(
                    id=tc.get("id") or "",
                    name=fn.get("name") or "",
                    arguments=parse_arguments(fn.get("arguments"), fn.get("name")),
                    source=IdSource.OPENAI,
                )
            )
        return ProviderResponse(
            text=message.get("content") or "", function_calls=calls, model=data.get("model")
        )

    def parse_stream_frame(self, raw_frame: Any, state: StreamParseState) -> list[StreamChunk]:
        data = as_dict(raw_frame)
        if data.get("model"):
            state.model = data["model"]
        choices = data.get("choices") or []
        if not choices:
            return []
        choice = choices[0]
        delta = choice.get("delta") or {}
        out: list[StreamChunk] = []
        if delta.get("reasoning_content"):
            out.append(StreamChunk(reasoning=delta["reasoning_content"]))
        if delta.get("content"):
            out.append(StreamChunk(text=delta["content"]))
        for tc in delta.get("tool_calls") or []:
            idx = tc.get("index") or 0
            fn = tc.get("function") or {}
            if idx not in state.open_calls:
                state.open_calls.add(idx)
                out.append(
                    StreamChunk(call_start=CallStart(idx, tc.get("id") or "", fn.get("name") or ""))
                )
            if fn.get("arguments"):
                out.append(StreamChunk(call_delta=CallDelta(idx, fn["arguments"])))
        finish = choice.get("finish_reason")
        if finish:
            for idx in sorted(state.open_calls):
                out.append(StreamChunk(call_end=idx))
            state.open_calls.clear()
            out.append(StreamChunk(finish_reason=finish))
        return out

    async def _do_send(self, request: dict[str, Any]) -> Any:
        return await self._client.chat.completions.create(**request)

    async def _do_stream(self, request: dict[str, Any]) -> AsyncIterator[Any]:
        stream = await self._client.chat.completions.create(**request)
        async for chunk in stream:
            yield chunk

    def _translate_error(self, err: Exception) -> TransportError:
        import openai

        return translate_sdk_error(openai, err, self.name)
