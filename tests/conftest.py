"""
Pytest configuration and shared fakes.

``ScriptedAdapter`` plays back canned provider responses (non-streamed) or
canned chunk sequences (streamed), one entry per round, and records every
request it was sent.
"""

import asyncio
import json

import pytest

from weft.conversation import Conversation
from weft.functions import FunctionRegistry
from weft.types import (
    CallDelta,
    CallStart,
    FunctionCall,
    IdSource,
    ProviderResponse,
    StreamChunk,
)


class ScriptedAdapter:
    name = "scripted"
    id_source = IdSource.OPENAI

    def __init__(self, responses=None, streams=None, delay=0.0):
        self.responses = list(responses or [])
        self.streams = list(streams or [])
        self.delay = delay
        self.requests = []
        self.calls = 0

    def build_request(self, messages, system, policy, functions, *, stream=False):
        return {
            "messages": list(messages),
            "system": system,
            "functions": [f.name for f in functions],
            "stream": stream,
        }

    def parse_response(self, raw):
        return raw

    def parse_stream_frame(self, raw_frame, state):
        if isinstance(raw_frame, str):
            state.model = raw_frame
            return []
        return [raw_frame]

    async def send(self, request):
        self.requests.append(request)
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        item = self._next(self.responses)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, str):
            return ProviderResponse(text=item, model="scripted-model")
        return item

    async def open_stream(self, request):
        self.requests.append(request)
        self.calls += 1
        for frame in self._next(self.streams):
            if isinstance(frame, Exception):
                raise frame
            if self.delay:
                await asyncio.sleep(self.delay)
            else:
                await asyncio.sleep(0)
            yield frame

    @staticmethod
    def _next(script):
        # The last entry repeats once the script runs out.
        return script.pop(0) if len(script) > 1 else script[0]


def calls_response(*calls, text=""):
    return ProviderResponse(text=text, function_calls=list(calls), model="scripted-model")


def fcall(name, call_id, **arguments):
    return FunctionCall(call_id, name, arguments)


def text_frames(text, size=3):
    return [StreamChunk(text=text[i:i + size]) for i in range(0, len(text), size)]


def call_frames(index, call_id, name, arguments, split=2):
    raw = json.dumps(arguments) if isinstance(arguments, dict) else arguments
    step = max(1, len(raw) // split)
    frames = [StreamChunk(call_start=CallStart(index, call_id, name))]
    frames += [StreamChunk(call_delta=CallDelta(index, raw[i:i + step])) for i in range(0, len(raw), step)]
    frames.append(StreamChunk(call_end=index))
    return frames


@pytest.fixture
def conversation():
    return Conversation(system_message="You are a helpful assistant.")


@pytest.fixture
def registry():
    reg = FunctionRegistry()

    @reg.function("Look up the weather for a city")
    async def get_weather(args):
        return f"Sunny, 22C in {args.get('city', 'somewhere')}"

    return reg
