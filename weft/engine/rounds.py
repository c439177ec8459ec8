"""
Bounded multi-round function-calling loop.

One round is one provider request plus, when the response carries function
calls, sequential execution of those calls. The loop ends on the first round
whose response has no calls, or fails after ``policy.max_rounds`` rounds.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from contextlib import aclosing
from dataclasses import dataclass
from typing import Any, TypeVar

from ..config import FunctionCallingPolicy
from ..conversation import Conversation
from ..errors import MalformedFunctionCallError, RoundsExceededError, TransportTimeoutError
from ..functions import FunctionRegistry
from ..types import (
    FunctionCall,
    FunctionDefinition,
    FunctionResultEvent,
    Message,
    ProviderAdapter,
    StreamEvent,
    StreamOptions,
    StreamParseState,
)
from .assembler import FrameAssembler

logger = logging.getLogger(__name__)

T = TypeVar("T")

EventSink = Callable[[StreamEvent], Awaitable[None]]


@dataclass
class RoundOutcome:
    """Final answer of a completed loop."""

    text: str
    rounds: int
    model: str | None = None


def _check_signal(signal: asyncio.Event | None) -> None:
    if signal is not None and signal.is_set():
        raise asyncio.CancelledError("cancelled by signal")


async def _race_signal(aw: Awaitable[T], signal: asyncio.Event | None) -> T:
    """Await ``aw``; abort it with CancelledError as soon as ``signal`` fires."""
    if signal is None:
        return await aw
    task = asyncio.ensure_future(aw)
    waiter = asyncio.ensure_future(signal.wait())
    try:
        done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        waiter.cancel()
    if task in done:
        return task.result()
    task.cancel()
    raise asyncio.CancelledError("cancelled by signal")


class RoundExecutor:
    """
    Drives the round loop against one adapter and one function registry.

    The conversation passed in receives the user message, every call/result
    message pair, and the final assistant answer. In stateless mode a scratch
    copy carrying only the system message receives them instead.
    """

    def __init__(self, adapter: ProviderAdapter, functions: FunctionRegistry | None = None) -> None:
        self.adapter = adapter
        self.functions = functions or FunctionRegistry()

    async def run(
        self,
        conversation: Conversation,
        message: Message,
        policy: FunctionCallingPolicy,
        *,
        stateless: bool = False,
        use_functions: bool = True,
        instructions: str | None = None,
        signal: asyncio.Event | None = None,
    ) -> RoundOutcome:
        working = conversation.scratch() if stateless else conversation
        working.append(message)
        functions = self._offered(use_functions)
        system = working.effective_system_message(instructions)
        partial = ""

        for round_no in range(1, policy.max_rounds + 1):
            _check_signal(signal)
            self._log(policy, "Round %d/%d (%s)", round_no, policy.max_rounds, self.adapter.name)
            request = self.adapter.build_request(working.messages, system, policy, functions)
            raw = await self._request(self.adapter.send(request), policy, signal)
            response = self.adapter.parse_response(raw)
            if response.text:
                partial = response.text

            if not functions or not response.function_calls:
                working.append(Message.assistant(response.text, response.model))
                self._log(policy, "Final answer after %d round(s)", round_no)
                return RoundOutcome(response.text, round_no, response.model)

            await self._execute_calls(working, response.text, response.function_calls, policy)

        raise RoundsExceededError(policy.max_rounds, partial)

    async def run_streaming(
        self,
        conversation: Conversation,
        message: Message,
        policy: FunctionCallingPolicy,
        sink: EventSink,
        *,
        options: StreamOptions | None = None,
        stateless: bool = False,
        instructions: str | None = None,
        signal: asyncio.Event | None = None,
    ) -> RoundOutcome:
        """
        Streamed variant of :meth:`run`.

        Events are pushed into ``sink`` as frames arrive. Function calling is
        enabled only when ``options.include_function_calls`` is set; with it
        off every round's text is final.
        """
        options = options or StreamOptions()
        working = conversation.scratch() if stateless else conversation
        working.append(message)
        functions = self._offered(options.include_function_calls)
        system = working.effective_system_message(instructions)
        partial = ""

        for round_no in range(1, policy.max_rounds + 1):
            _check_signal(signal)
            self._log(policy, "Streaming round %d/%d (%s)", round_no, policy.max_rounds, self.adapter.name)
            request = self.adapter.build_request(working.messages, system, policy, functions, stream=True)
            assembler = FrameAssembler(options, round_no, self.adapter.id_source)
            await self._request(self._drain(request, assembler, sink), policy, signal)
            if assembler.text:
                partial = assembler.text

            calls = assembler.finish() if functions and assembler.has_calls else []
            if not calls:
                working.append(Message.assistant(assembler.text, assembler.model))
                self._log(policy, "Final streamed answer after %d round(s)", round_no)
                return RoundOutcome(assembler.text, round_no, assembler.model)

            await self._execute_calls(
                working, assembler.text, calls, policy, sink=sink, options=options, round_no=round_no
            )

        raise RoundsExceededError(policy.max_rounds, partial)

    # -- Internals --

    def _offered(self, use_functions: bool) -> list[FunctionDefinition]:
        return self.functions.list() if use_functions else []

    async def _drain(self, request: dict[str, Any], assembler: FrameAssembler, sink: EventSink) -> None:
        state = StreamParseState()
        async with aclosing(self.adapter.open_stream(request)) as frames:
            async for frame in frames:
                for chunk in self.adapter.parse_stream_frame(frame, state):
                    assembler.model = state.model
                    for event in assembler.feed(chunk):
                        await sink(event)
        assembler.model = state.model

    async def _request(
        self, aw: Awaitable[T], policy: FunctionCallingPolicy, signal: asyncio.Event | None
    ) -> T:
        if policy.timeout_seconds is None:
            return await _race_signal(aw, signal)
        try:
            return await asyncio.wait_for(_race_signal(aw, signal), policy.timeout_seconds)
        except asyncio.TimeoutError:
            raise TransportTimeoutError(self.adapter.name, policy.timeout_seconds) from None

    async def _execute_calls(
        self,
        working: Conversation,
        text: str,
        calls: Sequence[FunctionCall],
        policy: FunctionCallingPolicy,
        *,
        sink: EventSink | None = None,
        options: StreamOptions | None = None,
        round_no: int = 0,
    ) -> None:
        # Validate the whole batch first so a bad call leaves no partial round behind.
        for call in calls:
            if not call.id:
                raise MalformedFunctionCallError(call.name, "missing correlation id")

        for i, call in enumerate(calls):
            self._log(policy, "Calling %s (%s)", call.name, call.id)
            # Round text rides on the first call message only.
            working.append(Message.function_call(call, text if i == 0 else ""))
            started = time.monotonic()
            result = await self.functions.execute(call)
            duration_ms = int((time.monotonic() - started) * 1000)
            working.append(Message.function_result(call, result))
            self._log(policy, "%s returned in %dms", call.name, duration_ms)

            if sink is not None and options is not None and options.include_function_calls:
                metadata = {"round": round_no, "status": "completed"} if options.include_metadata else None
                await sink(FunctionResultEvent(call.id, call.name, result, duration_ms, metadata))

    @staticmethod
    def _log(policy: FunctionCallingPolicy, msg: str, *args: Any) -> None:
        logger.log(logging.INFO if policy.enable_logging else logging.DEBUG, msg, *args)
