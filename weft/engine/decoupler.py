"""
Background streamed runs with an independent live feed and memoized result.

A :class:`DecoupledRun` starts its producer immediately. Events flow through
an unbounded queue so the producer never waits on the consumer; the final
text lands in a one-shot future. Either side can be used without the other:
reading ``result()`` without touching the feed is fine, and so is draining
the feed without ever asking for a result.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, Generic, TypeVar

from ..config import FunctionCallingPolicy
from ..conversation import Conversation
from ..errors import UsageError
from ..types import (
    CompletionEvent,
    ErrorEvent,
    FunctionResultEvent,
    Message,
    StreamEvent,
    StreamOptions,
    TextEvent,
)
from .rounds import EventSink, RoundExecutor, RoundOutcome

logger = logging.getLogger(__name__)

T = TypeVar("T")

Producer = Callable[[EventSink], Awaitable[RoundOutcome]]
Resolver = Callable[[str], Awaitable[Any]]

_END = object()


def _mark_retrieved(fut: asyncio.Future) -> None:
    # The failure is already on the feed as an ErrorEvent and re-raised by result().
    if not fut.cancelled():
        fut.exception()


class DecoupledRun(Generic[T]):
    """
    Handle on one streamed completion running in the background.

    Must be created inside a running event loop.
    """

    def __init__(
        self,
        producer: Producer,
        resolve: Resolver | None = None,
        *,
        include_metadata: bool = False,
    ) -> None:
        loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._buffer: list[str] = []
        self._round_closed = False
        self._feed_claimed = False
        self._include_metadata = include_metadata
        self._resolve = resolve
        self._resolved: asyncio.Future[T] | None = None
        self._outcome: RoundOutcome | None = None
        self._completion: asyncio.Future[str] = loop.create_future()
        self._completion.add_done_callback(_mark_retrieved)
        self._task = loop.create_task(self._produce(producer))
        self._task.add_done_callback(self._on_producer_done)

    # -- Consumer side --

    def events(self) -> AsyncIterator[StreamEvent]:
        """The live feed. Can be claimed once; a second call raises UsageError."""
        if self._feed_claimed:
            raise UsageError("The live event feed of a streamed run can only be consumed once")
        self._feed_claimed = True
        return self._iterate()

    def __aiter__(self) -> AsyncIterator[StreamEvent]:
        return self.events()

    async def result(self) -> T:
        """
        The final value, memoized.

        Unresolved runs return the final round's text; runs begun with a
        resolver return whatever it produces. Concurrent and repeated callers
        share one resolution, and cancelling one caller does not cancel it.
        """
        if self._resolved is None:
            self._resolved = asyncio.ensure_future(self._resolve_once())
        return await asyncio.shield(self._resolved)

    def cancel(self) -> None:
        self._task.cancel()

    def done(self) -> bool:
        return self._task.done()

    @property
    def text(self) -> str:
        """Text streamed so far in the current round."""
        return "".join(self._buffer)

    @property
    def outcome(self) -> RoundOutcome | None:
        return self._outcome

    # -- Internals --

    async def _iterate(self) -> AsyncIterator[StreamEvent]:
        while True:
            item = await self._queue.get()
            if item is _END:
                if self._completion.cancelled():
                    raise asyncio.CancelledError("streamed run was cancelled")
                return
            yield item

    async def _resolve_once(self) -> T:
        text = await self._completion
        if self._resolve is None:
            return text  # type: ignore[return-value]
        return await self._resolve(text)

    async def _push(self, event: StreamEvent) -> None:
        if isinstance(event, TextEvent):
            if self._round_closed:
                self._buffer.clear()
                self._round_closed = False
            self._buffer.append(event.text)
        elif isinstance(event, FunctionResultEvent):
            self._round_closed = True
        self._queue.put_nowait(event)

    def _on_producer_done(self, task: asyncio.Task) -> None:
        # A task cancelled before its first step never enters _produce.
        if task.cancelled() and not self._completion.done():
            logger.debug("Streamed run cancelled before start")
            self._completion.cancel()
            self._queue.put_nowait(_END)

    async def _produce(self, producer: Producer) -> None:
        try:
            outcome = await producer(self._push)
        except asyncio.CancelledError:
            logger.debug("Streamed run cancelled")
            self._completion.cancel()
            self._queue.put_nowait(_END)
            raise
        except Exception as e:
            logger.debug("Streamed run failed: %s", e)
            code = getattr(e, "code", None) or type(e).__name__
            self._queue.put_nowait(ErrorEvent(str(e), code))
            self._completion.set_exception(e)
            self._queue.put_nowait(_END)
            return

        self._outcome = outcome
        metadata = None
        if self._include_metadata:
            metadata = {"total_length": len(outcome.text), "model": outcome.model, "rounds": outcome.rounds}
        self._queue.put_nowait(CompletionEvent(outcome.text, outcome.rounds, metadata))
        self._completion.set_result(outcome.text)
        self._queue.put_nowait(_END)


class StreamDecoupler:
    """Starts :class:`DecoupledRun` instances over a round executor."""

    def __init__(self, executor: RoundExecutor) -> None:
        self.executor = executor

    def begin(
        self,
        conversation: Conversation,
        message: Message,
        policy: FunctionCallingPolicy,
        *,
        options: StreamOptions | None = None,
        stateless: bool = False,
        instructions: str | None = None,
        signal: asyncio.Event | None = None,
        resolve: Resolver | None = None,
    ) -> DecoupledRun[Any]:
        options = options or StreamOptions()

        async def producer(sink: EventSink) -> RoundOutcome:
            return await self.executor.run_streaming(
                conversation,
                message,
                policy,
                sink,
                options=options,
                stateless=stateless,
                instructions=instructions,
                signal=signal,
            )

        return DecoupledRun(producer, resolve, include_metadata=options.include_metadata)
