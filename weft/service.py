"""
CompletionService - the public entry point.

Binds one provider adapter, one conversation and one function registry, and
exposes blocking, streamed, structured and agent-style completions on top of
the round executor.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Sequence
from typing import Any, TypeVar

from pydantic import BaseModel

from .config import FunctionCallingPolicy, ServiceConfig, StructuredOutputPolicy
from .conversation import Conversation, build_summary_prompt
from .engine import DecoupledRun, RoundExecutor, StreamDecoupler, StructuredOutputResolver
from .errors import AgentMaxStepsError, RoundsExceededError
from .functions import FunctionRegistry
from .types import FunctionDefinition, Message, ProviderAdapter, StreamEvent, StreamOptions

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _as_message(message: str | Message) -> Message:
    return Message.user(message) if isinstance(message, str) else message


class CompletionService:
    """
    Completion service over a single provider.

    Stateful calls append to ``self.conversation``; stateless calls work on a
    scratch copy carrying only the system message. A service instance is not
    meant to drive two stateful calls at the same time.
    """

    def __init__(
        self,
        adapter: ProviderAdapter,
        conversation: Conversation | None = None,
        functions: FunctionRegistry | None = None,
        config: ServiceConfig | None = None,
    ) -> None:
        self.adapter = adapter
        self.conversation = conversation or Conversation()
        self.functions = functions or FunctionRegistry()
        self.config = config or ServiceConfig()
        self.executor = RoundExecutor(adapter, self.functions)
        self.decoupler = StreamDecoupler(self.executor)
        self._summarizing = False

    # -- Functions --

    def register_function(self, definition: FunctionDefinition) -> None:
        self.functions.register(definition)

    def function(
        self,
        description: str = "",
        name: str | None = None,
        parameters: type[BaseModel] | dict[str, Any] | None = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        return self.functions.function(description, name, parameters)

    # -- Completions --

    async def complete(
        self,
        message: str | Message,
        policy: FunctionCallingPolicy | None = None,
        *,
        stateless: bool | None = None,
        signal: asyncio.Event | None = None,
    ) -> str:
        stateless = self._stateless(stateless)
        if not stateless:
            await self.apply_summary_policy()
        outcome = await self.executor.run(
            self.conversation,
            _as_message(message),
            self._policy(policy),
            stateless=stateless,
            signal=signal,
        )
        return outcome.text

    async def stream(
        self,
        message: str | Message,
        options: StreamOptions | None = None,
        policy: FunctionCallingPolicy | None = None,
        *,
        stateless: bool | None = None,
        signal: asyncio.Event | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Yield events live. Closing the iterator early cancels the run."""
        run = self.begin_stream(message, options=options, policy=policy, stateless=stateless, signal=signal)
        try:
            async for event in run.events():
                yield event
        finally:
            if not run.done():
                run.cancel()

    async def complete_structured(
        self,
        message: str | Message,
        target_shape: type[T],
        policy: FunctionCallingPolicy | None = None,
        structured_policy: StructuredOutputPolicy | None = None,
        *,
        stateless: bool | None = None,
        signal: asyncio.Event | None = None,
    ) -> T:
        policy = self._policy(policy)
        stateless = self._stateless(stateless)
        if not stateless:
            await self.apply_summary_policy()
        resolver = self._resolver(target_shape, structured_policy)
        outcome = await self.executor.run(
            self.conversation,
            _as_message(message),
            policy,
            stateless=stateless,
            instructions=resolver.instruction,
            signal=signal,
        )
        return await resolver.resolve(outcome.text, self._repair(resolver, policy, stateless, signal))

    def begin_stream(
        self,
        message: str | Message,
        structured_policy: StructuredOutputPolicy | None = None,
        *,
        target_shape: Any = None,
        options: StreamOptions | None = None,
        policy: FunctionCallingPolicy | None = None,
        stateless: bool | None = None,
        signal: asyncio.Event | None = None,
    ) -> DecoupledRun[Any]:
        """
        Start a streamed run in the background and return its handle.

        With ``target_shape`` set, the run's ``result()`` parses the final text into
        it, running repair rounds (non-streamed) as needed. Must be called from
        inside a running event loop.
        """
        policy = self._policy(policy)
        stateless = self._stateless(stateless)
        instructions = None
        resolve = None
        if target_shape is not None:
            resolver = self._resolver(target_shape, structured_policy)
            instructions = resolver.instruction
            repair = self._repair(resolver, policy, stateless, signal)

            async def resolve(text: str) -> Any:
                return await resolver.resolve(text, repair)

        return self.decoupler.begin(
            self.conversation,
            _as_message(message),
            policy,
            options=options,
            stateless=stateless,
            instructions=instructions,
            signal=signal,
            resolve=resolve,
        )

    async def run_agent(
        self, goal: str, max_steps: int = 10, *, signal: asyncio.Event | None = None
    ) -> str:
        """Pursue ``goal`` with the registered functions for at most ``max_steps`` rounds."""
        policy = self.config.default_policy.with_max_rounds(max_steps)
        try:
            return await self.complete(goal, policy, signal=signal)
        except RoundsExceededError as e:
            raise AgentMaxStepsError(max_steps, e.partial_content) from e

    async def complete_many(
        self, messages: Sequence[str | Message], policy: FunctionCallingPolicy | None = None
    ) -> list[str]:
        """Stateless completions, at most ``policy.max_concurrency`` in flight. Order is preserved."""
        policy = self._policy(policy)
        semaphore = asyncio.Semaphore(policy.max_concurrency)

        async def one(message: str | Message) -> str:
            async with semaphore:
                return await self.complete(message, policy, stateless=True)

        return list(await asyncio.gather(*(one(m) for m in messages)))

    # -- Summarization --

    async def apply_summary_policy(self) -> bool:
        """
        Summarize older history if the conversation's policy says so.

        Returns True when a summary was produced. Re-entrant calls (the
        summarization request itself) are ignored.
        """
        summary_policy = self.conversation.summary_policy
        if summary_policy is None or self._summarizing or self.config.stateless:
            return False
        messages = self.conversation.messages
        if not summary_policy.should_summarize(messages):
            return False

        to_summarize, keep_from = summary_policy.split(messages)
        # When the keep rule retains everything, fold all of it into the summary
        # but leave the history in place.
        folded = to_summarize or list(messages)
        prompt = build_summary_prompt(folded, summary_policy.current_summary)

        self._summarizing = True
        try:
            outcome = await self.executor.run(
                self.conversation,
                Message.user(prompt),
                self.config.default_policy,
                stateless=True,
                use_functions=False,
            )
        finally:
            self._summarizing = False

        summary_policy.current_summary = outcome.text
        if keep_from:
            del self.conversation.messages[:keep_from]
        logger.info("Summarized %d message(s), kept %d", len(folded), len(self.conversation.messages))
        return True

    # -- Internals --

    def _policy(self, policy: FunctionCallingPolicy | None) -> FunctionCallingPolicy:
        return policy or self.config.default_policy

    def _stateless(self, stateless: bool | None) -> bool:
        return self.config.stateless if stateless is None else stateless

    def _resolver(
        self, target: Any, structured_policy: StructuredOutputPolicy | None
    ) -> StructuredOutputResolver[Any]:
        structured_policy = structured_policy or StructuredOutputPolicy.default()
        return StructuredOutputResolver(
            target, structured_policy.resolve(self.config.structured_output_max_retries)
        )

    def _repair(
        self,
        resolver: StructuredOutputResolver[Any],
        policy: FunctionCallingPolicy,
        stateless: bool,
        signal: asyncio.Event | None,
    ) -> Callable[[str], Any]:
        async def repair(prompt: str) -> str:
            outcome = await self.executor.run(
                self.conversation,
                Message.user(prompt),
                policy,
                stateless=stateless,
                use_functions=False,
                instructions=resolver.instruction,
                signal=signal,
            )
            return outcome.text

        return repair
