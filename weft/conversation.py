"""Conversation state and summarization policy."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

from .types import Message, Role

SUMMARY_PREFIX = "[Previous conversation summary]"


@dataclass
class SummaryConversationPolicy:
    """
    Summarizes older history once the conversation crosses a threshold.

    Either trigger (tokens or message count) firing is enough. After
    summarization the most recent messages are kept, chosen by
    ``keep_recent_count`` when set, else by ``keep_recent_tokens``, else the
    last five. The accumulated summary is carried in ``current_summary`` and
    prefixed to the system message on every request.
    """

    trigger_tokens: int | None = None
    trigger_count: int | None = None
    keep_recent_tokens: int | None = None
    keep_recent_count: int | None = None
    current_summary: str | None = None

    @classmethod
    def by_token(cls, trigger_tokens: int, keep_recent_tokens: int = 1000) -> SummaryConversationPolicy:
        return cls(trigger_tokens=trigger_tokens, keep_recent_tokens=keep_recent_tokens)

    @classmethod
    def by_message(cls, trigger_count: int, keep_recent_count: int | None = None) -> SummaryConversationPolicy:
        keep = keep_recent_count if keep_recent_count is not None else 5
        if keep_recent_count is None and keep >= trigger_count:
            keep = max(trigger_count - 1, 0)
        _validate_keep(trigger_count, keep)
        return cls(trigger_count=trigger_count, keep_recent_count=keep)

    @classmethod
    def by_both(
        cls,
        trigger_tokens: int,
        trigger_count: int,
        keep_recent_tokens: int | None = None,
        keep_recent_count: int | None = None,
    ) -> SummaryConversationPolicy:
        keep_tokens = keep_recent_tokens if keep_recent_tokens is not None else trigger_tokens // 3
        keep = keep_recent_count if keep_recent_count is not None else max(3, trigger_count // 4)
        if keep_recent_count is None and keep >= trigger_count:
            keep = max(trigger_count - 1, 0)
        _validate_keep(trigger_count, keep)
        return cls(
            trigger_tokens=trigger_tokens,
            trigger_count=trigger_count,
            keep_recent_tokens=keep_tokens,
            keep_recent_count=keep,
        )

    def should_summarize(self, messages: Sequence[Message]) -> bool:
        if not messages:
            return False
        if self.trigger_tokens is not None:
            if sum(m.estimate_tokens() for m in messages) > self.trigger_tokens:
                return True
        if self.trigger_count is not None and len(messages) > self.trigger_count:
            return True
        return False

    def split(self, messages: Sequence[Message]) -> tuple[list[Message], int]:
        """Return ``(to_summarize, keep_from_index)``."""
        if not messages:
            return [], 0
        keep_from = max(0, len(messages) - self._keep_count(messages))
        if keep_from <= 0:
            return [], 0
        return list(messages[:keep_from]), keep_from

    def _keep_count(self, messages: Sequence[Message]) -> int:
        if self.keep_recent_count is not None:
            return self.keep_recent_count
        if self.keep_recent_tokens is not None:
            accumulated = 0
            for i in range(len(messages) - 1, -1, -1):
                accumulated += messages[i].estimate_tokens()
                if accumulated > self.keep_recent_tokens:
                    return len(messages) - i - 1
            return len(messages)
        return 5


def _validate_keep(trigger_count: int, keep_recent_count: int) -> None:
    if keep_recent_count >= trigger_count:
        raise ValueError("keep_recent_count must be less than trigger_count")


def build_summary_prompt(messages: Sequence[Message], existing_summary: str | None) -> str:
    lines = [
        "Please summarize the following conversation concisely while preserving key "
        "information, decisions, and context.",
        "Output ONLY the summary, no explanation or preamble.",
        "",
    ]
    if existing_summary:
        lines += ["[Existing summary]", existing_summary, "", "[New messages to incorporate]"]
    else:
        lines.append("[Conversation to summarize]")
    for m in messages:
        lines.append(f"{m.role.value}: {m.content}")
    return "\n".join(lines) + "\n"


@dataclass
class Conversation:
    """
    Ordered message history plus a system message.

    Not safe for concurrent round execution: two callers driving the same
    conversation at once interleave their appends. Use :meth:`scratch`
    (stateless mode) to get an isolated copy per call.
    """

    system_message: str = ""
    messages: list[Message] = field(default_factory=list)
    summary_policy: SummaryConversationPolicy | None = None

    def append(self, message: Message) -> None:
        self.messages.append(message)

    def extend(self, messages: Sequence[Message]) -> None:
        self.messages.extend(messages)

    def scratch(self) -> Conversation:
        """A disposable conversation carrying over only the system message."""
        return Conversation(system_message=self.system_message, summary_policy=self.summary_policy)

    def clear(self) -> None:
        self.messages.clear()

    def effective_system_message(self, instructions: str | None = None) -> str:
        parts = []
        summary = self.summary_policy.current_summary if self.summary_policy else None
        if summary:
            parts.append(f"{SUMMARY_PREFIX}\n{summary}")
        if self.system_message:
            parts.append(self.system_message)
        system = "\n\n".join(parts)
        if instructions:
            system += instructions
        return system

    def last_assistant_text(self) -> str:
        for m in reversed(self.messages):
            if m.role is Role.ASSISTANT and m.content and not m.is_function_call:
                return m.content
        return ""

    def __len__(self) -> int:
        return len(self.messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self.messages)
