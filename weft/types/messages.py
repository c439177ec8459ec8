"""Message types."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    FUNCTION = "function"


class IdSource(str, Enum):
    """Which provider minted a call id; decides the native field it maps back to."""

    OPENAI = "openai"  # tool_call_id
    ANTHROPIC = "anthropic"  # tool_use_id


class MetadataKeys:
    MESSAGE_TYPE = "message_type"
    FUNCTION_ID = "function_id"
    FUNCTION_NAME = "function_name"
    FUNCTION_SOURCE = "function_source"
    FUNCTION_ARGUMENTS = "function_arguments"
    MODEL = "model"


FUNCTION_CALL = "function_call"
FUNCTION_RESULT = "function_result"


@dataclass(frozen=True)
class FunctionCall:
    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)
    source: IdSource = IdSource.OPENAI

    @property
    def arguments_json(self) -> str:
        return json.dumps(self.arguments)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Message:
    role: Role
    content: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_now)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(Role.USER, content)

    @classmethod
    def assistant(cls, content: str, model: str | None = None) -> Message:
        metadata = {MetadataKeys.MODEL: model} if model else {}
        return cls(Role.ASSISTANT, content, metadata)

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(Role.SYSTEM, content)

    @classmethod
    def function_call(cls, call: FunctionCall, content: str = "") -> Message:
        return cls(
            Role.ASSISTANT,
            content,
            {
                MetadataKeys.MESSAGE_TYPE: FUNCTION_CALL,
                MetadataKeys.FUNCTION_ID: call.id,
                MetadataKeys.FUNCTION_NAME: call.name,
                MetadataKeys.FUNCTION_SOURCE: call.source,
                MetadataKeys.FUNCTION_ARGUMENTS: call.arguments_json,
            },
        )

    @classmethod
    def function_result(cls, call: FunctionCall, result: str) -> Message:
        return cls(
            Role.FUNCTION,
            result,
            {
                MetadataKeys.MESSAGE_TYPE: FUNCTION_RESULT,
                MetadataKeys.FUNCTION_ID: call.id,
                MetadataKeys.FUNCTION_NAME: call.name,
                MetadataKeys.FUNCTION_SOURCE: call.source,
            },
        )

    @property
    def message_type(self) -> str | None:
        return self.metadata.get(MetadataKeys.MESSAGE_TYPE)

    @property
    def is_function_call(self) -> bool:
        return self.message_type == FUNCTION_CALL

    @property
    def is_function_result(self) -> bool:
        return self.message_type == FUNCTION_RESULT

    def to_function_call(self) -> FunctionCall:
        """Rebuild the call recorded on a function-call message."""
        raw_args = self.metadata.get(MetadataKeys.FUNCTION_ARGUMENTS) or "{}"
        return FunctionCall(
            id=self.metadata.get(MetadataKeys.FUNCTION_ID, ""),
            name=self.metadata.get(MetadataKeys.FUNCTION_NAME, ""),
            arguments=json.loads(raw_args),
            source=IdSource(self.metadata.get(MetadataKeys.FUNCTION_SOURCE, IdSource.OPENAI)),
        )

    def estimate_tokens(self) -> int:
        # rough heuristic: ~4 characters per token plus per-message overhead
        return len(self.content) // 4 + 4
