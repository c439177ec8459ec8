"""
Per-call execution policies.

Policies are immutable values passed explicitly to every entry point. A call
that wants different bounds builds a new policy (``model_copy`` or one of the
``with_*`` helpers) instead of mutating a shared default.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class FunctionCallingPolicy(BaseModel):
    """Bounds for the round-based function-calling loop."""

    model_config = ConfigDict(frozen=True)

    max_rounds: int = Field(20, ge=1, description="Provider round trips before giving up")
    timeout_seconds: float | None = Field(
        120.0, gt=0, description="Timeout per underlying provider request; None disables it"
    )
    max_concurrency: int = Field(4, ge=1, description="Cap on concurrent stateless completions")
    enable_logging: bool = Field(False, description="Log round progress at INFO instead of DEBUG")

    @classmethod
    def default(cls) -> FunctionCallingPolicy:
        return cls()

    @classmethod
    def fast(cls) -> FunctionCallingPolicy:
        return cls(max_rounds=5, timeout_seconds=30.0)

    @classmethod
    def unlimited_time(cls) -> FunctionCallingPolicy:
        return cls(timeout_seconds=None)

    def with_max_rounds(self, max_rounds: int) -> FunctionCallingPolicy:
        return FunctionCallingPolicy(**{**self.model_dump(), "max_rounds": max_rounds})


class StructuredOutputPolicy(BaseModel):
    """Repair budget for structured output. ``None`` defers to the service default."""

    model_config = ConfigDict(frozen=True)

    max_repair_attempts: int | None = Field(
        None, ge=0, description="Correction rounds after the first parse failure"
    )

    @classmethod
    def default(cls) -> StructuredOutputPolicy:
        return cls()

    @classmethod
    def no_retry(cls) -> StructuredOutputPolicy:
        return cls(max_repair_attempts=0)

    @classmethod
    def strict(cls) -> StructuredOutputPolicy:
        return cls(max_repair_attempts=3)

    def resolve(self, service_default: int) -> int:
        if self.max_repair_attempts is None:
            return max(0, service_default)
        return self.max_repair_attempts
