"""Service-wide baseline configuration."""

from __future__ import annotations

from pydantic import BaseModel, Field

from .policies import FunctionCallingPolicy


class ServiceConfig(BaseModel):
    """Defaults a ``CompletionService`` falls back to when a call passes no explicit value."""

    default_policy: FunctionCallingPolicy = Field(
        default_factory=FunctionCallingPolicy, description="Baseline function-calling policy"
    )
    structured_output_max_retries: int = Field(
        2, ge=0, description="Repair rounds when a StructuredOutputPolicy leaves it unset"
    )
    stateless: bool = Field(False, description="Run calls against a scratch conversation by default")
