"""Provider connection settings for the reference adapters."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ProviderConfig(BaseModel):
    api_key: str | None = Field(None, description="API key; SDK env fallback when None")
    model: str = Field(..., description="Model identifier")
    base_url: str | None = Field(None, description="Override endpoint (OpenAI-compatible hosts)")
    max_tokens: int = Field(4096, ge=1, description="Completion token cap")
    temperature: float | None = Field(0.7, ge=0, le=2, description="None omits the parameter")
