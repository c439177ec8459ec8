"""Provider presets: adapter factories for well-known endpoints."""

from __future__ import annotations

from ..config import ProviderConfig
from .anthropic import AnthropicAdapter
from .openai import OpenAIAdapter


def create_openai(api_key: str | None = None, model: str = "gpt-4o-mini", **kw) -> OpenAIAdapter:
    return OpenAIAdapter(ProviderConfig(api_key=api_key, model=model, **kw))


def create_grok(api_key: str, model: str = "grok-3", **kw) -> OpenAIAdapter:
    return OpenAIAdapter(ProviderConfig(api_key=api_key, model=model, base_url="https://api.x.ai/v1", **kw))


def create_deepseek(api_key: str, model: str = "deepseek-chat", **kw) -> OpenAIAdapter:
    return OpenAIAdapter(
        ProviderConfig(api_key=api_key, model=model, base_url="https://api.deepseek.com/v1", **kw)
    )


def create_claude(
    api_key: str | None = None, model: str = "claude-sonnet-4-5", **kw
) -> AnthropicAdapter:
    return AnthropicAdapter(ProviderConfig(api_key=api_key, model=model, **kw))


# --- Local / self-hosted (OpenAI-compatible) ---


def create_ollama(
    model: str = "llama3", base_url: str = "http://localhost:11434/v1", **kw
) -> OpenAIAdapter:
    return OpenAIAdapter(ProviderConfig(api_key="ollama", model=model, base_url=base_url, **kw))


def create_custom(api_key: str, model: str, base_url: str, **kw) -> OpenAIAdapter:
    return OpenAIAdapter(ProviderConfig(api_key=api_key, model=model, base_url=base_url, **kw))
