"""Provider adapters and presets."""

from ..types import ProviderAdapter, ProviderResponse, StreamChunk, StreamParseState
from .anthropic import AnthropicAdapter
from .base import BaseProviderAdapter, as_dict, translate_sdk_error
from .openai import OpenAIAdapter
from .presets import (
    create_claude, create_custom, create_deepseek, create_grok, create_ollama, create_openai,
)

__all__ = [
    "ProviderAdapter", "ProviderResponse", "StreamChunk", "StreamParseState",
    "BaseProviderAdapter", "OpenAIAdapter", "AnthropicAdapter", "as_dict", "translate_sdk_error",
    "create_openai", "create_grok", "create_deepseek", "create_claude", "create_ollama", "create_custom",
]
