"""
Weft - provider-agnostic LLM completion engine
==============================================

Weft drives a chat model through bounded function-calling rounds, streams
the result as typed events, and parses final answers into typed values.

## Map

- **Service**: `CompletionService` (`weft.service`) - the entry point.
- **Engine**: round loop, stream assembly, decoupled runs, structured output (`weft.engine`).
- **Providers**: `OpenAIAdapter`, `AnthropicAdapter` and presets (`weft.providers`).
- **Config**: `FunctionCallingPolicy`, `StructuredOutputPolicy`, `ServiceConfig` (`weft.config`).

## Quick start

```python
from pydantic import BaseModel
from weft import CompletionService, create_openai

service = CompletionService(create_openai(model="gpt-4o-mini"))

@service.function("Look up the weather for a city")
async def get_weather(args):
    return {"city": args["city"], "forecast": "Sunny, 22C"}

print(await service.complete("What's the weather in Paris?"))
```
"""

from weft.config import FunctionCallingPolicy, ProviderConfig, ServiceConfig, StructuredOutputPolicy
from weft.conversation import Conversation, SummaryConversationPolicy
from weft.engine import DecoupledRun, RoundExecutor, StructuredOutputResolver
from weft.errors import (
    AgentMaxStepsError,
    AuthenticationError,
    MalformedFunctionCallError,
    RateLimitError,
    RoundsExceededError,
    StructuredOutputError,
    TransportError,
    TransportTimeoutError,
    UsageError,
    WeftError,
)
from weft.functions import FunctionRegistry, define_function
from weft.providers import (
    AnthropicAdapter,
    OpenAIAdapter,
    create_claude,
    create_custom,
    create_deepseek,
    create_grok,
    create_ollama,
    create_openai,
)
from weft.schema import extract_json, generate_schema
from weft.service import CompletionService
from weft.types import (
    CompletionEvent,
    ErrorEvent,
    FunctionCall,
    FunctionCallStartedEvent,
    FunctionResultEvent,
    Message,
    ReasoningEvent,
    Role,
    StreamEvent,
    StreamOptions,
    TextEvent,
)

__version__ = "0.1.0"

__all__ = [
    # Service
    "CompletionService",
    "Conversation",
    "SummaryConversationPolicy",
    "FunctionRegistry",
    "define_function",
    # Engine
    "RoundExecutor",
    "DecoupledRun",
    "StructuredOutputResolver",
    "generate_schema",
    "extract_json",
    # Config
    "FunctionCallingPolicy",
    "StructuredOutputPolicy",
    "ServiceConfig",
    "ProviderConfig",
    # Providers
    "OpenAIAdapter",
    "AnthropicAdapter",
    "create_openai",
    "create_grok",
    "create_deepseek",
    "create_claude",
    "create_ollama",
    "create_custom",
    # Types
    "Message",
    "Role",
    "FunctionCall",
    "StreamEvent",
    "StreamOptions",
    "TextEvent",
    "ReasoningEvent",
    "FunctionCallStartedEvent",
    "FunctionResultEvent",
    "CompletionEvent",
    "ErrorEvent",
    # Errors
    "WeftError",
    "TransportError",
    "RateLimitError",
    "AuthenticationError",
    "TransportTimeoutError",
    "RoundsExceededError",
    "AgentMaxStepsError",
    "MalformedFunctionCallError",
    "StructuredOutputError",
    "UsageError",
]
