"""LLM backends used by the trending ranker."""

from .providers import (
    AnthropicProvider,
    CompletionRequest,
    GeminiProvider,
    LLMProvider,
    OpenAICompatibleProvider,
    available_providers,
    create_provider,
)

__all__ = [
    "AnthropicProvider",
    "CompletionRequest",
    "GeminiProvider",
    "LLMProvider",
    "OpenAICompatibleProvider",
    "available_providers",
    "create_provider",
]
