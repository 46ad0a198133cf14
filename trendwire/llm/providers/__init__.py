"""LLM provider implementations for trending ranking."""

from .anthropic import AnthropicProvider
from .base import CompletionRequest, LLMProvider
from .factory import available_providers, create_provider
from .gemini import GeminiProvider
from .openai_compatible import OpenAICompatibleProvider

__all__ = [
    "AnthropicProvider",
    "CompletionRequest",
    "GeminiProvider",
    "LLMProvider",
    "OpenAICompatibleProvider",
    "available_providers",
    "create_provider",
]
