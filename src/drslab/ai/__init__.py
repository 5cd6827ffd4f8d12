"""LLM provider implementations for the chat and Studio assistants.

This module provides a pluggable provider system. Currently supported
providers:
- Gemini (gemini-2.5-flash, gemini-2.5-pro, ...)
- OpenAI-compatible APIs (OpenAI gpt-5, OpenRouter deepseek/deepseek-chat, ...)

Usage:
    from drslab.ai import create_provider

    provider = create_provider(
        provider_type="gemini",
        api_key="AIza...",
    )

    response = provider.complete(
        system_prompt="You are an empathetic companion...",
        messages=[{"role": "user", "content": "I had a rough day"}],
    )
"""

import logging
from typing import Literal

from drslab.ai.base import ChatMessage, LLMProvider, LLMResponse

logger = logging.getLogger(__name__)

# Type alias for provider names
ProviderType = Literal["gemini", "openai"]


def create_provider(
    provider_type: ProviderType,
    api_key: str,
    model: str | None = None,
    base_url: str | None = None,
) -> LLMProvider:
    """Factory function to create LLM providers.

    Args:
        provider_type: The provider to use ("gemini" or "openai")
        api_key: API key for the provider
        model: Optional model override (uses provider default if not specified)
        base_url: Optional API base URL (OpenAI-compatible providers only)

    Returns:
        Configured LLMProvider instance

    Raises:
        ValueError: If provider_type is unknown or api_key is missing
    """
    if not api_key:
        raise ValueError(f"API key is required for {provider_type} provider")

    if provider_type == "gemini":
        from drslab.ai.gemini_provider import GeminiProvider

        return GeminiProvider(
            api_key=api_key,
            model=model or "gemini-2.5-flash",
        )

    elif provider_type == "openai":
        from drslab.ai.openai_provider import OpenAIProvider

        return OpenAIProvider(
            api_key=api_key,
            model=model or "gpt-5",
            base_url=base_url,
        )

    else:
        raise ValueError(
            f"Unknown provider type: {provider_type}. "
            f"Supported providers: gemini, openai"
        )


def get_available_providers() -> list[str]:
    """Get list of available provider types.

    Returns:
        List of provider type strings
    """
    return ["gemini", "openai"]


__all__ = [
    "ChatMessage",
    "LLMProvider",
    "LLMResponse",
    "ProviderType",
    "create_provider",
    "get_available_providers",
]
