"""OpenAI-compatible LLM provider (OpenAI, OpenRouter, DeepSeek, ...)."""

import logging
import time
from typing import Any, Iterator

from openai import OpenAI

from drslab.ai.base import ChatMessage, LLMProvider, LLMResponse, price_per_token

logger = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_BASE_URL = "https://api.openai.com/v1"

# Pricing per 1M tokens
OPENAI_PRICING = {
    "gpt-5": {"input": 1.25, "output": 10.00},
    "gpt-4o-mini": {"input": 0.15, "output": 0.60},
    "gpt-4o": {"input": 2.50, "output": 10.00},
    "deepseek/deepseek-chat": {"input": 0.27, "output": 1.10},
    # Default fallback for unknown models
    "default": {"input": 1.25, "output": 10.00},
}


class OpenAIProvider(LLMProvider):
    """LLM provider for any OpenAI-compatible chat completions API.

    Keys starting with ``sk-or-`` are OpenRouter keys and are routed to the
    OpenRouter endpoint unless an explicit base URL is given.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-5",
        base_url: str | None = None,
    ):
        """Initialize the OpenAI-compatible provider.

        Args:
            api_key: API key (OpenAI, OpenRouter or compatible)
            model: Model to use (default: gpt-5)
            base_url: Optional API base URL override
        """
        if not api_key:
            raise ValueError("OpenAI API key is required")

        if base_url is None:
            base_url = (
                OPENROUTER_BASE_URL if api_key.startswith("sk-or-") else DEFAULT_BASE_URL
            )

        self.client = OpenAI(api_key=api_key, base_url=base_url)
        self._model = model
        self.base_url = base_url
        logger.info(f"Initialized OpenAI-compatible provider with model: {model}")

    @property
    def provider_name(self) -> str:
        """Return 'openai' as the provider identifier."""
        return "openai"

    @property
    def model_name(self) -> str:
        """Return the model identifier."""
        return self._model

    def _build_request(
        self,
        system_prompt: str,
        messages: list[ChatMessage],
        max_tokens: int,
        temperature: float | None,
    ) -> dict[str, Any]:
        request_params: dict[str, Any] = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system_prompt},
                *(
                    {"role": msg["role"], "content": msg["content"]}
                    for msg in messages
                ),
            ],
            "max_completion_tokens": max_tokens,
        }
        # Reasoning models reject temperature, so only send it when asked
        if temperature is not None:
            request_params["temperature"] = temperature
        return request_params

    def complete(
        self,
        system_prompt: str,
        messages: list[ChatMessage],
        max_tokens: int = 8192,
        temperature: float | None = None,
        json_output: bool = False,
    ) -> LLMResponse:
        """Generate a completion using the chat completions API.

        Args:
            system_prompt: System message setting the context
            messages: Chat history, oldest first
            max_tokens: Maximum tokens in response
            temperature: Sampling temperature, or None for the model default
            json_output: Use JSON mode (response_format json_object)

        Returns:
            LLMResponse with completion and metadata

        Raises:
            openai.OpenAIError: API errors
        """
        start_time = time.time()

        request_params = self._build_request(
            system_prompt, messages, max_tokens, temperature
        )
        if json_output:
            request_params["response_format"] = {"type": "json_object"}

        response = self.client.chat.completions.create(**request_params)
        duration_ms = (time.time() - start_time) * 1000

        choice = response.choices[0] if response.choices else None
        content = (choice.message.content if choice else None) or ""

        usage = response.usage
        prompt_tokens = usage.prompt_tokens if usage else 0
        completion_tokens = usage.completion_tokens if usage else 0
        total_tokens = usage.total_tokens if usage else 0

        return LLMResponse(
            content=content,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=total_tokens,
            finish_reason=(choice.finish_reason if choice else None) or "unknown",
            model=response.model or self._model,
            duration_ms=duration_ms,
            raw_response=response,
        )

    def stream(
        self,
        system_prompt: str,
        messages: list[ChatMessage],
        max_tokens: int = 8192,
        temperature: float | None = None,
    ) -> Iterator[str]:
        """Stream a completion, yielding content deltas as they arrive."""
        request_params = self._build_request(
            system_prompt, messages, max_tokens, temperature
        )
        request_params["stream"] = True

        for chunk in self.client.chat.completions.create(**request_params):
            if not chunk.choices:
                continue
            content = chunk.choices[0].delta.content
            if content:
                yield content

    def calculate_cost(self, prompt_tokens: int, completion_tokens: int) -> float:
        """Calculate cost in USD based on token usage."""
        return price_per_token(
            OPENAI_PRICING, self._model, prompt_tokens, completion_tokens
        )
