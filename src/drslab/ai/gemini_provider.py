"""Google Gemini LLM provider implementation."""

import logging
import time
from typing import Any, Iterator

from google import genai
from google.genai import types

from drslab.ai.base import ChatMessage, LLMProvider, LLMResponse, price_per_token

logger = logging.getLogger(__name__)

# Pricing per 1M tokens
GEMINI_PRICING = {
    "gemini-2.5-flash": {"input": 0.30, "output": 2.50},
    "gemini-2.5-pro": {"input": 1.25, "output": 10.00},
    # Default fallback for unknown models
    "default": {"input": 0.30, "output": 2.50},
}


def to_gemini_contents(
    system_prompt: str, messages: list[ChatMessage]
) -> tuple[str, list[dict[str, Any]]]:
    """Convert a neutral chat history to Gemini contents.

    Gemini only knows "user" and "model" turns, so assistant turns become
    "model", everything else "user", and system turns are appended to the
    system instruction instead.

    Returns:
        (system_instruction, contents)
    """
    system_parts = [system_prompt] if system_prompt else []
    contents = []
    for msg in messages:
        if msg["role"] == "system":
            system_parts.append(msg["content"])
            continue
        contents.append(
            {
                "role": "model" if msg["role"] == "assistant" else "user",
                "parts": [{"text": msg["content"]}],
            }
        )
    return "\n\n".join(system_parts), contents


class GeminiProvider(LLMProvider):
    """Gemini provider using the google-genai SDK."""

    def __init__(self, api_key: str, model: str = "gemini-2.5-flash"):
        """Initialize the Gemini provider.

        Args:
            api_key: Gemini Developer API key
            model: Model to use (default: gemini-2.5-flash)
        """
        if not api_key:
            raise ValueError("Gemini API key is required")

        self.client = genai.Client(api_key=api_key)
        self._model = model
        logger.info(f"Initialized Gemini provider with model: {model}")

    @property
    def provider_name(self) -> str:
        """Return 'gemini' as the provider identifier."""
        return "gemini"

    @property
    def model_name(self) -> str:
        """Return the model identifier."""
        return self._model

    def _build_config(
        self,
        system_instruction: str,
        max_tokens: int,
        temperature: float | None,
        json_output: bool = False,
    ) -> types.GenerateContentConfig:
        config: dict[str, Any] = {
            "system_instruction": system_instruction,
            "max_output_tokens": max_tokens,
        }
        if temperature is not None:
            config["temperature"] = temperature
        if json_output:
            config["response_mime_type"] = "application/json"
        return types.GenerateContentConfig(**config)

    def complete(
        self,
        system_prompt: str,
        messages: list[ChatMessage],
        max_tokens: int = 8192,
        temperature: float | None = None,
        json_output: bool = False,
    ) -> LLMResponse:
        """Generate a completion using Gemini's generate_content API.

        Args:
            system_prompt: System instruction
            messages: Chat history, oldest first
            max_tokens: Maximum output tokens
            temperature: Sampling temperature, or None for the model default
            json_output: Request an application/json response

        Returns:
            LLMResponse with completion and metadata

        Raises:
            google.genai.errors.APIError: Gemini API errors
        """
        start_time = time.time()

        system_instruction, contents = to_gemini_contents(system_prompt, messages)
        response = self.client.models.generate_content(
            model=self._model,
            contents=contents,
            config=self._build_config(
                system_instruction, max_tokens, temperature, json_output
            ),
        )
        duration_ms = (time.time() - start_time) * 1000

        usage = response.usage_metadata
        prompt_tokens = (usage.prompt_token_count or 0) if usage else 0
        completion_tokens = (usage.candidates_token_count or 0) if usage else 0
        total_tokens = (usage.total_token_count or 0) if usage else 0

        finish_reason = "unknown"
        if response.candidates and response.candidates[0].finish_reason is not None:
            reason = response.candidates[0].finish_reason
            finish_reason = str(getattr(reason, "name", reason)).lower()

        return LLMResponse(
            content=response.text or "",
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=total_tokens,
            finish_reason=finish_reason,
            model=self._model,
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
        """Stream a completion, yielding text chunks as they arrive."""
        system_instruction, contents = to_gemini_contents(system_prompt, messages)
        for chunk in self.client.models.generate_content_stream(
            model=self._model,
            contents=contents,
            config=self._build_config(system_instruction, max_tokens, temperature),
        ):
            if chunk.text:
                yield chunk.text

    def calculate_cost(self, prompt_tokens: int, completion_tokens: int) -> float:
        """Calculate cost in USD based on token usage."""
        return price_per_token(
            GEMINI_PRICING, self._model, prompt_tokens, completion_tokens
        )
