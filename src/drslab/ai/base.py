"""Base protocol and types for LLM providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterator

# Chat history in provider-neutral form: [{"role": "user", "content": "..."}]
ChatMessage = dict[str, str]


@dataclass
class LLMResponse:
    """Standardized response from LLM providers.

    Attributes:
        content: The generated text content
        prompt_tokens: Number of tokens in the prompt
        completion_tokens: Number of tokens in the completion
        total_tokens: Total tokens used
        finish_reason: Why generation stopped (stop, length, error, etc.)
        model: The actual model used (may differ from requested)
        duration_ms: Time taken for the API call in milliseconds
        raw_response: Provider-specific raw response for debugging
    """

    content: str
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    finish_reason: str
    model: str
    duration_ms: float
    raw_response: Any = None


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    Implementations must handle:
    - API client initialization
    - Mapping the neutral chat history to the provider's message format
    - Token counting and cost calculation
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider identifier (e.g., 'gemini', 'openai')."""
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Return the model identifier being used."""
        ...

    @abstractmethod
    def complete(
        self,
        system_prompt: str,
        messages: list[ChatMessage],
        max_tokens: int = 8192,
        temperature: float | None = None,
        json_output: bool = False,
    ) -> LLMResponse:
        """Generate a completion for a chat history.

        Args:
            system_prompt: System instruction setting the assistant's role
            messages: Chat history, oldest first; roles are "user",
                "assistant" or "system"
            max_tokens: Maximum tokens in the response
            temperature: Sampling temperature, or None for the model default
            json_output: Ask the provider for a JSON object response

        Returns:
            LLMResponse with the completion and metadata
        """
        ...

    @abstractmethod
    def stream(
        self,
        system_prompt: str,
        messages: list[ChatMessage],
        max_tokens: int = 8192,
        temperature: float | None = None,
    ) -> Iterator[str]:
        """Stream a completion as text chunks (empty chunks are skipped)."""
        ...

    @abstractmethod
    def calculate_cost(self, prompt_tokens: int, completion_tokens: int) -> float:
        """Calculate the cost in USD for the given token usage.

        Args:
            prompt_tokens: Number of input tokens
            completion_tokens: Number of output tokens

        Returns:
            Cost in USD
        """
        ...


def price_per_token(
    pricing: dict[str, dict[str, float]],
    model: str,
    prompt_tokens: int,
    completion_tokens: int,
) -> float:
    """Cost in USD from a per-million-token pricing table with a "default" row."""
    rates = pricing.get(model, pricing["default"])
    input_cost = prompt_tokens * (rates["input"] / 1_000_000)
    output_cost = completion_tokens * (rates["output"] / 1_000_000)
    return input_cost + output_cost
