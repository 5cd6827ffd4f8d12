"""
AI service used by the API routes.

Maps the model selector of a conversation ("gemini" or "milesai") to a
provider and a persona, and wraps every provider failure in AIServiceError.
"""

import logging
from typing import Callable, Iterator, Optional

from drslab.ai import create_provider
from drslab.ai.base import ChatMessage, LLMProvider
from drslab.ai.llm_logger import LLMLogger, llm_logger
from drslab.ai.prompts import (
    CODE_ANALYSIS_PROMPT,
    CODE_GENERATION_PROMPT,
    DEV_FALLBACK,
    DEV_SYSTEM_PROMPT,
    PROJECT_GENERATION_PROMPT,
    PROJECT_GENERATION_SYSTEM_PROMPT,
    TERMINAL_SIMULATION_PROMPT,
    THERAPY_FALLBACK,
    THERAPY_SYSTEM_PROMPT,
)
from drslab.config import Settings, settings
from drslab.exceptions import AIServiceError
from drslab.models.db import ModelSelector
from drslab.studio.project import GeneratedProject, parse_generated_project

logger = logging.getLogger(__name__)

THERAPY_TEMPERATURE = 0.8
GEMINI_DEV_TEMPERATURE = 0.7

ProviderFactory = Callable[[], LLMProvider]


class AIService:
    """
    Facade over the configured LLM providers.

    Providers are built lazily on first use, so a missing API key only fails
    the requests that need that provider.
    """

    def __init__(
        self,
        gemini_factory: ProviderFactory,
        milesai_factory: ProviderFactory,
        max_tokens: int = 8192,
        interaction_logger: Optional[LLMLogger] = None,
    ):
        self._factories = {
            ModelSelector.GEMINI: gemini_factory,
            ModelSelector.MILESAI: milesai_factory,
        }
        self._providers: dict[ModelSelector, LLMProvider] = {}
        self.max_tokens = max_tokens
        self.interaction_logger = interaction_logger or llm_logger

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "AIService":
        """Build the service from application settings."""

        def gemini() -> LLMProvider:
            return create_provider(
                "gemini", api_key=config.gemini_api_key, model=config.gemini_model
            )

        def milesai() -> LLMProvider:
            model = config.openrouter_model if config.is_openrouter else config.openai_model
            base_url = None if config.is_openrouter else config.openai_base_url
            return create_provider(
                "openai", api_key=config.openai_api_key, model=model, base_url=base_url
            )

        return cls(gemini, milesai, max_tokens=config.ai_max_tokens)

    def provider(self, model: ModelSelector | str) -> LLMProvider:
        """Get (building on first use) the provider behind a model selector."""
        selector = ModelSelector(model)
        if selector not in self._providers:
            try:
                self._providers[selector] = self._factories[selector]()
            except ValueError as e:
                raise AIServiceError(
                    f"{selector.value} provider is not configured: {e}",
                    provider=selector.value,
                ) from e
        return self._providers[selector]

    def _complete(
        self,
        model: ModelSelector | str,
        system_prompt: str,
        messages: list[ChatMessage],
        temperature: float | None,
        error_message: str,
        json_output: bool = False,
    ) -> str:
        provider = self.provider(model)
        request_id = self.interaction_logger.log_request(
            provider.provider_name,
            provider.model_name,
            system_prompt,
            messages,
            self.max_tokens,
            temperature,
        )
        try:
            response = provider.complete(
                system_prompt,
                messages,
                max_tokens=self.max_tokens,
                temperature=temperature,
                json_output=json_output,
            )
        except Exception as e:
            self.interaction_logger.log_error(request_id, e)
            logger.error(f"{provider.provider_name} API error: {e}")
            raise AIServiceError(
                f"{error_message}: {e}", provider=provider.provider_name
            ) from e

        self.interaction_logger.log_response(
            request_id,
            response,
            provider.calculate_cost(response.prompt_tokens, response.completion_tokens),
        )
        return response.content

    @staticmethod
    def _dev_temperature(model: ModelSelector | str) -> float | None:
        return GEMINI_DEV_TEMPERATURE if ModelSelector(model) == ModelSelector.GEMINI else None

    def generate_therapy_response(self, history: list[ChatMessage]) -> str:
        """Empathetic CBT-style reply from Gemini."""
        content = self._complete(
            ModelSelector.GEMINI,
            THERAPY_SYSTEM_PROMPT,
            history,
            THERAPY_TEMPERATURE,
            "Failed to generate therapy response",
        )
        return content or THERAPY_FALLBACK

    def generate_dev_response(
        self,
        history: list[ChatMessage],
        model: ModelSelector | str = ModelSelector.MILESAI,
        system_prompt: str = DEV_SYSTEM_PROMPT,
    ) -> str:
        """Development assistant reply (MilesAI by default, Gemini on request)."""
        content = self._complete(
            model,
            system_prompt,
            history,
            self._dev_temperature(model),
            "Failed to generate dev response",
        )
        return content or DEV_FALLBACK

    @staticmethod
    def fallback_reply(model: ModelSelector | str) -> str:
        """Reply used when a model answers with nothing."""
        if ModelSelector(model) == ModelSelector.GEMINI:
            return THERAPY_FALLBACK
        return DEV_FALLBACK

    def respond(self, model: ModelSelector | str, history: list[ChatMessage]) -> str:
        """Reply for a conversation according to its model selector."""
        if ModelSelector(model) == ModelSelector.GEMINI:
            return self.generate_therapy_response(history)
        return self.generate_dev_response(history)

    def stream_response(
        self, model: ModelSelector | str, history: list[ChatMessage]
    ) -> Iterator[str]:
        """
        Stream a reply for a conversation according to its model selector.

        Raises:
            AIServiceError: If the provider fails before or while streaming
        """
        selector = ModelSelector(model)
        if selector == ModelSelector.GEMINI:
            system_prompt, temperature = THERAPY_SYSTEM_PROMPT, THERAPY_TEMPERATURE
        else:
            system_prompt, temperature = DEV_SYSTEM_PROMPT, None

        provider = self.provider(selector)
        try:
            yield from provider.stream(
                system_prompt, history, max_tokens=self.max_tokens, temperature=temperature
            )
        except Exception as e:
            logger.error(f"{provider.provider_name} streaming error: {e}")
            raise AIServiceError(
                f"Failed to stream response: {e}", provider=provider.provider_name
            ) from e

    def generate_code(
        self, description: str, model: ModelSelector | str = ModelSelector.MILESAI
    ) -> str:
        """Generate code only (no explanation) from a description."""
        return self._complete(
            model,
            CODE_GENERATION_PROMPT,
            [{"role": "user", "content": description}],
            self._dev_temperature(model),
            "Failed to generate code",
        )

    def analyze_code(
        self, code: str, model: ModelSelector | str = ModelSelector.MILESAI
    ) -> str:
        """Review code for bugs, performance and security issues."""
        return self._complete(
            model,
            CODE_ANALYSIS_PROMPT,
            [{"role": "user", "content": f"Analyze this code:\n\n{code}"}],
            self._dev_temperature(model),
            "Failed to analyze code",
        )

    def simulate_command(self, command: str) -> str:
        """Ask the dev assistant what a terminal command would print."""
        return self.generate_dev_response(
            [
                {
                    "role": "user",
                    "content": TERMINAL_SIMULATION_PROMPT.format(command=command),
                }
            ]
        )

    def generate_project(
        self,
        prompt: str,
        existing_paths: list[str],
        model: ModelSelector | str = ModelSelector.GEMINI,
    ) -> GeneratedProject:
        """
        Generate a complete project as structured JSON.

        Raises:
            AIServiceError: If the provider fails or the JSON is unusable
        """
        user_prompt = PROJECT_GENERATION_PROMPT.format(
            prompt=prompt,
            current_files=", ".join(existing_paths) if existing_paths else "none",
        )
        raw = self._complete(
            model,
            PROJECT_GENERATION_SYSTEM_PROMPT,
            [{"role": "user", "content": user_prompt}],
            self._dev_temperature(model),
            "Failed to generate project",
            json_output=True,
        )
        try:
            return parse_generated_project(raw)
        except ValueError as e:
            logger.error(f"Project generation returned unusable JSON: {e}")
            raise AIServiceError(f"Failed to process project response: {e}") from e


_service: Optional[AIService] = None


def get_ai_service() -> AIService:
    """
    FastAPI dependency returning the process-wide AI service.

    Tests override this dependency with a fake.
    """
    global _service
    if _service is None:
        _service = AIService.from_settings(settings)
    return _service
