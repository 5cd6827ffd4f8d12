"""Tests for the AI service facade."""

import json
from unittest.mock import Mock

import pytest

from drslab.ai.base import LLMResponse
from drslab.ai.prompts import (
    CODE_ANALYSIS_PROMPT,
    DEV_FALLBACK,
    DEV_SYSTEM_PROMPT,
    THERAPY_FALLBACK,
    THERAPY_SYSTEM_PROMPT,
)
from drslab.ai.service import AIService
from drslab.config import Settings
from drslab.exceptions import AIServiceError
from drslab.models.db import ModelSelector


def _response(content: str) -> LLMResponse:
    return LLMResponse(
        content=content,
        prompt_tokens=10,
        completion_tokens=5,
        total_tokens=15,
        finish_reason="stop",
        model="test-model",
        duration_ms=12.0,
    )


def _provider(name: str, content: str = "reply") -> Mock:
    provider = Mock()
    provider.provider_name = name
    provider.model_name = f"{name}-model"
    provider.complete.return_value = _response(content)
    provider.calculate_cost.return_value = 0.0
    return provider


@pytest.fixture
def gemini() -> Mock:
    return _provider("gemini", "Gemini says hi")


@pytest.fixture
def milesai() -> Mock:
    return _provider("openai", "MilesAI says hi")


@pytest.fixture
def service(gemini: Mock, milesai: Mock) -> AIService:
    return AIService(lambda: gemini, lambda: milesai, max_tokens=1024)


HISTORY = [{"role": "user", "content": "Hello"}]


class TestResponses:
    """Persona and model routing."""

    def test_therapy_uses_gemini_at_0_8(self, service, gemini, milesai):
        assert service.generate_therapy_response(HISTORY) == "Gemini says hi"

        args, kwargs = gemini.complete.call_args
        assert args[0] == THERAPY_SYSTEM_PROMPT
        assert args[1] == HISTORY
        assert kwargs["temperature"] == 0.8
        assert kwargs["max_tokens"] == 1024
        milesai.complete.assert_not_called()

    def test_dev_defaults_to_milesai_without_temperature(self, service, milesai):
        assert service.generate_dev_response(HISTORY) == "MilesAI says hi"

        args, kwargs = milesai.complete.call_args
        assert args[0] == DEV_SYSTEM_PROMPT
        assert kwargs["temperature"] is None

    def test_dev_on_gemini_uses_0_7(self, service, gemini):
        service.generate_dev_response(HISTORY, model="gemini")

        assert gemini.complete.call_args.kwargs["temperature"] == 0.7

    def test_respond_dispatches_on_model(self, service, gemini, milesai):
        assert service.respond(ModelSelector.GEMINI, HISTORY) == "Gemini says hi"
        assert service.respond("milesai", HISTORY) == "MilesAI says hi"

    def test_empty_replies_fall_back(self, service, gemini, milesai):
        gemini.complete.return_value = _response("")
        milesai.complete.return_value = _response("")

        assert service.generate_therapy_response(HISTORY) == THERAPY_FALLBACK
        assert service.generate_dev_response(HISTORY) == DEV_FALLBACK

    def test_fallback_reply_per_model(self):
        assert AIService.fallback_reply("gemini") == THERAPY_FALLBACK
        assert AIService.fallback_reply(ModelSelector.MILESAI) == DEV_FALLBACK

    def test_provider_error_is_wrapped(self, service, gemini):
        gemini.complete.side_effect = RuntimeError("quota exceeded")

        with pytest.raises(AIServiceError, match="quota exceeded") as exc_info:
            service.generate_therapy_response(HISTORY)

        assert exc_info.value.provider == "gemini"

    def test_missing_key_is_wrapped(self):
        def broken():
            raise ValueError("Gemini API key is required")

        service = AIService(broken, broken)

        with pytest.raises(AIServiceError, match="not configured"):
            service.generate_therapy_response(HISTORY)

    def test_providers_are_built_once(self, gemini, milesai):
        factory = Mock(return_value=gemini)
        service = AIService(factory, lambda: milesai)

        service.generate_therapy_response(HISTORY)
        service.generate_therapy_response(HISTORY)

        factory.assert_called_once()


class TestInteractionLogging:
    def test_request_and_response_logged(self, gemini, milesai):
        interactions = Mock()
        interactions.log_request.return_value = "req-1"
        service = AIService(lambda: gemini, lambda: milesai, interaction_logger=interactions)

        service.generate_therapy_response(HISTORY)

        interactions.log_request.assert_called_once()
        assert interactions.log_request.call_args.args[:2] == ("gemini", "gemini-model")
        interactions.log_response.assert_called_once()
        assert interactions.log_response.call_args.args[0] == "req-1"

    def test_failure_logged(self, gemini, milesai):
        interactions = Mock()
        interactions.log_request.return_value = "req-2"
        milesai.complete.side_effect = RuntimeError("boom")
        service = AIService(lambda: gemini, lambda: milesai, interaction_logger=interactions)

        with pytest.raises(AIServiceError):
            service.generate_dev_response(HISTORY)

        error_args = interactions.log_error.call_args.args
        assert error_args[0] == "req-2"
        assert isinstance(error_args[1], RuntimeError)
        interactions.log_response.assert_not_called()


class TestStreaming:
    def test_stream_uses_persona(self, service, gemini):
        gemini.stream.return_value = iter(["a", "b"])

        assert list(service.stream_response("gemini", HISTORY)) == ["a", "b"]
        assert gemini.stream.call_args.args[0] == THERAPY_SYSTEM_PROMPT

    def test_stream_error_is_wrapped(self, service, milesai):
        def failing(*args, **kwargs):
            yield "partial"
            raise RuntimeError("connection reset")

        milesai.stream.side_effect = failing

        chunks = []
        with pytest.raises(AIServiceError, match="connection reset"):
            for chunk in service.stream_response("milesai", HISTORY):
                chunks.append(chunk)
        assert chunks == ["partial"]


class TestCodeTasks:
    def test_generate_code(self, service, milesai):
        milesai.complete.return_value = _response("def add(a, b):\n    return a + b")

        code = service.generate_code("an add function")

        assert code.startswith("def add")
        assert milesai.complete.call_args.args[1] == [
            {"role": "user", "content": "an add function"}
        ]

    def test_analyze_code(self, service, milesai):
        service.analyze_code("x = 1")

        args = milesai.complete.call_args.args
        assert args[0] == CODE_ANALYSIS_PROMPT
        assert args[1][0]["content"] == "Analyze this code:\n\nx = 1"

    def test_simulate_command(self, service, milesai):
        milesai.complete.return_value = _response("added 120 packages")

        assert service.simulate_command("npm install") == "added 120 packages"
        assert "npm install" in milesai.complete.call_args.args[1][0]["content"]


class TestGenerateProject:
    def test_parses_fenced_json(self, service, gemini):
        payload = {
            "projectName": "todo",
            "files": [{"path": "index.html", "language": "html", "content": "<ul></ul>"}],
            "explanation": "A todo list",
            "nextSteps": [{"text": "Add storage", "priority": "High"}],
        }
        gemini.complete.return_value = _response(f"```json\n{json.dumps(payload)}\n```")

        project = service.generate_project("a todo app", ["README.md"])

        assert project.project_name == "todo"
        assert project.files[0].path == "index.html"
        assert project.next_steps[0].priority == "High"
        assert gemini.complete.call_args.kwargs["json_output"] is True
        assert "README.md" in gemini.complete.call_args.args[1][0]["content"]

    def test_invalid_json_raises(self, service, gemini):
        gemini.complete.return_value = _response("not json at all")

        with pytest.raises(AIServiceError, match="Failed to process"):
            service.generate_project("anything", [])


class TestFromSettings:
    def test_openrouter_key_uses_openrouter_model(self, monkeypatch):
        calls = []
        monkeypatch.setattr(
            "drslab.ai.service.create_provider",
            lambda *args, **kwargs: calls.append((args, kwargs)) or _provider("openai"),
        )
        config = Settings(_env_file=None, openai_api_key="sk-or-v1-abc")

        AIService.from_settings(config).provider("milesai")

        args, kwargs = calls[0]
        assert args == ("openai",)
        assert kwargs["model"] == "deepseek/deepseek-chat"
        assert kwargs["base_url"] is None

    def test_openai_key_uses_configured_base_url(self, monkeypatch):
        calls = []
        monkeypatch.setattr(
            "drslab.ai.service.create_provider",
            lambda *args, **kwargs: calls.append((args, kwargs)) or _provider("openai"),
        )
        config = Settings(
            _env_file=None, openai_api_key="sk-proj-abc", openai_base_url="http://llm/v1"
        )

        AIService.from_settings(config).provider("milesai")

        assert calls[0][1]["model"] == "gpt-5"
        assert calls[0][1]["base_url"] == "http://llm/v1"
