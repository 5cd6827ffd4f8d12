"""
LLM interaction logging for provider API calls.

Provides detailed logging of LLM requests and responses for debugging,
cost tracking, and auditing purposes.
"""

import json
import logging
import logging.handlers
import time
import uuid
from datetime import datetime, timezone

from drslab.ai.base import ChatMessage, LLMResponse
from drslab.config import settings

logger = logging.getLogger(__name__)


class LLMLogger:
    """
    Logger for LLM API interactions.

    Logs requests, responses, token usage, and errors to a separate log file
    when LLM logging is enabled in configuration.
    """

    def __init__(self):
        """Initialize LLM logger with separate file handler."""
        self.llm_logger = logging.getLogger("drslab.llm")
        self.enabled = settings.llm_logging_enabled

        if self.enabled and settings.log_file_enabled:
            self._setup_file_handler()

    def _setup_file_handler(self) -> None:
        """Setup dedicated file handler for LLM logs."""
        llm_dir = settings.log_directory / "llm"
        llm_dir.mkdir(parents=True, exist_ok=True)

        handler = logging.handlers.RotatingFileHandler(
            llm_dir / "requests.log",
            maxBytes=settings.log_max_bytes,
            backupCount=settings.log_backup_count,
            encoding="utf-8",
        )
        handler.setFormatter(
            logging.Formatter(
                fmt="[%(asctime)s] [%(levelname)s] %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

        self.llm_logger.addHandler(handler)
        self.llm_logger.setLevel(logging.INFO)
        self.llm_logger.propagate = False  # Don't propagate to root logger

    def log_request(
        self,
        provider: str,
        model: str,
        system_prompt: str,
        messages: list[ChatMessage],
        max_tokens: int,
        temperature: float | None,
    ) -> str:
        """
        Log an LLM API request.

        Args:
            provider: Provider identifier ("gemini", "openai")
            model: Model name
            system_prompt: System instruction sent with the request
            messages: Chat history sent with the request
            max_tokens: Maximum tokens requested
            temperature: Temperature parameter

        Returns:
            str: Request ID for correlating with response ("" when disabled)
        """
        if not self.enabled or not settings.llm_log_requests:
            return ""

        request_id = f"{provider}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"
        last_message = messages[-1]["content"] if messages else ""
        preview = last_message[:500] + "..." if len(last_message) > 500 else last_message

        log_entry = {
            "type": "request",
            "request_id": request_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "provider": provider,
            "model": model,
            "message_count": len(messages),
            "parameters": {
                "max_tokens": max_tokens,
                "temperature": temperature,
            },
            "system_prompt_length": len(system_prompt),
            "prompt_preview": preview,
        }

        self.llm_logger.info(f"REQUEST: {json.dumps(log_entry)}")
        return request_id

    def log_response(
        self, request_id: str, response: LLMResponse, cost_usd: float | None = None
    ) -> None:
        """
        Log an LLM API response.

        Args:
            request_id: Request ID from log_request()
            response: Normalised provider response
            cost_usd: Optional computed cost of the call
        """
        if not self.enabled or not settings.llm_log_responses:
            return

        log_entry = {
            "type": "response",
            "request_id": request_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "model": response.model,
            "finish_reason": response.finish_reason,
            "content_length": len(response.content),
            "duration_ms": round(response.duration_ms, 2),
        }

        if settings.llm_log_tokens:
            log_entry["tokens"] = {
                "prompt": response.prompt_tokens,
                "completion": response.completion_tokens,
                "total": response.total_tokens,
            }
            if cost_usd is not None:
                log_entry["cost_usd"] = round(cost_usd, 6)

        if response.content:
            log_entry["content_preview"] = (
                response.content[:200] + "..."
                if len(response.content) > 200
                else response.content
            )

        self.llm_logger.info(f"RESPONSE: {json.dumps(log_entry)}")

    def log_error(self, request_id: str, error: Exception) -> None:
        """
        Log an LLM API error.

        Args:
            request_id: Request ID from log_request()
            error: Exception that occurred
        """
        if not self.enabled:
            return

        log_entry = {
            "type": "error",
            "request_id": request_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "error_type": type(error).__name__,
            "error_message": str(error),
        }

        self.llm_logger.error(f"ERROR: {json.dumps(log_entry)}")


# Global LLM logger instance
llm_logger = LLMLogger()
