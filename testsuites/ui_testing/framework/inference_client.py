"""
================================================================================
Inference Client with Telemetry
================================================================================

Wraps a single structured chat-completion call used to propose replacement
locators.

Contract:
    - Response constrained to a strict JSON schema: {locator, strategy}
    - Fixed high temperature (0.9): repeated calls may yield different
      valid candidates
    - No retries; every failure propagates as InferenceParseError or
      InferenceBackendError
    - Token usage and latency aggregated for an end-of-run summary

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import threading
import time
import uuid
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

import httpx
import openai
from loguru import logger
from pydantic import BaseModel, ConfigDict, ValidationError

from .config_loader import ConfigLoader
from .errors import ConfigurationError, InferenceBackendError, InferenceParseError
from .locators import LocatorStrategy
from .prompts import RESPONSE_FORMAT


# Sampling temperature for locator generation
INFERENCE_TEMPERATURE = 0.9

DEFAULT_TIMEOUT = 60.0


class LocatorSuggestion(BaseModel):
    """Model output, validated against the response schema."""

    model_config = ConfigDict(extra="forbid")

    locator: str
    strategy: LocatorStrategy


@dataclass(frozen=True)
class TelemetrySummary:
    total_requests: int
    total_tokens: int
    prompt_tokens: int
    completion_tokens: int
    total_duration_ms: float
    average_tokens_per_request: float
    average_duration_per_request: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class InferenceTelemetry:
    """Thread-safe running totals over successful inference calls."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._requests = 0
        self._tokens = 0
        self._prompt_tokens = 0
        self._completion_tokens = 0
        self._duration_ms = 0.0

    def record(
        self,
        prompt_tokens: int,
        completion_tokens: int,
        total_tokens: int,
        duration_ms: float,
    ) -> None:
        with self._lock:
            self._requests += 1
            self._tokens += total_tokens
            self._prompt_tokens += prompt_tokens
            self._completion_tokens += completion_tokens
            self._duration_ms += duration_ms

    def summary(self) -> TelemetrySummary:
        with self._lock:
            requests = self._requests
            return TelemetrySummary(
                total_requests=requests,
                total_tokens=self._tokens,
                prompt_tokens=self._prompt_tokens,
                completion_tokens=self._completion_tokens,
                total_duration_ms=self._duration_ms,
                average_tokens_per_request=self._tokens / requests if requests else 0.0,
                average_duration_per_request=self._duration_ms / requests if requests else 0.0,
            )


class InferenceClient:
    """
    Structured chat-completion client for locator generation.

    The backend is anything exposing `chat.completions.create(...)` with the
    OpenAI SDK signature; `from_config` builds a real `openai.OpenAI` client.

    Usage:
        >>> client = InferenceClient.from_config(ConfigLoader())
        >>> suggestion = client.infer(SYSTEM_PROMPT, render_prompt(...))
        >>> suggestion.locator, suggestion.strategy
        ("button[data-testid='submit']", <LocatorStrategy.CSS: 'CSS'>)
    """

    def __init__(
        self,
        backend: Any,
        model: str,
        telemetry: Optional[InferenceTelemetry] = None,
    ) -> None:
        self.backend = backend
        self.model = model
        self.telemetry = telemetry or InferenceTelemetry()

    @classmethod
    def from_config(cls, config: Optional[ConfigLoader] = None) -> "InferenceClient":
        """
        Build a client backed by the OpenAI SDK.

        Raises:
            ConfigurationError: When the API key or model is not configured
        """
        if config is None:
            config = ConfigLoader()

        api_key = config.get("openai.api_key")
        if not api_key:
            raise ConfigurationError("API key not found in configuration (openai.api_key)")
        model = config.get("openai.model")
        if not model:
            raise ConfigurationError("Model not found in configuration (openai.model)")

        backend = openai.OpenAI(
            api_key=api_key,
            base_url=config.get("openai.base_url") or None,
            timeout=httpx.Timeout(float(config.get("openai.timeout", DEFAULT_TIMEOUT))),
            max_retries=0,
        )
        return cls(backend, model)

    def infer(self, system_prompt: str, user_prompt: str) -> LocatorSuggestion:
        """
        Ask the model for a replacement locator.

        Args:
            system_prompt: System message
            user_prompt: Rendered user prompt

        Returns:
            Parsed LocatorSuggestion

        Raises:
            InferenceBackendError: Transport/API error or empty content
            InferenceParseError: Content does not match the response schema
        """
        request_id = uuid.uuid4().hex[:8]
        logger.info(
            f"Inference request started - RequestId: {request_id}, Model: {self.model}, "
            f"Temperature: {INFERENCE_TEMPERATURE}, SystemMessageLength: {len(system_prompt)}, "
            f"PromptLength: {len(user_prompt)}"
        )
        start = time.perf_counter()

        try:
            completion = self.backend.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=INFERENCE_TEMPERATURE,
                response_format=RESPONSE_FORMAT,
            )
        except openai.OpenAIError as e:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.error(
                f"Inference request failed - RequestId: {request_id}, Reason: API Error, "
                f"Duration: {duration_ms:.0f}ms, ErrorMessage: {e}"
            )
            raise InferenceBackendError(f"Inference backend error: {e}") from e

        duration_ms = (time.perf_counter() - start) * 1000
        choice = completion.choices[0] if completion.choices else None
        content = (choice.message.content if choice else None) or ""

        if not content.strip():
            logger.error(
                f"Inference request failed - RequestId: {request_id}, "
                f"Reason: No content received, Duration: {duration_ms:.0f}ms"
            )
            raise InferenceBackendError("No content received from inference backend.")

        self._record_telemetry(request_id, completion, duration_ms, len(content))

        try:
            suggestion = LocatorSuggestion.model_validate_json(content)
        except ValidationError as e:
            logger.error(
                f"Inference request failed - RequestId: {request_id}, Reason: JSON Parse Error, "
                f"Duration: {duration_ms:.0f}ms, ErrorMessage: {e}"
            )
            raise InferenceParseError(f"Failed to parse JSON response: {e}") from e

        logger.info(
            f"Inference request completed - RequestId: {request_id}, "
            f"Duration: {duration_ms:.0f}ms"
        )
        return suggestion

    def _record_telemetry(
        self,
        request_id: str,
        completion: Any,
        duration_ms: float,
        response_length: int,
    ) -> None:
        usage = getattr(completion, "usage", None)
        prompt_tokens = getattr(usage, "prompt_tokens", 0) or 0
        completion_tokens = getattr(usage, "completion_tokens", 0) or 0
        total_tokens = getattr(usage, "total_tokens", 0) or 0
        finish_reason = completion.choices[0].finish_reason

        self.telemetry.record(prompt_tokens, completion_tokens, total_tokens, duration_ms)
        logger.info(
            f"Inference telemetry - RequestId: {request_id}, Model: {self.model}, "
            f"Duration: {duration_ms:.0f}ms, PromptTokens: {prompt_tokens}, "
            f"CompletionTokens: {completion_tokens}, TotalTokens: {total_tokens}, "
            f"ResponseLength: {response_length}, FinishReason: {finish_reason}"
        )


__all__ = [
    "INFERENCE_TEMPERATURE",
    "LocatorSuggestion",
    "TelemetrySummary",
    "InferenceTelemetry",
    "InferenceClient",
]
