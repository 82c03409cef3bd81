"""Prompt-to-answer adapter for LLM invocation.

Architectural role:
    Canonical text-generation entrypoint used by the engine. Bridges prompt
    construction to transport (`siteqa.llm.client`) and applies the retry policy.

Model call flow:
    prompt -> optional model discovery -> `call_with_retry(client.generate)`.

Retry behavior:
    One retry (two attempts) for rate limiting, server errors and transport
    failures, after roughly one second. Bad requests, auth failures, unknown
    models and empty responses are not retried.

Model discovery:
    When enabled, the requested model is checked against the models available to
    the credential and swapped for the first available entry of
    `MODEL_PREFERENCE`. Discovery failures keep the requested model.
"""

from __future__ import annotations

import logging
from typing import Protocol

from siteqa.llm.client import GeminiClient
from siteqa.llm.provider_config import (
    MODEL_DISCOVERY,
    MODEL_PREFERENCE,
    MODEL_RETRY_BACKOFF_SECONDS,
    MODEL_RETRY_JITTER_SECONDS,
)
from siteqa.llm.retry import RetryPolicy, call_with_retry


logger = logging.getLogger(__name__)


DEFAULT_RETRY_POLICY = RetryPolicy(
    max_attempts=2,
    backoff_seconds=MODEL_RETRY_BACKOFF_SECONDS,
    jitter_seconds=MODEL_RETRY_JITTER_SECONDS,
)


class TextModelClient(Protocol):
    """Transport interface required by `ModelService`."""

    async def generate(self, prompt: str, model_id: str, api_key: str) -> str:
        ...

    async def list_models(self, api_key: str) -> list[str]:
        ...


def pick_model(requested: str, available: list[str], preference=MODEL_PREFERENCE) -> str:
    """Keep `requested` if available, else the first preferred available model.

    Edge cases:
        - Empty `available` keeps `requested`.
        - No preferred model available -> first available model.
    """
    if not available or requested in available:
        return requested
    for candidate in preference:
        if candidate in available:
            return candidate
    return available[0]


class ModelService:
    """Generate answers with retry and optional model discovery."""

    def __init__(
        self,
        client: TextModelClient | None = None,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        discover_models: bool = MODEL_DISCOVERY,
        sleep=None,
    ) -> None:
        self.client = client or GeminiClient()
        self.retry_policy = retry_policy
        self.discover_models = discover_models
        self._sleep = sleep

    async def resolve_model(self, model_id: str, api_key: str) -> str:
        if not self.discover_models:
            return model_id

        try:
            available = await self.client.list_models(api_key)
        except Exception:
            logger.warning("Model discovery failed; keeping %s", model_id, exc_info=True)
            return model_id

        chosen = pick_model(model_id, available)
        if chosen != model_id:
            logger.info("Model %s unavailable; using %s", model_id, chosen)
        return chosen

    async def generate(self, prompt: str, model_id: str, api_key: str) -> tuple[str, str]:
        """Return `(answer_text, model_used)`.

        Raises:
            ModelRequestError: After retry exhaustion or on a non-retryable failure.
        """
        model_used = await self.resolve_model(model_id, api_key)

        async def attempt() -> str:
            return await self.client.generate(prompt, model_used, api_key)

        if self._sleep is None:
            text = await call_with_retry(attempt, self.retry_policy)
        else:
            text = await call_with_retry(attempt, self.retry_policy, sleep=self._sleep)
        return text, model_used
