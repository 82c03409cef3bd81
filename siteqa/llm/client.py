"""Gemini transport client for grounded answer generation.

Architectural role:
    Executes HTTP requests against the Gemini REST API and normalizes the result
    to plain text or a typed `ModelRequestError`.

Model invocation flow:
    `service.ModelService.generate` -> `GeminiClient.generate(prompt, model, key)`
    -> `generateContent` POST -> first candidate's text parts joined.

Retry behavior:
    None here. Each call is attempted once; errors carry a `retryable` flag that
    `service` feeds into `retry.call_with_retry`.

Failure handling model:
    - Non-2xx responses raise `ModelRequestError` with HTTP status, provider error
      code and message. Status 429 and 5xx are retryable.
    - Transport errors and timeouts raise a retryable `ModelRequestError` with no
      status.
    - A parsed response without text raises `EmptyModelResponseError`.
"""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from siteqa.llm.provider_config import (
    GEMINI_MODELS_URL,
    GEMINI_URL_TEMPLATE,
    GENERATION_CONFIG,
    MODEL_TIMEOUT_SECONDS,
)


logger = logging.getLogger(__name__)


class ModelRequestError(RuntimeError):
    """Model call failure with enough detail to decide on a retry."""

    def __init__(self, message: str, status: int | None = None, code=None, retryable: bool = False) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code if code is not None else status
        self.retryable = retryable


class EmptyModelResponseError(ModelRequestError):
    """The provider answered successfully but returned no usable text."""

    def __init__(self, message: str = "Empty Gemini response") -> None:
        super().__init__(message, status=None, code="EMPTY_RESPONSE", retryable=False)


def is_retryable_status(status: int) -> bool:
    return status == 429 or status >= 500


def _error_from_response(response: httpx.Response) -> ModelRequestError:
    """Build a `ModelRequestError` from a non-2xx provider response."""
    status = response.status_code
    try:
        data = response.json()
    except ValueError:
        data = {}

    error = data.get("error") if isinstance(data, dict) else None
    error = error if isinstance(error, dict) else {}

    message = error.get("message") or f"Gemini HTTP {status}"
    code = error.get("code") or status
    return ModelRequestError(message, status=status, code=code, retryable=is_retryable_status(status))


def extract_candidate_text(data) -> str:
    """Join the text parts of the first candidate; `""` when absent."""
    if not isinstance(data, dict):
        return ""

    candidates = data.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        return ""

    content = candidates[0].get("content")
    if not isinstance(content, dict):
        return ""
    parts = content.get("parts") or []

    return "".join(
        str(part.get("text", ""))
        for part in parts
        if isinstance(part, dict)
    ).strip()


class GeminiClient:
    """Async client for `generateContent` and model listing."""

    def __init__(
        self,
        timeout_seconds: float = MODEL_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def generate(self, prompt: str, model_id: str, api_key: str) -> str:
        """Send one prompt and return the generated text.

        Args:
            prompt: Fully built prompt including excerpts.
            model_id: Gemini model name without the `models/` prefix.
            api_key: Provider credential.

        Returns:
            Stripped candidate text, never empty.

        Raises:
            ModelRequestError: Non-2xx response, transport failure or unparseable body.
            EmptyModelResponseError: Response contained no text.
        """
        url = GEMINI_URL_TEMPLATE.format(model=quote(model_id, safe="-._"))
        payload = {
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": prompt}],
                }
            ],
            "generationConfig": dict(GENERATION_CONFIG),
        }

        response = await self._request("POST", url, api_key, json_body=payload)

        try:
            data = response.json()
        except ValueError as exc:
            raise ModelRequestError("Unparseable Gemini response", status=response.status_code) from exc

        text = extract_candidate_text(data)
        if not text:
            raise EmptyModelResponseError()
        return text

    async def list_models(self, api_key: str) -> list[str]:
        """Return model ids usable with `generateContent` for this credential."""
        response = await self._request("GET", GEMINI_MODELS_URL, api_key)

        try:
            data = response.json()
        except ValueError as exc:
            raise ModelRequestError("Unparseable model list", status=response.status_code) from exc

        models: list[str] = []
        for item in data.get("models", []) if isinstance(data, dict) else []:
            if not isinstance(item, dict):
                continue
            methods = item.get("supportedGenerationMethods") or []
            if methods and "generateContent" not in methods:
                continue
            name = str(item.get("name", ""))
            if name.startswith("models/"):
                name = name[len("models/"):]
            if name:
                models.append(name)
        return models

    async def _request(self, method: str, url: str, api_key: str, json_body=None) -> httpx.Response:
        headers = {
            "x-goog-api-key": api_key,
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.request(method, url, headers=headers, json=json_body)
        except httpx.HTTPError as exc:
            logger.warning("Gemini %s request failed: %s", method, type(exc).__name__)
            raise ModelRequestError(
                f"Gemini request failed: {type(exc).__name__}",
                code="NETWORK_ERROR",
                retryable=True,
            ) from exc

        if not response.is_success:
            raise _error_from_response(response)
        return response
