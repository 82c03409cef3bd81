"""Core request orchestration for retrieval, prompting, and generation.

Architectural role:
    Provides the execution pipeline used by the HTTP and CLI adapters to turn one
    validated ask request into a grounded, cited answer.

Control-flow model:
    1. Normalize base URL, model and preset.
    2. Return a cached payload (flagged `cached`) when one is fresh.
    3. Select candidate URLs.
    4. Fetch pages concurrently; keep successful results only.
    5. Build the grounded prompt and call the model with retry.
    6. Trim the answer to the word limit, cache and return.

Error handling strategy:
    Steps 3-6 never raise to the caller. No fetched page yields a
    `FETCH_FAILED` payload; any other failure yields a generic degraded answer
    with the attempted URLs and an `error` descriptor. Degraded payloads are not
    cached.

Interaction surface:
    - Cache: any `AnswerCache` implementation (injected).
    - Retrieval: `UrlSelector`, `PageFetcher`.
    - Prompting: `prompt_builder.build_grounded_prompt`.
    - LLM: `ModelService.generate`.

Determinism:
    URL selection, prompt assembly and trimming are deterministic for fixed
    inputs. Page content and model output are not.
"""

from __future__ import annotations

import logging
import re

from siteqa.core.ask_types import AskRequest, AskResponse, ErrorInfo, FetchResult, Source
from siteqa.llm.client import ModelRequestError
from siteqa.llm.provider_config import CACHE_TTL_SECONDS, default_model
from siteqa.llm.service import ModelService
from siteqa.memory.answer_cache import AnswerCache, InMemoryAnswerCache, make_cache_key
from siteqa.nlp.intent_router import detect_preset
from siteqa.prompting.prompt_builder import MAX_ANSWER_WORDS, build_grounded_prompt, site_label
from siteqa.retrieval.url_selector import UrlSelector
from siteqa.retrieval.web.page_fetcher import PageFetcher


logger = logging.getLogger(__name__)


FETCH_FAILED_ANSWER = (
    "No public page content could be fetched from the website right now "
    "(blocked or not found). Check the site address or try again shortly."
)
DEGRADED_ANSWER = (
    "AI summary could not be generated for this request right now. "
    "Please try again shortly."
)
TRUNCATION_MARKER = "…"

_WORD = re.compile(r"\S+")


def normalize_base_url(raw: str) -> str:
    """Trim, drop trailing slashes and default the scheme to `https://`."""
    base = (raw or "").strip().rstrip("/")
    if base and not re.match(r"^https?://", base, flags=re.IGNORECASE):
        base = f"https://{base}"
    return base


def trim_to_word_limit(text: str, max_words: int = MAX_ANSWER_WORDS, marker: str = TRUNCATION_MARKER) -> str:
    """Cut `text` after `max_words` words, keeping line breaks, and append `marker`.

    Edge cases:
        - Text within the limit is returned stripped but otherwise unchanged.
    """
    text = (text or "").strip()
    words = list(_WORD.finditer(text))
    if len(words) <= max_words:
        return text
    cut = words[max_words - 1].end()
    return text[:cut].rstrip() + " " + marker


def _error_info(exc: Exception) -> ErrorInfo:
    if isinstance(exc, ModelRequestError):
        return ErrorInfo(code=exc.code if exc.code is not None else "MODEL_ERROR", message=exc.message)
    return ErrorInfo(code="INTERNAL_ERROR", message=str(exc) or type(exc).__name__)


class AskEngine:
    """Answer website questions from freshly fetched page text."""

    def __init__(
        self,
        cache: AnswerCache | None = None,
        fetcher: PageFetcher | None = None,
        selector: UrlSelector | None = None,
        model_service: ModelService | None = None,
        max_words: int = MAX_ANSWER_WORDS,
    ) -> None:
        self.cache = cache if cache is not None else InMemoryAnswerCache(ttl_seconds=CACHE_TTL_SECONDS)
        self.fetcher = fetcher or PageFetcher()
        self.selector = selector or UrlSelector()
        self.model_service = model_service or ModelService()
        self.max_words = max_words

    async def ask(self, request: AskRequest, api_key: str) -> AskResponse:
        """Run the full pipeline for one validated request.

        Args:
            request: Validated ask payload.
            api_key: Model provider credential, already checked by the adapter.

        Returns:
            Answer payload; degraded payloads carry `error`.
        """
        question = request.question.strip()
        base_url = normalize_base_url(request.site_base_url)
        preset = detect_preset(question, request.preset)
        model = (request.model or "").strip() or default_model()

        cache_key = make_cache_key(question, base_url, preset, model)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug("Cache hit for %s", cache_key)
            return cached.model_copy(update={"cached": True})

        urls: list[str] = []
        try:
            urls = await self.selector.select(question, base_url, preset, source=self.fetcher)
            results = await self.fetcher.fetch_many(urls)
            pages = [result.page for result in results if result.ok]

            if not pages:
                logger.warning("No pages fetched for %s (%d candidates)", base_url, len(urls))
                return AskResponse(
                    answer=FETCH_FAILED_ANSWER,
                    sources=[Source(url=url, title=url) for url in urls],
                    model=model,
                    preset=preset,
                    error=ErrorInfo(code="FETCH_FAILED", message=_fetch_failure_summary(results)),
                )

            prompt = build_grounded_prompt(preset, question, pages, site=site_label(base_url))
            text, model_used = await self.model_service.generate(prompt, model, api_key)

            payload = AskResponse(
                answer=trim_to_word_limit(text, self.max_words),
                sources=[Source(url=page.url, title=page.title or page.url) for page in pages],
                model=model_used,
                preset=preset,
            )
        except ModelRequestError as exc:
            logger.warning("Model call failed for %s: %s", base_url, exc)
            return self._degraded(urls, model, preset, exc)
        except Exception as exc:
            logger.exception("Unexpected failure answering for %s", base_url)
            return self._degraded(urls, model, preset, exc)

        self.cache.set(cache_key, payload)
        return payload

    @staticmethod
    def _degraded(urls: list[str], model: str, preset: str, exc: Exception) -> AskResponse:
        return AskResponse(
            answer=DEGRADED_ANSWER,
            sources=[Source(url=url, title=url) for url in urls],
            model=model,
            preset=preset,
            error=_error_info(exc),
        )


def _fetch_failure_summary(results: list[FetchResult]) -> str:
    if not results:
        return "No sources fetched"
    details = "; ".join(result.error or result.requested_url for result in results)
    return f"No sources fetched ({details})"


_DEFAULT_ENGINE: AskEngine | None = None


def set_engine(engine: AskEngine | None) -> None:
    """Override or clear the process-wide engine used by the adapters."""
    global _DEFAULT_ENGINE
    _DEFAULT_ENGINE = engine


def get_engine() -> AskEngine:
    """Lazily create and return the process-wide engine."""
    global _DEFAULT_ENGINE
    if _DEFAULT_ENGINE is None:
        _DEFAULT_ENGINE = AskEngine()
    return _DEFAULT_ENGINE
