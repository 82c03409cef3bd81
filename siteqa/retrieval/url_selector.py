"""Candidate URL selection for one ask request.

Architectural role:
    Converts `(question, base_url, preset)` into an ordered, de-duplicated and
    bounded list of absolute page URLs for `PageFetcher`.

Selection strategies:
    - `preset` (default): fixed path suffixes per preset (`core`, `cx`, `ex`).
    - `sitemap`: sitemap discovery, then keyword scoring of every candidate and
      a top-N cut.

Ranking logic and scoring (sitemap strategy):
    - Question tokens: lower-case alphanumeric runs of length >= 3, minus stop words.
    - +3 per token contained in the lower-cased URL.
    - +1 when the URL contains a content-signal segment (`insight`, `blog`, ...).
    - +1 for the trailing-slash canonical form.
    Sorting is stable, so equal scores keep sitemap order.

Edge cases:
    Every strategy falls back to `FALLBACK_PATHS` rather than returning nothing.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass

from siteqa.nlp.intent_router import CORE, CX, EX
from siteqa.retrieval.web.sitemap import TextSource, discover_sitemap_urls


logger = logging.getLogger(__name__)


PRESET_PATHS = {
    CX: ("solutions/customer-experience/", "solutions/"),
    EX: ("solutions/employee-experience/", "solutions/"),
    CORE: ("", "solutions/", "offerings/"),
}

FALLBACK_PATHS = ("", "about/", "contact/", "services/")

CONTENT_SIGNALS = ("insight", "blog", "case", "solution", "service", "about")

STOP_WORDS = frozenset({
    "the", "and", "for", "are", "was", "what", "who", "how", "why", "when", "where",
    "which", "does", "did", "can", "you", "your", "with", "about", "from", "that",
    "this", "they", "their", "there", "have", "has", "into", "our", "any", "all",
    "tell", "please", "give", "list", "show",
})

_TOKEN = re.compile(r"[a-z0-9]+")


@dataclass(frozen=True)
class SelectorConfig:
    """Runtime configuration for `UrlSelector`.

    Relevant environment variables:
        - `URL_STRATEGY` (`preset` or `sitemap`)
        - `SITEMAP_MAX_CHILDREN`
        - `SITEMAP_MAX_URLS`
        - `SELECTOR_TOP_N`
    """

    strategy: str = os.getenv("URL_STRATEGY", "preset").strip().lower()
    sitemap_max_children: int = int(os.getenv("SITEMAP_MAX_CHILDREN", "5"))
    sitemap_max_urls: int = int(os.getenv("SITEMAP_MAX_URLS", "800"))
    top_n: int = int(os.getenv("SELECTOR_TOP_N", "5"))


def join_url(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def dedupe(urls) -> list[str]:
    out: list[str] = []
    for url in urls:
        if url and url not in out:
            out.append(url)
    return out


def preset_urls(base_url: str, preset: str) -> list[str]:
    """Fixed candidate URLs for a preset; unknown presets use `core`."""
    paths = PRESET_PATHS.get(preset, PRESET_PATHS[CORE])
    return dedupe(join_url(base_url, path) for path in paths)


def fallback_urls(base_url: str) -> list[str]:
    return dedupe(join_url(base_url, path) for path in FALLBACK_PATHS)


def tokenize_question(question: str) -> list[str]:
    """Unique scoring tokens in first-seen order."""
    tokens: list[str] = []
    for token in _TOKEN.findall((question or "").lower()):
        if len(token) < 3 or token in STOP_WORDS or token in tokens:
            continue
        tokens.append(token)
    return tokens


def score_url(url: str, tokens: list[str]) -> int:
    lowered = url.lower()
    score = 3 * sum(1 for token in tokens if token in lowered)
    if any(signal in lowered for signal in CONTENT_SIGNALS):
        score += 1
    if lowered.endswith("/"):
        score += 1
    return score


def rank_urls(candidates: list[str], question: str, top_n: int) -> list[str]:
    """Return the `top_n` highest-scoring candidates; ties keep input order."""
    tokens = tokenize_question(question)
    ranked = sorted(candidates, key=lambda url: score_url(url, tokens), reverse=True)
    return ranked[:top_n]


class UrlSelector:
    """Select candidate page URLs for a question.

    Sitemap discovery needs a `TextSource` (normally the request's `PageFetcher`);
    without one the selector behaves like the `preset` strategy.
    """

    def __init__(self, config: SelectorConfig | None = None) -> None:
        self.config = config or SelectorConfig()

    async def select(
        self,
        question: str,
        base_url: str,
        preset: str,
        source: TextSource | None = None,
    ) -> list[str]:
        if self.config.strategy == "sitemap" and source is not None:
            urls = await self._select_from_sitemap(question, base_url, source)
        else:
            urls = preset_urls(base_url, preset)

        if not urls:
            urls = fallback_urls(base_url)

        logger.debug("Selected %d URLs for %s: %s", len(urls), base_url, urls)
        return urls

    async def _select_from_sitemap(self, question: str, base_url: str, source: TextSource) -> list[str]:
        candidates = await discover_sitemap_urls(
            source,
            base_url,
            max_children=self.config.sitemap_max_children,
            max_urls=self.config.sitemap_max_urls,
        )
        if not candidates:
            logger.info("No sitemap reachable for %s; using fallback paths", base_url)
            return fallback_urls(base_url)

        top = rank_urls(candidates, question, self.config.top_n)

        home = join_url(base_url, "")
        tokens = tokenize_question(question)
        if home not in top and not any(score_url(url, tokens) >= 3 for url in top):
            top = [home] + top[: max(0, self.config.top_n - 1)]

        return dedupe(top)
