"""Website page retrieval for grounding excerpts.

Architectural role:
    Fetches candidate pages chosen by `url_selector`, converts them to bounded
    plain text and reports one explicit `FetchResult` per URL. The engine decides
    the aggregate policy (proceed when at least one page succeeded).

Retrieval strategy:
    1. Build URL variants: original, trailing slash, `www.` host, `www.` host with
       trailing slash (de-duplicated, order preserved).
    2. GET each variant with browser-like headers until one succeeds.
    3. Non-2xx status, transport errors, timeouts and pages whose stripped text is
       shorter than `min_chars` count as failures of that variant.

Concurrency:
    `fetch_many` runs all fetches with `asyncio.gather`. Each attempt is bounded by
    its own `asyncio.wait_for` timeout, so a slow page never cancels its siblings.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from urllib.parse import urlsplit, urlunsplit

import httpx

from siteqa.core.ask_types import FetchResult, RetrievedPage
from siteqa.retrieval.web.text_extractor import extract_title, strip_html, truncate_text


logger = logging.getLogger(__name__)


BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120 Safari/537.36"
)


@dataclass(frozen=True)
class PageFetcherConfig:
    """Runtime configuration for `PageFetcher`.

    Relevant environment variables:
        - `WEB_TIMEOUT_SECONDS`
        - `WEB_MAX_PAGE_CHARS`
        - `WEB_MIN_PAGE_CHARS`
        - `WEB_USER_AGENT`
    """

    timeout_seconds: float = float(os.getenv("WEB_TIMEOUT_SECONDS", "9"))
    max_page_chars: int = int(os.getenv("WEB_MAX_PAGE_CHARS", "4500"))
    min_page_chars: int = int(os.getenv("WEB_MIN_PAGE_CHARS", "50"))
    user_agent: str = os.getenv("WEB_USER_AGENT", BROWSER_USER_AGENT).strip()


def with_trailing_slash(url: str) -> str:
    return url if url.endswith("/") else f"{url}/"


def to_www(url: str) -> str:
    """Return `url` with a `www.`-prefixed host and no trailing slash.

    Unparseable URLs are returned unchanged.
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return url

    if not parts.scheme or not parts.netloc:
        return url

    netloc = parts.netloc
    userinfo = ""
    if "@" in netloc:
        userinfo, netloc = netloc.rsplit("@", 1)
        userinfo += "@"

    if not netloc.lower().startswith("www."):
        netloc = f"www.{netloc}"

    rebuilt = urlunsplit((parts.scheme, userinfo + netloc, parts.path, parts.query, parts.fragment))
    return rebuilt.rstrip("/")


def url_variants(url: str) -> list[str]:
    """Fallback URLs to try for one page, in attempt order."""
    www = to_www(url)
    candidates = [url, with_trailing_slash(url), www, with_trailing_slash(www)]

    out: list[str] = []
    for candidate in candidates:
        if candidate and candidate not in out:
            out.append(candidate)
    return out


class PageFetcher:
    """Fetch pages and return stripped, length-capped text.

    Failure model:
        `fetch` never raises. Every failure is reported in `FetchResult.error`.
    """

    def __init__(
        self,
        config: PageFetcherConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            config: Timeouts and size limits.
            transport: Optional httpx transport, used by tests to stub the network.
        """
        self.config = config or PageFetcherConfig()
        self._transport = transport

    async def fetch(self, url: str) -> FetchResult:
        """Fetch one page, walking URL variants until one yields enough text."""
        result = FetchResult(requested_url=url)

        async with self._client() as client:
            for candidate in url_variants(url):
                result.attempted_urls.append(candidate)
                try:
                    response = await asyncio.wait_for(
                        client.get(candidate),
                        timeout=self.config.timeout_seconds,
                    )
                except asyncio.TimeoutError:
                    result.error = f"Timed out after {self.config.timeout_seconds}s for {candidate}"
                    continue
                except (httpx.HTTPError, httpx.InvalidURL) as exc:
                    result.error = f"{type(exc).__name__} for {candidate}: {exc}"
                    continue

                if not response.is_success:
                    result.error = f"Fetch failed {response.status_code} for {candidate}"
                    continue

                body = response.text
                text = truncate_text(strip_html(body), self.config.max_page_chars)
                if len(text) < self.config.min_page_chars:
                    result.error = f"Fetch returned too little text for {candidate}"
                    continue

                result.page = RetrievedPage(
                    url=candidate,
                    text=text,
                    title=extract_title(body) or candidate,
                )
                result.error = None
                return result

        if result.error is None:
            result.error = f"Fetch failed for {url}"
        logger.info("Skipping page %s: %s", url, result.error)
        return result

    async def fetch_many(self, urls: list[str]) -> list[FetchResult]:
        """Fetch all URLs concurrently, preserving input order in the results."""
        if not urls:
            return []

        outcomes = await asyncio.gather(
            *(self.fetch(url) for url in urls),
            return_exceptions=True,
        )

        results: list[FetchResult] = []
        for url, outcome in zip(urls, outcomes):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, asyncio.CancelledError):
                    raise outcome
                logger.warning("Unexpected fetch failure for %s", url, exc_info=outcome)
                outcome = FetchResult(requested_url=url, error=f"{type(outcome).__name__}: {outcome}")
            results.append(outcome)
        return results

    async def get_text(self, url: str) -> str | None:
        """Return the raw response body for `url`, or `None` on any failure.

        Used for non-HTML resources such as sitemaps.
        """
        async with self._client() as client:
            try:
                response = await asyncio.wait_for(
                    client.get(url),
                    timeout=self.config.timeout_seconds,
                )
            except (asyncio.TimeoutError, httpx.HTTPError, httpx.InvalidURL) as exc:
                logger.debug("GET %s failed: %s", url, exc)
                return None

        if not response.is_success:
            logger.debug("GET %s returned %s", url, response.status_code)
            return None
        return response.text

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.config.timeout_seconds,
            follow_redirects=True,
            headers=self._default_headers(),
            transport=self._transport,
        )

    def _default_headers(self) -> dict[str, str]:
        """Build browser-like request headers to reduce bot blocking."""
        return {
            "User-Agent": self.config.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }
