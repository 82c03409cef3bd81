"""Sitemap discovery for site-wide URL candidates.

Retrieval strategy:
    1. Try `sitemap.xml`, then `sitemap_index.xml` under the base URL.
    2. A `<sitemapindex>` document fans out to at most `max_children` child
       sitemaps, fetched sequentially.
    3. Every `<loc>` value is filtered to same-site HTML pages and de-duplicated
       with the fragment removed.

Documents are parsed with BeautifulSoup's XML parser, so namespace prefixes,
entities and CDATA sections are handled; malformed XML simply yields fewer URLs.
"""

from __future__ import annotations

import logging
from typing import Protocol
from urllib.parse import urlsplit, urlunsplit

from bs4 import BeautifulSoup


logger = logging.getLogger(__name__)


SITEMAP_PATHS = ("sitemap.xml", "sitemap_index.xml")

NON_HTML_EXTENSIONS = (
    ".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".ico", ".bmp",
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    ".css", ".js", ".json", ".xml", ".txt", ".rss",
    ".zip", ".gz", ".tar", ".rar",
    ".mp3", ".mp4", ".mov", ".avi", ".webm", ".wav",
    ".woff", ".woff2", ".ttf", ".eot",
)


class TextSource(Protocol):
    """Minimal async interface for fetching raw response bodies."""

    async def get_text(self, url: str) -> str | None:
        ...


def parse_sitemap(xml_text: str) -> BeautifulSoup:
    return BeautifulSoup(xml_text or "", "xml")


def extract_locs(soup: BeautifulSoup) -> list[str]:
    """Return non-empty `<loc>` values in document order."""
    locs: list[str] = []
    for loc in soup.find_all("loc"):
        value = loc.get_text(strip=True)
        if value:
            locs.append(value)
    return locs


def is_sitemap_index(soup: BeautifulSoup) -> bool:
    return soup.find("sitemapindex") is not None


def _bare_host(host: str | None) -> str:
    host = (host or "").lower()
    return host[4:] if host.startswith("www.") else host


def is_same_site(url: str, base_url: str) -> bool:
    """Compare hosts ignoring a leading `www.`."""
    try:
        return _bare_host(urlsplit(url).hostname) == _bare_host(urlsplit(base_url).hostname)
    except ValueError:
        return False


def is_html_candidate(url: str) -> bool:
    """Return whether `url` looks like an HTTP(S) page rather than an asset."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    if parts.scheme not in ("http", "https") or not parts.netloc:
        return False
    return not parts.path.lower().endswith(NON_HTML_EXTENSIONS)


def strip_fragment(url: str) -> str:
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, parts.query, ""))


def filter_page_urls(locs: list[str], base_url: str, limit: int) -> list[str]:
    """Keep unique same-site HTML URLs, first occurrence wins, capped at `limit`."""
    out: list[str] = []
    seen: set[str] = set()

    for loc in locs:
        if not is_html_candidate(loc) or not is_same_site(loc, base_url):
            continue
        url = strip_fragment(loc)
        if url in seen:
            continue
        seen.add(url)
        out.append(url)
        if len(out) >= limit:
            break

    return out


async def discover_sitemap_urls(
    source: TextSource,
    base_url: str,
    max_children: int = 5,
    max_urls: int = 800,
) -> list[str]:
    """Collect page URLs advertised by the site's sitemap.

    Args:
        source: Object exposing `get_text(url)`; usually a `PageFetcher`.
        base_url: Normalized site base URL without trailing slash.
        max_children: Maximum child sitemaps fetched from a sitemap index.
        max_urls: Cap on returned candidates.

    Returns:
        Filtered page URLs, or an empty list when no sitemap is reachable.
    """
    base = base_url.rstrip("/")

    for path in SITEMAP_PATHS:
        sitemap_url = f"{base}/{path}"
        body = await source.get_text(sitemap_url)
        if not body:
            continue

        soup = parse_sitemap(body)
        locs = extract_locs(soup)
        if is_sitemap_index(soup):
            child_locs: list[str] = []
            for child_url in locs[:max_children]:
                child_body = await source.get_text(child_url)
                if child_body:
                    child_locs.extend(extract_locs(parse_sitemap(child_body)))
            locs = child_locs

        urls = filter_page_urls(locs, base, max_urls)
        logger.debug("Sitemap %s yielded %d page URLs", sitemap_url, len(urls))
        if urls:
            return urls

    return []
