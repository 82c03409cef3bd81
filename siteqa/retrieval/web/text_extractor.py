"""Best-effort markup-to-text conversion for fetched pages.

Architectural role:
    Turns raw page markup into bounded plain text for prompt grounding. Used by
    `page_fetcher` after every successful HTTP response.

Extraction strategy:
    Regex-based, not a document parser:
    1. Drop `script`, `style` and `noscript` blocks including their content.
    2. Replace block-level tags with a single space.
    3. Strip every remaining tag, including an unclosed trailing tag.
    4. Decode HTML entities, collapse whitespace, trim.

Contract:
    - Never raises; unexpected input produces `""`.
    - Output length is never greater than input length.
"""

import html
import logging
import re


logger = logging.getLogger(__name__)


_DROP_BLOCKS = re.compile(
    r"<(script|style|noscript)\b[^>]*>.*?(</\1\s*>|$)",
    flags=re.IGNORECASE | re.DOTALL,
)
_COMMENTS = re.compile(r"<!--.*?(-->|$)", flags=re.DOTALL)
_BLOCK_TAGS = re.compile(
    r"</?(p|div|br|hr|li|ul|ol|h[1-6]|tr|td|th|table|section|article|header|"
    r"footer|nav|aside|main|blockquote|pre|form)\b[^>]*>",
    flags=re.IGNORECASE,
)
_ANY_TAG = re.compile(r"</?[^>]+(>|$)")
_WHITESPACE = re.compile(r"\s+")
_TITLE = re.compile(r"<title\b[^>]*>(.*?)</title\s*>", flags=re.IGNORECASE | re.DOTALL)


def strip_html(markup) -> str:
    """Convert raw markup into collapsed plain text.

    Args:
        markup: Raw page body. Non-string values yield `""`.

    Returns:
        Plain text with single spaces between words.

    Edge cases:
        - Unclosed `<script>` drops everything after the opening tag.
        - Entity decoding can only shorten text, so the output stays bounded by
          the input length.
    """
    if not isinstance(markup, str) or not markup:
        return ""

    try:
        text = _DROP_BLOCKS.sub(" ", markup)
        text = _COMMENTS.sub(" ", text)
        text = _BLOCK_TAGS.sub(" ", text)
        text = _ANY_TAG.sub(" ", text)
        text = html.unescape(text)
        text = _WHITESPACE.sub(" ", text).strip()
    except Exception:
        logger.debug("Markup stripping failed", exc_info=True)
        return ""

    if len(text) > len(markup):
        text = text[: len(markup)].rstrip()
    return text


def extract_title(markup) -> str:
    """Return the document `<title>` text, or `""` when absent."""
    if not isinstance(markup, str):
        return ""
    match = _TITLE.search(markup)
    if not match:
        return ""
    return strip_html(match.group(1))


def truncate_text(text: str, max_chars: int) -> str:
    """Cap text at `max_chars` characters without trailing whitespace."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars].rstrip()
