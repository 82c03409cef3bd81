"""Grounded prompt assembly for website answers.

This module only builds prompt strings from already fetched pages. URL
selection, fetching, model invocation and answer trimming happen elsewhere.

Design constraints:
    - Deterministic construction for identical inputs.
    - Fixed ordering of prompt components.
    - No I/O and no global state mutation.

Prompt component order:
    1) Grounding instruction
    2) Output-shape rules
    3) Task (user question, or preset restatement for `cx`/`ex`)
    4) Website excerpts, capped at `MAX_SOURCES_CHARS` after concatenation

Prompt safety model:
    Excerpts are interpolated as raw text. Grounding is instruction-led.
"""

from typing import Iterable
from urllib.parse import urlsplit

from siteqa.core.ask_types import RetrievedPage
from siteqa.nlp.intent_router import CX, EX


MAX_ANSWER_WORDS = 120
HEADLINE_MAX_WORDS = 12
BULLET_COUNT = 5
MAX_SOURCES_CHARS = 12000
NOT_STATED = "Not stated on the provided pages."

PRESET_TASKS = {
    CX: "Summarize {site}'s Customer Experience (CX) capabilities.",
    EX: "Summarize {site}'s Employee Experience (EX) capabilities.",
}


def site_label(base_url: str) -> str:
    """Readable site name from a base URL (`https://www.vation.com` -> `Vation`)."""
    try:
        host = (urlsplit(base_url).hostname or "").lower()
    except ValueError:
        host = ""

    if host.startswith("www."):
        host = host[4:]
    if not host:
        return "this website"

    name = host.split(".")[0]
    return name.replace("-", " ").title()


def build_sources_text(pages: Iterable[RetrievedPage], max_chars: int = MAX_SOURCES_CHARS) -> str:
    """Label each page with its index and URL, then cap the joined block.

    Edge cases:
        - The cap applies after concatenation, so late pages may be cut off.
    """
    blocks = [
        f"SOURCE {i}: {page.url}\n{page.text}\n"
        for i, page in enumerate(pages, start=1)
    ]
    return "\n".join(blocks)[:max_chars]


def build_grounded_prompt(
    preset: str,
    question: str,
    pages: Iterable[RetrievedPage],
    site: str = "this website",
    max_words: int = MAX_ANSWER_WORDS,
) -> str:
    """Build the full prompt sent to the model.

    Args:
        preset: Resolved preset name.
        question: Trimmed user question.
        pages: Successfully retrieved pages, in citation order.
        site: Display name of the website.
        max_words: Hard word limit stated to the model.

    Returns:
        Prompt string ending with the excerpt block.
    """
    task_template = PRESET_TASKS.get(preset)
    if task_template:
        task = "Task: " + task_template.format(site=site)
    else:
        task = f'User question: "{question.strip()}"'

    return (
        f"You are an AI website search assistant for {site}.\n"
        "Answer ONLY using the WEBSITE EXCERPTS provided below "
        "(do not use outside knowledge).\n\n"
        "Format rules:\n"
        f"- Max {max_words} words TOTAL\n"
        f"- 1 short headline line (<= {HEADLINE_MAX_WORDS} words)\n"
        f"- Exactly {BULLET_COUNT} bullet points\n"
        "- If something is not stated in the excerpts, write exactly:\n"
        f"  {NOT_STATED}\n"
        "- No fluff.\n\n"
        + task +
        "\n\n"
        "WEBSITE EXCERPTS (ground truth):\n"
        + build_sources_text(pages)
    )
