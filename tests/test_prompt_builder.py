"""Tests for grounded prompt assembly."""

from siteqa.core.ask_types import RetrievedPage
from siteqa.prompting.prompt_builder import (
    NOT_STATED,
    build_grounded_prompt,
    build_sources_text,
    site_label,
)


PAGES = [
    RetrievedPage(url="https://example.com/", text="Home text"),
    RetrievedPage(url="https://example.com/solutions/", text="Solutions text"),
]


def test_core_prompt_component_order():
    prompt = build_grounded_prompt("core", "  What do you sell?  ", PAGES, site="Example")

    grounding = prompt.index("Answer ONLY using the WEBSITE EXCERPTS")
    question = prompt.index('User question: "What do you sell?"')
    rules = prompt.index("Max 120 words TOTAL")
    excerpts = prompt.index("WEBSITE EXCERPTS (ground truth):")

    assert grounding < rules < question < excerpts
    assert "Exactly 5 bullet points" in prompt
    assert NOT_STATED in prompt
    assert "do not use outside knowledge" in prompt
    assert prompt.index("SOURCE 1: https://example.com/\nHome text") < prompt.index(
        "SOURCE 2: https://example.com/solutions/\nSolutions text"
    )


def test_preset_prompt_uses_restated_task():
    prompt = build_grounded_prompt("cx", "tell me about cx", PAGES, site="Example")
    assert "Task: Summarize Example's Customer Experience (CX) capabilities." in prompt
    assert "User question" not in prompt

    prompt = build_grounded_prompt("ex", "ex?", PAGES, site="Example")
    assert "Employee Experience (EX)" in prompt


def test_sources_text_is_capped_after_concatenation():
    pages = [RetrievedPage(url=f"https://example.com/{i}", text="x" * 5000) for i in range(4)]
    text = build_sources_text(pages, max_chars=12000)
    assert len(text) == 12000
    assert text.startswith("SOURCE 1: https://example.com/0\n")
    assert "SOURCE 3:" in text
    assert "SOURCE 4:" not in text


def test_custom_word_limit_is_stated():
    prompt = build_grounded_prompt("core", "q", PAGES, max_words=80)
    assert "Max 80 words TOTAL" in prompt


def test_site_label():
    assert site_label("https://www.vation.com") == "Vation"
    assert site_label("https://acme-corp.co.uk/") == "Acme Corp"
    assert site_label("") == "this website"
