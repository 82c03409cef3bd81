"""Tests for preset detection."""

import pytest

from siteqa.nlp.intent_router import detect_preset, normalize_preset


@pytest.mark.parametrize("question", [
    "What are your Customer Experience offerings?",
    "CUSTOMER EXPERIENCE please",
    "cx: summarize",
    "Tell me about cx capabilities",
    "How do you approach CX?",
])
def test_customer_experience_questions_resolve_to_cx(question):
    assert detect_preset(question) == "cx"


@pytest.mark.parametrize("question", [
    "What about employee experience?",
    "Employee Experience solutions",
    "ex: what do you offer",
    "Do you improve EX for hybrid teams?",
])
def test_employee_experience_questions_resolve_to_ex(question):
    assert detect_preset(question) == "ex"


@pytest.mark.parametrize("question", [
    "What does the company do?",
    "Is the platform complex to run?",
    "What is next on the roadmap?",
    "Who is the CXO?",
    "Describe an example project",
    "",
])
def test_other_questions_resolve_to_core(question):
    assert detect_preset(question) == "core"


def test_explicit_preset_wins_over_question():
    assert detect_preset("customer experience", explicit_preset="EX ") == "ex"


def test_unknown_explicit_preset_is_ignored():
    assert detect_preset("employee experience", explicit_preset="sales") == "ex"
    assert normalize_preset("sales") is None
    assert normalize_preset(None) is None


def test_phrase_beats_other_presets_acronym():
    assert detect_preset("ex colleagues asked about customer experience") == "cx"
