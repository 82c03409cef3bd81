"""Preset detection for ask requests.

Intent classification logic:
- An explicit, valid preset supplied by the caller wins.
- Otherwise the lower-cased question is checked for a `cx:` / `ex:` prefix, then
  for preset phrases, then for the acronym as a whole word.
- Anything else resolves to `core`.

Matching is whole-word only: `complex`, `next` or `cxo` never select a preset.

Determinism:
- Pure function of its inputs.
"""

import re


CORE = "core"
CX = "cx"
EX = "ex"

PRESET_RULES = (
    (CX, ("cx:",), ("customer experience", "cx capabilities"), re.compile(r"\bcx\b")),
    (EX, ("ex:",), ("employee experience", "ex capabilities"), re.compile(r"\bex\b")),
)


def normalize_preset(value) -> str | None:
    """Return a known preset name for `value`, or `None`."""
    if not isinstance(value, str):
        return None
    preset = value.strip().lower()
    if preset in (CORE, CX, EX):
        return preset
    return None


def detect_preset(question: str, explicit_preset=None) -> str:
    """
    Resolve the preset for a question.

    Edge cases:
    - Unknown explicit presets are ignored and detection runs on the question.
    - Blank question -> `core`.
    """
    preset = normalize_preset(explicit_preset)
    if preset:
        return preset

    q = (question or "").strip().lower()
    if not q:
        return CORE

    for name, prefixes, phrases, _acronym in PRESET_RULES:
        if q.startswith(prefixes):
            return name
        if any(phrase in q for phrase in phrases):
            return name

    # Phrase rules of every preset take precedence over any acronym.
    for name, _prefixes, _phrases, acronym in PRESET_RULES:
        if acronym.search(q):
            return name

    return CORE
