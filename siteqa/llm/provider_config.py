"""Provider/runtime configuration for the LLM layer.

Architectural role:
    Centralizes model selection, generation limits, endpoint templates and
    credential lookup for `siteqa.llm.client`, `siteqa.llm.service` and the engine.

Determinism:
    Constants are resolved at import time. `load_key` and `default_model` read the
    environment on every call, so a credential added to the process environment is
    picked up by the next request.

Failure behavior:
    Missing key material is represented as `None`; the HTTP adapter maps it to a
    configuration error.
"""

import os
from dotenv import load_dotenv

load_dotenv()


GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"

GEMINI_URL_TEMPLATE = GEMINI_API_BASE + "/models/{model}:generateContent"
GEMINI_MODELS_URL = GEMINI_API_BASE + "/models"

GEMINI_KEY_FILE = "config/gemini.key"

FALLBACK_MODEL = "gemini-2.0-flash"

# Preference order used by model discovery when the requested model is unavailable.
MODEL_PREFERENCE = (
    "gemini-2.0-flash",
    "gemini-2.0-flash-lite",
    "gemini-1.5-flash",
    "gemini-1.5-flash-8b",
    "gemini-1.5-pro",
)

# Generation limits sent with every request.
GENERATION_CONFIG = {
    "temperature": 0.2,
    "topP": 0.8,
    "maxOutputTokens": 220,
}

MODEL_TIMEOUT_SECONDS = float(os.getenv("MODEL_TIMEOUT_SECONDS", "30"))
MODEL_RETRY_BACKOFF_SECONDS = float(os.getenv("MODEL_RETRY_BACKOFF_SECONDS", "1.0"))
MODEL_RETRY_JITTER_SECONDS = float(os.getenv("MODEL_RETRY_JITTER_SECONDS", "0.2"))
MODEL_DISCOVERY = os.getenv("MODEL_DISCOVERY", "false").strip().lower() == "true"

CACHE_TTL_SECONDS = float(os.getenv("CACHE_TTL_SECONDS", "600"))


def default_model() -> str:
    """Model used when a request does not name one (`DEFAULT_MODEL`)."""
    return os.getenv("DEFAULT_MODEL", "").strip() or FALLBACK_MODEL


def load_key(path=GEMINI_KEY_FILE):
    """Load the API key from environment override or key file.

    Resolution order:
        1. Environment variable inferred from file stem (`config/gemini.key` ->
           `GEMINI_API_KEY`).
        2. Raw file contents at `path`.

    Returns:
        Key string or `None` when not available.

    Edge cases:
        - `None` path returns `None`.
        - Missing or empty file returns `None`.
    """
    if not path:
        return None
    key_name = os.path.splitext(os.path.basename(path))[0].upper() + "_API_KEY"
    env_value = os.getenv(key_name, "").strip()
    if env_value:
        return env_value
    if not os.path.exists(path):
        return None
    with open(path, "r") as f:
        return f.read().strip() or None
