"""
HTTP API adapter for the SiteQA engine.

Architectural role:
- Expose the single ask endpoint used by browser widgets.
- Enforce adapter-level method, configuration and input validation.
- Delegate retrieval and generation to `siteqa.core.engine.AskEngine`.
- Attach permissive CORS headers to every response.

Endpoint responsibilities:
- `OPTIONS /api/ask`: answer cross-origin preflight without body processing.
- `POST /api/ask`: validate input and return the engine payload.
- `GET /health`: liveness probe.

API request lifecycle (`POST /api/ask`):
1. Check the model credential (`GEMINI_API_KEY` or `config/gemini.key`).
2. Parse request JSON.
3. Validate `question` and `siteBaseUrl`.
4. Forward the validated request to the engine.

Input validation behavior:
- Invalid JSON body -> HTTP 400.
- Missing/blank `question` -> HTTP 400.
- Missing/blank `siteBaseUrl` -> HTTP 400.
- Methods other than POST/OPTIONS -> HTTP 405.
- Missing credential -> HTTP 500.

Error handling strategy:
- Everything after validation answers HTTP 200; failures are reported in the
  payload's `error` object by the engine.

Side effects:
- Loads environment variables at import time via `load_dotenv()`.
- Raises the `siteqa` logger to DEBUG when `DEBUG == "true"`.
"""

from dotenv import load_dotenv

load_dotenv()

import json
import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from siteqa.core.ask_types import AskRequest
from siteqa.core.engine import get_engine
from siteqa.llm.provider_config import load_key

app = FastAPI(title="SiteQA")
logger = logging.getLogger(__name__)

# Request-level debug logging is opt-in.
DEBUG = os.getenv("DEBUG") == "true"
if DEBUG:
    logging.getLogger("siteqa").setLevel(logging.DEBUG)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

ALLOWED_METHODS = "POST, OPTIONS"


def json_response(status_code: int, content: dict, headers: dict | None = None) -> JSONResponse:
    """JSON response with CORS headers attached."""
    merged = dict(CORS_HEADERS)
    if headers:
        merged.update(headers)
    return JSONResponse(status_code=status_code, content=content, headers=merged)


def _missing(body: dict, field: str) -> bool:
    value = body.get(field)
    return not isinstance(value, str) or not value.strip()


@app.get("/health")
def health():
    return {"status": "ok"}


@app.api_route("/api/ask", methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"])
async def ask(request: Request):
    """
    Ask endpoint.

    Input validation behavior:
    - Returns HTTP 400 for invalid JSON or missing `question` / `siteBaseUrl`.
    - Returns HTTP 405 for unsupported methods and HTTP 500 without credential.

    Error handling strategy:
    - Validation failures return structured JSON errors before any network call.
    - Engine failures are already folded into a 200 payload.
    """
    if request.method == "OPTIONS":
        return json_response(200, {"ok": True})

    if request.method != "POST":
        return json_response(
            405,
            {"error": "Method not allowed. Use POST."},
            headers={"Allow": ALLOWED_METHODS},
        )

    api_key = load_key()
    if not api_key:
        logger.error("GEMINI_API_KEY is not configured")
        return json_response(500, {"error": "Missing GEMINI_API_KEY in server environment."})

    raw = await request.body()
    try:
        body = json.loads(raw) if raw else {}
    except ValueError:
        return json_response(400, {"error": "Invalid JSON body."})

    if not isinstance(body, dict):
        return json_response(400, {"error": "Invalid JSON body."})

    if _missing(body, "question"):
        return json_response(400, {"error": "Missing 'question'."})

    if _missing(body, "siteBaseUrl"):
        return json_response(400, {"error": "Missing 'siteBaseUrl'."})

    try:
        ask_request = AskRequest.model_validate(body)
    except ValidationError as exc:
        return json_response(400, {"error": "Invalid request body.", "details": exc.errors(include_url=False, include_context=False)})

    if DEBUG:
        logger.debug("Ask request: %s", ask_request.model_dump())

    result = await get_engine().ask(ask_request, api_key)
    return json_response(200, result.to_payload())
