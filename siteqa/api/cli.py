"""
Interactive CLI adapter for SiteQA.

Architectural role:
- Provides a terminal interface over the same engine used by the HTTP adapter.
- Delegates all retrieval and generation to `siteqa.core.engine.AskEngine`.

Interface responsibilities:
- One-shot mode: answer the question passed on the command line.
- Interactive mode: read questions from stdin until `exit`/`quit`.
- Render the answer followed by numbered sources.

Input validation behavior:
- `--site` is required; empty questions are ignored in interactive mode.
- Missing credential aborts with exit code 1.

Error handling strategy:
- EOF and keyboard interrupts end the loop without traceback output.
- Engine failures arrive as degraded payloads and are printed like answers,
  followed by the `error` descriptor.
"""

from dotenv import load_dotenv

load_dotenv()

import argparse
import asyncio
import sys

from siteqa.core.ask_types import AskRequest, AskResponse
from siteqa.core.engine import get_engine
from siteqa.llm.provider_config import load_key


# =========================================================
# UTF-8 SAFE OUTPUT
# =========================================================

if hasattr(sys.stdout, "reconfigure"):
    try:
        sys.stdout.reconfigure(encoding="utf-8", errors="ignore")
    except Exception:
        pass


def render(response: AskResponse) -> str:
    """Format an engine payload for terminal output."""
    lines = [response.answer, ""]

    if response.sources:
        lines.append("Sources:")
        for i, source in enumerate(response.sources, start=1):
            title = source.title if source.title and source.title != source.url else ""
            lines.append(f"[{i}] {source.url}" + (f" ({title})" if title else ""))

    if response.error is not None:
        lines.append("")
        lines.append(f"Error: {response.error.code}: {response.error.message}")

    if response.cached:
        lines.append("(cached)")

    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Ask grounded questions about a website")
    parser.add_argument("question", nargs="*", help="Question text (omit for interactive mode)")
    parser.add_argument("--site", required=True, help="Website base URL, e.g. https://example.com")
    parser.add_argument("--preset", default=None, help="core | cx | ex (auto-detected when omitted)")
    parser.add_argument("--model", default=None, help="Model id (defaults to DEFAULT_MODEL)")
    return parser


def ask_once(question: str, site: str, preset, model, api_key: str) -> AskResponse:
    request = AskRequest(question=question, site_base_url=site, preset=preset, model=model)
    return asyncio.run(get_engine().ask(request, api_key))


def main(argv=None):
    """
    Run one-shot or interactive mode.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.site.strip():
        parser.error("--site must not be empty")

    api_key = load_key()
    if not api_key:
        print("Missing GEMINI_API_KEY (environment or config/gemini.key).", file=sys.stderr)
        return 1

    question = " ".join(args.question).strip()
    if question:
        print(render(ask_once(question, args.site, args.preset, args.model, api_key)))
        return 0

    print(f"SiteQA started for {args.site}. (Type 'exit' to quit)\n")
    print("-" * 60)

    while True:

        try:
            question = input("Question: ").strip()

        except (EOFError, KeyboardInterrupt):
            print("\nShutting down.")
            break

        if not question:
            continue

        if question.lower() in ("exit", "quit"):
            print("Shutting down.")
            break

        print("\nResponse:\n")
        print(render(ask_once(question, args.site, args.preset, args.model, api_key)))
        print("\n" + "-" * 60 + "\n")

    return 0


if __name__ == "__main__":
    sys.exit(main())
