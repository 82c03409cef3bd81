"""Shared fixtures: stubbed website transport and fake model transport."""

import httpx
import pytest

from siteqa.core.engine import AskEngine, set_engine
from siteqa.llm.client import ModelRequestError
from siteqa.llm.retry import RetryPolicy
from siteqa.llm.service import ModelService
from siteqa.memory.answer_cache import InMemoryAnswerCache
from siteqa.retrieval.web.page_fetcher import PageFetcher, PageFetcherConfig


def page_html(title: str, body: str) -> str:
    return (
        f"<html><head><title>{title}</title><style>p {{color: red}}</style></head>"
        f"<body><nav>Menu</nav><p>{body}</p><script>track()</script></body></html>"
    )


LONG_TEXT = (
    "We design customer journeys, run contact centres and build analytics "
    "platforms for enterprise clients across many industries."
)


class SiteTransport:
    """Serves a dict of `url -> (status, body)`; everything else is a 404.

    Records every requested URL in `requests`.
    """

    def __init__(self, pages=None, errors=None):
        self.pages = dict(pages or {})
        self.errors = dict(errors or {})
        self.requests: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if url in self.errors:
            raise self.errors[url]
        status, body = self.pages.get(url, (404, "not found"))
        return httpx.Response(status, text=body)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


class FakeModelClient:
    """Scripted model transport: pops one outcome per `generate` call."""

    def __init__(self, outcomes=None, models=None):
        self.outcomes = list(outcomes or ["Headline\n- one\n- two"])
        self.models = list(models or [])
        self.calls: list[tuple[str, str, str]] = []

    async def generate(self, prompt: str, model_id: str, api_key: str) -> str:
        self.calls.append((prompt, model_id, api_key))
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def list_models(self, api_key: str) -> list[str]:
        return list(self.models)


async def no_sleep(_delay: float) -> None:
    return None


def rate_limited() -> ModelRequestError:
    return ModelRequestError("Resource exhausted", status=429, code=429, retryable=True)


def make_engine(site: SiteTransport, model_client: FakeModelClient, cache=None, **kwargs) -> AskEngine:
    fetcher = PageFetcher(
        config=PageFetcherConfig(timeout_seconds=2, max_page_chars=4500, min_page_chars=50),
        transport=site.transport(),
    )
    service = ModelService(
        client=model_client,
        retry_policy=RetryPolicy(max_attempts=2, backoff_seconds=0, jitter_seconds=0),
        discover_models=False,
        sleep=no_sleep,
    )
    return AskEngine(
        cache=cache if cache is not None else InMemoryAnswerCache(ttl_seconds=600),
        fetcher=fetcher,
        model_service=service,
        **kwargs,
    )


@pytest.fixture
def site():
    return SiteTransport()


@pytest.fixture
def model_client():
    return FakeModelClient()


@pytest.fixture(autouse=True)
def reset_engine():
    yield
    set_engine(None)
