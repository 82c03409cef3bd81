"""Data contracts shared by the HTTP adapter, engine and retrieval layers.

Architectural role:
    Defines the request/response schema of the ask endpoint (pydantic models) and
    the per-request retrieval values passed between fetcher and engine
    (dataclasses).

Lifecycle:
    - `RetrievedPage` and `FetchResult` are created per request and discarded once
      the prompt is built.
    - `AskResponse` payloads are the only values that outlive a request, and only
      inside the answer cache.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field


PRESETS = ("core", "cx", "ex")


class AskRequest(BaseModel):
    """Validated inbound ask payload.

    `siteBaseUrl` is the wire name; `site_base_url` is accepted as well.
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    question: str = Field(min_length=1)
    site_base_url: str = Field(alias="siteBaseUrl", min_length=1)
    preset: str | None = None
    model: str | None = None


class Source(BaseModel):
    url: str
    title: str | None = None


class ErrorInfo(BaseModel):
    code: int | str
    message: str


class AskResponse(BaseModel):
    """Answer payload returned to callers and stored in the answer cache."""

    answer: str
    sources: list[Source] = Field(default_factory=list)
    model: str | None = None
    preset: str | None = None
    cached: bool | None = None
    error: ErrorInfo | None = None

    def to_payload(self) -> dict:
        """Serialize for the wire, omitting unset optional fields."""
        return self.model_dump(exclude_none=True)


@dataclass(frozen=True)
class RetrievedPage:
    """Plain-text page content fetched for one request."""

    url: str
    text: str
    title: str = ""


@dataclass
class FetchResult:
    """Outcome of fetching one candidate URL, including every variant tried."""

    requested_url: str
    attempted_urls: list[str] = field(default_factory=list)
    page: RetrievedPage | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.page is not None
