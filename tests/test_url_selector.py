"""Tests for preset URLs, sitemap discovery and keyword ranking."""

import pytest

from siteqa.retrieval.url_selector import (
    SelectorConfig,
    UrlSelector,
    fallback_urls,
    preset_urls,
    rank_urls,
    score_url,
    tokenize_question,
)
from siteqa.retrieval.web.sitemap import discover_sitemap_urls, extract_locs, filter_page_urls, parse_sitemap


BASE = "https://example.com"


class FakeSource:
    """Serves sitemap bodies by URL and records lookups."""

    def __init__(self, bodies):
        self.bodies = bodies
        self.requested: list[str] = []

    async def get_text(self, url):
        self.requested.append(url)
        return self.bodies.get(url)


def urlset(*locs):
    entries = "".join(f"<url><loc>{loc}</loc></url>" for loc in locs)
    return f'<?xml version="1.0"?><urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</urlset>'


def test_preset_urls():
    assert preset_urls(BASE, "cx") == [
        "https://example.com/solutions/customer-experience/",
        "https://example.com/solutions/",
    ]
    assert preset_urls(BASE, "ex") == [
        "https://example.com/solutions/employee-experience/",
        "https://example.com/solutions/",
    ]
    assert preset_urls(BASE + "/", "core") == [
        "https://example.com/",
        "https://example.com/solutions/",
        "https://example.com/offerings/",
    ]
    assert preset_urls(BASE, "unknown") == preset_urls(BASE, "core")


def test_fallback_urls():
    assert fallback_urls(BASE) == [
        "https://example.com/",
        "https://example.com/about/",
        "https://example.com/contact/",
        "https://example.com/services/",
    ]


def test_tokenize_question_drops_short_and_stop_words():
    assert tokenize_question("What are the AI pricing plans for AI?") == ["pricing", "plans"]


def test_score_url_weights():
    tokens = ["pricing"]
    assert score_url("https://example.com/pricing", tokens) == 3
    assert score_url("https://example.com/pricing/", tokens) == 4
    assert score_url("https://example.com/blog/pricing/", tokens) == 5
    assert score_url("https://example.com/team", tokens) == 0


def test_rank_urls_is_stable_for_ties():
    candidates = [
        "https://example.com/a",
        "https://example.com/b",
        "https://example.com/pricing",
        "https://example.com/c",
    ]
    ranked = rank_urls(candidates, "pricing details", top_n=3)
    assert ranked == [
        "https://example.com/pricing",
        "https://example.com/a",
        "https://example.com/b",
    ]


def test_extract_locs_decodes_entities_and_cdata():
    body = "<urlset><url><loc> https://example.com/a?x=1&amp;y=2 </loc></url>" \
           "<url><loc><![CDATA[https://example.com/b]]></loc></url></urlset>"
    assert extract_locs(parse_sitemap(body)) == ["https://example.com/a?x=1&y=2", "https://example.com/b"]


def test_filter_page_urls_drops_assets_offsite_and_fragment_duplicates():
    locs = [
        "https://example.com/about/",
        "https://example.com/about/#team",
        "https://www.example.com/blog/post",
        "https://example.com/logo.png",
        "https://example.com/files/report.PDF",
        "https://other.com/page",
        "mailto:hello@example.com",
    ]
    assert filter_page_urls(locs, BASE, limit=800) == [
        "https://example.com/about/",
        "https://www.example.com/blog/post",
    ]


def test_filter_page_urls_respects_limit():
    locs = [f"https://example.com/p{i}" for i in range(10)]
    assert len(filter_page_urls(locs, BASE, limit=4)) == 4


@pytest.mark.asyncio
async def test_discover_follows_sitemap_index():
    source = FakeSource({
        "https://example.com/sitemap.xml": (
            "<sitemapindex>"
            "<sitemap><loc>https://example.com/pages.xml</loc></sitemap>"
            "<sitemap><loc>https://example.com/posts.xml</loc></sitemap>"
            "<sitemap><loc>https://example.com/extra.xml</loc></sitemap>"
            "</sitemapindex>"
        ),
        "https://example.com/pages.xml": urlset("https://example.com/about/"),
        "https://example.com/posts.xml": urlset("https://example.com/blog/pricing-update/"),
        "https://example.com/extra.xml": urlset("https://example.com/never"),
    })

    urls = await discover_sitemap_urls(source, BASE, max_children=2)

    assert urls == ["https://example.com/about/", "https://example.com/blog/pricing-update/"]
    assert "https://example.com/extra.xml" not in source.requested


@pytest.mark.asyncio
async def test_discover_reads_namespace_prefixed_sitemap():
    source = FakeSource({
        "https://example.com/sitemap.xml": (
            '<?xml version="1.0"?>'
            '<sm:urlset xmlns:sm="http://www.sitemaps.org/schemas/sitemap/0.9">'
            "<sm:url><sm:loc>https://example.com/solutions/</sm:loc></sm:url>"
            "<sm:url><sm:loc>https://example.com/about/</sm:loc></sm:url>"
            "</sm:urlset>"
        ),
    })

    urls = await discover_sitemap_urls(source, BASE)

    assert urls == ["https://example.com/solutions/", "https://example.com/about/"]


@pytest.mark.asyncio
async def test_discover_tries_sitemap_index_path_second():
    source = FakeSource({
        "https://example.com/sitemap_index.xml": urlset("https://example.com/contact/"),
    })
    urls = await discover_sitemap_urls(source, BASE)
    assert urls == ["https://example.com/contact/"]
    assert source.requested == [
        "https://example.com/sitemap.xml",
        "https://example.com/sitemap_index.xml",
    ]


@pytest.mark.asyncio
async def test_preset_strategy_ignores_sitemap():
    source = FakeSource({})
    selector = UrlSelector(SelectorConfig(strategy="preset"))
    urls = await selector.select("customer experience", BASE, "cx", source=source)
    assert urls == preset_urls(BASE, "cx")
    assert source.requested == []


@pytest.mark.asyncio
async def test_sitemap_strategy_ranks_by_question_keywords():
    source = FakeSource({
        "https://example.com/sitemap.xml": urlset(
            "https://example.com/",
            "https://example.com/careers",
            "https://example.com/insights/pricing-models/",
            "https://example.com/pricing",
            "https://example.com/team",
        ),
    })
    selector = UrlSelector(SelectorConfig(strategy="sitemap", top_n=2))

    urls = await selector.select("How does pricing work?", BASE, "core", source=source)

    assert urls == [
        "https://example.com/insights/pricing-models/",
        "https://example.com/pricing",
    ]


@pytest.mark.asyncio
async def test_sitemap_strategy_includes_home_when_nothing_matches():
    source = FakeSource({
        "https://example.com/sitemap.xml": urlset(
            "https://example.com/careers",
            "https://example.com/team",
        ),
    })
    selector = UrlSelector(SelectorConfig(strategy="sitemap", top_n=2))

    urls = await selector.select("Where are you located?", BASE, "core", source=source)

    assert urls == ["https://example.com/", "https://example.com/careers"]


@pytest.mark.asyncio
async def test_sitemap_strategy_falls_back_when_unreachable():
    selector = UrlSelector(SelectorConfig(strategy="sitemap"))
    urls = await selector.select("anything", BASE, "core", source=FakeSource({}))
    assert urls == fallback_urls(BASE)
