"""Integration tests: crawl a small site and ingest the collected pages.

The crawler, content extractor, robots checker, chunker and ingestion
service all run for real; the network is a ``FakePageFetcher`` and the
embedding backend is the letter-frequency fake.
"""

from __future__ import annotations

import pytest

from conftest import FakePageFetcher, InMemoryPassageStore, LetterFrequencyEmbeddingProvider, RecordingSleep
from knowledge_core.config.settings import Settings
from knowledge_core.main import build_crawl_options, build_ingestion_service
from knowledge_core.models.crawl import CrawlStatus
from knowledge_core.services.crawl.web_crawler import WebCrawler, crawl_site

_SEED = "https://garden.test/"

_ROBOTS = "User-agent: *\nDisallow: /private\n"


def _article(title: str, body: str, *links: str) -> str:
    anchors = " ".join(f'<a href="{href}">{href}</a>' for href in links)
    return (
        f"<html><head><title>{title}</title></head><body>"
        f"<nav><a href='/'>Home</a></nav>"
        f"<article><h1>{title}</h1><p>{body}</p><p>{anchors}</p></article>"
        f"<footer>Garden footer</footer></body></html>"
    )


@pytest.fixture
def garden_site() -> FakePageFetcher:
    fetcher = FakePageFetcher({"https://garden.test/robots.txt": _ROBOTS})
    fetcher.add_html(_SEED, _article("Garden Home", "Welcome to the garden.", "/soil", "/private/notes"))
    fetcher.add_html("https://garden.test/soil", _article("Soil", "Loam holds water well.", "/soil/ph"))
    fetcher.add_html("https://garden.test/soil/ph", _article("Soil pH", "Most vegetables like pH near 6.5."))
    fetcher.add_html("https://garden.test/private/notes", _article("Private", "Not for crawlers."))
    return fetcher


class TestCrawlThenIngest:
    @pytest.mark.asyncio
    async def test_pages_become_passages(
        self,
        garden_site: FakePageFetcher,
        passage_store: InMemoryPassageStore,
        recording_sleep: RecordingSleep,
    ) -> None:
        settings = Settings(_env_file=None, crawl_rate_limit_ms=500)
        crawler = WebCrawler(fetcher=garden_site, sleep=recording_sleep)

        crawl = await crawler.crawl(_SEED, build_crawl_options(settings, max_depth=2, max_pages=10))

        assert crawl.status is CrawlStatus.COMPLETED
        assert [page.title for page in crawl.pages] == ["Garden Home", "Soil", "Soil pH"]
        assert [failure.error_type for failure in crawl.failures] == ["RobotsDisallowedError"]
        assert "https://garden.test/private/notes" not in garden_site.page_fetches
        assert all(delay == 0.5 for delay in recording_sleep.delays)
        assert all("Garden footer" not in page.main_text for page in crawl.pages)

        ingestion = build_ingestion_service(
            settings,
            embedding_provider=LetterFrequencyEmbeddingProvider(),
            passage_store=passage_store,
        )
        result = await ingestion.ingest_crawl("crawl-garden", crawl, {"collection": "garden"})

        records = passage_store.records["crawl-garden"]
        combined = " ".join(record.text for record in records)
        assert result.passages_created == len(records) >= 1
        assert "Loam holds water well." in combined
        assert "Not for crawlers." not in combined
        assert records[0].metadata["seedUrl"] == _SEED
        assert records[0].metadata["pagesCrawled"] == 3
        assert records[0].metadata["collection"] == "garden"

    @pytest.mark.asyncio
    async def test_crawl_site_page_budget(self, garden_site: FakePageFetcher, recording_sleep: RecordingSleep) -> None:
        crawler = WebCrawler(fetcher=garden_site, sleep=recording_sleep)

        crawl = await crawl_site(_SEED, crawl_depth=3, max_pages=5, crawler=crawler)

        assert crawl.status is CrawlStatus.COMPLETED
        assert 1 <= crawl.pages_fetched <= 5
        assert len(set(garden_site.page_fetches)) == len(garden_site.page_fetches)
