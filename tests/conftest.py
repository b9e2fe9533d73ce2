"""Shared pytest fixtures for the knowledge_core test suite."""

from __future__ import annotations

import logging
import string
from pathlib import Path

import pytest
import structlog

from knowledge_core.config.settings import Settings
from knowledge_core.interfaces.embedding_provider import IEmbeddingProvider
from knowledge_core.interfaces.page_fetcher import FetchedPage, IPageFetcher
from knowledge_core.interfaces.passage_store import IPassageStore, PassageRecord
from knowledge_core.utils.errors import NetworkError

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakePageFetcher(IPageFetcher):
    """Serves canned pages keyed by URL and records every request.

    Unknown URLs answer 404, so robots.txt lookups default to "allowed".
    A value that is an exception instance is raised instead of returned.
    """

    def __init__(self, pages: dict[str, FetchedPage | Exception | str] | None = None) -> None:
        self.pages: dict[str, FetchedPage | Exception | str] = dict(pages or {})
        self.calls: list[tuple[str, float, str]] = []

    def add_html(self, url: str, html: str, status_code: int = 200) -> None:
        self.pages[url] = FetchedPage(url=url, status_code=status_code, text=html)

    @property
    def fetched_urls(self) -> list[str]:
        return [url for url, _, _ in self.calls]

    @property
    def page_fetches(self) -> list[str]:
        return [url for url in self.fetched_urls if not url.endswith("/robots.txt")]

    async def fetch(self, url: str, timeout: float, user_agent: str) -> FetchedPage:
        self.calls.append((url, timeout, user_agent))
        entry = self.pages.get(url)
        if entry is None:
            return FetchedPage(url=url, status_code=404, text="")
        if isinstance(entry, Exception):
            raise entry
        if isinstance(entry, str):
            return FetchedPage(url=url, status_code=200, text=entry)
        return entry

    def get_provider_name(self) -> str:
        return "fake_fetcher"


class LetterFrequencyEmbeddingProvider(IEmbeddingProvider):
    """Deterministic 26-dimensional embeddings from letter counts.

    Texts sharing vocabulary land close together, which is enough to
    exercise ranking end to end without a network.
    """

    def __init__(self) -> None:
        self.embedded_texts: list[str] = []

    async def embed(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed_single(text) for text in texts]

    async def embed_single(self, text: str) -> list[float]:
        self.embedded_texts.append(text)
        lowered = text.lower()
        return [float(lowered.count(letter)) for letter in string.ascii_lowercase]

    def get_dimension(self) -> int:
        return 26

    def get_provider_name(self) -> str:
        return "letter_frequency"

    def is_available(self) -> bool:
        return True


class InMemoryPassageStore(IPassageStore):
    """Keeps stored records in a dict keyed by source id."""

    def __init__(self) -> None:
        self.records: dict[str, list[PassageRecord]] = {}

    async def store(self, source_id: str, records: list[PassageRecord]) -> None:
        self.records.setdefault(source_id, []).extend(records)


class RecordingSleep:
    """Stand-in for ``asyncio.sleep`` that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _restore_logging_pipeline():
    """Undo any configure_logging() call so later tests never log to a closed capture stream."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the developer's environment and .env file."""
    return Settings(
        _env_file=None,
        embedding_api_key="test-key",
        embedding_api_url="https://embeddings.test",
        embedding_model="text-embedding-3-small",
    )


@pytest.fixture
def fake_fetcher() -> FakePageFetcher:
    return FakePageFetcher()


@pytest.fixture
def embedding_provider() -> LetterFrequencyEmbeddingProvider:
    return LetterFrequencyEmbeddingProvider()


@pytest.fixture
def passage_store() -> InMemoryPassageStore:
    return InMemoryPassageStore()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def upload_root(tmp_path: Path) -> Path:
    root = tmp_path / "uploads"
    root.mkdir()
    return root


@pytest.fixture
def network_error() -> NetworkError:
    return NetworkError(message="connection refused", provider_name="fake_fetcher")


@pytest.fixture
def sample_article_html() -> str:
    """A page with boilerplate around a main article, metadata and links."""
    return """<!DOCTYPE html>
<html>
<head>
  <title>Composting Basics</title>
  <meta name="description" content="How to start a compost pile.">
  <meta name="keywords" content="compost, garden">
  <meta name="author" content="Dana Reyes">
  <meta property="article:published_time" content="2024-03-01">
  <style>body { color: red; }</style>
  <script>console.log("tracking");</script>
</head>
<body>
  <header>Site Header</header>
  <nav><a href="/home">Home</a><a href="https://other.example.org/">Partner</a></nav>
  <div class="sidebar">Sidebar promo</div>
  <main>
    <h1>Composting Basics</h1>
    <!-- editor note: hidden -->
    <p>Compost turns kitchen scraps into soil.</p>
    <p>Keep the pile moist. <a href="/guides/turning">Turning guide</a></p>
    <p><a href="mailto:dana@example.com">Email</a> <a href="/guides/turning">Again</a></p>
  </main>
  <footer>Copyright footer</footer>
</body>
</html>
"""
