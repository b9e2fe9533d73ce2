"""Public interface definitions for knowledge_core collaborators.

Every external dependency -- the embedding API, the HTTP fetcher, the HTML
parser and the passage store -- is reached through an abstract base class
defined here.  Concrete adapters live in ``knowledge_core/providers/`` and
are injected at construction time, so tests can substitute fakes.

CONCRETE PROVIDER MAP:
    Interface           →  Concrete implementations
    ─────────────────────────────────────────────────────────
    IEmbeddingProvider  →  HttpEmbeddingProvider
    IPageFetcher        →  HttpxPageFetcher
    IHtmlDocument       →  BeautifulSoupDocument
    IPassageStore       →  (caller-supplied)
"""

from knowledge_core.interfaces.embedding_provider import IEmbeddingProvider
from knowledge_core.interfaces.html_document import IHtmlDocument, IHtmlElement
from knowledge_core.interfaces.page_fetcher import FetchedPage, IPageFetcher
from knowledge_core.interfaces.passage_store import IPassageStore, PassageRecord

__all__ = [
    "FetchedPage",
    "IEmbeddingProvider",
    "IHtmlDocument",
    "IHtmlElement",
    "IPageFetcher",
    "IPassageStore",
    "PassageRecord",
]
