"""HTTP fetchers implementing :class:`IPageFetcher`."""

from knowledge_core.providers.http.httpx_page_fetcher import MAX_REDIRECTS, HttpxPageFetcher

__all__ = ["HttpxPageFetcher", "MAX_REDIRECTS"]
