"""HTML parsing adapters implementing :class:`IHtmlDocument`."""

from knowledge_core.providers.html.beautifulsoup_document import (
    BeautifulSoupDocument,
    BeautifulSoupElement,
    parse_html,
)

__all__ = ["BeautifulSoupDocument", "BeautifulSoupElement", "parse_html"]
