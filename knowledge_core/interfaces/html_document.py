"""Capability interface over a parsed HTML document.

Content and metadata extraction only needs a handful of things from an
HTML parser: find the main content region, read attributes, enumerate
elements, drop boilerplate elements, and hand back comment-free markup
for the Markdown converter.  :class:`IHtmlDocument` names
exactly those operations, so any parser that can answer CSS selectors can
back the :class:`~knowledge_core.services.crawl.content_extractor.ContentExtractor`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence


class IHtmlElement(ABC):
    """A single element inside an :class:`IHtmlDocument`."""

    @abstractmethod
    def text(self) -> str:
        """Return the concatenated text content of the element and its descendants."""

    @abstractmethod
    def attribute(self, name: str) -> str | None:
        """Return the attribute *name*, or ``None`` when absent."""


class IHtmlDocument(ABC):
    """A parsed, mutable HTML document."""

    @abstractmethod
    def select_first(self, selector: str) -> IHtmlElement | None:
        """Return the first element matching the CSS *selector*, or ``None``."""

    @abstractmethod
    def select_main_region(self, selectors: Sequence[str]) -> IHtmlElement | None:
        """Return the first match of the first selector in *selectors* that matches anything."""

    @abstractmethod
    def elements(self, selector: str) -> Iterator[IHtmlElement]:
        """Iterate over every element matching *selector* in document order."""

    @abstractmethod
    def remove(self, selector: str) -> int:
        """Remove every element matching *selector*; return how many were removed."""

    @abstractmethod
    def attribute(self, selector: str, name: str) -> str | None:
        """Return attribute *name* of the first element matching *selector*."""

    @abstractmethod
    def strip_comments(self) -> None:
        """Remove every comment node from the document."""

    @abstractmethod
    def to_html(self) -> str:
        """Serialize the document, including any removals, back to HTML."""
