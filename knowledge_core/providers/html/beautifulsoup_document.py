"""BeautifulSoup-backed implementation of the HTML capability interface."""

from __future__ import annotations

from collections.abc import Iterator, Sequence

from bs4 import BeautifulSoup, Comment, Tag

from knowledge_core.interfaces.html_document import IHtmlDocument, IHtmlElement


class BeautifulSoupElement(IHtmlElement):
    """Wraps a ``bs4.Tag``."""

    def __init__(self, tag: Tag) -> None:
        self._tag = tag

    def text(self) -> str:
        # A separator keeps words from adjacent block elements apart
        # ("<p>a</p><p>b</p>" -> "a b", not "ab").
        return self._tag.get_text(" ")

    def attribute(self, name: str) -> str | None:
        value = self._tag.get(name)
        if value is None:
            return None
        # Multi-valued attributes (class, rel) come back as lists.
        if isinstance(value, list):
            return " ".join(value)
        return str(value)


class BeautifulSoupDocument(IHtmlDocument):
    """A parsed HTML document using the stdlib-backed ``html.parser`` tree builder."""

    def __init__(self, html: str) -> None:
        self._soup = BeautifulSoup(html, "html.parser")

    def select_first(self, selector: str) -> IHtmlElement | None:
        tag = self._soup.select_one(selector)
        return BeautifulSoupElement(tag) if tag is not None else None

    def select_main_region(self, selectors: Sequence[str]) -> IHtmlElement | None:
        for selector in selectors:
            element = self.select_first(selector)
            if element is not None:
                return element
        return None

    def elements(self, selector: str) -> Iterator[IHtmlElement]:
        for tag in self._soup.select(selector):
            yield BeautifulSoupElement(tag)

    def remove(self, selector: str) -> int:
        tags = self._soup.select(selector)
        for tag in tags:
            # A match nested in an earlier match is already gone.
            if not tag.decomposed:
                tag.decompose()
        return len(tags)

    def attribute(self, selector: str, name: str) -> str | None:
        element = self.select_first(selector)
        return element.attribute(name) if element is not None else None

    def strip_comments(self) -> None:
        """Remove every ``<!-- comment -->`` node from the tree."""
        for comment in self._soup.find_all(string=lambda node: isinstance(node, Comment)):
            comment.extract()

    def to_html(self) -> str:
        return str(self._soup)


def parse_html(html: str) -> BeautifulSoupDocument:
    """Parse *html* into a :class:`BeautifulSoupDocument`."""
    return BeautifulSoupDocument(html)
