"""Main-content, metadata and link extraction from fetched HTML.

Given raw HTML and the page URL, :class:`ContentExtractor` produces a
:class:`~knowledge_core.models.crawl.CrawlPageResult`:

1. **Metadata and links** are read from the untouched document: title
   (``<title>`` → ``og:title`` → first ``<h1>`` → ``"Untitled"``),
   description, keywords, author, published date, and every ``a[href]``
   resolved to an absolute http(s) URL.
2. **Markdown** is produced from the original HTML with comment nodes
   stripped, for storage and display.
3. **Main text** comes last: boilerplate (scripts, styles, navigation,
   headers, footers, ads, sidebars) is removed, then the first matching
   content region is taken and its whitespace normalized.  Stripping
   boilerplate first keeps menus and cookie banners out of the passages
   the chunker produces.

All DOM access goes through :class:`~knowledge_core.interfaces.html_document.IHtmlDocument`.
"""

from __future__ import annotations

from collections.abc import Callable
from urllib.parse import urljoin, urlsplit

import html2text
import structlog

from knowledge_core.interfaces.html_document import IHtmlDocument
from knowledge_core.models.crawl import CrawlPageResult
from knowledge_core.providers.html.beautifulsoup_document import parse_html
from knowledge_core.utils.errors import ExtractionError
from knowledge_core.utils.text import count_words, normalize_whitespace

logger = structlog.get_logger(logger_name=__name__)

# Removed before the main region is chosen.
BOILERPLATE_SELECTORS: tuple[str, ...] = (
    "script",
    "style",
    "nav",
    "header",
    "footer",
    "aside",
    "iframe",
    "noscript",
    '[role="banner"]',
    '[role="navigation"]',
    '[role="complementary"]',
    ".advertisement",
    ".ads",
    ".sidebar",
    ".menu",
    ".navigation",
    ".footer",
    ".header",
)

# First selector that matches anything wins.
MAIN_CONTENT_SELECTORS: tuple[str, ...] = (
    "main",
    '[role="main"]',
    "article",
    ".content",
    ".main-content",
    "#content",
    "#main",
    "body",
)

UNTITLED = "Untitled"


class ContentExtractor:
    """Turns HTML into a :class:`CrawlPageResult`.

    Parameters
    ----------
    document_factory:
        Builds an :class:`IHtmlDocument` from an HTML string.  Defaults to
        the BeautifulSoup adapter.
    """

    def __init__(self, document_factory: Callable[[str], IHtmlDocument] | None = None) -> None:
        self._document_factory = document_factory or parse_html

    def extract(self, html: str, url: str) -> CrawlPageResult:
        """Extract title, metadata, links, Markdown and main text from *html*.

        Raises
        ------
        ExtractionError
            If the HTML cannot be parsed at all.
        """
        try:
            document = self._document_factory(html)
        except Exception as exc:  # noqa: BLE001
            raise ExtractionError(
                message=f"Could not parse HTML from {url}: {exc}",
                provider_name="content_extractor",
            ) from exc

        title = self.extract_title(document)
        links = self.extract_links(document, url)
        description = _first_present(
            document.attribute('meta[name="description"]', "content"),
            document.attribute('meta[property="og:description"]', "content"),
        )
        keywords = _first_present(document.attribute('meta[name="keywords"]', "content"))
        author = _first_present(
            document.attribute('meta[name="author"]', "content"),
            document.attribute('meta[property="article:author"]', "content"),
        )
        published_date = _first_present(
            document.attribute('meta[property="article:published_time"]', "content"),
            document.attribute('meta[name="publish-date"]', "content"),
        )

        markdown = html_to_markdown(html, self._document_factory)
        main_text = self.extract_main_text(document)

        logger.debug(
            "page_content_extracted",
            url=url,
            title=title,
            text_length=len(main_text),
            links=len(links),
        )
        return CrawlPageResult(
            url=url,
            title=title,
            main_text=main_text,
            markdown=markdown,
            links=links,
            word_count=count_words(main_text),
            description=description,
            keywords=keywords,
            author=author,
            published_date=published_date,
        )

    # ------------------------------------------------------------------
    # Individual extraction steps
    # ------------------------------------------------------------------

    @staticmethod
    def extract_title(document: IHtmlDocument) -> str:
        title_element = document.select_first("title")
        heading = document.select_first("h1")
        return _first_present(
            title_element.text() if title_element is not None else None,
            document.attribute('meta[property="og:title"]', "content"),
            heading.text() if heading is not None else None,
        ) or UNTITLED

    @staticmethod
    def extract_links(document: IHtmlDocument, base_url: str) -> list[str]:
        """Return de-duplicated absolute http(s) links in document order."""
        seen: set[str] = set()
        links: list[str] = []
        for element in document.elements("a[href]"):
            href = (element.attribute("href") or "").strip()
            if not href:
                continue
            try:
                absolute = urljoin(base_url, href)
                scheme = urlsplit(absolute).scheme.lower()
            except ValueError:
                continue
            if scheme not in ("http", "https"):
                continue
            if absolute not in seen:
                seen.add(absolute)
                links.append(absolute)
        return links

    @staticmethod
    def extract_main_text(document: IHtmlDocument) -> str:
        """Strip boilerplate in place and return the main region's normalized text."""
        for selector in BOILERPLATE_SELECTORS:
            document.remove(selector)
        region = document.select_main_region(MAIN_CONTENT_SELECTORS)
        if region is None:
            return ""
        return normalize_whitespace(region.text())


def html_to_markdown(
    html: str,
    document_factory: Callable[[str], IHtmlDocument] = parse_html,
) -> str:
    """Convert *html* to Markdown with comment nodes removed.

    *document_factory* parses a fresh copy so the caller's document keeps
    its boilerplate for main-text extraction.
    """
    document = document_factory(html)
    document.strip_comments()

    converter = html2text.HTML2Text()
    converter.body_width = 0
    converter.ul_item_mark = "-"
    converter.ignore_images = False
    converter.ignore_links = False
    return converter.handle(document.to_html()).strip()


def _first_present(*candidates: str | None) -> str | None:
    """Return the first candidate that is non-blank after trimming."""
    for candidate in candidates:
        if candidate is not None and candidate.strip():
            return candidate.strip()
    return None
