"""Web crawling: URL safety checks, robots.txt, content extraction and traversal."""

from knowledge_core.services.crawl.content_extractor import ContentExtractor, html_to_markdown
from knowledge_core.services.crawl.robots_checker import RobotsPolicyChecker
from knowledge_core.services.crawl.url_validator import (
    filter_urls_by_same_domain,
    normalize_url,
    validate_url,
)
from knowledge_core.services.crawl.web_crawler import WebCrawler, crawl_site, process_url

__all__ = [
    "ContentExtractor",
    "RobotsPolicyChecker",
    "WebCrawler",
    "crawl_site",
    "filter_urls_by_same_domain",
    "html_to_markdown",
    "normalize_url",
    "process_url",
    "validate_url",
]
