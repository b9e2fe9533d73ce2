"""knowledge_core composition root.

Wires providers and services together from one :class:`Settings` object.
Every factory takes the settings explicitly; nothing here reads the
environment on its own, so callers decide when configuration is loaded
(once, at start-up) and tests can build fully isolated graphs.

    settings = Settings()
    configure_logging(settings.log_level, json_output=settings.app_env == "production")
    ingestion = build_ingestion_service(settings)
    crawler = build_crawler(settings)
    depths, page_budgets = crawl_presets(load_config(settings=settings))
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx
import structlog

from knowledge_core.config.settings import Settings
from knowledge_core.interfaces.embedding_provider import IEmbeddingProvider
from knowledge_core.interfaces.page_fetcher import IPageFetcher
from knowledge_core.interfaces.passage_store import IPassageStore
from knowledge_core.models.crawl import CrawlOptions
from knowledge_core.providers.embedding.http_embedding_provider import HttpEmbeddingProvider
from knowledge_core.services.crawl.robots_checker import RobotsPolicyChecker
from knowledge_core.services.crawl.web_crawler import ALLOWED_CRAWL_DEPTHS, ALLOWED_MAX_PAGES, WebCrawler
from knowledge_core.services.ingestion.chunker import TextChunker
from knowledge_core.services.ingestion.document_extractor import DocumentTextExtractor
from knowledge_core.services.ingestion.ingestion_service import IngestionService
from knowledge_core.services.retrieval.retrieval_service import RetrievalService
from knowledge_core.services.retrieval.similarity import SimilarityRetriever
from knowledge_core.utils.errors import ConfigurationError

_logger = structlog.get_logger(logger_name=__name__)


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


def build_embedding_provider(
    settings: Settings,
    http_client: httpx.AsyncClient | None = None,
) -> IEmbeddingProvider:
    """Build the HTTP embedding provider.

    A missing API key is logged here and raised as ConfigurationError on
    the first embed call.
    """
    if not settings.has_embedding_credentials():
        _logger.warning("embedding_credentials_missing", api_url=settings.embedding_api_url)
    return HttpEmbeddingProvider(settings=settings, http_client=http_client)


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


def build_ingestion_service(
    settings: Settings,
    embedding_provider: IEmbeddingProvider | None = None,
    passage_store: IPassageStore | None = None,
) -> IngestionService:
    """Assemble chunker, embedding provider and document extractor."""
    return IngestionService(
        chunker=TextChunker(chunk_size=settings.chunk_size, overlap=settings.chunk_overlap),
        embedding_provider=embedding_provider or build_embedding_provider(settings),
        passage_store=passage_store,
        document_extractor=DocumentTextExtractor(settings.upload_dir),
    )


def build_retrieval_service(
    settings: Settings,
    embedding_provider: IEmbeddingProvider | None = None,
) -> RetrievalService:
    """Assemble the query path with the configured top-k and thresholds."""
    return RetrievalService(
        embedding_provider=embedding_provider or build_embedding_provider(settings),
        retriever=SimilarityRetriever(
            top_k=settings.rag_top_k,
            min_similarity=settings.rag_min_similarity,
        ),
        max_context_length=settings.rag_max_context_length,
    )


def build_crawler(settings: Settings, fetcher: IPageFetcher | None = None) -> WebCrawler:
    """Build a crawler whose robots checks use the configured timeout."""

    def robots_factory(page_fetcher: IPageFetcher, user_agent: str) -> RobotsPolicyChecker:
        return RobotsPolicyChecker(page_fetcher, user_agent=user_agent, timeout=settings.robots_timeout)

    return WebCrawler(fetcher=fetcher, robots_checker_factory=robots_factory)


def build_crawl_options(settings: Settings, max_depth: int = 1, max_pages: int = 10) -> CrawlOptions:
    """Return :class:`CrawlOptions` carrying the configured politeness settings."""
    return CrawlOptions(
        max_depth=max_depth,
        max_pages=max_pages,
        rate_limit_ms=settings.crawl_rate_limit_ms,
        per_request_timeout_ms=settings.crawl_timeout_ms,
        respect_robots_txt=settings.crawl_respect_robots_txt,
        user_agent=settings.crawl_user_agent,
    )


def crawl_presets(config: Mapping[str, Any]) -> tuple[tuple[int, ...], tuple[int, ...]]:
    """Return ``(allowed_depths, allowed_max_pages)`` from a :func:`load_config` tree.

    Missing keys fall back to the built-in presets.

    Raises
    ------
    ConfigurationError
        If a preset list is empty or holds anything but positive integers.
    """
    crawl_section = config.get("crawl") or {}
    return (
        _positive_ints(crawl_section, "allowed_depths", ALLOWED_CRAWL_DEPTHS),
        _positive_ints(crawl_section, "allowed_max_pages", ALLOWED_MAX_PAGES),
    )


def _positive_ints(section: Mapping[str, Any], key: str, default: tuple[int, ...]) -> tuple[int, ...]:
    values = section.get(key)
    if values is None:
        return default
    if (
        not isinstance(values, (list, tuple))
        or not values
        or not all(isinstance(v, int) and not isinstance(v, bool) and v > 0 for v in values)
    ):
        raise ConfigurationError(
            message=f"crawl.{key} must be a non-empty list of positive integers, got {values!r}"
        )
    return tuple(values)
