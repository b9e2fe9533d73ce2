# =============================================================================
# knowledge_core/services/crawl/web_crawler.py - Bounded Breadth-First Crawler
# =============================================================================
#
# Fetches a seed URL and, up to a depth and page budget, the pages it links
# to. Every traversal follows the same loop:
#   1. Validate    : each URL passes the SSRF guard before any network access
#   2. Robots      : robots.txt is consulted (cached per host) when enabled
#   3. Fetch       : one page at a time; redirects are re-validated per hop
#   4. Extract     : main text, Markdown, metadata and links
#   5. Expand      : same-domain links are queued one level deeper
#   6. Rate limit  : a fixed pause after each request, when work remains
#
# Per-page problems (network errors, robots refusals, unparseable HTML) are
# recorded as CrawlFailure entries and never abort the traversal. Only an
# invalid seed URL fails the whole crawl.
#
# State lives in a CrawlState created per crawl() call, so one WebCrawler
# instance can serve concurrent crawls.
# =============================================================================

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence

import structlog

from knowledge_core.interfaces.page_fetcher import IPageFetcher
from knowledge_core.models.crawl import CrawlOptions, CrawlPageResult, CrawlResult, CrawlState, CrawlStatus
from knowledge_core.providers.http.httpx_page_fetcher import HttpxPageFetcher
from knowledge_core.services.crawl.content_extractor import ContentExtractor
from knowledge_core.services.crawl.robots_checker import DEFAULT_ROBOTS_TIMEOUT, RobotsPolicyChecker
from knowledge_core.services.crawl.url_validator import filter_urls_by_same_domain, validate_url
from knowledge_core.utils.errors import (
    ExtractionError,
    NetworkError,
    RobotsDisallowedError,
    ValidationError,
)

logger = structlog.get_logger(logger_name=__name__)

# ─── Accepted crawl_site() budgets ───
ALLOWED_CRAWL_DEPTHS = (1, 2, 3)
ALLOWED_MAX_PAGES = (5, 10, 20, 50)

RobotsCheckerFactory = Callable[[IPageFetcher, str], RobotsPolicyChecker]


def _default_robots_checker(fetcher: IPageFetcher, user_agent: str) -> RobotsPolicyChecker:
    return RobotsPolicyChecker(fetcher, user_agent=user_agent, timeout=DEFAULT_ROBOTS_TIMEOUT)


class WebCrawler:
    """Breadth-first crawler with depth, page-count and politeness limits.

    Parameters
    ----------
    fetcher:
        Page fetcher used for pages and robots.txt.  Defaults to a new
        :class:`HttpxPageFetcher` guarded by :func:`validate_url`, which
        :meth:`aclose` then closes.
    extractor:
        Content extractor; defaults to :class:`ContentExtractor`.
    robots_checker_factory:
        Builds the per-crawl robots checker from ``(fetcher, user_agent)``.
    sleep:
        Coroutine used for rate-limit pauses, in seconds.  Tests pass a
        recording fake so no real time elapses.
    """

    def __init__(
        self,
        fetcher: IPageFetcher | None = None,
        extractor: ContentExtractor | None = None,
        robots_checker_factory: RobotsCheckerFactory | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._owns_fetcher = fetcher is None
        self._fetcher = fetcher or HttpxPageFetcher(url_guard=validate_url)
        self._extractor = extractor or ContentExtractor()
        self._robots_checker_factory = robots_checker_factory or _default_robots_checker
        self._sleep = sleep

    async def aclose(self) -> None:
        if self._owns_fetcher and isinstance(self._fetcher, HttpxPageFetcher):
            await self._fetcher.aclose()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def crawl(
        self,
        seed_url: str,
        options: CrawlOptions | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> CrawlResult:
        """Crawl from *seed_url* within the budgets in *options*.

        Parameters
        ----------
        seed_url:
            Starting URL; a missing scheme defaults to https.
        options:
            Depth, page budget and politeness settings.
        cancel_event:
            When set, the crawl stops before its next fetch and returns
            CANCELLED with the pages collected so far.

        Returns
        -------
        CrawlResult
            COMPLETED when the frontier or page budget is exhausted,
            FAILED when the seed URL is rejected, CANCELLED on request.
        """
        options = options or CrawlOptions()
        state = CrawlState(max_depth=options.max_depth, max_pages=options.max_pages)

        seed = validate_url(seed_url)
        if not seed.valid or seed.normalized is None:
            state.status = CrawlStatus.FAILED
            logger.warning("crawl_seed_rejected", seed_url=seed_url, error=seed.error)
            return state.to_result(seed_url, error=seed.error)

        seed_normalized = seed.normalized
        robots = (
            self._robots_checker_factory(self._fetcher, options.user_agent)
            if options.respect_robots_txt
            else None
        )

        state.status = CrawlStatus.RUNNING
        state.enqueue(seed_normalized, 0)
        log = logger.bind(seed_url=seed_normalized)
        log.info(
            "crawl_started",
            max_depth=options.max_depth,
            max_pages=options.max_pages,
            same_domain_only=options.same_domain_only,
        )

        while state.frontier and state.has_budget():
            if cancel_event is not None and cancel_event.is_set():
                state.status = CrawlStatus.CANCELLED
                log.info("crawl_cancelled", pages=state.pages_collected)
                return state.to_result(seed_normalized)

            url, depth = state.frontier.popleft()
            if url in state.visited:
                continue
            state.visited.add(url)

            fetch_attempted = False
            try:
                target = await self._admit(url, robots)
                fetch_attempted = True
                page = await self._fetch_and_extract(target, options)
            except (NetworkError, ExtractionError, ValidationError) as exc:
                state.record_failure(url, exc)
                log.warning(
                    "crawl_page_failed",
                    url=url,
                    depth=depth,
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
            else:
                if page.url != url and page.url in state.visited:
                    log.debug("crawl_redirect_duplicate", url=url, final_url=page.url)
                else:
                    state.visited.add(page.url)
                    state.pages.append(page)
                    log.info("crawl_page_collected", url=page.url, depth=depth, words=page.word_count)
                    if depth < options.max_depth:
                        self._expand_frontier(state, page, depth, seed_normalized, options)

            # No pause after a URL that was refused before any request went out.
            if fetch_attempted and state.frontier and state.has_budget() and options.rate_limit_ms > 0:
                await self._sleep(options.rate_limit_ms / 1000)

        state.status = CrawlStatus.COMPLETED
        log.info(
            "crawl_completed",
            pages=state.pages_collected,
            failures=len(state.failures),
            visited=len(state.visited),
        )
        return state.to_result(seed_normalized)

    async def process_url(self, url: str, options: CrawlOptions | None = None) -> CrawlPageResult:
        """Fetch and extract a single page without following links.

        Unlike :meth:`crawl`, failures propagate to the caller.

        Raises
        ------
        ValidationError
            If *url* is rejected by the SSRF guard.
        RobotsDisallowedError
            If robots.txt forbids the URL.
        NetworkError
            On timeout, connection failure or a non-2xx status.
        ExtractionError
            If the page cannot be parsed.
        """
        options = options or CrawlOptions()
        robots = (
            self._robots_checker_factory(self._fetcher, options.user_agent)
            if options.respect_robots_txt
            else None
        )
        target = await self._admit(url, robots)
        return await self._fetch_and_extract(target, options)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _admit(self, url: str, robots: RobotsPolicyChecker | None) -> str:
        """Return the normalized *url* once it passes the SSRF guard and robots.txt."""
        validation = validate_url(url)
        if not validation.valid or validation.normalized is None:
            raise ValidationError(message=f"{validation.error}: {url}", provider_name="web_crawler")
        target = validation.normalized

        if robots is not None and not await robots.is_allowed(target):
            raise RobotsDisallowedError(
                message=f"URL blocked by robots.txt: {target}",
                provider_name="web_crawler",
            )
        return target

    async def _fetch_and_extract(self, target: str, options: CrawlOptions) -> CrawlPageResult:
        """Fetch an admitted URL and extract it against the URL it finally resolved to."""
        fetched = await self._fetcher.fetch(
            target,
            options.per_request_timeout_ms / 1000,
            options.user_agent,
        )
        if not fetched.ok:
            raise NetworkError(
                message=f"HTTP {fetched.status_code} fetching {target}",
                provider_name=self._fetcher.get_provider_name(),
                url=target,
                status_code=fetched.status_code,
            )

        final = validate_url(fetched.url)
        if not final.valid or final.normalized is None:
            raise ValidationError(
                message=f"{final.error}: {target} redirected to {fetched.url}",
                provider_name="web_crawler",
            )
        # Relative links resolve against where the page actually lives.
        return self._extractor.extract(fetched.text, final.normalized)

    @staticmethod
    def _expand_frontier(
        state: CrawlState,
        page: CrawlPageResult,
        depth: int,
        seed_url: str,
        options: CrawlOptions,
    ) -> None:
        links = page.links
        if options.same_domain_only:
            links = filter_urls_by_same_domain(seed_url, links)

        queued = 0
        for link in links:
            validation = validate_url(link)
            if not validation.valid or validation.normalized is None:
                continue
            if state.enqueue(validation.normalized, depth + 1):
                queued += 1
        logger.debug("crawl_links_queued", url=page.url, found=len(page.links), queued=queued)


# ─── Module-level entry points ───


async def crawl_site(
    seed_url: str,
    crawl_depth: int = 1,
    max_pages: int = 10,
    crawler: WebCrawler | None = None,
    cancel_event: asyncio.Event | None = None,
    base_options: CrawlOptions | None = None,
    allowed_depths: Sequence[int] = ALLOWED_CRAWL_DEPTHS,
    allowed_max_pages: Sequence[int] = ALLOWED_MAX_PAGES,
) -> CrawlResult:
    """Crawl a site with one of the supported depth/page presets.

    Parameters
    ----------
    base_options:
        Politeness settings (rate limit, timeout, robots, user agent) to
        crawl with; *crawl_depth* and *max_pages* replace its budgets.
    allowed_depths, allowed_max_pages:
        Accepted presets, usually ``crawl.allowed_depths`` and
        ``crawl.allowed_max_pages`` from the YAML config.

    Raises
    ------
    ValidationError
        If *crawl_depth* or *max_pages* is not one of the accepted presets.
    """
    if crawl_depth not in allowed_depths:
        raise ValidationError(
            message=f"crawl_depth must be one of {tuple(allowed_depths)}, got {crawl_depth}",
            provider_name="web_crawler",
        )
    if max_pages not in allowed_max_pages:
        raise ValidationError(
            message=f"max_pages must be one of {tuple(allowed_max_pages)}, got {max_pages}",
            provider_name="web_crawler",
        )

    budgets = {"max_depth": crawl_depth, "max_pages": max_pages}
    options = base_options.model_copy(update=budgets) if base_options else CrawlOptions(**budgets)
    if crawler is not None:
        return await crawler.crawl(seed_url, options, cancel_event=cancel_event)

    owned = WebCrawler()
    try:
        return await owned.crawl(seed_url, options, cancel_event=cancel_event)
    finally:
        await owned.aclose()


async def process_url(url: str, crawler: WebCrawler | None = None) -> CrawlPageResult:
    """Fetch and extract one page with default options."""
    if crawler is not None:
        return await crawler.process_url(url)

    owned = WebCrawler()
    try:
        return await owned.process_url(url)
    finally:
        await owned.aclose()
