"""Crawl data models: options, per-invocation state, page results and outcomes.

Two kinds of objects live here:

* Frozen Pydantic models (:class:`CrawlOptions`, :class:`CrawlPageResult`,
  :class:`CrawlFailure`, :class:`CrawlResult`, :class:`UrlValidationResult`)
  that cross component boundaries and never change once built.
* :class:`CrawlState`, a plain mutable dataclass owned by exactly one
  :meth:`WebCrawler.crawl` call.  It is created at the start of the call,
  threaded through the traversal loop, and dropped when the call returns --
  concurrent crawls never share one.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_USER_AGENT = "CBase-Bot/1.0 (+https://github.com/o9nn/cbase)"
DEFAULT_RATE_LIMIT_MS = 1000
DEFAULT_TIMEOUT_MS = 30000


# ---------------------------------------------------------------------------
# CrawlStatus: the traversal state machine.
# ---------------------------------------------------------------------------
class CrawlStatus(str, Enum):  # noqa: UP042
    """Lifecycle of one traversal.

        QUEUED → RUNNING → COMPLETED | FAILED | CANCELLED

    FAILED is reserved for unrecoverable setup errors (e.g. an invalid seed
    URL); individual page failures never move a crawl to FAILED.
    """

    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (CrawlStatus.COMPLETED, CrawlStatus.FAILED, CrawlStatus.CANCELLED)


class CrawlOptions(BaseModel):
    """Traversal budget and politeness settings for one crawl."""

    model_config = ConfigDict(frozen=True)

    max_depth: int = Field(default=1, ge=1)
    max_pages: int = Field(default=10, ge=1)
    same_domain_only: bool = True
    rate_limit_ms: int = Field(default=DEFAULT_RATE_LIMIT_MS, ge=0)
    per_request_timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, gt=0)
    respect_robots_txt: bool = True
    user_agent: str = DEFAULT_USER_AGENT


class UrlValidationResult(BaseModel):
    """Outcome of URL validation -- invalid input is a result, not an exception."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    normalized: str | None = None
    error: str | None = None


class CrawlPageResult(BaseModel):
    """Content extracted from one successfully fetched and parsed page."""

    model_config = ConfigDict(frozen=True)

    url: str
    title: str
    main_text: str
    markdown: str
    # Absolute http(s) links, de-duplicated, in document order.
    links: list[str] = Field(default_factory=list)
    word_count: int = Field(default=0, ge=0)
    description: str | None = None
    keywords: str | None = None
    author: str | None = None
    published_date: str | None = None


class CrawlFailure(BaseModel):
    """A page the crawler skipped or could not process."""

    model_config = ConfigDict(frozen=True)

    url: str
    reason: str
    # Name of the error class (e.g. "NetworkError", "RobotsDisallowedError").
    error_type: str


class CrawlResult(BaseModel):
    """Terminal report of one traversal.

    ``pages`` keeps every page collected before the crawl ended, including
    when it was cancelled part-way through.
    """

    model_config = ConfigDict(frozen=True)

    seed_url: str
    status: CrawlStatus
    pages: list[CrawlPageResult] = Field(default_factory=list)
    failures: list[CrawlFailure] = Field(default_factory=list)
    urls_visited: int = Field(default=0, ge=0)
    urls_discovered: int = Field(default=0, ge=0)
    error: str | None = None

    @property
    def pages_fetched(self) -> int:
        return len(self.pages)


# ---------------------------------------------------------------------------
# CrawlState: mutable, owned by one crawl invocation.
# ---------------------------------------------------------------------------
@dataclass
class CrawlState:
    """Per-invocation traversal bookkeeping.

    Invariants maintained by the crawler: ``len(visited) >= pages_collected``,
    no URL is fetched twice, and every frontier entry has
    ``depth <= max_depth``.
    """

    max_depth: int
    max_pages: int
    visited: set[str] = field(default_factory=set)
    frontier: deque[tuple[str, int]] = field(default_factory=deque)
    # Every URL ever placed on the frontier, including the seed.
    discovered: set[str] = field(default_factory=set)
    pages: list[CrawlPageResult] = field(default_factory=list)
    failures: list[CrawlFailure] = field(default_factory=list)
    status: CrawlStatus = CrawlStatus.QUEUED

    @property
    def pages_collected(self) -> int:
        return len(self.pages)

    def has_budget(self) -> bool:
        return self.pages_collected < self.max_pages

    def enqueue(self, url: str, depth: int) -> bool:
        """Queue *url* at *depth* if depth and page budgets allow; return whether it was queued."""
        if depth > self.max_depth:
            return False
        if url in self.visited or url in self.discovered:
            return False
        if len(self.frontier) + self.pages_collected >= self.max_pages:
            return False
        self.frontier.append((url, depth))
        self.discovered.add(url)
        return True

    def record_failure(self, url: str, exc: Exception) -> None:
        self.failures.append(
            CrawlFailure(url=url, reason=str(exc), error_type=type(exc).__name__)
        )

    def to_result(self, seed_url: str, error: str | None = None) -> CrawlResult:
        return CrawlResult(
            seed_url=seed_url,
            status=self.status,
            pages=list(self.pages),
            failures=list(self.failures),
            urls_visited=len(self.visited),
            urls_discovered=len(self.discovered),
            error=error,
        )
