"""robots.txt policy evaluation.

Absence of a policy is permissive: a 404, any other non-200 answer, a
timeout or a connection failure all mean "allowed".  A transient outage
on the target host must never block a crawl; it is logged and the crawl
proceeds.
"""

from __future__ import annotations

from urllib.parse import urlsplit
from urllib.robotparser import RobotFileParser

import structlog

from knowledge_core.interfaces.page_fetcher import IPageFetcher
from knowledge_core.models.crawl import DEFAULT_USER_AGENT
from knowledge_core.utils.errors import KnowledgeCoreError

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_ROBOTS_TIMEOUT = 5.0


class RobotsPolicyChecker:
    """Fetches and evaluates robots.txt for one user-agent.

    Parsed policies are cached per ``scheme://host`` for the lifetime of
    the checker.  The crawler builds one checker per traversal, so the
    cache never outlives a crawl.

    Parameters
    ----------
    fetcher:
        Used to GET ``/robots.txt``.
    user_agent:
        Agent name evaluated against ``User-agent`` groups.
    timeout:
        Seconds allowed for the robots.txt fetch.
    """

    def __init__(
        self,
        fetcher: IPageFetcher,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_ROBOTS_TIMEOUT,
    ) -> None:
        self._fetcher = fetcher
        self._user_agent = user_agent
        self._timeout = timeout
        # None marks a host with no usable policy (allow everything).
        self._policies: dict[str, RobotFileParser | None] = {}

    @staticmethod
    def robots_url_for(url: str) -> str:
        """Return ``{scheme}://{host}/robots.txt`` for *url*."""
        parts = urlsplit(url)
        return f"{parts.scheme}://{parts.netloc}/robots.txt"

    async def is_allowed(self, url: str) -> bool:
        """Return ``True`` when *url* may be fetched by this checker's user-agent."""
        robots_url = self.robots_url_for(url)
        if robots_url not in self._policies:
            self._policies[robots_url] = await self._load_policy(robots_url)

        policy = self._policies[robots_url]
        if policy is None:
            return True
        allowed = policy.can_fetch(self._user_agent, url)
        if not allowed:
            logger.info("robots_disallowed", url=url, user_agent=self._user_agent)
        return allowed

    async def _load_policy(self, robots_url: str) -> RobotFileParser | None:
        try:
            page = await self._fetcher.fetch(robots_url, self._timeout, self._user_agent)
        except KnowledgeCoreError as exc:
            logger.warning("robots_fetch_failed", robots_url=robots_url, error=str(exc))
            return None

        if page.status_code == 404:
            logger.debug("robots_not_found", robots_url=robots_url)
            return None
        if page.status_code != 200:
            logger.warning(
                "robots_unexpected_status",
                robots_url=robots_url,
                status=page.status_code,
            )
            return None

        parser = RobotFileParser(robots_url)
        parser.parse(page.text.splitlines())
        return parser
