"""Page fetcher backed by httpx.

Fetches raw HTML (or robots.txt) with a per-request timeout and a small,
fixed redirect limit, translating every httpx failure into
:class:`~knowledge_core.utils.errors.NetworkError`.

Redirects are followed here rather than by httpx so that every hop can be
checked by the injected URL guard before a request is sent:

    fetch(url) ──guard──► GET ──3xx──► urljoin(Location) ──guard──► GET ...
                   │                                         │
                   └── rejected: ValidationError ◄───────────┘
"""

from __future__ import annotations

from collections.abc import Callable
from urllib.parse import urljoin

import httpx
import structlog

from knowledge_core.interfaces.page_fetcher import FetchedPage, IPageFetcher
from knowledge_core.models.crawl import UrlValidationResult
from knowledge_core.utils.errors import NetworkError, ValidationError

logger = structlog.get_logger(logger_name=__name__)

MAX_REDIRECTS = 5
_DEFAULT_TIMEOUT = 30.0
_DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

UrlGuard = Callable[[str], UrlValidationResult]


class HttpxPageFetcher(IPageFetcher):
    """:class:`IPageFetcher` over a shared ``httpx.AsyncClient``.

    Parameters
    ----------
    http_client:
        Optional shared client; one is created when omitted and closed by
        :meth:`aclose` (or ``async with``).
    url_guard:
        Called with the requested URL and with every redirect target
        before it is requested.  A hop the guard rejects raises
        :class:`ValidationError`; an accepted hop is requested under the
        guard's normalized form.  Without a guard redirects are not
        followed and the 3xx response itself is returned.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        url_guard: UrlGuard | None = None,
    ) -> None:
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(_DEFAULT_TIMEOUT),
            headers=_DEFAULT_HEADERS,
        )
        self._url_guard = url_guard

    async def __aenter__(self) -> HttpxPageFetcher:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def fetch(self, url: str, timeout: float, user_agent: str) -> FetchedPage:
        """GET *url*, following at most :data:`MAX_REDIRECTS` guarded redirects.

        Returns the final response whatever its status.

        Raises
        ------
        ValidationError
            If the guard rejects the URL or any redirect target.
        NetworkError
            On timeouts, transport failures, or too many redirects.
        """
        current = self._guarded(url, url)
        redirects = 0
        while True:
            response = await self._get(current, timeout, user_agent, requested=url)
            location = response.headers.get("location")
            if self._url_guard is None or not response.is_redirect or not location:
                break
            redirects += 1
            if redirects > MAX_REDIRECTS:
                raise NetworkError(
                    message=f"Too many redirects fetching {url}",
                    provider_name=self.get_provider_name(),
                    url=url,
                )
            target = urljoin(str(response.url), location.strip())
            logger.debug("page_redirected", url=current, location=target, hop=redirects)
            current = self._guarded(target, url)

        logger.debug(
            "page_fetched",
            url=url,
            final_url=str(response.url),
            status=response.status_code,
            redirects=redirects,
            bytes=len(response.content),
        )
        return FetchedPage(
            url=str(response.url),
            status_code=response.status_code,
            text=response.text,
            headers={name.lower(): value for name, value in response.headers.items()},
        )

    def get_provider_name(self) -> str:
        return "httpx_fetcher"

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _guarded(self, target: str, requested: str) -> str:
        if self._url_guard is None:
            return target
        verdict = self._url_guard(target)
        if not verdict.valid or not verdict.normalized:
            logger.warning("fetch_target_rejected", url=requested, target=target, reason=verdict.error)
            raise ValidationError(
                message=f"Refusing to fetch {target}: {verdict.error}",
                provider_name=self.get_provider_name(),
            )
        return verdict.normalized

    async def _get(self, url: str, timeout: float, user_agent: str, requested: str) -> httpx.Response:
        try:
            return await self._client.get(
                url,
                timeout=httpx.Timeout(timeout),
                follow_redirects=False,
                headers={"User-Agent": user_agent},
            )
        except httpx.TimeoutException as exc:
            raise NetworkError(
                message=f"Timeout fetching {url}: {exc}",
                provider_name=self.get_provider_name(),
                url=requested,
            ) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(
                message=f"HTTP error fetching {url}: {exc}",
                provider_name=self.get_provider_name(),
                url=requested,
            ) from exc
