"""Abstract base class for HTTP page fetchers.

The crawler and the robots.txt checker never talk to the network
directly; they go through :class:`IPageFetcher` so tests can serve canned
responses and the HTTP library stays swappable.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class FetchedPage:
    """The body and status of one HTTP GET.

    Attributes
    ----------
    url:
        The final URL after redirects.
    status_code:
        HTTP status of the final response.
    text:
        Decoded response body.
    headers:
        Response headers with lower-cased names.
    """

    url: str
    status_code: int
    text: str
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")


class IPageFetcher(ABC):
    """Contract for fetching a URL over HTTP(S)."""

    @abstractmethod
    async def fetch(self, url: str, timeout: float, user_agent: str) -> FetchedPage:
        """GET *url*, following a bounded number of redirects.

        Parameters
        ----------
        url:
            Absolute http(s) URL to fetch.
        timeout:
            Per-request timeout in seconds.
        user_agent:
            Value for the ``User-Agent`` header.

        Returns
        -------
        FetchedPage
            The final response, whatever its status code.

        Raises
        ------
        knowledge_core.utils.errors.NetworkError
            On timeouts, connection failures and redirect loops.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this fetcher."""
