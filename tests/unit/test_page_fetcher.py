"""Unit tests for the httpx-backed page fetcher."""

from __future__ import annotations

import httpx
import pytest

from knowledge_core.providers.http.httpx_page_fetcher import MAX_REDIRECTS, HttpxPageFetcher
from knowledge_core.services.crawl.url_validator import validate_url
from knowledge_core.utils.errors import NetworkError, ValidationError


def _fetcher(handler, url_guard=validate_url) -> HttpxPageFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpxPageFetcher(http_client=client, url_guard=url_guard)


class TestFetch:
    @pytest.mark.asyncio
    async def test_returns_body_status_and_headers(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text="<p>hi</p>", headers={"Content-Type": "text/html"})

        page = await _fetcher(handler).fetch("https://site.test/", 5.0, "TestBot/1.0")

        assert page.ok is True
        assert page.text == "<p>hi</p>"
        assert page.content_type == "text/html"
        assert seen[0].headers["User-Agent"] == "TestBot/1.0"

    @pytest.mark.asyncio
    async def test_non_success_status_returned_not_raised(self) -> None:
        page = await _fetcher(lambda request: httpx.Response(404, text="missing")).fetch(
            "https://site.test/x", 5.0, "TestBot/1.0"
        )
        assert page.status_code == 404
        assert page.ok is False

    @pytest.mark.asyncio
    async def test_timeout_raises_network_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("slow", request=request)

        with pytest.raises(NetworkError) as exc_info:
            await _fetcher(handler).fetch("https://site.test/", 5.0, "TestBot/1.0")

        assert exc_info.value.url == "https://site.test/"


class TestRedirects:
    @pytest.mark.asyncio
    async def test_redirect_followed(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/old":
                return httpx.Response(301, headers={"Location": "https://site.test/new"})
            return httpx.Response(200, text="moved here")

        page = await _fetcher(handler).fetch("https://site.test/old", 5.0, "TestBot/1.0")

        assert page.url == "https://site.test/new"
        assert page.text == "moved here"

    @pytest.mark.asyncio
    async def test_relative_location_resolved_against_current_url(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/docs/old":
                return httpx.Response(302, headers={"Location": "latest/"})
            return httpx.Response(200, text="latest docs")

        page = await _fetcher(handler).fetch("https://site.test/docs/old", 5.0, "TestBot/1.0")

        assert page.url == "https://site.test/docs/latest/"

    @pytest.mark.asyncio
    async def test_redirect_to_private_address_never_requested(self) -> None:
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            if request.url.host == "public.test":
                return httpx.Response(
                    302, headers={"Location": "http://169.254.169.254/latest/meta-data/"}
                )
            return httpx.Response(200, text="instance credentials")

        with pytest.raises(ValidationError, match="Private or localhost"):
            await _fetcher(handler).fetch("https://public.test/", 5.0, "TestBot/1.0")

        assert requested == ["https://public.test/"]

    @pytest.mark.asyncio
    async def test_redirect_to_localhost_rejected(self) -> None:
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(301, headers={"Location": "http://localhost:8080/admin"})

        with pytest.raises(ValidationError):
            await _fetcher(handler).fetch("https://public.test/", 5.0, "TestBot/1.0")

        assert len(requested) == 1

    @pytest.mark.asyncio
    async def test_redirect_to_unsupported_scheme_rejected(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(302, headers={"Location": "file:///etc/passwd"})

        with pytest.raises(ValidationError, match="HTTP and HTTPS"):
            await _fetcher(handler).fetch("https://public.test/", 5.0, "TestBot/1.0")

    @pytest.mark.asyncio
    async def test_private_start_url_rejected_before_request(self) -> None:
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(200)

        with pytest.raises(ValidationError):
            await _fetcher(handler).fetch("http://10.0.0.5/", 5.0, "TestBot/1.0")

        assert requested == []

    @pytest.mark.asyncio
    async def test_redirect_loop_raises_network_error(self) -> None:
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(302, headers={"Location": "https://site.test/loop"})

        with pytest.raises(NetworkError, match="Too many redirects"):
            await _fetcher(handler).fetch("https://site.test/loop", 5.0, "TestBot/1.0")

        assert len(requested) == MAX_REDIRECTS + 1

    @pytest.mark.asyncio
    async def test_without_guard_redirect_is_returned_not_followed(self) -> None:
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(302, headers={"Location": "http://127.0.0.1/"})

        page = await _fetcher(handler, url_guard=None).fetch("https://site.test/", 5.0, "TestBot/1.0")

        assert page.status_code == 302
        assert requested == ["https://site.test/"]


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_owned_client_closed(self) -> None:
        fetcher = HttpxPageFetcher()
        async with fetcher:
            pass
        assert fetcher._client.is_closed is True

    def test_provider_name(self) -> None:
        assert HttpxPageFetcher(http_client=httpx.AsyncClient()).get_provider_name() == "httpx_fetcher"
