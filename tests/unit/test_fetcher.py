import asyncio
import httpx
import pytest
from app.core.errors import FetchTimeout, NetworkFailure, ResponseNotOK
from app.fetch.fetcher import Fetcher
from app.fetch.gate import RateGate


def make_fetcher(handler, timeout=2.0, limit=2):
    return Fetcher(RateGate(limit, name="fetch"), timeout=timeout, transport=httpx.MockTransport(handler))


class TestFetcher:
    """Unit tests for the gated HTTP fetcher"""

    @pytest.mark.asyncio
    async def test_returns_raw_bytes_and_headers(self):
        body = "<title>Example</title>".encode("utf-8")

        def handler(request):
            return httpx.Response(200, content=body, headers={"Content-Type": "text/html; charset=utf-8"})

        fetcher = make_fetcher(handler)
        result = await fetcher.fetch("https://example.com/")

        assert result.content == body
        assert result.status_code == 200
        assert result.content_type == "text/html; charset=utf-8"
        assert fetcher.gate.in_flight == 0

    @pytest.mark.asyncio
    async def test_carries_no_credentials_between_fetches(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, content=b"", headers={"Set-Cookie": "session=abc"})

        fetcher = make_fetcher(handler)
        await fetcher.fetch("https://example.com/a")
        await fetcher.fetch("https://example.com/b")

        assert "cookie" not in seen[1].headers
        assert "authorization" not in seen[1].headers

    @pytest.mark.asyncio
    async def test_cookie_not_forwarded_across_redirect(self):
        seen = []

        def handler(request):
            seen.append((request.url.host, request.headers.get("cookie")))
            if request.url.host == "login.example.com":
                return httpx.Response(302, headers={
                    "Set-Cookie": "session=secret; Domain=example.com; Path=/",
                    "Location": "https://tracker.example.com/landing",
                })
            return httpx.Response(200, content=b"<title>Landing</title>")

        result = await make_fetcher(handler).fetch("https://login.example.com/")

        assert result.final_url == "https://tracker.example.com/landing"
        assert seen == [("login.example.com", None), ("tracker.example.com", None)]

    @pytest.mark.asyncio
    async def test_fresh_response_is_served_from_http_cache(self):
        seen = []

        def handler(request):
            seen.append(request.url.path)
            return httpx.Response(200, content=b"<title>Cached</title>",
                                  headers={"Cache-Control": "max-age=3600"})

        fetcher = make_fetcher(handler)
        first = await fetcher.fetch("https://example.com/a")
        second = await fetcher.fetch("https://example.com/a")

        assert first.content == second.content == b"<title>Cached</title>"
        assert seen == ["/a"]
        assert fetcher.gate.in_flight == 0

    @pytest.mark.asyncio
    async def test_no_store_response_is_fetched_again(self):
        seen = []

        def handler(request):
            seen.append(request.url.path)
            return httpx.Response(200, content=b"", headers={"Cache-Control": "no-store"})

        fetcher = make_fetcher(handler)
        await fetcher.fetch("https://example.com/a")
        await fetcher.fetch("https://example.com/a")

        assert seen == ["/a", "/a"]

    @pytest.mark.asyncio
    async def test_follows_redirects(self):
        def handler(request):
            if request.url.path == "/old":
                return httpx.Response(301, headers={"Location": "https://example.com/new"})
            return httpx.Response(200, content=b"moved")

        result = await make_fetcher(handler).fetch("https://example.com/old")

        assert result.content == b"moved"
        assert result.final_url == "https://example.com/new"

    @pytest.mark.asyncio
    async def test_query_params(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={})

        await make_fetcher(handler).fetch("https://api.example.com/oembed", params={"url": "https://x", "lang": "ja"})

        assert seen[0].url.params["url"] == "https://x"
        assert seen[0].url.params["lang"] == "ja"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [404, 500, 503])
    async def test_error_status_raises_response_not_ok(self, status_code):
        fetcher = make_fetcher(lambda request: httpx.Response(status_code))

        with pytest.raises(ResponseNotOK) as exc_info:
            await fetcher.fetch("https://example.com/")

        assert exc_info.value.status_code == status_code
        assert fetcher.gate.in_flight == 0

    @pytest.mark.asyncio
    async def test_timeout_cancels_and_releases(self):
        async def handler(request):
            await asyncio.sleep(5)
            return httpx.Response(200)

        fetcher = make_fetcher(handler, timeout=0.05)

        with pytest.raises(FetchTimeout):
            await fetcher.fetch("https://slow.example.com/")
        assert fetcher.gate.in_flight == 0

    @pytest.mark.asyncio
    async def test_connection_error_becomes_network_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        fetcher = make_fetcher(handler)

        with pytest.raises(NetworkFailure):
            await fetcher.fetch("https://down.example.com/")
        assert fetcher.gate.in_flight == 0

    @pytest.mark.asyncio
    async def test_concurrent_fetches_bounded_by_gate(self):
        active = 0
        peak = 0

        async def handler(request):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            if request.url.path.endswith("3"):
                return httpx.Response(500)
            return httpx.Response(200)

        fetcher = make_fetcher(handler, limit=2)
        urls = [f"https://example.com/{i}" for i in range(10)]
        results = await asyncio.gather(*(fetcher.fetch(u) for u in urls), return_exceptions=True)

        assert peak <= 2
        assert sum(isinstance(r, ResponseNotOK) for r in results) == 1
        assert fetcher.gate.in_flight == 0
