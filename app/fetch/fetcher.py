import asyncio
import datetime as dt
import logging
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Mapping, Optional

import hishel
import httpx

from app.core.config import settings
from app.core.errors import FetchTimeout, NetworkFailure, ResponseNotOK
from .base import FetchResult
from .gate import RateGate

logger = logging.getLogger(__name__)

_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,application/json;q=0.8,*/*;q=0.7",
}


def _refuse_all_cookies() -> CookieJar:
    """Cookie jar that stores nothing, not even within one redirect chain."""
    return CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))


class Fetcher:
    """
    Bounded, timed-out HTTP GET.

    Every request goes through the gate, follows redirects and is cut off
    after ``timeout`` seconds including the body read. Cookies are refused,
    so nothing set by one host is sent to another. Responses are kept in an
    HTTP cache shared by all requests of this fetcher and reused while fresh.
    """

    def __init__(
        self,
        gate: RateGate,
        timeout: float = settings.REQUEST_TIMEOUT,
        user_agent: str = settings.USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        cache_capacity: int = settings.HTTP_CACHE_CAPACITY,
    ):
        self.gate = gate
        self.timeout = timeout
        self.user_agent = user_agent
        self._transport = transport
        self._cache_storage = hishel.AsyncInMemoryStorage(capacity=cache_capacity)

    async def fetch(self, url: str, params: Optional[Mapping[str, str]] = None) -> FetchResult:
        async with self.gate.slot():
            try:
                return await asyncio.wait_for(self._get(url, params), timeout=self.timeout)
            except asyncio.TimeoutError as e:
                raise FetchTimeout(f"Timeout while fetching {url}", url=url) from e
            except httpx.TimeoutException as e:
                raise FetchTimeout(f"Timeout while fetching {url}", url=url) from e
            except httpx.HTTPError as e:
                raise NetworkFailure(f"Failed to fetch {url}: {e}", url=url) from e

    def _cached_transport(self) -> hishel.AsyncCacheTransport:
        return hishel.AsyncCacheTransport(
            transport=self._transport or httpx.AsyncHTTPTransport(),
            storage=self._cache_storage,
        )

    async def _get(self, url: str, params: Optional[Mapping[str, str]]) -> FetchResult:
        async with httpx.AsyncClient(
            timeout=self.timeout,
            headers={**_HEADERS, "User-Agent": self.user_agent},
            cookies=_refuse_all_cookies(),
            follow_redirects=True,
            transport=self._cached_transport(),
        ) as client:
            response = await client.get(url, params=params)

        # Redirects are followed, so a 3xx only survives when it has no target.
        if not 200 <= response.status_code < 400:
            raise ResponseNotOK(response.status_code, url=url)

        logger.debug("Fetched %s -> %s (%d bytes)", url, response.status_code, len(response.content))
        return FetchResult(
            url=url,
            status_code=response.status_code,
            final_url=str(response.url),
            content=response.content,
            headers=response.headers,
            fetched_at=dt.datetime.now(dt.timezone.utc).isoformat(timespec="seconds"),
        )
