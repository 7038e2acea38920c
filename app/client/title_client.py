import asyncio
import logging
from typing import Iterable, Optional

import httpx

from app.core.config import settings
from app.core.errors import InvalidInput
from app.fetch.gate import RateGate
from .links import SearchLink
from .validator import accept_title

logger = logging.getLogger(__name__)


class TitleClient:
    """
    Calling side of the resolver.

    One client stands for one page of results: its request gate keeps only a
    few resolutions in flight so a long result list neither floods the
    resolver's fetch gate nor wastes work on links nobody looks at.
    """

    def __init__(
        self,
        base_url: str = settings.RESOLVER_BASE_URL,
        concurrency: int = settings.REQUEST_CONCURRENCY,
        timeout: float = settings.REQUEST_TIMEOUT * 2,
        lang: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.gate = RateGate(concurrency, name="request")
        self.timeout = timeout
        self.lang = lang
        self._transport = transport

    async def fetch_title(self, url: str) -> Optional[str]:
        """Resolved title for url, or None on any failure."""
        async with self.gate.slot():
            try:
                return await self._request(url)
            except Exception:
                logger.exception("Fetching title for %s failed", url)
                return None

    async def _request(self, url: str) -> Optional[str]:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            response = await client.post("/title", json={"url": url, "lang": self.lang})
            response.raise_for_status()
            payload = response.json()

        title = payload.get("title") if isinstance(payload, dict) else payload
        if title is None:
            return None
        if not isinstance(title, str):
            raise InvalidInput(f"title is not a string: {title!r}")
        return title

    async def replace_link_title(self, link: SearchLink) -> Optional[str]:
        new_title = await self.fetch_title(link.href)
        if not accept_title(new_title, link.label):
            return None
        link.label = new_title
        link.replaced = new_title
        return new_title

    async def replace_link_titles(self, links: Iterable[SearchLink]) -> list[Optional[str]]:
        """Resolve all links concurrently and apply accepted titles in place."""
        return list(await asyncio.gather(*(self.replace_link_title(link) for link in links)))
