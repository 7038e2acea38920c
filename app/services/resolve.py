import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence
from urllib.parse import urlsplit

from app.cache import db as cache_db
from app.core.config import settings
from app.core.errors import PersistenceFailure
from app.fetch.fetcher import Fetcher
from app.fetch.gate import RateGate
from app.fetch.html_title import normalize_title
from app.providers.base import BaseTitleProvider
from app.providers.html import HtmlTitleProvider
from app.providers.twitter import TwitterStatusProvider

logger = logging.getLogger(__name__)

SKIPPED_EXTENSIONS = (".pdf",)


@dataclass
class Resolution:
    title: Optional[str]
    cached: bool = False


def is_skipped(url: str) -> bool:
    """Documents we never try to read a title from."""
    try:
        path = urlsplit(url).path
    except ValueError:
        path = url
    return path.lower().endswith(SKIPPED_EXTENSIONS)


class TitleResolver:
    """
    Turns a URL into a best-effort page title.

    Pipeline:
    1. Skip PDF links
    2. Return the cached title if one is stored (even a cached "no title")
    3. Ask the first matching specialized provider
    4. Fall back to the generic HTML <title> provider
    5. Normalize to a single line
    6. Store the result in the background
    Never raises; any failure ends as "no title".
    """

    def __init__(
        self,
        fetcher: Fetcher,
        providers: Sequence[BaseTitleProvider],
        fallback: BaseTitleProvider,
        default_lang: str = settings.DEFAULT_LANG,
        cache=cache_db,
    ):
        self.fetcher = fetcher
        self.providers = list(providers)
        self.fallback = fallback
        self.default_lang = default_lang
        self.cache = cache
        self._pending_writes: set = set()

    async def resolve(self, url: str, lang: Optional[str] = None) -> Resolution:
        if is_skipped(url):
            logger.debug("SKIP %s", url)
            return Resolution(title=None)

        try:
            entry = self.cache.get(url)
        except PersistenceFailure:
            logger.exception("Cache read failed for %s, resolving fresh", url)
            entry = None

        if entry is not None:
            logger.debug("CACHE HIT for %s", url)
            return Resolution(title=entry.title, cached=True)

        try:
            title = normalize_title(await self._lookup(url, lang or self.default_lang))
            self._save_in_background(url, title)
        except Exception:
            logger.exception("Title resolution failed for %s", url)
            return Resolution(title=None)

        return Resolution(title=title)

    async def _lookup(self, url: str, lang: str) -> Optional[str]:
        for provider in self.providers:
            if not provider.matches(url):
                continue
            try:
                title = await provider.resolve(url, lang)
            except Exception:
                # Specialized providers are an enhancement only.
                logger.warning("Provider %s failed for %s", provider.name, url, exc_info=True)
                title = None
            if title:
                return title
            break

        try:
            return await self.fallback.resolve(url, lang)
        except Exception:
            logger.warning("Fetching title from %s failed", url, exc_info=True)
            return None

    def _save_in_background(self, url: str, title: Optional[str]) -> None:
        task = asyncio.create_task(asyncio.to_thread(self.cache.set, url, title))
        self._pending_writes.add(task)
        task.add_done_callback(lambda t: self._on_saved(t, url, title))

    def _on_saved(self, task: asyncio.Task, url: str, title: Optional[str]) -> None:
        self._pending_writes.discard(task)
        if task.cancelled():
            logger.warning("Cache write cancelled for %s", url)
            return
        error = task.exception()
        if error is not None:
            logger.error("Cache write failed for %s (title=%r)", url, title, exc_info=error)

    @property
    def pending_writes(self) -> int:
        return len(self._pending_writes)

    async def drain(self) -> None:
        """Wait for background cache writes started so far."""
        if self._pending_writes:
            await asyncio.gather(*list(self._pending_writes), return_exceptions=True)


def build_resolver(
    fetch_concurrency: int = settings.FETCH_CONCURRENCY,
    timeout: float = settings.REQUEST_TIMEOUT,
    transport=None,
) -> TitleResolver:
    """Wire the resolver with its shared fetch gate and provider set."""
    gate = RateGate(fetch_concurrency, name="fetch")
    fetcher = Fetcher(gate, timeout=timeout, transport=transport)
    return TitleResolver(
        fetcher=fetcher,
        providers=[TwitterStatusProvider(fetcher)],
        fallback=HtmlTitleProvider(fetcher),
    )


_resolver: Optional[TitleResolver] = None


def get_resolver() -> TitleResolver:
    """Process-wide resolver, created on first use."""
    global _resolver
    if _resolver is None:
        _resolver = build_resolver()
    return _resolver


def get_cache_stats() -> Dict[str, Any]:
    """Get cache statistics for debugging"""
    try:
        stats = cache_db.get_stats()
    except PersistenceFailure as e:
        return {"error": str(e)}

    gate = get_resolver().fetcher.gate
    stats["fetch_gate"] = {"limit": gate.limit, "in_flight": gate.in_flight}
    return stats
