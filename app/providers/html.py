import logging
from typing import Optional

from app.core.errors import DecodeAmbiguous
from app.fetch.encoding import Encoding, require_encoding
from app.fetch.fetcher import Fetcher
from app.fetch.html_title import decode_body, extract_title, parse_html
from .base import BaseTitleProvider

logger = logging.getLogger(__name__)


class HtmlTitleProvider(BaseTitleProvider):
    """Generic fallback: fetch the page itself and read its <title>."""

    name = "html"

    def __init__(self, fetcher: Fetcher):
        self.fetcher = fetcher

    def matches(self, url: str) -> bool:
        return True

    async def resolve(self, url: str, lang: str) -> Optional[str]:
        result = await self.fetcher.fetch(url)
        # Keep the raw bytes: legacy encodings must be decoded from them.
        raw = result.content

        # This first parse only needs to be good enough to read the meta tags.
        soup = parse_html(decode_body(raw))
        try:
            encoding = require_encoding(result.headers, soup)
        except DecodeAmbiguous as e:
            logger.info("Skipping %s: %s", url, e)
            return None

        if encoding is Encoding.UTF8:
            return extract_title(soup)

        return extract_title(parse_html(decode_body(raw, encoding.codec)))
