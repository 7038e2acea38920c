"""
Tweet text via the public oEmbed endpoint.

Tweet pages are not rendered server-side, so a plain HTML fetch only yields
an empty shell. The embed fragment returned by oEmbed carries the full text.
"""

import json
import logging
import re
from typing import Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ValidationError

from app.core.config import settings
from app.core.errors import SchemaMismatch
from app.fetch.fetcher import Fetcher
from app.fetch.html_title import embed_text
from .base import BaseTitleProvider

logger = logging.getLogger(__name__)

TWITTER_HOSTS = frozenset({"twitter.com", "mobile.twitter.com", "x.com", "mobile.x.com"})
STATUS_PATH = re.compile(r"^/\w+/status/\d+")


class OEmbedResponse(BaseModel):
    html: str


class TwitterStatusProvider(BaseTitleProvider):
    name = "twitter"

    def __init__(self, fetcher: Fetcher, endpoint: str = settings.TWITTER_OEMBED_URL):
        self.fetcher = fetcher
        self.endpoint = endpoint

    def matches(self, url: str) -> bool:
        try:
            parts = urlsplit(url)
        except ValueError:
            return False
        return parts.hostname in TWITTER_HOSTS and STATUS_PATH.match(parts.path) is not None

    async def resolve(self, url: str, lang: str) -> Optional[str]:
        result = await self.fetcher.fetch(
            self.endpoint,
            params={
                "url": url,
                # Only the text is used; never pull in the widget script.
                "omit_script": "t",
                # Dates in the embed follow this language.
                "lang": lang,
            },
        )
        try:
            payload = OEmbedResponse.model_validate(json.loads(result.content))
        except (ValueError, ValidationError) as e:
            raise SchemaMismatch(f"Unexpected oEmbed response for {url}: {e}") from e

        return embed_text(payload.html)
