"""
Rough character encoding estimation from HTTP and HTML hints.

Three sources are consulted: the Content-Type response header, the HTML5
``<meta charset>`` attribute and the HTML4 ``<meta http-equiv="Content-Type">``
content. The answer is only trusted when every source that names a known
encoding names the same one.
"""

import logging
import re
from enum import Enum
from typing import Mapping, Optional

from bs4 import BeautifulSoup

from app.core.errors import DecodeAmbiguous

logger = logging.getLogger(__name__)


class Encoding(Enum):
    UTF8 = "utf-8"
    SJIS = "cp932"
    EUCJP = "euc_jp"

    @property
    def codec(self) -> str:
        """Python codec used to decode raw bytes in this encoding."""
        return self.value


# Checked in enum order; the first hit wins.
_ENCODING_PATTERNS = {
    Encoding.UTF8: re.compile(r"UTF[-_]?8", re.IGNORECASE),
    Encoding.SJIS: re.compile(r"Shift[-_]JIS", re.IGNORECASE),
    Encoding.EUCJP: re.compile(r"EUC[-_]JP", re.IGNORECASE),
}


def match_encoding(source: Optional[str]) -> Optional[Encoding]:
    """Return the first known encoding named in source, if any."""
    if not source:
        return None
    for encoding in Encoding:
        if _ENCODING_PATTERNS[encoding].search(source):
            return encoding
    return None


def _header(headers: Mapping[str, str], name: str) -> str:
    value = headers.get(name)
    if value is None:
        # Plain dicts are case-sensitive, httpx.Headers are not.
        for key, candidate in headers.items():
            if key.lower() == name.lower():
                return candidate or ""
        return ""
    return value


def encoding_hints(headers: Mapping[str, str], soup: BeautifulSoup) -> list[str]:
    """Collect the raw hint strings, empty where a source is absent."""
    http_content_type = _header(headers, "content-type")

    html5_charset = ""
    meta_charset = soup.find("meta", attrs={"charset": True})
    if meta_charset is not None:
        html5_charset = meta_charset.get("charset") or ""

    html4_content_type = ""
    for meta in soup.find_all("meta", attrs={"http-equiv": True}):
        if str(meta.get("http-equiv", "")).strip().lower() == "content-type":
            html4_content_type = meta.get("content") or ""
            break

    return [http_content_type, html5_charset, html4_content_type]


def detect_encoding(headers: Mapping[str, str], soup: BeautifulSoup) -> Optional[Encoding]:
    """
    Estimate the document encoding.

    Returns None when no source names a known encoding, or when the sources
    disagree. A missed title is preferred over a garbled one.
    """
    hints = encoding_hints(headers, soup)
    found = [e for e in (match_encoding(h) for h in hints) if e is not None]
    distinct = set(found)

    if len(distinct) == 1:
        return found[0]

    logger.debug("Encoding unknown, hints=%r", hints)
    return None


def require_encoding(headers: Mapping[str, str], soup: BeautifulSoup) -> Encoding:
    """Like detect_encoding, but raise DecodeAmbiguous instead of returning None."""
    encoding = detect_encoding(headers, soup)
    if encoding is None:
        raise DecodeAmbiguous(f"Cannot determine encoding from hints {encoding_hints(headers, soup)!r}")
    return encoding
