"""
HTML helpers for pulling a display title out of fetched markup.
"""

import re
from typing import Optional

from bs4 import BeautifulSoup

_NEWLINE_RUN = re.compile(r"\n+")


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def decode_body(content: bytes, codec: str = "utf-8") -> str:
    """Decode raw bytes, replacing anything the codec cannot map."""
    return content.decode(codec, errors="replace")


def extract_title(soup: BeautifulSoup) -> Optional[str]:
    """Text of the first <title> element, None when missing or empty."""
    title = soup.find("title")
    if title is None:
        return None
    return title.get_text() or None


def embed_text(fragment: str) -> Optional[str]:
    """
    Visible text of an embed fragment with line breaks kept.

    A newline is placed after every <br> and <p> so quoted multi-line
    content does not run together.
    """
    soup = parse_html(fragment)
    for element in soup.find_all(["br", "p"]):
        element.insert_after("\n")
    return soup.get_text() or None


def normalize_title(title: Optional[str]) -> Optional[str]:
    """
    Trim surrounding whitespace and turn newline runs into single spaces.

    Titles are shown on one line, and newlines in <title> are usually just
    source formatting.
    """
    if title is None:
        return None
    return _NEWLINE_RUN.sub(" ", title.strip()) or None
