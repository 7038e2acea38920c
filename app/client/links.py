from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

from bs4 import BeautifulSoup

# Organic result anchors; the part most exposed to search page layout changes.
RESULT_LINK_SELECTOR = '.g .yuRUbf a[href^="http"]:not(.fl)'
RESULT_TITLE_SELECTOR = ".LC20lb"

IGNORED_HOSTS = frozenset({"webcache.googleusercontent.com"})


@dataclass
class SearchLink:
    href: str
    label: str
    replaced: Optional[str] = None


def is_valid_link(href: Optional[str]) -> bool:
    if not href:
        return False
    try:
        host = urlsplit(href).hostname
    except ValueError:
        return False
    return host is not None and host not in IGNORED_HOSTS


def select_result_links(html: str) -> list[SearchLink]:
    """Find the search result links whose titles should be resolved."""
    soup = BeautifulSoup(html, "html.parser")
    links = []
    for anchor in soup.select(RESULT_LINK_SELECTOR):
        href = anchor.get("href")
        if not is_valid_link(href):
            continue
        title = anchor.select_one(RESULT_TITLE_SELECTOR)
        label = title.get_text() if title is not None else anchor.get_text()
        links.append(SearchLink(href=href, label=label))
    return links
