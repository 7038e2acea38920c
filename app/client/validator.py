"""
Sanity checks before a resolved title replaces a visible link label.

Both rules are heuristics: a "full" title shorter than the truncated label
usually means the fetch went wrong, and a very long one usually means an
unclosed tag swallowed part of the page.
"""

import re
from typing import Optional

from app.core.config import settings

_TRAILING_ELLIPSIS = re.compile(r"(?:\s*(?:\.\.\.|…))+\s*$")


def strip_ellipsis(label: str) -> str:
    """Drop trailing '...' or '…' markers, which inflate a truncated label's length."""
    return _TRAILING_ELLIPSIS.sub("", label).strip()


def accept_title(candidate: Optional[str], current_label: str, max_length: int = settings.MAX_TITLE_LENGTH) -> bool:
    if not candidate:
        return False
    if len(candidate) < len(strip_ellipsis(current_label)):
        return False
    # Length is counted in characters; Japanese and English are not weighted differently.
    if len(candidate) > max_length:
        return False
    return True
