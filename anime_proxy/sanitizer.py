"""Markup stripping for upstream and translated text."""
from __future__ import annotations

from bs4 import BeautifulSoup


def strip_markup(text: str | None) -> str:
    """Remove every tag and attribute, decode entities and trim.

    Malformed markup is cleaned as far as the parser gets; nothing is rejected.
    """
    if not text:
        return ""
    soup = BeautifulSoup(text, "html.parser")
    return soup.get_text().strip()
