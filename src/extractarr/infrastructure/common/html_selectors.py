"""CSS-selector-based attribute extraction for embed pages."""

from __future__ import annotations

from bs4 import BeautifulSoup, Tag


def parse_html(html: str) -> BeautifulSoup:
    """Parse an HTML string into a BeautifulSoup tree (``lxml`` parser)."""
    return BeautifulSoup(html, "lxml")


def extract_attr(
    element: BeautifulSoup | Tag,
    selector: str,
    attr: str,
    default: str = "",
) -> str:
    """Read *attr* from the first element matching *selector*.

    Returns *default* when nothing matches or the attribute is empty.
    """
    match = element.select_one(selector)
    if match is None:
        return default
    val = match.get(attr)
    return str(val) if val else default
