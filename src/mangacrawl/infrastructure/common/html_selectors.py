"""CSS-selector-based HTML extraction helpers.

Every extraction function accepts a selector where ``""`` means "the
element itself", and returns a safe default instead of raising when the
selector matches nothing.
"""

from __future__ import annotations

import re
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup, Tag


def parse_html(html: str) -> BeautifulSoup:
    """Parse an HTML string into a BeautifulSoup tree (lxml parser)."""
    return BeautifulSoup(html, "lxml")


def select_one(root: BeautifulSoup | Tag, selector: str) -> Tag | None:
    if selector == "":
        return root if isinstance(root, Tag) else None
    return root.select_one(selector)


def extract_text(
    element: BeautifulSoup | Tag,
    selector: str,
    *,
    default: str = "",
    strip: bool = True,
) -> str:
    """Extract text from the first matching element."""
    match = select_one(element, selector)
    if match is None:
        return default
    text = match.get_text(" ", strip=strip)
    return text if text else default


def extract_attr(
    element: BeautifulSoup | Tag,
    selector: str,
    attr: str,
    *,
    default: str = "",
) -> str:
    """Extract an HTML attribute from the first matching element."""
    match = select_one(element, selector)
    if match is None:
        return default
    val = match.get(attr)
    if isinstance(val, list):
        val = " ".join(val)
    return str(val).strip() if val else default


def extract_all_text(element: BeautifulSoup | Tag, selector: str) -> list[str]:
    """Text of **all** matching elements, empty strings dropped."""
    texts = (m.get_text(" ", strip=True) for m in element.select(selector))
    return [t for t in texts if t]


def extract_pattern(
    element: BeautifulSoup | Tag,
    selector: str,
    pattern: str,
    *,
    default: str = "",
) -> str:
    """Apply *pattern* (one capture group) to the matching element's markup."""
    match = select_one(element, selector)
    if match is None:
        return default
    found = re.search(pattern, str(match))
    return found.group(1) if found else default


def absolute_url(base_url: str, href: str) -> str:
    return urljoin(base_url, href) if href else ""


def relative_path(url: str) -> str:
    """Strip scheme and host, keeping path, query and fragment."""
    parts = urlsplit(url.strip())
    path = parts.path or "/"
    if parts.query:
        path = f"{path}?{parts.query}"
    if parts.fragment:
        path = f"{path}#{parts.fragment}"
    return path
