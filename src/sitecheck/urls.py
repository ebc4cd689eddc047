"""
Classification and resolution of hrefs found on checked pages.
"""
from __future__ import annotations

from typing import Optional
from urllib.parse import ParseResult, urldefrag, urljoin, urlparse

# Hrefs starting with any of these point off-site or to another protocol
EXTERNAL_PREFIXES: tuple[str, ...] = (
    "http",
    "https",
    "//",
    "mailto:",
    "skype:",
    "tel:",
)


def is_internal(href: str) -> bool:
    """Check whether an href is a crawlable link on the same site."""
    return not href.startswith(EXTERNAL_PREFIXES)


def resolve(domain: str, href: str) -> Optional[str]:
    """
    Resolve an internal href against the site root.

    - Joins the href onto the domain root (not the referring page)
    - Drops fragments (#...)
    - Returns None for anything that does not end up as an http(s) URL
      on the same scheme and host as the domain root
    """
    if not href:
        return None

    root = domain.rstrip("/") + "/"
    joined, _ = urldefrag(urljoin(root, href.strip()))
    parsed = urlparse(joined)
    if parsed.scheme not in ("http", "https"):
        return None
    if not is_same_origin(parsed, urlparse(root)):
        return None

    return parsed.geturl()


def is_same_origin(url: ParseResult, root: ParseResult) -> bool:
    """Check if URL has same scheme and netloc as the domain root."""
    return (url.scheme, url.netloc.lower()) == (root.scheme, root.netloc.lower())


def site_root(protocol: str, domain: str) -> str:
    """Build the domain root used to resolve relative URLs."""
    return f"{protocol}://{domain}".rstrip("/")
