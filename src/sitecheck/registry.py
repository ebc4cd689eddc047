"""
Concurrent-safe registry of links discovered on checked pages.
"""
from __future__ import annotations

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Set, Tuple

from sitecheck.errors import RegistryFrozenError
from sitecheck.urls import is_internal, resolve

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LinkEntry:
    """A discovered link awaiting its follow-up check."""
    url: str
    hrefs: Tuple[str, ...]
    referrers: Tuple[str, ...]


class LinkRegistry:
    """
    Tracks internal hrefs, the pages that reference them, and which resolved
    URLs have already been dispatched as checks.

    Hrefs are stored as found; dispatch decisions use the resolved absolute
    URL, so several spellings of one page are checked once.
    """

    def __init__(self, domain: str) -> None:
        self.domain = domain
        self._lock = threading.Lock()
        self._referrers: Dict[str, Set[str]] = defaultdict(set)
        self._resolved: Dict[str, str] = {}
        self._dispatched: Set[str] = set()
        self._frozen = False

    def record(self, href: str, referrer: str) -> bool:
        """
        Register an href found on the page at `referrer`.

        Returns True if the href is internal and was stored (or was already
        known), False if it was ignored.
        """
        href = href.strip() if href else ""
        if not href or not is_internal(href):
            return False

        url = resolve(self.domain, href)
        if url is None:
            return False

        with self._lock:
            if self._frozen:
                raise RegistryFrozenError(f"Cannot record {href!r}: registry is frozen")
            self._referrers[href].add(referrer)
            self._resolved[href] = url
        return True

    def mark_dispatched_if_new(self, url: str) -> bool:
        """Atomically claim `url` for dispatch. Only the first caller gets True."""
        with self._lock:
            if url in self._dispatched:
                return False
            self._dispatched.add(url)
            return True

    def pending(self) -> List[LinkEntry]:
        """Snapshot of registered links whose resolved URL is not dispatched yet."""
        with self._lock:
            grouped: Dict[str, Tuple[Set[str], Set[str]]] = {}
            for href, url in self._resolved.items():
                if url in self._dispatched:
                    continue
                hrefs, referrers = grouped.setdefault(url, (set(), set()))
                hrefs.add(href)
                referrers.update(self._referrers[href])

        return [
            LinkEntry(url=url, hrefs=tuple(sorted(hrefs)), referrers=tuple(sorted(referrers)))
            for url, (hrefs, referrers) in sorted(grouped.items())
        ]

    def referrers(self, url: str) -> Tuple[str, ...]:
        """Pages that link to the resolved `url`."""
        with self._lock:
            found: Set[str] = set()
            for href, resolved in self._resolved.items():
                if resolved == url:
                    found.update(self._referrers[href])
        return tuple(sorted(found))

    def freeze(self) -> None:
        """Refuse further `record` calls."""
        with self._lock:
            self._frozen = True
        logger.debug("Link registry frozen with %d hrefs", len(self))

    @property
    def frozen(self) -> bool:
        with self._lock:
            return self._frozen

    def __len__(self) -> int:
        with self._lock:
            return len(self._resolved)
