"""
Data structures shared by the checker components.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Tuple


class EventKind(str, Enum):
    SUCCESS = "success"
    ASSERTION_FAILURE = "assertion_failure"
    STATUS_MISMATCH = "status_mismatch"
    SYSTEM_FAILURE = "system_failure"


@dataclass(frozen=True, slots=True)
class ElementAssertion:
    """Expected number of elements matching a CSS selector."""
    selector: str
    comparator: str
    count: int


@dataclass(frozen=True, slots=True)
class CheckSpec:
    """One configured HTTP check."""
    url: str
    status_code: int = 200
    assertions: Tuple[ElementAssertion, ...] = ()
    harvest_links: bool = False


@dataclass(frozen=True, slots=True)
class ProbeResult:
    """Outcome of a single HTTP request."""
    url: str
    method: str
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    document: Optional[Any] = None


@dataclass(frozen=True, slots=True)
class CheckEvent:
    """Terminal result of one check, handed to a reporter."""
    kind: EventKind
    url: str
    expected: Optional[int] = None
    actual: Optional[int] = None
    message: str = ""
    details: Tuple[str, ...] = ()
    referrers: Tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.kind is EventKind.SUCCESS


@dataclass(slots=True)
class RunSummary:
    """Counts collected during a run for summary output."""
    seed_checks: int = 0
    link_checks: int = 0
    counts: Counter = field(default_factory=Counter)

    def record(self, kind: EventKind) -> None:
        self.counts[kind] += 1

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    @property
    def failed(self) -> bool:
        return any(n for kind, n in self.counts.items() if kind is not EventKind.SUCCESS)
