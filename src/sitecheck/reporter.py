"""
Presentation of check results.
"""
from __future__ import annotations

import sys
import threading
from datetime import datetime, timezone
from typing import List, Optional, Protocol, TextIO

from sitecheck.models import CheckEvent, EventKind, RunSummary

SEPARATOR = "-" * 27


class Reporter(Protocol):
    def notify(self, event: CheckEvent) -> None:
        ...


def utc_now_iso() -> str:
    """Return current UTC time in ISO format."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def format_event(event: CheckEvent) -> str:
    """Render an event as human-readable text."""
    if event.kind is EventKind.SUCCESS:
        head = f"Success. Requesting {event.url}, expected status code {event.expected} confirmed"
    elif event.kind is EventKind.STATUS_MISMATCH:
        head = (
            f"/!\\ Fail. Requesting {event.url}, expected status code {event.expected}, "
            f"got {event.actual}"
        )
    elif event.kind is EventKind.ASSERTION_FAILURE:
        head = f"/!\\ Fail. Requesting {event.url}, element assertions failed"
    else:
        head = f"/!\\ SYSTEMFAIL. {event.message or 'Error performing http-request'} ({event.url})"

    lines = [head]
    lines.extend(f"  {detail}" for detail in event.details)
    if event.referrers:
        lines.append("  Linked from: " + ", ".join(event.referrers))
    return "\n".join(lines)


class CliReporter:
    """Writes each event framed by separator lines."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self.stream = stream if stream is not None else sys.stdout
        self._lock = threading.Lock()

    def notify(self, event: CheckEvent) -> None:
        text = f"{SEPARATOR}\n{utc_now_iso()} {format_event(event)}\n{SEPARATOR}\n\n"
        with self._lock:
            self.stream.write(text)
            self.stream.flush()


class CollectingReporter:
    """Keeps events in memory, for embedding and tests."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: List[CheckEvent] = []

    def notify(self, event: CheckEvent) -> None:
        with self._lock:
            self._events.append(event)

    @property
    def events(self) -> List[CheckEvent]:
        with self._lock:
            return list(self._events)


def print_summary(summary: RunSummary, stream: Optional[TextIO] = None) -> None:
    """Print run summary to stderr."""
    out = stream if stream is not None else sys.stderr
    out.write("=" * 50 + "\n")
    out.write("CHECK SUMMARY\n")
    out.write("=" * 50 + "\n\n")

    out.write(f"Configured checks:      {summary.seed_checks}\n")
    out.write(f"Harvested link checks:  {summary.link_checks}\n")
    out.write(f"Passed:                 {summary.counts[EventKind.SUCCESS]}\n")

    failures = {kind: n for kind, n in summary.counts.items() if kind is not EventKind.SUCCESS and n}
    if failures:
        out.write("Failures by type:\n")
        for kind, n in sorted(failures.items(), key=lambda item: item[0].value):
            out.write(f"  {kind.value.replace('_', ' ')}: {n}\n")
    else:
        out.write("No failures.\n")

    out.write("\n")
