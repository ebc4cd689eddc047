"""
Two-phase concurrent scheduling of configured checks and harvested links.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, FrozenSet, Iterable, List, Optional, Tuple, Union
from urllib.parse import urldefrag

from bs4 import BeautifulSoup

from sitecheck.assertions import evaluate
from sitecheck.errors import BodyReadError, ProbeError
from sitecheck.models import CheckEvent, CheckSpec, EventKind, RunSummary
from sitecheck.probe import HEAD, Probe, choose_method
from sitecheck.registry import LinkEntry, LinkRegistry
from sitecheck.reporter import Reporter

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 16

# Harvested links are only checked for this status
LINK_STATUS_CODE = 200


class WorkTracker:
    """
    Counter of registered but unfinished units of work.

    A unit is added before it is submitted and marked done after it has
    finished, including any follow-up work it registered, so the count only
    reaches zero once nothing is left to run.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._pending = 0

    def add(self, n: int = 1) -> None:
        with self._cond:
            self._pending += n

    def done(self) -> None:
        with self._cond:
            if self._pending <= 0:
                raise RuntimeError("done() called more often than add()")
            self._pending -= 1
            if self._pending == 0:
                self._cond.notify_all()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until no work is pending. Returns False on timeout."""
        with self._cond:
            return self._cond.wait_for(lambda: self._pending == 0, timeout)

    @property
    def pending(self) -> int:
        with self._cond:
            return self._pending


class CheckScheduler:
    """
    Runs configured checks concurrently, then sweeps the internal links they
    discovered, checking each resolved URL at most once.

    A scheduler performs a single run: the link registry is frozen once the
    sweep phase starts.
    """

    def __init__(
        self,
        probe: Probe,
        reporter: Reporter,
        registry: LinkRegistry,
        verbose: bool = False,
        max_workers: int = DEFAULT_WORKERS,
    ) -> None:
        self.probe = probe
        self.reporter = reporter
        self.registry = registry
        self.verbose = verbose
        self.max_workers = max_workers
        self._tracker = WorkTracker()
        self._lock = threading.Lock()
        self._pool: Optional[ThreadPoolExecutor] = None
        self._futures: List[Future] = []
        self._sources: FrozenSet[str] = frozenset()
        self._summary = RunSummary()

    def run(self, checks: Iterable[CheckSpec]) -> RunSummary:
        """
        Run every check with a non-empty URL, then every harvested link.

        Args:
            checks: Configured checks.

        Returns:
            Counts of outcomes, including successes that were not reported.
        """
        if self.registry.frozen:
            raise RuntimeError("Link registry already used by a previous run")

        seeds = [check for check in checks if check.url]
        self._sources = frozenset(urldefrag(check.url)[0] for check in seeds)
        self._summary = RunSummary(seed_checks=len(seeds))

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="sitecheck") as pool:
            self._pool = pool

            logger.info("Dispatching %d configured checks", len(seeds))
            for check in seeds:
                self._submit(self._check_page, check)
            self._tracker.wait()

            self.registry.freeze()
            self._sweep()
            self._tracker.wait()

        self._pool = None

        # Surface reporter errors raised inside workers
        for future in self._futures:
            future.result()
        return self._summary

    def _sweep(self) -> None:
        dispatched = 0
        for entry in self.registry.pending():
            if entry.url in self._sources:
                continue
            if self.registry.mark_dispatched_if_new(entry.url):
                dispatched += 1
                self._submit(self._check_link, entry)

        with self._lock:
            self._summary.link_checks += dispatched
        logger.info("Dispatching %d harvested link checks", dispatched)

    def _submit(self, fn: Callable[..., CheckEvent], item: Union[CheckSpec, LinkEntry]) -> None:
        if self._pool is None:
            raise RuntimeError("Checks can only be submitted while a run is in progress")
        self._tracker.add()
        try:
            self._futures.append(self._pool.submit(self._run_unit, fn, item))
        except BaseException:
            self._tracker.done()
            raise

    def _run_unit(self, fn: Callable[..., CheckEvent], item: Union[CheckSpec, LinkEntry]) -> None:
        try:
            try:
                event = fn(item)
            except Exception as e:
                logger.exception("Unexpected error while checking %s", item.url)
                event = CheckEvent(EventKind.SYSTEM_FAILURE, item.url, message=f"Unexpected error: {e}")
            self._emit(event)
        finally:
            self._tracker.done()

    def _emit(self, event: CheckEvent) -> None:
        with self._lock:
            self._summary.record(event.kind)
        if event.ok and not self.verbose:
            return
        self.reporter.notify(event)

    def _check_page(self, check: CheckSpec) -> CheckEvent:
        method = choose_method(check)
        try:
            result = self.probe.probe(method, check.url, expected_status=check.status_code)
        except ProbeError as e:
            return _system_failure(check.url, check.status_code, e)

        if result.status_code != check.status_code:
            return CheckEvent(
                EventKind.STATUS_MISMATCH,
                check.url,
                expected=check.status_code,
                actual=result.status_code,
            )

        kind = EventKind.SUCCESS
        details = []
        if method != HEAD:
            for assertion in check.assertions:
                outcome = evaluate(assertion, result.document)
                if not outcome.passed:
                    kind = EventKind.ASSERTION_FAILURE
                    details.append(outcome.message)
                elif self.verbose:
                    details.append(outcome.message)

            if check.harvest_links:
                self._harvest(result.document, check.url)

        return CheckEvent(
            kind,
            check.url,
            expected=check.status_code,
            actual=result.status_code,
            details=tuple(details),
        )

    def _harvest(self, document: BeautifulSoup, page_url: str) -> None:
        recorded = 0
        for anchor in document.find_all("a", href=True):
            if self.registry.record(anchor["href"], page_url):
                recorded += 1
        logger.debug("Recorded %d internal links from %s", recorded, page_url)

    def _check_link(self, entry: LinkEntry) -> CheckEvent:
        try:
            result = self.probe.probe(HEAD, entry.url)
        except ProbeError as e:
            return _system_failure(entry.url, LINK_STATUS_CODE, e, referrers=entry.referrers)

        kind = EventKind.SUCCESS if result.status_code == LINK_STATUS_CODE else EventKind.STATUS_MISMATCH
        return CheckEvent(
            kind,
            entry.url,
            expected=LINK_STATUS_CODE,
            actual=result.status_code,
            referrers=entry.referrers if kind is not EventKind.SUCCESS else (),
        )


def _system_failure(
    url: str,
    expected: int,
    error: ProbeError,
    referrers: Tuple[str, ...] = (),
) -> CheckEvent:
    if isinstance(error, BodyReadError):
        message = f"Error reading http-request body: {error.reason}"
    else:
        message = f"Error performing http-request: {error.reason}"
    return CheckEvent(EventKind.SYSTEM_FAILURE, url, expected=expected, message=message, referrers=referrers)
