"""
Element-count assertions evaluated against fetched HTML documents.
"""
from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from bs4 import BeautifulSoup
from soupsieve import SelectorSyntaxError

from sitecheck.models import ElementAssertion

COMPARATORS: Dict[str, Callable[[int, int], bool]] = {
    "eq": operator.eq,
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
    "ne": operator.ne,
}


@dataclass(frozen=True, slots=True)
class AssertionOutcome:
    passed: bool
    actual: Optional[int]
    message: str


def count_matches(document: BeautifulSoup, selector: str) -> int:
    """Number of elements in `document` matching the CSS `selector`."""
    return len(document.select(selector))


def evaluate(assertion: ElementAssertion, document: BeautifulSoup) -> AssertionOutcome:
    """
    Compare the number of elements matching the assertion's selector with
    its expected count.

    An unknown comparator fails regardless of the count. An invalid selector
    fails the assertion instead of raising.
    """
    selector = assertion.selector.strip()
    comparator = assertion.comparator.strip()

    compare = COMPARATORS.get(comparator)
    if compare is None:
        return AssertionOutcome(False, None, f"Not supported comparator '{comparator}'")

    try:
        actual = count_matches(document, selector)
    except SelectorSyntaxError as e:
        return AssertionOutcome(False, None, f"Selector: '{selector}'. Invalid selector: {e}")

    expected = f"{comparator} {assertion.count}"
    if compare(actual, assertion.count):
        return AssertionOutcome(True, actual, f"Selector: '{selector}'. Expected size '{expected}' confirmed")

    return AssertionOutcome(
        False,
        actual,
        f"Selector: '{selector}'. Expected size '{expected}', received size {actual}",
    )
