"""
Site checker that verifies status codes and element counts for configured
pages, then checks every internal link found on them exactly once.
"""
from sitecheck.models import CheckEvent, CheckSpec, ElementAssertion, EventKind, RunSummary
from sitecheck.probe import Probe
from sitecheck.registry import LinkRegistry
from sitecheck.scheduler import CheckScheduler

__version__ = "1.0.0"
__all__ = [
    "CheckEvent",
    "CheckScheduler",
    "CheckSpec",
    "ElementAssertion",
    "EventKind",
    "LinkRegistry",
    "Probe",
    "RunSummary",
]
