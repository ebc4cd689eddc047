"""
Exception hierarchy for sitecheck.
"""
from __future__ import annotations


class SiteCheckError(Exception):
    """Base class for all sitecheck errors."""


class ConfigError(SiteCheckError):
    """Configuration could not be located, read or decoded. Fatal for the run."""


class ProbeError(SiteCheckError):
    """HTTP request failed before a response was received."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class BodyReadError(ProbeError):
    """Response arrived but its body could not be read or parsed."""


class RegistryFrozenError(SiteCheckError):
    """A link was recorded after the registry was closed for the sweep."""
