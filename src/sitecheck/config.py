"""
Loading of check configurations (JSON site configs and XML sitemaps).
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List

from lxml import etree

from sitecheck.errors import ConfigError
from sitecheck.models import CheckSpec, ElementAssertion
from sitecheck.probe import DEFAULT_TIMEOUT_S, DEFAULT_USER_AGENT
from sitecheck.scheduler import DEFAULT_WORKERS
from sitecheck.urls import site_root

logger = logging.getLogger(__name__)

TYPE_JSON = "json"
TYPE_SITEMAP = "sitemapxml"

# Sitemap URLs are expected to answer with this status
SITEMAP_STATUS_CODE = 200


@dataclass
class RunSettings:
    """Runtime options for a check run."""

    verbose: bool = True
    timeout: float = DEFAULT_TIMEOUT_S
    max_workers: int = DEFAULT_WORKERS
    user_agent: str = DEFAULT_USER_AGENT


@dataclass
class SiteConfig:
    """Checks loaded from a config file, plus the root used to resolve links."""

    path: Path
    domain: str = ""
    checks: List[CheckSpec] = field(default_factory=list)


def config_path(config_dir: Path, config: str, filename: str, file_type: str) -> Path:
    """
    Build the config file location: <config_dir>/<config>/<filename>.<ext>.

    Sitemaps always use the file name "sitemap" and the "xml" extension.
    """
    if file_type == TYPE_SITEMAP:
        return Path(config_dir) / config / "sitemap.xml"
    return Path(config_dir) / config / f"{filename}.json"


def load_config(path: Path, file_type: str = TYPE_JSON) -> SiteConfig:
    """
    Read and decode a config file.

    Raises:
        ConfigError: The file is missing, unreadable or malformed.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Config file {path} not found")

    try:
        raw = path.read_bytes()
    except OSError as e:
        raise ConfigError(f"Error opening file {path}: {e}") from e

    if file_type == TYPE_JSON:
        site = _parse_json(raw, path)
    elif file_type == TYPE_SITEMAP:
        site = _parse_sitemap(raw, path)
    else:
        raise ConfigError(f"Unsupported config type {file_type!r}")

    logger.info("Loaded %d checks from %s", len(site.checks), path)
    return site


def _parse_json(raw: bytes, path: Path) -> SiteConfig:
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise ConfigError(f"Error decoding json file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Error decoding json file {path}: expected an object at top level")

    if not data.get("domain"):
        raise ConfigError(f"Error decoding json file {path}: \"domain\" is required")
    domain = site_root(str(data.get("protocol") or "https"), str(data["domain"]))
    check_urls = bool(data.get("checkUrls", False))

    checks = []
    for i, entry in enumerate(data.get("urls") or []):
        if not isinstance(entry, dict):
            raise ConfigError(f"Error decoding json file {path}: urls[{i}] is not an object")
        url = entry.get("url") or ""
        if not isinstance(url, str):
            raise ConfigError(f"Error decoding json file {path}: urls[{i}].url must be a string")
        checks.append(CheckSpec(
            url=domain + url if url else "",
            status_code=_as_int(entry.get("statusCode", 200), path, f"urls[{i}].statusCode"),
            assertions=tuple(
                _parse_element(element, path, f"urls[{i}].findElements[{j}]")
                for j, element in enumerate(entry.get("findElements") or [])
            ),
            harvest_links=check_urls and not entry.get("skipUrlsCheck", False),
        ))

    return SiteConfig(path=path, domain=domain, checks=checks)


def _parse_element(element: Any, path: Path, where: str) -> ElementAssertion:
    if not isinstance(element, dict):
        raise ConfigError(f"Error decoding json file {path}: {where} is not an object")
    return ElementAssertion(
        selector=str(element.get("def", "")),
        comparator=str(element.get("countType", "")),
        count=_as_int(element.get("count", 0), path, f"{where}.count"),
    )


def _as_int(value: Any, path: Path, where: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"Error decoding json file {path}: {where} must be an integer")
    return value


def _parse_sitemap(raw: bytes, path: Path) -> SiteConfig:
    try:
        root = etree.fromstring(raw)
    except etree.XMLSyntaxError as e:
        raise ConfigError(f"Error decoding xml file {path}: {e}") from e

    if etree.QName(root).localname != "urlset":
        raise ConfigError(f"Error decoding xml file {path}: root element must be <urlset>")

    checks = []
    for loc in root.iterfind("{*}url/{*}loc"):
        url = (loc.text or "").strip()
        checks.append(CheckSpec(url=url, status_code=SITEMAP_STATUS_CODE))

    return SiteConfig(path=path, checks=checks)

