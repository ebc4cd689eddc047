"""
Command-line interface for sitecheck.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from sitecheck.config import (
    TYPE_JSON,
    TYPE_SITEMAP,
    RunSettings,
    config_path,
    load_config,
)
from sitecheck.errors import ConfigError
from sitecheck.probe import DEFAULT_TIMEOUT_S, DEFAULT_USER_AGENT, Probe, build_session
from sitecheck.registry import LinkRegistry
from sitecheck.reporter import CliReporter, print_summary
from sitecheck.scheduler import DEFAULT_WORKERS, CheckScheduler

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CHECKS_FAILED = 1
EXIT_CONFIG_ERROR = 2


def parse_args(argv: Optional[List[str]] = None) -> Tuple[argparse.Namespace, RunSettings]:
    """Parse command-line arguments into the raw namespace and run settings."""
    parser = argparse.ArgumentParser(
        prog="sitecheck",
        description="Check status codes and page structure of a site, and verify its internal links.",
        epilog="Example: sitecheck --config some_site --type sitemapxml --no-verbose",
    )
    parser.add_argument("--config-dir", default="configs", help="Directory holding configs (default: configs)")
    parser.add_argument("--config", default="default", help="Config name, a folder in --config-dir (default: default)")
    parser.add_argument("--filename", default="conf", help="Config file name w/o extension (default: conf)")
    parser.add_argument(
        "--type",
        dest="file_type",
        default=TYPE_JSON,
        choices=[TYPE_JSON, TYPE_SITEMAP],
        help="Config file type (default: json)",
    )
    parser.add_argument(
        "--verbose",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Report successful checks too (default: true)",
    )
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT_S, help="Request timeout in seconds (default: 15)")
    parser.add_argument("--workers", type=int, default=DEFAULT_WORKERS, help="Concurrent requests (default: 16)")
    parser.add_argument("--user-agent", default=DEFAULT_USER_AGENT, help="User-Agent header")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Diagnostic log level on stderr (default: WARNING)",
    )
    args = parser.parse_args(argv)

    if args.workers < 1:
        parser.error("--workers must be at least 1")

    settings = RunSettings(
        verbose=args.verbose,
        timeout=args.timeout,
        max_workers=args.workers,
        user_agent=args.user_agent,
    )
    return args, settings


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the sitecheck CLI."""
    args, settings = parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    path = config_path(Path(args.config_dir), args.config, args.filename, args.file_type)
    try:
        site = load_config(path, args.file_type)
    except ConfigError as e:
        sys.stderr.write(f"/!\\ {e}\n")
        return EXIT_CONFIG_ERROR

    session = build_session(settings.user_agent)
    try:
        scheduler = CheckScheduler(
            probe=Probe(session, timeout_s=settings.timeout),
            reporter=CliReporter(sys.stdout),
            registry=LinkRegistry(site.domain),
            verbose=settings.verbose,
            max_workers=settings.max_workers,
        )
        summary = scheduler.run(site.checks)
    finally:
        session.close()

    if settings.verbose:
        print_summary(summary)
    sys.stderr.write(f"All checks for config '{path}' completed\n")

    return EXIT_CHECKS_FAILED if summary.failed else EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
