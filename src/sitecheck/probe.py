"""
Single HTTP requests against checked URLs.
"""
from __future__ import annotations

import logging
from typing import Optional

import requests
from bs4 import BeautifulSoup, ParserRejectedMarkup

from sitecheck.errors import BodyReadError, ProbeError
from sitecheck.models import CheckSpec, ProbeResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 15.0
DEFAULT_USER_AGENT = "sitecheck/1.0"

HEAD = "HEAD"
GET = "GET"


def choose_method(check: CheckSpec) -> str:
    """GET only when the body is needed for assertions or link harvesting."""
    if check.assertions or check.harvest_links:
        return GET
    return HEAD


def build_session(user_agent: str = DEFAULT_USER_AGENT) -> requests.Session:
    """Create the HTTP session shared by all workers."""
    session = requests.Session()
    session.headers["User-Agent"] = user_agent
    return session


class Probe:
    """Issues HEAD/GET requests and parses HTML bodies."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        self.session = session if session is not None else build_session()
        self.timeout_s = timeout_s

    def probe(self, method: str, url: str, expected_status: Optional[int] = None) -> ProbeResult:
        """
        Request `url` with `method`.

        Args:
            method: "HEAD" or "GET".
            url: Absolute URL to request.
            expected_status: When given, a GET body is only read if the
                response carries this status.

        Returns:
            ProbeResult with the parsed document for GET requests whose
            status matched.

        Raises:
            ProbeError: The request failed at the network level.
            BodyReadError: A GET response body could not be read or parsed.
        """
        logger.debug("%s %s", method, url)
        try:
            resp = self.session.request(
                method,
                url,
                timeout=self.timeout_s,
                allow_redirects=True,
                stream=method == GET,
            )
        except requests.RequestException as e:
            raise ProbeError(url, str(e)) from e

        try:
            document = None
            if method == GET and expected_status in (None, resp.status_code):
                document = self._parse_body(resp, url)
        finally:
            resp.close()

        return ProbeResult(
            url=url,
            method=method,
            status_code=resp.status_code,
            headers=resp.headers,
            document=document,
        )

    @staticmethod
    def _parse_body(resp: requests.Response, url: str) -> BeautifulSoup:
        try:
            body = resp.content
        except requests.RequestException as e:
            raise BodyReadError(url, f"error reading body: {e}") from e

        try:
            return BeautifulSoup(body, "lxml")
        except ParserRejectedMarkup as e:
            raise BodyReadError(url, f"error parsing body: {e}") from e
