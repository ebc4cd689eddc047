"""Shared test fixtures: canned HTTP responses served through `responses`."""

from typing import Callable, List, Optional, Tuple

import pytest
import requests
import responses

from sitecheck.probe import Probe, build_session

DOMAIN = "https://example.com"


class FakeSite:
    """Registers pages for both HEAD and GET and reads back the requests made."""

    def __init__(self, rsps: responses.RequestsMock):
        self.rsps = rsps

    def add(
        self,
        url: str,
        status: int = 200,
        body: str = "",
        on_request: Optional[Callable[[str, str], None]] = None,
    ) -> None:
        for method in (responses.HEAD, responses.GET):
            if on_request is None:
                self.rsps.add(method, url, status=status, body=body, content_type="text/html")
                continue

            def callback(request, status=status, body=body):
                on_request(request.method, request.url)
                return status, {}, body

            self.rsps.add_callback(method, url, callback=callback, content_type="text/html")

    def fail(self, url: str, error: Optional[Exception] = None) -> None:
        for method in (responses.HEAD, responses.GET):
            self.rsps.add(method, url, body=error or requests.ConnectionError("connection refused"))

    @property
    def calls(self) -> List[Tuple[str, str]]:
        return [(call.request.method, call.request.url) for call in self.rsps.calls]

    def requests_for(self, url: str) -> List[str]:
        return [method for method, called in self.calls if called == url]


@pytest.fixture
def mocked_http():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


@pytest.fixture
def site(mocked_http):
    return FakeSite(mocked_http)


@pytest.fixture
def probe():
    session = build_session()
    yield Probe(session, timeout_s=1.0)
    session.close()
