"""Unit tests for the HTTP probe."""

from unittest.mock import MagicMock, PropertyMock, patch

import pytest
import requests

from sitecheck.errors import BodyReadError, ProbeError
from sitecheck.models import CheckSpec, ElementAssertion
from sitecheck.probe import GET, HEAD, Probe, build_session, choose_method

from conftest import DOMAIN


def broken_body(error=None):
    """Make every response body raise when read."""
    return patch.object(
        requests.Response,
        "content",
        new_callable=PropertyMock,
        side_effect=error or requests.exceptions.ChunkedEncodingError("truncated"),
    )


@pytest.mark.unit
class TestChooseMethod:
    def test_plain_status_check_uses_head(self):
        assert choose_method(CheckSpec(url=f"{DOMAIN}/")) == HEAD

    def test_assertions_need_body(self):
        check = CheckSpec(url=f"{DOMAIN}/", assertions=(ElementAssertion("h1", "eq", 1),))
        assert choose_method(check) == GET

    def test_harvesting_needs_body(self):
        assert choose_method(CheckSpec(url=f"{DOMAIN}/", harvest_links=True)) == GET


@pytest.mark.unit
class TestProbe:
    def test_head_returns_status_without_document(self, probe, site):
        site.add(f"{DOMAIN}/", 301)
        result = probe.probe(HEAD, f"{DOMAIN}/")

        assert result.status_code == 301
        assert result.method == HEAD
        assert result.document is None
        assert site.calls == [("HEAD", f"{DOMAIN}/")]

    def test_get_parses_document(self, probe, site):
        site.add(f"{DOMAIN}/", 200, "<html><body><h1>Hi</h1></body></html>")
        result = probe.probe(GET, f"{DOMAIN}/")

        assert result.status_code == 200
        assert result.document.h1.get_text() == "Hi"

    def test_headers_are_case_insensitive(self, probe, site):
        site.add(f"{DOMAIN}/", 200)
        result = probe.probe(HEAD, f"{DOMAIN}/")

        assert result.headers["content-type"] == "text/html"
        assert result.headers["CONTENT-TYPE"] == "text/html"

    def test_get_parses_document_without_expected_status(self, probe, site):
        site.add(f"{DOMAIN}/missing", 404, "<p>gone</p>")
        result = probe.probe(GET, f"{DOMAIN}/missing")
        assert result.status_code == 404
        assert result.document is not None

    def test_body_not_read_when_status_differs(self, probe, site):
        site.add(f"{DOMAIN}/missing", 404, "<p>gone</p>")
        with broken_body():
            result = probe.probe(GET, f"{DOMAIN}/missing", expected_status=200)

        assert result.status_code == 404
        assert result.document is None

    def test_network_failure(self, probe, site):
        site.fail(f"{DOMAIN}/")
        with pytest.raises(ProbeError) as exc_info:
            probe.probe(HEAD, f"{DOMAIN}/")

        assert not isinstance(exc_info.value, BodyReadError)
        assert exc_info.value.url == f"{DOMAIN}/"
        assert "connection refused" in exc_info.value.reason

    def test_unregistered_url_is_network_failure(self, probe, mocked_http):
        with pytest.raises(ProbeError):
            probe.probe(GET, f"{DOMAIN}/nowhere")

    def test_body_read_failure(self, probe, site):
        site.add(f"{DOMAIN}/", 200, "<p>x</p>")
        with broken_body(), pytest.raises(BodyReadError) as exc_info:
            probe.probe(GET, f"{DOMAIN}/", expected_status=200)

        assert "error reading body" in exc_info.value.reason

    def test_request_options(self):
        fake = MagicMock()
        fake.request.return_value.status_code = 200
        fake.request.return_value.headers = {}
        Probe(fake, timeout_s=2.5).probe(HEAD, f"{DOMAIN}/")

        fake.request.assert_called_once_with(
            HEAD, f"{DOMAIN}/", timeout=2.5, allow_redirects=True, stream=False
        )
        fake.request.return_value.close.assert_called_once_with()


def test_build_session_sets_user_agent():
    s = build_session("checker/2.0")
    try:
        assert s.headers["User-Agent"] == "checker/2.0"
    finally:
        s.close()
