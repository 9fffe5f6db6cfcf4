"""Tests for PageFetcher: raw markup on success, empty string on any failure."""

import time
from unittest.mock import MagicMock

import pytest
import requests

from gist.fetcher import DEFAULT_USER_AGENT, PageFetcher


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


class TestFetchPage:
    def test_returns_markup(self, session, http_response):
        session.get.return_value = http_response(200, text="<html>hello</html>")
        fetcher = PageFetcher(session=session)

        assert fetcher.fetch_page("https://site.test/a") == "<html>hello</html>"

    def test_sends_user_agent_and_timeout(self, session, http_response):
        session.get.return_value = http_response(200, text="ok")
        PageFetcher(session=session, timeout=3.5).fetch_page("https://site.test/a")

        args, kwargs = session.get.call_args
        assert args[0] == "https://site.test/a"
        assert kwargs["headers"]["User-Agent"] == DEFAULT_USER_AGENT
        assert "GetAGist" in kwargs["headers"]["User-Agent"]
        assert kwargs["timeout"] == 3.5
        assert kwargs["stream"] is True

    def test_default_timeout_is_bounded(self, session, http_response):
        session.get.return_value = http_response(200, text="ok")
        PageFetcher(session=session).fetch_page("https://site.test/a")
        assert session.get.call_args[1]["timeout"] == 10.0

    def test_server_error_returns_empty(self, session, http_response):
        session.get.return_value = http_response(500, text="oops")
        assert PageFetcher(session=session).fetch_page("https://site.test/a") == ""

    def test_not_found_returns_empty(self, session, http_response):
        session.get.return_value = http_response(404)
        assert PageFetcher(session=session).fetch_page("https://site.test/a") == ""

    def test_transport_error_returns_empty(self, session):
        session.get.side_effect = requests.exceptions.ConnectionError("refused")
        assert PageFetcher(session=session).fetch_page("https://site.test/a") == ""

    def test_timeout_returns_empty(self, session):
        session.get.side_effect = requests.exceptions.Timeout("slow")
        assert PageFetcher(session=session).fetch_page("https://site.test/a") == ""

    def test_decode_error_returns_empty(self, session, http_response):
        session.get.return_value = http_response(200, body=b"<p>\xff\xfe broken</p>")
        assert PageFetcher(session=session).fetch_page("https://site.test/a") == ""

    def test_empty_url_skips_request(self, session):
        assert PageFetcher(session=session).fetch_page("") == ""
        session.get.assert_not_called()

    def test_failure_is_logged(self, session, caplog):
        session.get.side_effect = requests.exceptions.ConnectionError("refused")
        with caplog.at_level("WARNING", logger="gist.fetcher"):
            PageFetcher(session=session).fetch_page("https://site.test/down")
        assert "https://site.test/down" in caplog.text

    def test_response_is_closed(self, session, http_response):
        resp = http_response(200, text="<p>ok</p>")
        session.get.return_value = resp
        PageFetcher(session=session).fetch_page("https://site.test/a")
        resp.__exit__.assert_called_once()


class TestFetchLimits:
    def test_oversized_body_is_capped(self, session, http_response):
        session.get.return_value = http_response(200, text="<p>" + "a" * 50_000 + "</p>")
        fetcher = PageFetcher(session=session, max_bytes=10_000)

        markup = fetcher.fetch_page("https://site.test/big")

        assert len(markup) == 10_000
        assert markup.startswith("<p>aaa")

    @pytest.mark.parametrize("content_type", ["application/pdf", "image/png", "application/octet-stream"])
    def test_non_text_content_type_skipped(self, session, http_response, content_type):
        resp = http_response(200, body=b"%PDF-1.7 binary", content_type=content_type)
        session.get.return_value = resp

        assert PageFetcher(session=session).fetch_page("https://site.test/doc") == ""
        resp.iter_content.assert_not_called()

    @pytest.mark.parametrize("content_type", ["text/html", "application/xhtml+xml; charset=utf-8", "text/plain", None])
    def test_text_content_types_accepted(self, session, http_response, content_type):
        session.get.return_value = http_response(200, text="<p>hi</p>", content_type=content_type)
        assert PageFetcher(session=session).fetch_page("https://site.test/a") == "<p>hi</p>"

    def test_slow_download_gives_up(self, session, http_response):
        resp = http_response(200)

        def drip(chunk_size=1, decode_unicode=False):
            for _ in range(10):
                time.sleep(0.05)
                yield b"x"

        resp.iter_content.side_effect = drip
        session.get.return_value = resp

        started = time.monotonic()
        assert PageFetcher(session=session, timeout=0.1).fetch_page("https://site.test/slow") == ""
        assert time.monotonic() - started < 0.4
