import socket
from unittest.mock import MagicMock

import requests

from seoaudit.domain.http_response import HttpResponse
from seoaudit.domain.options import EngineOptions
from seoaudit.exceptions import HttpFetchError
from seoaudit.services import protocols
from seoaudit.services.site_crawler import SiteCrawler, client_error_for, extract_links


class FakeHttp:
    def __init__(self, pages):
        self.pages = pages
        self.fetched = []

    def fetch(self, url):
        self.fetched.append(url)
        page = self.pages.get(url, HttpResponse(404, "", "text/html"))
        if isinstance(page, Exception):
            raise HttpFetchError(url, page)
        return page


def _html(*links):
    return HttpResponse(200, "".join(f'<a href="{link}">x</a>' for link in links), "text/html; charset=utf-8")


def _crawler(pages, robots_allowed=True, **options):
    robots = MagicMock()
    robots.allowed_by_robots.return_value = robots_allowed
    crawler = SiteCrawler("http://example.com/", EngineOptions(**options), FakeHttp(pages), robots_service=robots)
    events = []
    for name in protocols.CRAWLER_EVENTS:
        crawler.on(name, lambda *args, name=name: events.append((name, args)))
    return crawler, events


def _names(events):
    return [name for name, _ in events]


def test_max_depth_one_fetches_only_seed():
    crawler, events = _crawler({"http://example.com/": _html("/a")}, max_depth=1)
    crawler.crawl()
    assert _names(events) == [protocols.FETCH_COMPLETE, protocols.COMPLETE]
    assert crawler.http_service.fetched == ["http://example.com/"]


def test_follows_same_host_links_up_to_depth():
    pages = {
        "http://example.com/": _html("/a", "http://other.com/x", "/a#section"),
        "http://example.com/a": _html("/b"),
        "http://example.com/b": _html(),
    }
    crawler, events = _crawler(pages, max_depth=2)
    crawler.crawl()
    completed = [args[0].url for name, args in events if name == protocols.FETCH_COMPLETE]
    assert completed == ["http://example.com/", "http://example.com/a"]
    assert events[-1][0] == protocols.COMPLETE


def test_status_codes_map_to_events():
    pages = {
        "http://example.com/": _html("/missing", "/gone", "/broken"),
        "http://example.com/gone": HttpResponse(410, ""),
        "http://example.com/broken": HttpResponse(500, ""),
    }
    crawler, events = _crawler(pages, max_depth=2)
    crawler.crawl()
    assert _names(events) == [protocols.FETCH_COMPLETE, protocols.FETCH_404, protocols.FETCH_410,
                              protocols.FETCH_ERROR, protocols.COMPLETE]
    assert events[3][1][1].status_code == 500


def test_transport_errors_map_to_timeout_and_client_error():
    pages = {
        "http://example.com/": _html("/slow", "/refused"),
        "http://example.com/slow": requests.exceptions.ReadTimeout("read timed out"),
        "http://example.com/refused": requests.exceptions.ConnectionError("refused"),
    }
    crawler, events = _crawler(pages, max_depth=2)
    crawler.crawl()
    assert _names(events)[1:3] == [protocols.FETCH_TIMEOUT, protocols.FETCH_CLIENT_ERROR]
    assert events[2][1][1].code == "ECONNREFUSED"


def test_robots_disallowed_urls_are_reported_not_fetched():
    crawler, events = _crawler({"http://example.com/": _html()}, robots_allowed=False)
    crawler.crawl()
    assert _names(events) == [protocols.FETCH_DISALLOWED, protocols.COMPLETE]
    assert crawler.http_service.fetched == []


def test_unsupported_content_skipped_unless_enabled():
    pdf = {"http://example.com/": HttpResponse(200, "%PDF", "application/pdf")}
    crawler, events = _crawler(pdf)
    crawler.crawl()
    assert _names(events) == [protocols.COMPLETE]

    crawler, events = _crawler(pdf, download_unsupported=True)
    crawler.crawl()
    assert _names(events) == [protocols.FETCH_COMPLETE, protocols.COMPLETE]


def test_stopped_crawl_does_not_complete():
    crawler, events = _crawler({"http://example.com/": _html()})
    crawler.stop()
    crawler.crawl()
    assert events == []


def test_start_runs_on_background_thread():
    crawler, events = _crawler({"http://example.com/": _html()})
    crawler.start()
    crawler.join(timeout=5)
    assert _names(events) == [protocols.FETCH_COMPLETE, protocols.COMPLETE]


def test_dns_failure_maps_to_enotfound():
    original = requests.exceptions.ConnectionError("connection failed")
    original.__context__ = socket.gaierror(-2, "Name or service not known")
    assert client_error_for(HttpFetchError("http://nowhere.invalid", original)).code == "ENOTFOUND"


def test_dns_failure_detected_from_message():
    original = requests.exceptions.ConnectionError("Failed to resolve 'nowhere.invalid'")
    assert client_error_for(HttpFetchError("http://nowhere.invalid", original)).code == "ENOTFOUND"


def test_extract_links_resolves_and_filters_schemes():
    html = '<a href="/a#top">A</a><a href="mailto:x@example.com">m</a><a href="https://other.com">o</a>'
    assert extract_links("http://example.com/", html) == ["http://example.com/a", "https://other.com"]


def test_extract_links_skips_malformed_hrefs():
    html = '<a href="http://[oops/">bad</a><a href="/ok">ok</a>'
    assert extract_links("http://example.com/", html) == ["http://example.com/ok"]


def test_malformed_link_does_not_abort_crawl():
    pages = {
        "http://example.com/": HttpResponse(200, '<a href="http://[oops/">x</a><a href="/a">a</a>', "text/html"),
        "http://example.com/a": _html(),
    }
    crawler, events = _crawler(pages, max_depth=2)
    crawler.start()
    crawler.join(timeout=5)
    assert _names(events) == [protocols.FETCH_COMPLETE, protocols.FETCH_COMPLETE, protocols.COMPLETE]


def test_unexpected_error_is_reported_as_crawl_failure():
    robots = MagicMock()
    robots.allowed_by_robots.side_effect = RuntimeError("robots parser broke")
    crawler = SiteCrawler("http://example.com/", EngineOptions(), FakeHttp({}), robots_service=robots)
    failures = []
    crawler.on(protocols.CRAWL_FAILED, failures.append)
    crawler.on(protocols.COMPLETE, lambda: failures.append("complete"))
    crawler.start()
    crawler.join(timeout=5)
    assert len(failures) == 1
    assert isinstance(failures[0], RuntimeError)
