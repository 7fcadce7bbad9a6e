from concurrent.futures import CancelledError
from unittest.mock import MagicMock

import pytest

from seoaudit.domain.check_result import CheckResult
from seoaudit.domain.crawl_payloads import ClientError, QueueItem
from seoaudit.domain.crawl_state import CrawlState
from seoaudit.domain.http_response import HttpResponse
from seoaudit.engine import AuditEngine
from seoaudit.exceptions import (
    CrawlAlreadyRunningError,
    CrawlFailedError,
    HttpFetchError,
    MissingSeedUrlError,
    ReportError,
    SiteNotFoundError,
)
from seoaudit.services import protocols
from seoaudit.services.site_crawler import SiteCrawler


class FakeCrawler:
    """Crawler stand-in; tests drive it by emitting events directly."""

    def __init__(self, site_url, options):
        self.site_url = site_url
        self.options = options
        self.handlers = {}
        self.started = False
        self.stopped = False

    def on(self, event, handler):
        self.handlers.setdefault(event, []).append(handler)

    def start(self):
        self.started = True

    def stop(self):
        self.stopped = True

    def emit(self, event, *args):
        for handler in self.handlers.get(event, []):
            handler(*args)


class CrawlerFactory:
    def __init__(self):
        self.crawlers = []

    def __call__(self, site_url, options):
        crawler = FakeCrawler(site_url, options)
        self.crawlers.append(crawler)
        return crawler


def _probe(exists):
    probe = MagicMock()
    probe.exists.return_value = exists
    return probe


def _tls(endpoints):
    service = MagicMock()
    service.scan.return_value = {"endpoints": endpoints}
    return service


@pytest.fixture
def factory():
    return CrawlerFactory()


@pytest.fixture
def engine(factory):
    http = MagicMock()
    http.fetch.side_effect = lambda url: HttpResponse(200, f"<html><title>{url}</title></html>")
    return AuditEngine(
        "example.com",
        {"maxDepth": 2},
        crawler_factory=factory,
        http_service=http,
        existence_probe=_probe(False),
        tls_service=_tls([{"grade": "A"}, {}, {"grade": "B"}]),
    )


def _record(engine):
    seen = {"add": [], "ignore": [], "error": [], "done": []}
    engine.on("add", lambda url: seen["add"].append(url))
    engine.on("ignore", lambda url, reason: seen["ignore"].append(url))
    engine.on("error", lambda ev: seen["error"].append(ev))
    engine.on("done", lambda report: seen["done"].append(report))
    return seen


@pytest.mark.parametrize("seed", ["", None])
def test_missing_seed_url_is_fatal(seed):
    with pytest.raises(MissingSeedUrlError):
        AuditEngine(seed)


def test_construction_normalizes_seed_and_resolves_options(engine):
    assert engine.site_url == "http://example.com/"
    assert engine.options.max_depth == 2
    assert engine.options.max_concurrency == 5
    assert engine.state is CrawlState.IDLE


def test_full_crawl_run_emits_done_with_report(engine, factory):
    seen = _record(engine)
    future = engine.start()
    crawler = factory.crawlers[0]
    assert crawler.started
    assert crawler.site_url == "http://example.com/"
    assert engine.state is CrawlState.CRAWLING

    crawler.emit(protocols.FETCH_COMPLETE, QueueItem("http://example.com/"), b"<html><title>Home</title></html>", None)
    crawler.emit(protocols.FETCH_COMPLETE, QueueItem("http://example.com/private"),
                 '<meta name="robots" content="noindex">', None)
    crawler.emit(protocols.FETCH_404, QueueItem("http://example.com/missing"))
    crawler.emit(protocols.COMPLETE)

    report = future.result(timeout=5)
    assert seen["add"] == ["http://example.com/"]
    assert seen["ignore"] == ["http://example.com/private"]
    assert [e.code for e in seen["error"]] == [404]
    assert seen["done"] == [report]
    assert report["issues"]["notices"]["sitemap"].value is False
    assert report["issues"]["notices"]["sitemap"].summary == "Sitemap.xml not found"
    assert report["issues"]["notices"]["robots"].summary == "Robots.txt not found"
    assert report["issues"]["warnings"]["ssl"].grades == ["A", "B"]
    assert [p["url"] for p in report["pages"]] == ["http://example.com/"]
    assert engine.state is CrawlState.IDLE


def test_start_while_crawling_is_rejected(engine, factory):
    engine.start()
    crawler = factory.crawlers[0]
    crawler.emit(protocols.FETCH_COMPLETE, QueueItem("http://example.com/"), "<html></html>", None)
    with pytest.raises(CrawlAlreadyRunningError):
        engine.start()
    assert len(factory.crawlers) == 1
    assert len(engine.pages) == 1


def test_stop_while_idle_is_silent(engine, factory):
    seen = _record(engine)
    engine.stop()
    assert seen == {"add": [], "ignore": [], "error": [], "done": []}
    assert factory.crawlers == []


def test_stop_cancels_run_and_blocks_late_events(engine, factory):
    seen = _record(engine)
    future = engine.start()
    crawler = factory.crawlers[0]
    engine.stop()
    assert crawler.stopped
    assert engine.state is CrawlState.IDLE
    assert future.cancelled()
    with pytest.raises(CancelledError):
        future.result()

    crawler.emit(protocols.FETCH_COMPLETE, QueueItem("http://example.com/late"), "<html></html>", None)
    crawler.emit(protocols.COMPLETE)
    assert seen["add"] == []
    assert seen["done"] == []
    assert engine.pages == ()


def test_new_run_discards_previous_pages(engine, factory):
    engine.start()
    factory.crawlers[0].emit(protocols.FETCH_COMPLETE, QueueItem("http://example.com/a"), "<html></html>", None)
    factory.crawlers[0].emit(protocols.COMPLETE)
    assert [p.url for p in engine.pages] == ["http://example.com/a"]

    engine.start()
    assert engine.pages == ()
    assert len(factory.crawlers) == 2


def test_unresolvable_host_fails_the_run(engine, factory):
    seen = _record(engine)
    future = engine.start()
    crawler = factory.crawlers[0]
    crawler.emit(protocols.FETCH_CLIENT_ERROR, QueueItem("http://example.com/"),
                 ClientError("ENOTFOUND", "getaddrinfo ENOTFOUND example.com"))
    with pytest.raises(SiteNotFoundError):
        future.result(timeout=5)
    assert crawler.stopped
    assert engine.state is CrawlState.IDLE
    assert seen["error"] == []
    assert seen["done"] == []


def test_report_failure_rejects_run_and_emits_error(factory):
    analyzer = MagicMock()
    analyzer.analyze_pages.return_value = {"issues": {}}
    engine = AuditEngine("https://example.com", crawler_factory=factory, http_service=MagicMock(),
                         analyzer=analyzer, existence_probe=_probe(True), tls_service=_tls([]))
    seen = _record(engine)
    future = engine.start()
    factory.crawlers[0].emit(protocols.COMPLETE)
    with pytest.raises(ReportError):
        future.result(timeout=5)
    assert [e.code for e in seen["error"]] == [500]
    assert engine.state is CrawlState.IDLE


def test_load_fetches_page_body(engine):
    assert engine.load("example.com/Page") == "<html><title>http://example.com/Page</title></html>"


def test_load_returns_empty_string_after_failures():
    http = MagicMock()
    http.fetch.side_effect = HttpFetchError("http://example.com", ConnectionError("down"))
    engine = AuditEngine("example.com", http_service=http, existence_probe=_probe(False), tls_service=_tls([]))
    assert engine.load("http://example.com") == ""
    assert http.fetch.call_count == 4


def test_analyze_manual_and_fetched_match(engine):
    urls = ["http://example.com/a", "http://example.com/b"]
    bodies = [f"<html><title>{u}</title></html>" for u in urls]
    manual = engine.analyze(urls, bodies)
    fetched = engine.analyze(urls)
    assert manual.keys() == fetched.keys()
    assert manual["issues"].keys() == fetched["issues"].keys()
    assert manual["pages"] == fetched["pages"]
    assert isinstance(fetched["issues"]["warnings"]["ssl"], CheckResult)


def test_analyze_without_tls_grades(factory):
    engine = AuditEngine("https://example.com", crawler_factory=factory, http_service=MagicMock(),
                         existence_probe=_probe(True), tls_service=_tls([{}]))
    report = engine.analyze(["https://example.com/"], ["<html></html>"])
    assert report["issues"]["warnings"]["ssl"].summary == "No SSL certificate detected"
    assert report["issues"]["notices"]["robots"].value is True


def test_unknown_event_name_rejected(engine):
    with pytest.raises(ValueError):
        engine.on("finished", lambda report: None)


def test_context_manager_closes_engine(factory):
    with AuditEngine("example.com", crawler_factory=factory, http_service=MagicMock(),
                     existence_probe=_probe(True), tls_service=_tls([])) as engine:
        engine.start()
    assert factory.crawlers[0].stopped
    assert engine.state is CrawlState.IDLE


def _site_crawler_engine(pages, robots):
    http = MagicMock()
    http.fetch.side_effect = lambda url: pages.get(url, HttpResponse(404, "", "text/html"))

    def crawler_factory(site_url, options):
        return SiteCrawler(site_url, options, http, robots_service=robots)

    return AuditEngine("example.com", {"maxDepth": 2}, crawler_factory=crawler_factory, http_service=http,
                       existence_probe=_probe(True), tls_service=_tls([{"grade": "A"}]))


def test_malformed_link_still_finishes_the_run():
    robots = MagicMock()
    robots.allowed_by_robots.return_value = True
    pages = {
        "http://example.com/": HttpResponse(200, '<title>Home</title><a href="http://[oops/">x</a><a href="/a">a</a>'),
        "http://example.com/a": HttpResponse(200, "<title>A</title>"),
    }
    engine = _site_crawler_engine(pages, robots)
    seen = _record(engine)
    report = engine.start().result(timeout=5)
    assert seen["add"] == ["http://example.com/", "http://example.com/a"]
    assert seen["done"] == [report]
    assert engine.state is CrawlState.IDLE


def test_crawler_crash_rejects_the_run():
    robots = MagicMock()
    robots.allowed_by_robots.side_effect = RuntimeError("robots parser broke")
    engine = _site_crawler_engine({}, robots)
    seen = _record(engine)
    future = engine.start()
    with pytest.raises(CrawlFailedError) as excinfo:
        future.result(timeout=5)
    assert isinstance(excinfo.value.original, RuntimeError)
    assert engine.state is CrawlState.IDLE
    assert seen["done"] == []
