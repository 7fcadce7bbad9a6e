import logging
import threading
import uuid
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple, Union

import requests

from seoaudit.domain.crawl_state import CrawlState
from seoaudit.domain.error_event import ErrorEvent
from seoaudit.domain.options import EngineOptions
from seoaudit.domain.outcome import Outcome
from seoaudit.domain.page_record import PageRecord
from seoaudit.domain.page_store import PageStore
from seoaudit.exceptions import CrawlAlreadyRunningError, MissingSeedUrlError, ReportError
from seoaudit.services import event_bus
from seoaudit.services.checkers import RobotsChecker, SitemapChecker, TlsChecker
from seoaudit.services.crawl_event_router import CrawlEventRouter
from seoaudit.services.error_policy import ErrorPolicy
from seoaudit.services.existence_probe import UrlExistenceProbe
from seoaudit.services.http_service import HttpService
from seoaudit.services.page_analyzer import BasicPageAnalyzer
from seoaudit.services.page_fetcher import PageFetcher
from seoaudit.services.report_aggregator import ReportAggregator
from seoaudit.services.retry_policy import RetryPolicy
from seoaudit.services.site_crawler import make_site_crawler
from seoaudit.services.tls_grading import SslLabsClient
from seoaudit.utils.url_utils import normalize_url

logger = logging.getLogger(__name__)


@dataclass
class CrawlRun:
    """Everything owned by one crawl run, from start() to its terminal event."""
    crawler: Any
    store: PageStore
    future: Future
    stop_event: threading.Event = field(default_factory=threading.Event)
    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    router: Optional[CrawlEventRouter] = None


class AuditEngine:
    """Crawls one site and reports SEO findings together with sitemap, robots.txt and TLS checks.

    Lifecycle: IDLE -> CRAWLING on start(); CRAWLING -> IDLE on stop() or on a
    fatal crawl error; CRAWLING -> COMPLETING when the crawler finishes, then
    back to IDLE once the report has been emitted. Only one run may be active.

    Events (`on`/`off`): ``add`` (url), ``ignore`` (url, reason),
    ``error`` (ErrorEvent) and ``done`` (report).
    """

    def __init__(
        self,
        seed_url: str,
        options: Union[EngineOptions, Mapping[str, Any], None] = None,
        *,
        crawler_factory: Optional[Callable] = None,
        http_service: Optional[HttpService] = None,
        page_fetcher: Optional[PageFetcher] = None,
        analyzer=None,
        existence_probe=None,
        tls_service=None,
        retry_policy: Optional[RetryPolicy] = None,
        error_policy: Optional[ErrorPolicy] = None,
    ):
        if not seed_url:
            raise MissingSeedUrlError()

        self.options = EngineOptions.resolve(options)
        self.site_url = normalize_url(seed_url)
        self.error_policy = error_policy or ErrorPolicy()
        self.http_service = http_service or HttpService(
            self.options.user_agent,
            http_client=requests.request,
            timeout=self.options.timeout_seconds,
        )
        self.page_fetcher = page_fetcher or PageFetcher(
            self.http_service,
            retry_policy=retry_policy,
            lowercase_urls=self.options.lowercase_urls,
        )
        probe = existence_probe or UrlExistenceProbe(self.http_service)
        tls_service = tls_service or SslLabsClient(
            poll_interval=self.options.tls_poll_interval,
            max_wait=self.options.tls_scan_timeout,
            request_timeout=self.options.timeout_seconds,
        )
        self.aggregator = ReportAggregator(
            page_fetcher=self.page_fetcher,
            analyzer=analyzer or BasicPageAnalyzer(),
            sitemap_checker=SitemapChecker(probe, self.site_url),
            robots_checker=RobotsChecker(probe, self.site_url),
            tls_checker=TlsChecker(tls_service, self.site_url),
            max_concurrency=self.options.max_concurrency,
            error_policy=self.error_policy,
        )
        self.crawler_factory = crawler_factory or make_site_crawler(self.http_service)
        self.events = event_bus.EventBus()

        self._lock = threading.Lock()
        self._state = CrawlState.IDLE
        self._run: Optional[CrawlRun] = None
        self._store = PageStore()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def state(self) -> CrawlState:
        return self._state

    @property
    def pages(self) -> Tuple[PageRecord, ...]:
        """Pages accepted so far by the current (or last) crawl run."""
        return self._store.snapshot()

    def on(self, event: str, handler: Callable) -> None:
        self.events.on(event, handler)

    def off(self, event: str, handler: Optional[Callable] = None) -> None:
        self.events.off(event, handler)

    def start(self) -> Future:
        """Start a crawl run and return a future resolving with its report.

        The future raises `SiteNotFoundError` when the host cannot be resolved,
        `CrawlFailedError` when the crawler dies before completing and
        `ReportError` when the report cannot be built. `stop()` cancels it.
        """
        with self._lock:
            if self._state is not CrawlState.IDLE:
                raise CrawlAlreadyRunningError(self._state.value)
            run = CrawlRun(crawler=self.crawler_factory(self.site_url, self.options),
                           store=PageStore(), future=Future())
            run.router = CrawlEventRouter(
                self.events,
                run.store,
                on_complete=lambda: self._complete(run),
                on_fatal=lambda exc: self._fail(run, exc),
                site_url=self.site_url,
                error_policy=self.error_policy,
            )
            run.router.attach(run.crawler)
            self._run = run
            self._store = run.store
            self._state = CrawlState.CRAWLING

        logger.info("Starting crawl %s of %s", run.run_id, self.site_url)
        try:
            run.crawler.start()
        except Exception:
            logger.exception("Crawler failed to start for %s", self.site_url)
            with self._lock:
                if self._run is run:
                    self._state = CrawlState.IDLE
            run.router.close()
            raise
        return run.future

    def stop(self) -> None:
        with self._lock:
            if self._state is not CrawlState.CRAWLING:
                logger.debug("stop() ignored while %s", self._state.value)
                return
            run = self._run
            self._state = CrawlState.IDLE

        logger.info("Stopping crawl %s of %s", run.run_id, self.site_url)
        run.router.close()
        run.stop_event.set()
        run.crawler.stop()
        run.future.cancel()

    def _complete(self, run: CrawlRun) -> None:
        with self._lock:
            if self._run is not run or self._state is not CrawlState.CRAWLING:
                return
            self._state = CrawlState.COMPLETING

        urls, bodies = run.store.urls_and_bodies()
        try:
            outcome = self.aggregator.aggregate(urls, bodies, stop_event=run.stop_event)
        except Exception as e:
            logger.error("Report aggregation failed for %s: %s", self.site_url, e, exc_info=True)
            outcome = Outcome.failure(str(e))

        if outcome.ok:
            self.events.emit(event_bus.DONE, outcome.value)
        else:
            self.events.emit(event_bus.ERROR, ErrorEvent(code=500, url=self.site_url,
                                                         message=outcome.degraded_reason))
        with self._lock:
            if self._run is run:
                self._state = CrawlState.IDLE

        if outcome.ok:
            run.future.set_result(outcome.value)
        else:
            run.future.set_exception(ReportError(outcome.degraded_reason))

    def _fail(self, run: CrawlRun, exc: Exception) -> None:
        with self._lock:
            if self._run is not run or self._state is not CrawlState.CRAWLING:
                return
            self._state = CrawlState.IDLE

        run.stop_event.set()
        run.crawler.stop()
        run.future.set_exception(exc)

    def load(self, url: str) -> str:
        return self.page_fetcher.fetch(url)

    def analyze(self, urls: Union[str, Sequence[str]], bodies: Optional[Sequence[str]] = None) -> dict:
        """Build a report for `urls`, fetching their bodies unless `bodies` is given."""
        outcome = self.aggregator.aggregate(urls, bodies)
        if not outcome.ok:
            raise ReportError(outcome.degraded_reason)
        return outcome.value

    def close(self) -> None:
        """Stop any active run and drop the collected pages."""
        self.stop()
        with self._lock:
            if self._state is CrawlState.IDLE:
                self._run = None
            self._store = PageStore()
