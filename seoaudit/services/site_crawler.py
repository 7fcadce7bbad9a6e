import logging
import socket
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import urldefrag, urljoin, urlparse

import requests
from bs4 import BeautifulSoup

from seoaudit.domain.crawl_payloads import ClientError, QueueItem
from seoaudit.domain.http_response import HttpResponse
from seoaudit.domain.options import EngineOptions
from seoaudit.exceptions import HttpFetchError
from seoaudit.services import protocols
from seoaudit.services.robots_service import RobotsService

logger = logging.getLogger(__name__)

_HTML_TYPES = ("text/html", "application/xhtml+xml")
_DNS_FAILURE_MARKERS = ("Name or service not known", "nodename nor servname", "getaddrinfo failed",
                        "Failed to resolve", "No address associated")


def _exception_chain(exc: BaseException):
    pending, seen = [exc], set()
    while pending:
        current = pending.pop()
        if not isinstance(current, BaseException) or id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        pending.extend([current.__cause__, current.__context__, getattr(current, "reason", None)])
        pending.extend(a for a in getattr(current, "args", ()) if isinstance(a, BaseException))


def client_error_for(error: HttpFetchError) -> ClientError:
    """Map a transport failure to a symbolic client error code."""
    message = str(error.original)
    for exc in _exception_chain(error.original):
        if isinstance(exc, socket.gaierror) or type(exc).__name__ == "NameResolutionError":
            return ClientError("ENOTFOUND", message)
    if any(marker in message for marker in _DNS_FAILURE_MARKERS):
        return ClientError("ENOTFOUND", message)
    if isinstance(error.original, requests.exceptions.ConnectionError):
        return ClientError("ECONNREFUSED", message)
    return ClientError("EREQUEST", message)


def extract_links(base_url: str, html: str) -> List[str]:
    soup = BeautifulSoup(html, "html.parser")
    urls = []
    for a in soup.find_all("a", href=True):
        try:
            abs_url, _ = urldefrag(urljoin(base_url, a.get("href")))
        except ValueError:
            logger.debug("Skipping malformed link %r on %s", a.get("href"), base_url)
            continue
        if urlparse(abs_url).scheme in ("http", "https"):
            urls.append(abs_url)
    return urls


class SiteCrawler:
    """Default crawler engine: breadth-first crawl of one host on a worker thread.

    Pages of one depth level are fetched concurrently (bounded by
    `options.max_concurrency`), while every event is emitted from the crawl
    thread, one at a time. Depth follows the seed-is-depth-1 convention:
    `max_depth=1` fetches only the seed and `max_depth=0` is unlimited.
    """

    def __init__(self, site_url: str, options: EngineOptions, http_service,
                 robots_service: Optional[RobotsService] = None):
        self.site_url = site_url
        self.options = options
        self.http_service = http_service
        self.robots_service = robots_service or RobotsService(http_service, options.user_agent)
        self._handlers: Dict[str, List[Callable]] = {name: [] for name in protocols.CRAWLER_EVENTS}
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def on(self, event: str, handler: Callable) -> None:
        if event not in self._handlers:
            raise ValueError(f"Unknown crawler event {event!r}")
        self._handlers[event].append(handler)

    def _emit(self, event: str, *args) -> None:
        for handler in list(self._handlers[event]):
            handler(*args)

    def _is_stopped(self) -> bool:
        return self._stop_event.is_set()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("crawler already started")
        self._thread = threading.Thread(target=self._run, name="seoaudit-crawler", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _same_host(self, other: str) -> bool:
        b = urlparse(self.site_url).hostname
        o = urlparse(other).hostname
        return b == o or bool(b and o and o.endswith('.' + b))

    def _fetch(self, item: QueueItem) -> Tuple[QueueItem, Optional[HttpResponse], Optional[HttpFetchError]]:
        if self._is_stopped():
            return item, None, None
        try:
            return item, self.http_service.fetch(item.url), None
        except HttpFetchError as e:
            return item, None, e

    def _run(self) -> None:
        try:
            self.crawl()
        except Exception as e:
            logger.exception("Crawler failed for %s", self.site_url)
            if not self._is_stopped():
                self._emit(protocols.CRAWL_FAILED, e)

    def crawl(self) -> None:
        """Run the crawl on the calling thread; emits `complete` unless stopped."""
        visited = set()
        level = [QueueItem(self.site_url, 1)]
        max_depth = self.options.max_depth
        with ThreadPoolExecutor(max_workers=self.options.max_concurrency,
                                thread_name_prefix="seoaudit-crawl") as pool:
            while level and not self._is_stopped():
                allowed = []
                for item in level:
                    if item.url in visited:
                        logger.debug("Skipping (visited) %s", item.url)
                        continue
                    visited.add(item.url)
                    if not self.robots_service.allowed_by_robots(item.url, self.options.respect_robots_txt):
                        logger.info("Skipping (robots) %s", item.url)
                        self._emit(protocols.FETCH_DISALLOWED, item)
                        continue
                    allowed.append(item)

                next_level = []
                for item, response, error in pool.map(self._fetch, allowed):
                    if self._is_stopped():
                        logger.info("Crawl cancelled during traversal of %s", self.site_url)
                        return
                    links = self._dispatch(item, response, error)
                    if links and (max_depth == 0 or item.depth < max_depth):
                        next_level.extend(QueueItem(link, item.depth + 1) for link in links
                                          if self._same_host(link) and link not in visited)
                level = next_level

        if self._is_stopped():
            logger.info("Crawl cancelled for %s", self.site_url)
            return
        self._emit(protocols.COMPLETE)

    def _dispatch(self, item: QueueItem, response: Optional[HttpResponse],
                  error: Optional[HttpFetchError]) -> List[str]:
        if error is not None:
            if isinstance(error.original, requests.exceptions.Timeout):
                self._emit(protocols.FETCH_TIMEOUT, item)
            else:
                self._emit(protocols.FETCH_CLIENT_ERROR, item, client_error_for(error))
            return []
        if response is None:
            return []

        status = int(response.status_code)
        if status == 404:
            self._emit(protocols.FETCH_404, item)
            return []
        if status == 410:
            self._emit(protocols.FETCH_410, item)
            return []
        if status >= 400:
            self._emit(protocols.FETCH_ERROR, item, response)
            return []

        content_type = (response.content_type or "text/html").split(";")[0].strip().lower()
        is_html = content_type in _HTML_TYPES
        if not is_html and not self.options.download_unsupported:
            logger.debug("Skipping unsupported content type %s for %s", content_type, item.url)
            return []
        self._emit(protocols.FETCH_COMPLETE, item, response.text, response)
        return extract_links(item.url, response.text) if is_html else []


def make_site_crawler(http_service) -> Callable[[str, EngineOptions], SiteCrawler]:
    """Crawler factory binding a shared HTTP service; the engine calls it once per run."""
    def factory(site_url: str, options: EngineOptions) -> SiteCrawler:
        return SiteCrawler(site_url, options, http_service)
    return factory
