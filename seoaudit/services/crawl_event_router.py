import logging
import re
from typing import Callable, Optional

from seoaudit.domain.error_event import ErrorEvent
from seoaudit.domain.page_store import PageStore
from seoaudit.exceptions import CrawlFailedError, SiteNotFoundError
from seoaudit.services import event_bus, protocols
from seoaudit.services.error_policy import ErrorPolicy
from seoaudit.utils.url_utils import is_valid_url

logger = logging.getLogger(__name__)

NOINDEX_PATTERN = re.compile(r"<meta(?=[^>]+noindex).*?>", re.IGNORECASE)

IGNORE_NOINDEX = "noindex"
IGNORE_DISALLOWED = "disallowed"


def _as_text(body) -> str:
    if body is None:
        return ""
    if isinstance(body, (bytes, bytearray)):
        return bytes(body).decode("utf-8", errors="replace")
    return str(body)


class CrawlEventRouter:
    """Translates one crawl run's crawler events into engine events and page records.

    A router belongs to a single run. Once `close()` is called every later
    crawler event is dropped, so a crawler that is still winding down after
    `stop()` cannot add records or emit events.
    """

    def __init__(
        self,
        events: event_bus.EventBus,
        page_store: PageStore,
        on_complete: Callable[[], None],
        on_fatal: Callable[[Exception], None],
        site_url: str,
        error_policy: Optional[ErrorPolicy] = None,
        url_validator: Callable[[str], bool] = is_valid_url,
    ):
        self.events = events
        self.page_store = page_store
        self.on_complete = on_complete
        self.on_fatal = on_fatal
        self.site_url = site_url
        self.error_policy = error_policy or ErrorPolicy()
        self.url_validator = url_validator
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True

    def attach(self, crawler) -> None:
        crawler.on(protocols.FETCH_404, self._guard(lambda item: self._emit_error(404, item.url)))
        crawler.on(protocols.FETCH_TIMEOUT, self._guard(lambda item: self._emit_error(408, item.url)))
        crawler.on(protocols.FETCH_410, self._guard(lambda item: self._emit_error(410, item.url)))
        crawler.on(protocols.FETCH_ERROR, self._guard(self.handle_fetch_error))
        crawler.on(protocols.FETCH_CLIENT_ERROR, self._guard(self.handle_client_error))
        crawler.on(protocols.FETCH_DISALLOWED, self._guard(self.handle_disallowed))
        crawler.on(protocols.FETCH_COMPLETE, self._guard(self.handle_fetch_complete))
        crawler.on(protocols.COMPLETE, self._guard(self.handle_complete))
        crawler.on(protocols.CRAWL_FAILED, self._guard(self.handle_crawl_failed))

    def _guard(self, handler: Callable) -> Callable:
        def dispatch(*args):
            if self._closed:
                logger.debug("Dropping crawler event after router was closed")
                return
            handler(*args)
        return dispatch

    def _emit_error(self, code: int, url: Optional[str], message: Optional[str] = None) -> None:
        logger.info("Crawl error %s for %s", code, url)
        self.events.emit(event_bus.ERROR, ErrorEvent(code=code, url=url, message=message))

    def handle_fetch_error(self, queue_item, response) -> None:
        self._emit_error(int(response.status_code), queue_item.url)

    def handle_client_error(self, queue_item, client_error) -> None:
        if self.error_policy.is_fatal_client_error(client_error):
            logger.error("Site %s could not be resolved: %s", self.site_url, client_error.message)
            self.close()
            self.on_fatal(SiteNotFoundError(self.site_url))
            return
        self._emit_error(400, queue_item.url, message=client_error.message)

    def handle_disallowed(self, queue_item) -> None:
        logger.info("Ignoring %s (disallowed)", queue_item.url)
        self.events.emit(event_bus.IGNORE, queue_item.url, IGNORE_DISALLOWED)

    def handle_fetch_complete(self, queue_item, body, response=None) -> None:
        url = queue_item.url
        text = _as_text(body)
        if NOINDEX_PATTERN.search(text):
            logger.info("Ignoring %s (noindex)", url)
            self.events.emit(event_bus.IGNORE, url, IGNORE_NOINDEX)
        elif self.url_validator(url):
            self.page_store.append(url, text)
            self.events.emit(event_bus.ADD, url)
        else:
            self._emit_error(404, url)

    def handle_complete(self, *args) -> None:
        logger.info("Crawl complete with %s pages", len(self.page_store))
        self.close()
        self.on_complete()

    def handle_crawl_failed(self, error: Exception) -> None:
        logger.error("Crawler for %s failed: %s", self.site_url, error)
        self.close()
        self.on_fatal(CrawlFailedError(self.site_url, error))
