"""Protocol (interface) definitions for the engine's external collaborators."""

from typing import Callable, List, Mapping, Protocol

# Events a crawler engine emits and the handler arguments for each.
FETCH_404 = "fetch404"                  # (queue_item)
FETCH_TIMEOUT = "fetchtimeout"          # (queue_item)
FETCH_410 = "fetch410"                  # (queue_item)
FETCH_ERROR = "fetcherror"              # (queue_item, response)
FETCH_CLIENT_ERROR = "fetchclienterror"  # (queue_item, client_error)
FETCH_DISALLOWED = "fetchdisallowed"    # (queue_item)
FETCH_COMPLETE = "fetchcomplete"        # (queue_item, body, response)
COMPLETE = "complete"                   # ()
CRAWL_FAILED = "crawlfailed"            # (exception)

CRAWLER_EVENTS = (
    FETCH_404,
    FETCH_TIMEOUT,
    FETCH_410,
    FETCH_ERROR,
    FETCH_CLIENT_ERROR,
    FETCH_DISALLOWED,
    FETCH_COMPLETE,
    COMPLETE,
    CRAWL_FAILED,
)


class CrawlerEngine(Protocol):
    """Walks a site and reports each fetch through named events."""

    def on(self, event: str, handler: Callable) -> None:
        ...

    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...


class PageAnalyzer(Protocol):
    """Produces SEO findings for a set of pages.

    The returned mapping must contain `issues.notices` and `issues.warnings`
    mappings; the report aggregator adds the auxiliary check results there.
    """

    def analyze_pages(self, urls: List[str], bodies: List[str]) -> dict:
        ...


class TlsGradingService(Protocol):
    """Returns a host payload whose `endpoints` may carry a `grade`; raises TlsScanError."""

    def scan(self, url: str) -> Mapping:
        ...


class ExistenceProbe(Protocol):
    def exists(self, url: str) -> bool:
        ...


class AuxiliaryCheck(Protocol):
    def check(self):
        ...
