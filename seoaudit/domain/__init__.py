"""Domain objects for SeoAudit - explicit re-exports to satisfy linters."""
from .check_result import CheckResult as CheckResult
from .crawl_payloads import ClientError as ClientError, QueueItem as QueueItem
from .crawl_state import CrawlState as CrawlState
from .error_event import ErrorEvent as ErrorEvent
from .http_response import HttpResponse as HttpResponse
from .options import EngineOptions as EngineOptions
from .outcome import Outcome as Outcome
from .page_record import PageRecord as PageRecord
from .page_store import PageStore as PageStore

__all__ = [
    "CheckResult",
    "ClientError",
    "CrawlState",
    "EngineOptions",
    "ErrorEvent",
    "HttpResponse",
    "Outcome",
    "PageRecord",
    "PageStore",
    "QueueItem",
]
