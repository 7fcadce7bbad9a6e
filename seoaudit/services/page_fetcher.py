import logging
import time
from typing import Callable, Optional

from seoaudit.domain.outcome import Outcome
from seoaudit.exceptions import HttpFetchError
from seoaudit.services.retry_policy import RetryPolicy
from seoaudit.utils.url_utils import ensure_scheme

logger = logging.getLogger(__name__)


class PageFetcher:
    """Fetch a single page body with bounded retry.

    Transport failures never escape: once the retry policy is exhausted the
    outcome is degraded with an empty body. HTTP error statuses are not
    retried; their body is returned like any other.
    """

    def __init__(self, http_service, retry_policy: Optional[RetryPolicy] = None,
                 lowercase_urls: bool = False, sleep: Callable[[float], None] = time.sleep):
        self.http_service = http_service
        self.retry_policy = retry_policy or RetryPolicy()
        self.lowercase_urls = lowercase_urls
        self._sleep = sleep

    def _is_stopped(self, stop_event) -> bool:
        return stop_event is not None and stop_event.is_set()

    def normalize(self, url: str) -> str:
        url = ensure_scheme(url)
        return url.lower() if self.lowercase_urls else url

    def fetch_outcome(self, url: str, stop_event=None) -> Outcome:
        target = self.normalize(url)
        attempts = self.retry_policy.max_attempts
        last_error = None
        for attempt in range(1, attempts + 1):
            if self._is_stopped(stop_event):
                logger.info("Fetch cancelled for %s", target)
                return Outcome.degraded("", "cancelled")
            try:
                response = self.http_service.fetch(target)
            except HttpFetchError as e:
                last_error = e
                logger.debug("Fetch attempt %s/%s failed for %s: %s", attempt, attempts, target, e)
                if attempt < attempts:
                    delay = self.retry_policy.delay_for(attempt)
                    if delay:
                        self._sleep(delay)
                continue
            return Outcome.success(response.text or "")

        logger.warning("Giving up on %s after %s attempts: %s", target, attempts, last_error)
        return Outcome.degraded("", f"retries exhausted after {attempts} attempts: {last_error}")

    def fetch(self, url: str, stop_event=None) -> str:
        return self.fetch_outcome(url, stop_event=stop_event).value
