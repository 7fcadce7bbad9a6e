import logging
import time
from typing import Callable, Optional

import requests

from seoaudit.exceptions import TlsScanError
from seoaudit.utils.url_utils import host_of

logger = logging.getLogger(__name__)

SSL_LABS_API = "https://api.ssllabs.com/api/v3/analyze"


class SslLabsClient:
    """Minimal client for the public SSL Labs assessment API.

    `scan()` starts (or reuses a cached) assessment for the URL's host and
    polls until it is READY, returning the host payload whose `endpoints`
    carry the letter grades.
    """

    def __init__(self, http_client: Callable = requests.get, *, api_url: str = SSL_LABS_API,
                 poll_interval: float = 10, max_wait: float = 300, request_timeout: float = 30,
                 sleep: Callable[[float], None] = time.sleep, clock: Callable[[], float] = time.monotonic):
        self.http_client = http_client
        self.api_url = api_url
        self.poll_interval = poll_interval
        self.max_wait = max_wait
        self.request_timeout = request_timeout
        self._sleep = sleep
        self._clock = clock

    def _get(self, url: str, params: dict) -> dict:
        try:
            resp = self.http_client(self.api_url, params=params, timeout=self.request_timeout)
            resp.raise_for_status()
            return resp.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise TlsScanError(url, f"SSL Labs request failed: {e}") from e

    def scan(self, url: str) -> dict:
        host = host_of(url)
        if not host:
            raise TlsScanError(url, "no host in URL")

        params = {"host": host, "all": "done", "fromCache": "on", "maxAge": 24}
        deadline = self._clock() + self.max_wait
        payload: Optional[dict] = None
        while True:
            payload = self._get(url, params)
            status = payload.get("status")
            if status == "READY":
                return payload
            if status == "ERROR":
                raise TlsScanError(url, payload.get("statusMessage") or "assessment failed", payload)
            if self._clock() >= deadline:
                raise TlsScanError(url, f"assessment not ready after {self.max_wait}s", payload)
            logger.debug("SSL Labs assessment for %s is %s; polling again", host, status)
            self._sleep(self.poll_interval)
