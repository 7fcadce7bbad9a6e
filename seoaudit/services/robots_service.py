import logging
import threading
from typing import Dict, Optional
from urllib.parse import urljoin, urlparse
from urllib.robotparser import RobotFileParser

from seoaudit.exceptions import HttpFetchError

logger = logging.getLogger(__name__)


class RobotsService:
    """
    Checks crawl permissions against a site's robots.txt.

    Parsers are fetched once per origin and kept for the lifetime of the
    service, which is one crawl run. A missing or unreadable robots.txt allows
    everything.
    """

    def __init__(self, http_service, user_agent: str):
        self.http_service = http_service
        self.user_agent = user_agent
        self._lock = threading.Lock()
        self._parsers: Dict[str, Optional[RobotFileParser]] = {}

    def _fetch_parser(self, robots_url: str) -> Optional[RobotFileParser]:
        try:
            response = self.http_service.fetch(robots_url)
        except HttpFetchError:
            logger.warning("Network error fetching robots.txt from %s", robots_url, exc_info=True)
            return None

        if response.status_code != 200 or not response.text:
            return None

        robots_parser = RobotFileParser()
        robots_parser.parse(response.text.splitlines())
        return robots_parser

    def allowed_by_robots(self, url: str, robots_enabled: bool = True) -> bool:
        if not robots_enabled:
            return True

        parsed = urlparse(url)
        if not parsed.scheme or not parsed.netloc:
            # Fail open: invalid/relative URLs should not block crawling.
            return True

        base = f"{parsed.scheme}://{parsed.netloc}"
        with self._lock:
            if base not in self._parsers:
                self._parsers[base] = self._fetch_parser(urljoin(base, "/robots.txt"))
            robots_parser = self._parsers[base]

        if robots_parser is None:
            return True
        return robots_parser.can_fetch(self.user_agent, url)
