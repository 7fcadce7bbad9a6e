import requests
from typing import Callable

from seoaudit.domain.http_response import HttpResponse
from seoaudit.exceptions import HttpFetchError


class HttpService:
    """
    HTTP client wrapper used by the fetcher, the existence probe and the crawler.

    Requires an `http_client` callable with the `requests.request(method, url, **kwargs)`
    signature so tests can inject fakes and the HTTP library can be swapped.
    """

    def __init__(self, user_agent: str, http_client: Callable, timeout: float = 30):
        self.user_agent = user_agent
        self.timeout = timeout
        self.http_client = http_client

    def request(self, method: str, url: str, **kwargs) -> HttpResponse:
        """Issue a request and return status code, body text and Content-Type."""
        headers = {"User-Agent": self.user_agent}
        try:
            resp = self.http_client(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            raise HttpFetchError(url, e) from e

        # Extract Content-Type if response has headers; let real exceptions bubble up.
        ct = None
        if hasattr(resp, 'headers'):
            ct = resp.headers.get('Content-Type')

        return HttpResponse(resp.status_code, resp.text, ct)

    def fetch(self, url: str) -> HttpResponse:
        return self.request("GET", url)

    def head(self, url: str) -> HttpResponse:
        return self.request("HEAD", url, allow_redirects=True)
