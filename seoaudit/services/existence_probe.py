import logging

logger = logging.getLogger(__name__)

# Statuses meaning the server does not support HEAD for this resource.
_HEAD_UNSUPPORTED = (405, 501)


class UrlExistenceProbe:
    """Check whether a URL resolves to an existing resource.

    Sends a HEAD request (redirects followed) and falls back to GET when the
    server rejects HEAD. Transport errors propagate as `HttpFetchError`.
    """

    def __init__(self, http_service):
        self.http_service = http_service

    def exists(self, url: str) -> bool:
        response = self.http_service.head(url)
        if response.status_code in _HEAD_UNSUPPORTED:
            logger.debug("HEAD not supported for %s (status %s); retrying with GET", url, response.status_code)
            response = self.http_service.fetch(url)
        return response.status_code < 400
