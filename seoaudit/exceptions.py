"""Custom exceptions for SeoAudit."""


class SeoAuditError(Exception):
    """Base class for every error raised by the audit engine."""


class ConfigurationError(SeoAuditError):
    """Raised when engine options or construction arguments are invalid."""


class MissingSeedUrlError(ConfigurationError):
    """Raised when an engine is constructed without a seed URL."""

    def __init__(self):
        super().__init__("Requires a valid URL.")


class SiteNotFoundError(SeoAuditError):
    """Raised when the crawled site's host cannot be resolved."""

    def __init__(self, site_url: str):
        self.site_url = site_url
        super().__init__(f'Site "{site_url}" could not be found.')


class CrawlFailedError(SeoAuditError):
    """Raised when the crawler stops on an unexpected error before completing."""

    def __init__(self, site_url: str, original: Exception):
        self.site_url = site_url
        self.original = original
        super().__init__(f"Crawl of {site_url} failed: {original}")


class CrawlAlreadyRunningError(SeoAuditError):
    """Raised when start() is called while a crawl run is still active."""

    def __init__(self, state: str):
        self.state = state
        super().__init__(f"Cannot start a crawl while engine is {state}")


class HttpFetchError(SeoAuditError):
    """Raised when an HTTP fetch fails due to network/transport errors."""

    def __init__(self, url: str, original: Exception):
        self.url = url
        self.original = original
        super().__init__(f"HTTP fetch failed for {url}: {original}")


class TlsScanError(SeoAuditError):
    """Raised by a TLS grading service when an assessment cannot complete.

    `payload` carries whatever raw data the service returned, if any.
    """

    def __init__(self, url: str, reason: str, payload=None):
        self.url = url
        self.reason = reason
        self.payload = payload
        super().__init__(f"TLS scan failed for {url}: {reason}")


class AnalyzerContractError(SeoAuditError):
    """Raised when a page analyzer returns a result without the expected issue sections."""


class ReportError(SeoAuditError):
    """Raised when a report could not be built."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Report could not be built: {reason}")
