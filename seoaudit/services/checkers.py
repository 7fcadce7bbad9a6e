import logging

from seoaudit.domain.check_result import CheckResult
from seoaudit.exceptions import HttpFetchError, TlsScanError
from seoaudit.utils.url_utils import normalize_url, origin_of

logger = logging.getLogger(__name__)


class _FileExistenceChecker:
    """Checks that a well-known file exists at the site origin."""

    path = ""
    label = ""

    def __init__(self, probe, site_url: str):
        self.probe = probe
        self.site_url = site_url

    @property
    def target_url(self) -> str:
        return origin_of(self.site_url) + self.path

    def _result(self, exists: bool, degraded_reason=None) -> CheckResult:
        summary = f"{self.label} was found" if exists else f"{self.label} not found"
        return CheckResult(summary=summary, value=exists, degraded_reason=degraded_reason)

    def check(self) -> CheckResult:
        url = self.target_url
        try:
            exists = bool(self.probe.exists(url))
        except HttpFetchError as e:
            logger.warning("Could not probe %s: %s", url, e)
            return self._result(False, degraded_reason=str(e))
        except Exception as e:
            logger.error("Unexpected error probing %s: %s", url, e, exc_info=True)
            return self._result(False, degraded_reason=str(e))
        return self._result(exists)


class SitemapChecker(_FileExistenceChecker):
    path = "/sitemap.xml"
    label = "Sitemap.xml"


class RobotsChecker(_FileExistenceChecker):
    path = "/robots.txt"
    label = "Robots.txt"


class TlsChecker:
    """Collects the TLS grades of the site's origin from a grading service."""

    def __init__(self, grading_service, site_url: str):
        self.grading_service = grading_service
        self.site_url = site_url

    def check(self) -> CheckResult:
        url = normalize_url(self.site_url, remove_trailing_slash=True)
        logger.info("Starting SSL test for %s", url)
        try:
            host = self.grading_service.scan(url)
        except TlsScanError as e:
            logger.warning("SSL test failed for %s: %s", url, e)
            return CheckResult(summary="", value=e.payload, grades=[], degraded_reason=str(e))
        except Exception as e:
            logger.error("Unexpected error during SSL test for %s: %s", url, e, exc_info=True)
            return CheckResult(summary="", value=None, grades=[], degraded_reason=str(e))
        finally:
            logger.info("Ending SSL test for %s", url)

        grades = [endpoint["grade"] for endpoint in (host or {}).get("endpoints") or [] if endpoint.get("grade")]
        summary = "" if grades else "No SSL certificate detected"
        return CheckResult(summary=summary, value=host, grades=grades)
