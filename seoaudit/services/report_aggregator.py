import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Union

from seoaudit.domain.check_result import CheckResult
from seoaudit.domain.outcome import Outcome
from seoaudit.exceptions import AnalyzerContractError
from seoaudit.services.error_policy import ErrorPolicy
from seoaudit.services.page_analyzer import validate_analysis

logger = logging.getLogger(__name__)


class ReportAggregator:
    """Builds one report from page bodies, the page analyzer and the auxiliary checks.

    Bodies are fetched concurrently (bounded by `max_concurrency`) and kept in
    the same order as their URLs. The three checks and the analyzer then run
    concurrently and are all joined before the report is merged.
    """

    def __init__(self, *, page_fetcher, analyzer, sitemap_checker, robots_checker, tls_checker,
                 max_concurrency: int = 5, error_policy: Optional[ErrorPolicy] = None):
        self.page_fetcher = page_fetcher
        self.analyzer = analyzer
        self.sitemap_checker = sitemap_checker
        self.robots_checker = robots_checker
        self.tls_checker = tls_checker
        self.max_concurrency = max(1, int(max_concurrency))
        self.error_policy = error_policy or ErrorPolicy()

    def fetch_bodies(self, urls: Sequence[str], stop_event=None) -> List[str]:
        if not urls:
            return []
        logger.info("Start retrieving urls bodies")
        with ThreadPoolExecutor(max_workers=min(self.max_concurrency, len(urls)),
                                thread_name_prefix="seoaudit-fetch") as pool:
            # map() yields results in submission order, not completion order.
            bodies = list(pool.map(lambda u: self.page_fetcher.fetch(u, stop_event=stop_event), urls))
        logger.info("Retrieving urls bodies done")
        return bodies

    def aggregate(self, urls: Union[str, Sequence[str]], bodies: Optional[Sequence[str]] = None,
                  stop_event=None) -> Outcome:
        urls = [urls] if isinstance(urls, str) else list(urls)
        if bodies is None:
            bodies = self.fetch_bodies(urls, stop_event=stop_event)
        else:
            bodies = list(bodies)
            if len(bodies) != len(urls):
                raise ValueError(f"Got {len(bodies)} bodies for {len(urls)} urls")

        logger.info("Start analyzing urls")
        with ThreadPoolExecutor(max_workers=4, thread_name_prefix="seoaudit-report") as pool:
            sitemap_future = pool.submit(self.sitemap_checker.check)
            robots_future = pool.submit(self.robots_checker.check)
            tls_future = pool.submit(self.tls_checker.check)
            analysis_future = pool.submit(self.analyzer.analyze_pages, urls, bodies)

            sitemap: CheckResult = sitemap_future.result()
            robots: CheckResult = robots_future.result()
            ssl: CheckResult = tls_future.result()
            try:
                report = validate_analysis(analysis_future.result())
            except AnalyzerContractError as e:
                logger.error("Page analyzer broke its contract: %s", e)
                return Outcome.failure(str(e))
            except Exception as e:
                logger.error("Page analysis failed: %s", e, exc_info=True)
                return Outcome.failure(f"page analysis failed: {e}")

        report["issues"]["notices"]["sitemap"] = sitemap
        report["issues"]["notices"]["robots"] = robots
        report["issues"]["warnings"]["ssl"] = ssl
        logger.info("Analyzing urls done")

        degraded = [
            f"{name}: {result.degraded_reason}"
            for name, result in (("sitemap", sitemap), ("robots", robots), ("ssl", ssl))
            if result.degraded
        ]
        if not degraded:
            return Outcome.success(report)
        if not self.error_policy.absorb_check_failures:
            return Outcome.failure("; ".join(degraded))
        return Outcome.degraded(report, "; ".join(degraded))
