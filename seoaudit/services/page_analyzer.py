import logging
from typing import List, Mapping

from bs4 import BeautifulSoup

from seoaudit.exceptions import AnalyzerContractError

logger = logging.getLogger(__name__)


def validate_analysis(result) -> dict:
    """Check that an analyzer result has the sections the report aggregator writes into.

    Returns the result unchanged; raises AnalyzerContractError otherwise.
    """
    if not isinstance(result, Mapping):
        raise AnalyzerContractError(f"analysis must be a mapping, got {type(result).__name__}")
    issues = result.get("issues")
    if not isinstance(issues, Mapping):
        raise AnalyzerContractError("analysis is missing an 'issues' mapping")
    for section in ("notices", "warnings"):
        if not isinstance(issues.get(section), Mapping):
            raise AnalyzerContractError(f"analysis is missing an 'issues.{section}' mapping")
    return result


def _finding(summary: str, urls: List[str]) -> dict:
    return {"summary": summary if urls else "", "value": urls}


class BasicPageAnalyzer:
    """Default page analyzer: title, meta description and h1 checks per page.

    Every finding is `{summary, value}` where `value` lists the offending URLs.
    """

    def _inspect(self, url: str, body: str) -> dict:
        soup = BeautifulSoup(body or "", "html.parser")
        title = soup.title.get_text(strip=True) if soup.title else ""
        meta = soup.find("meta", attrs={"name": lambda v: v and v.lower() == "description"})
        description = (meta.get("content") or "").strip() if meta else ""
        return {
            "url": url,
            "title": title,
            "description": description,
            "h1_count": len(soup.find_all("h1")),
            "empty": not (body or "").strip(),
        }

    def analyze_pages(self, urls: List[str], bodies: List[str]) -> dict:
        pages = [self._inspect(url, body) for url, body in zip(urls, bodies)]
        logger.debug("Analyzed %s pages", len(pages))

        empty = [p["url"] for p in pages if p["empty"]]
        content = [p for p in pages if not p["empty"]]
        return {
            "pages": pages,
            "issues": {
                "errors": {
                    "empty": _finding("Some pages returned no content", empty),
                    "title": _finding("Some pages have no title", [p["url"] for p in content if not p["title"]]),
                },
                "warnings": {
                    "description": _finding(
                        "Some pages have no meta description",
                        [p["url"] for p in content if not p["description"]],
                    ),
                },
                "notices": {
                    "h1": _finding(
                        "Some pages do not have exactly one h1 heading",
                        [p["url"] for p in content if p["h1_count"] != 1],
                    ),
                },
            },
        }
