"""SeoAudit: crawl a site and aggregate SEO, sitemap, robots.txt and TLS findings."""
from .engine import AuditEngine as AuditEngine
from .domain import CheckResult as CheckResult, EngineOptions as EngineOptions, ErrorEvent as ErrorEvent

__all__ = ["AuditEngine", "CheckResult", "EngineOptions", "ErrorEvent"]
