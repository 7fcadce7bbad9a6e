"""Dependency injection container for the application."""
from dependency_injector import containers, providers

from seoaudit import config as env
from seoaudit.domain.options import EngineOptions
from seoaudit.engine import AuditEngine
from seoaudit.options_loader import OptionsFileStore
from seoaudit.services.error_policy import ErrorPolicy
from seoaudit.services.page_analyzer import BasicPageAnalyzer
from seoaudit.services.retry_policy import RetryPolicy


# Environment variables used by the container (read via `seoaudit.config` helpers).
#
# SEOAUDIT_USER_AGENT (str, default: "SeoAudit/0.1")
#   User-Agent header for page fetches, existence probes and robots.txt.
#
# SEOAUDIT_MAX_DEPTH (int, default: 1)
#   Crawl depth; the seed page is depth 1 and 0 means unlimited.
#
# SEOAUDIT_TIMEOUT_MS (int milliseconds, default: 30000)
#   Timeout for every outbound HTTP request.
#
# SEOAUDIT_MAX_CONCURRENCY (int, default: 5)
#   Upper bound on concurrent page fetches.
#
# SEOAUDIT_RESPECT_ROBOTS (bool, default: true)
#   Whether the crawler honours robots.txt.
#
# SEOAUDIT_FETCH_ATTEMPTS (int, default: 4)
#   Total attempts per page fetch, including the first one.
#
# SEOAUDIT_RETRY_BACKOFF_SECONDS (float seconds, default: 0)
#   Delay before the first retry; doubles on each further retry.
#
# SEOAUDIT_TLS_SCAN_TIMEOUT (float seconds, default: 300)
#   How long to wait for an SSL Labs assessment to become ready.
ENV = {
    "USER_AGENT": env.get_str_env("SEOAUDIT_USER_AGENT", "SeoAudit/0.1"),
    "MAX_DEPTH": env.get_int_env("SEOAUDIT_MAX_DEPTH", 1),
    "TIMEOUT_MS": env.get_int_env("SEOAUDIT_TIMEOUT_MS", 30000),
    "MAX_CONCURRENCY": env.get_int_env("SEOAUDIT_MAX_CONCURRENCY", 5),
    "RESPECT_ROBOTS": env.get_bool_env("SEOAUDIT_RESPECT_ROBOTS", True),
    "FETCH_ATTEMPTS": env.get_int_env("SEOAUDIT_FETCH_ATTEMPTS", 4),
    "RETRY_BACKOFF_SECONDS": env.get_float_env("SEOAUDIT_RETRY_BACKOFF_SECONDS", 0.0),
    "TLS_SCAN_TIMEOUT": env.get_float_env("SEOAUDIT_TLS_SCAN_TIMEOUT", 300.0),
}


class Container(containers.DeclarativeContainer):
    """Dependency injection container for SeoAudit."""

    config = providers.Configuration(default=ENV)

    default_options = providers.Factory(
        EngineOptions,
        max_depth=config.MAX_DEPTH.as_(int),
        user_agent=config.USER_AGENT.as_(str),
        respect_robots_txt=config.RESPECT_ROBOTS.as_(bool),
        timeout=config.TIMEOUT_MS.as_(int),
        max_concurrency=config.MAX_CONCURRENCY.as_(int),
        tls_scan_timeout=config.TLS_SCAN_TIMEOUT.as_(float),
    )

    retry_policy = providers.Singleton(
        RetryPolicy,
        max_attempts=config.FETCH_ATTEMPTS.as_(int),
        backoff_seconds=config.RETRY_BACKOFF_SECONDS.as_(float),
    )

    error_policy = providers.Singleton(ErrorPolicy)

    page_analyzer = providers.Singleton(BasicPageAnalyzer)

    options_store = providers.Singleton(OptionsFileStore)

    # Engines are per-site: call as `container.engine(seed_url, options=...)`.
    engine = providers.Factory(
        AuditEngine,
        options=default_options,
        analyzer=page_analyzer,
        retry_policy=retry_policy,
        error_policy=error_policy,
    )
