from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Optional, Union

from seoaudit.exceptions import ConfigurationError

# Option names as accepted in camelCase (options files, JS-style callers).
_CAMEL_CASE_KEYS = {
    "maxDepth": "max_depth",
    "userAgent": "user_agent",
    "respectRobotsTxt": "respect_robots_txt",
    "timeout": "timeout",
    "maxConcurrency": "max_concurrency",
    "downloadUnsupported": "download_unsupported",
    "lowercaseUrls": "lowercase_urls",
    "tlsScanTimeout": "tls_scan_timeout",
    "tlsPollInterval": "tls_poll_interval",
}


_NUMERIC_FIELDS = (
    ("max_depth", int),
    ("timeout", int),
    ("max_concurrency", int),
    ("tls_scan_timeout", float),
    ("tls_poll_interval", float),
)


@dataclass(frozen=True)
class EngineOptions:
    """Immutable engine configuration, resolved once at engine construction.

    `timeout` is in milliseconds; the TLS settings are in seconds.
    """

    max_depth: int = 1
    user_agent: str = "SeoAudit/0.1"
    respect_robots_txt: bool = True
    timeout: int = 30000
    max_concurrency: int = 5
    download_unsupported: bool = False
    lowercase_urls: bool = False
    tls_scan_timeout: float = 300
    tls_poll_interval: float = 10

    def __post_init__(self):
        for name, kind in _NUMERIC_FIELDS:
            value = getattr(self, name)
            try:
                if isinstance(value, bool):
                    raise TypeError(name)
                object.__setattr__(self, name, kind(value))
            except (TypeError, ValueError):
                raise ConfigurationError(f"{name} must be a number, got {value!r}") from None
        if self.max_depth < 0:
            raise ConfigurationError(f"max_depth must be >= 0, got {self.max_depth!r}")
        if self.timeout <= 0:
            raise ConfigurationError(f"timeout must be > 0, got {self.timeout!r}")
        if self.max_concurrency <= 0:
            raise ConfigurationError(f"max_concurrency must be > 0, got {self.max_concurrency!r}")
        if self.tls_scan_timeout <= 0 or self.tls_poll_interval < 0:
            raise ConfigurationError("TLS scan timeout must be > 0 and poll interval >= 0")
        if not self.user_agent:
            raise ConfigurationError("user_agent is required")

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000

    def merged(self, overrides: Optional[Mapping[str, Any]]) -> "EngineOptions":
        """Return a copy with `overrides` applied; keys may be snake_case or camelCase."""
        if not overrides:
            return self
        known = {f.name for f in fields(self)}
        changes = {}
        for key, value in overrides.items():
            name = _CAMEL_CASE_KEYS.get(key, key)
            if name not in known:
                raise ConfigurationError(f"Unknown option: {key!r}")
            changes[name] = value
        return replace(self, **changes)

    @classmethod
    def resolve(cls, options: Union["EngineOptions", Mapping[str, Any], None] = None,
                defaults: Optional["EngineOptions"] = None) -> "EngineOptions":
        if isinstance(options, EngineOptions):
            return options
        base = defaults if defaults is not None else cls()
        return base.merged(options)
