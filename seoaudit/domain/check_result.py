from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class CheckResult:
    """Result of one auxiliary check (sitemap, robots.txt or TLS).

    `grades` is only populated by the TLS check. `degraded_reason` is set when
    the check absorbed a failure and `value` holds a fallback.
    """

    summary: str
    value: Any
    grades: Optional[list[str]] = None
    degraded_reason: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.degraded_reason is not None

    def to_dict(self) -> dict:
        data = {"summary": self.summary, "value": self.value}
        if self.grades is not None:
            data["grades"] = list(self.grades)
        if self.degraded_reason is not None:
            data["degraded_reason"] = self.degraded_reason
        return data
