from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of an operation that may succeed, degrade or fail.

    A degraded outcome still carries a usable (fallback) value; a failed one
    carries no value. `degraded_reason` explains either case.
    """

    ok: bool
    value: Optional[T] = None
    degraded_reason: Optional[str] = None

    @classmethod
    def success(cls, value: Any) -> "Outcome":
        return cls(ok=True, value=value)

    @classmethod
    def degraded(cls, value: Any, reason: str) -> "Outcome":
        return cls(ok=True, value=value, degraded_reason=reason)

    @classmethod
    def failure(cls, reason: str) -> "Outcome":
        return cls(ok=False, value=None, degraded_reason=reason)

    @property
    def is_degraded(self) -> bool:
        return self.ok and self.degraded_reason is not None
