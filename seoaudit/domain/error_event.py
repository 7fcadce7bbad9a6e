from __future__ import annotations

from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Optional


def status_message(code: int) -> Optional[str]:
    """Standard reason phrase for an HTTP status code, or None when unknown."""
    try:
        return HTTPStatus(int(code)).phrase
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class ErrorEvent:
    """Per-item crawl error passed to `error` handlers; never stored."""

    code: int
    url: Optional[str]
    message: Optional[str] = field(default=None)

    def __post_init__(self):
        if self.message is None:
            object.__setattr__(self, "message", status_message(self.code))
