from dataclasses import dataclass, field
from typing import FrozenSet


@dataclass(frozen=True)
class ErrorPolicy:
    """Decides which failures abort a crawl and which are absorbed.

    - `fatal_client_codes`: crawler client-error codes that abort the run with
      `SiteNotFoundError` instead of emitting an `error` event.
    - `absorb_check_failures`: when False, an auxiliary check that had to fall
      back to a default value fails the whole report.
    """

    fatal_client_codes: FrozenSet[str] = field(default_factory=lambda: frozenset({"ENOTFOUND"}))
    absorb_check_failures: bool = True

    def is_fatal_client_error(self, client_error) -> bool:
        return getattr(client_error, "code", None) in self.fatal_client_codes
