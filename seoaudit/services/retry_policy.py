from dataclasses import dataclass


@dataclass(frozen=True)
class RetryPolicy:
    """How many times a page fetch is attempted and how long to wait in between.

    `max_attempts` counts the initial attempt, so the default of 4 means one
    try plus three retries. With the default `backoff_seconds` of 0 the
    retries are immediate.
    """

    max_attempts: int = 4
    backoff_seconds: float = 0.0
    backoff_multiplier: float = 2.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.backoff_seconds < 0:
            raise ValueError("backoff_seconds must be >= 0")

    def delay_for(self, attempt: int) -> float:
        """Delay before the attempt following failed attempt number `attempt` (1-based)."""
        if self.backoff_seconds == 0:
            return 0.0
        return self.backoff_seconds * (self.backoff_multiplier ** (attempt - 1))
