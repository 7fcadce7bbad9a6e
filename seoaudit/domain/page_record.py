from typing import NamedTuple


class PageRecord(NamedTuple):
    """A crawled page accepted into a run's page store."""
    url: str
    body: str
