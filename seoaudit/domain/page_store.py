import threading
from typing import Iterator, List, Tuple

from seoaudit.domain.page_record import PageRecord


class PageStore:
    """Ordered, append-only store of the pages accepted during one crawl run.

    Writes come from the crawler's dispatch thread while readers may be on the
    caller's thread, so access is serialized with a lock.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._records: List[PageRecord] = []

    def append(self, url: str, body: str) -> PageRecord:
        record = PageRecord(url=url, body=body)
        with self._lock:
            self._records.append(record)
        return record

    def snapshot(self) -> Tuple[PageRecord, ...]:
        with self._lock:
            return tuple(self._records)

    def urls_and_bodies(self) -> Tuple[List[str], List[str]]:
        records = self.snapshot()
        return [r.url for r in records], [r.body for r in records]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __iter__(self) -> Iterator[PageRecord]:
        return iter(self.snapshot())
