"""Payload types passed by a crawler engine to its event handlers."""
from typing import NamedTuple


class QueueItem(NamedTuple):
    url: str
    depth: int = 0


class ClientError(NamedTuple):
    """Transport-level failure reported by the crawler (no HTTP response).

    `code` is a short symbolic reason such as ``"ENOTFOUND"`` for an
    unresolvable host, ``"ECONNREFUSED"`` or ``"ECONNRESET"``.
    """
    code: str
    message: str
