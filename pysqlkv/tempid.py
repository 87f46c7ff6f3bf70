"""Process-wide id source for temporary table names.

Ids start at 1 and only ever grow; they are never handed out twice during the
lifetime of the process, even after the temporary table that used one has
been dropped.
"""
from __future__ import annotations

import threading

__all__ = ["TemporaryTableID", "next_temporary_id"]


class TemporaryTableID:
    """Thread-safe monotonically increasing counter."""

    def __init__(self, start: int = 0):
        self._lock = threading.Lock()
        self._id = start

    def next(self) -> int:
        with self._lock:
            self._id += 1
            return self._id


_temporary_table_id = TemporaryTableID()


def next_temporary_id() -> int:
    return _temporary_table_id.next()
