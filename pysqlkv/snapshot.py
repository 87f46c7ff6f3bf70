"""Namespace snapshots.

A snapshot is a stream of ``(key, value)`` records in ascending key order,
each one encoded with *msgpack* and prefixed with its length so that a reader
can walk the stream without any index:

    <u32 length><msgpack [key, value]> <u32 length><msgpack [key, value]> …

Snapshots move a namespace between backends (for instance from a native
key-value engine export into an SQL table) or keep a portable backup of it.
"""
from __future__ import annotations

import logging
from typing import BinaryIO, Iterator

import msgpack

from .storage import Storage

__all__ = ["dump", "load", "iter_records"]

logger = logging.getLogger(__name__)

_LEN_BYTES = 4


def dump(storage: Storage, fp: BinaryIO, prefix: bytes = b"") -> int:
    """Write every record whose key starts with *prefix* to *fp*; return the count."""
    count = 0

    def write(key: bytes, value: bytes) -> None:
        nonlocal count
        rec = msgpack.packb((key, value), use_bin_type=True)
        fp.write(len(rec).to_bytes(_LEN_BYTES, "big") + rec)
        count += 1

    storage.process_by_prefix(prefix, write)
    logger.debug("dumped %d records from %s", count, storage.table)
    return count


def iter_records(fp: BinaryIO) -> Iterator[tuple[bytes, bytes]]:
    """Yield the records of a snapshot stream."""
    while True:
        nbytes = fp.read(_LEN_BYTES)
        if not nbytes:
            return
        if len(nbytes) != _LEN_BYTES:
            raise ValueError("truncated snapshot: incomplete record header")
        length = int.from_bytes(nbytes, "big")
        blob = fp.read(length)
        if len(blob) != length:
            raise ValueError("truncated snapshot: incomplete record")
        key, value = msgpack.unpackb(blob, raw=False)
        yield key, value


def load(storage: Storage, fp: BinaryIO) -> int:
    """Apply a snapshot stream to *storage* in one batch; return the count.

    Nothing is written unless the whole stream decodes.
    """
    count = 0
    with storage.create_batch() as batch:
        for key, value in iter_records(fp):
            batch.put(key, value)
            count += 1
        batch.write()
    logger.debug("loaded %d records into %s", count, storage.table)
    return count
