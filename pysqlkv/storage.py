"""Key-value storage handle over one SQL table.

:class:`Storage` gives a relational table the contract of an ordered,
byte-string key-value store:

* point ``get`` / ``put`` (upsert) / ``delete``;
* prefix scans (``has_prefix``, ``fetch_by_prefix``, ``keys_by_prefix``,
  ``process_by_prefix``), always in ascending byte order of the key;
* transactions, write batches and disposable temporary namespaces.

Prefix scans are ``LIKE 'escaped-prefix%'`` queries. SQLite evaluates ``LIKE``
on NUL-terminated UTF-8 text, where only ASCII bytes other than NUL compare
exactly, and patterns are capped in length. The query is then narrowed by the
longest leading part of the prefix that fits both rules, and every row is
re-checked byte for byte.
"""
from __future__ import annotations

import contextlib
import logging
from collections.abc import Callable, Iterator
from typing import Optional, TypeVar

from .connection import Connection, execute, query_one, run
from .dialect import Statements, check_table_name
from .errors import NotFoundError, StorageClosedError, translate_errors
from .pattern import fit_prefix, prefix_pattern
from .tempid import next_temporary_id
from .transaction import Batch, Transaction, as_bytes

__all__ = ["Storage", "open_db", "recover_db"]

logger = logging.getLogger(__name__)

T = TypeVar("T")

#: rows pulled from the cursor at a time while scanning
_FETCH_SIZE = 256


class Storage:
    """Ordered byte-string key-value namespace backed by a SQL table."""

    def __init__(
        self,
        driver: str,
        data_source: str,
        table: str,
        *,
        connection: Optional[Connection] = None,
        **options,
    ):
        self.table = check_table_name(table)
        self._owns_connection = connection is None
        self._conn = connection or Connection(driver, data_source, **options)
        self._stmts: Optional[Statements] = None
        self._open = False
        self._generation = self._conn.generation

    def __repr__(self) -> str:  # pragma: no cover
        return f"Storage<{self._conn.driver.name}:{self.table}>"

    def __enter__(self) -> "Storage":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def connection(self) -> Connection:
        return self._conn

    @property
    def closed(self) -> bool:
        return not self._open or self._conn.closed or self._generation != self._conn.generation

    # ------------------------------------------------------------------
    # Lifecycle 🔧
    # ------------------------------------------------------------------
    def open(self) -> None:
        """Connect, create the table if missing and prepare all statements."""
        if self._open:
            return
        self._conn.open()
        try:
            self._stmts = self._create(self.table)
        except Exception:
            if self._owns_connection:
                self._conn.close()
            raise
        self._generation = self._conn.generation
        self._open = True
        logger.info("opened %s (%s)", self.table, self._conn.dialect.name)

    def close(self) -> None:
        """Release the connection; data stays. Safe to call more than once.

        Closing a handle returned by :meth:`create_temporary` only detaches
        it. Closing its parent closes the shared connection, and with it
        every temporary handle created from it, for good: reopening the parent
        does not revive them.
        """
        if not self._open:
            return
        self._open = False
        if self._owns_connection:
            self._conn.close()
        elif self._stmts is not None:
            self._conn.forget(self._stmts)
        logger.info("closed %s", self.table)

    def compact_db(self) -> None:
        """No-op: the SQL engine compacts on its own."""
        logger.debug("compact_db is a no-op on %s", self._conn.dialect.name)

    def drop(self) -> None:
        """Drop the table and close the handle.

        A closed connection is reopened just long enough to issue the drop.
        """
        stmts = self._stmts or self._conn.dialect.statements(self.table)
        if self._conn.closed:
            self._conn.open()
            try:
                self._conn.execute(stmts.drop_table)
            finally:
                self._conn.close()
        else:
            self._conn.execute(stmts.drop_table)
        logger.info("dropped %s", self.table)
        self.close()

    def _create(self, table: str) -> Statements:
        stmts = self._conn.dialect.statements(table)
        self._conn.execute(stmts.create_table)
        self._conn.session(stmts.pragma)
        return self._conn.prepare_all(stmts)

    def _check(self) -> Statements:
        if self.closed or self._stmts is None:
            raise StorageClosedError(f"{self.table} is closed")
        return self._stmts

    # ------------------------------------------------------------------
    # Point operations
    # ------------------------------------------------------------------
    def get(self, key: bytes) -> bytes:
        """Return the value of *key*; :class:`NotFoundError` if there is none."""
        stmts = self._check()
        key = as_bytes(key)
        with self._conn.acquire() as raw, translate_errors(self._conn.errors, "get"):
            row = query_one(raw, stmts.get, (key,))
        if row is None:
            raise NotFoundError(key)
        return bytes(row[0] or b"")

    def put(self, key: bytes, value: bytes) -> None:
        stmts = self._check()
        args = (as_bytes(key), as_bytes(value, "value"))
        with self._conn.acquire() as raw, translate_errors(self._conn.errors, "put"):
            run(raw, stmts.put, args)

    def delete(self, key: bytes) -> None:
        """Remove *key*. Deleting an absent key succeeds."""
        stmts = self._check()
        key = as_bytes(key)
        with self._conn.acquire() as raw, translate_errors(self._conn.errors, "delete"):
            run(raw, stmts.delete, (key,))

    # ------------------------------------------------------------------
    # Prefix operations 🔎
    # ------------------------------------------------------------------
    def has_prefix(self, prefix: bytes) -> bool:
        """True if any key starts with *prefix* (the empty prefix matches every key)."""
        stmts = self._check()
        prefix = as_bytes(prefix, "prefix")
        if self._like_prefix(prefix) != prefix:
            with contextlib.closing(self._scan(stmts.process_prefix, prefix)) as rows:
                return next(rows, None) is not None
        pattern = prefix_pattern(prefix, self._conn.dialect.escape)
        with self._conn.acquire() as raw, translate_errors(self._conn.errors, "has_prefix"):
            (count,) = query_one(raw, stmts.count_prefix, (pattern,))
        return count > 0

    def fetch_by_prefix(self, prefix: bytes) -> list[bytes]:
        """Values of all keys starting with *prefix*, in key order."""
        stmts = self._check()
        prefix = as_bytes(prefix, "prefix")
        if self._like_prefix(prefix) != prefix:
            return [v for _, v in self._scan(stmts.process_prefix, prefix)]
        return [bytes(row[0] or b"") for row in self._rows(stmts.fetch_prefix, prefix)]

    def keys_by_prefix(self, prefix: bytes) -> list[bytes]:
        """Keys starting with *prefix*, ascending."""
        stmts = self._check()
        prefix = as_bytes(prefix, "prefix")
        if self._like_prefix(prefix) != prefix:
            return [k for k, _ in self._scan(stmts.process_prefix, prefix)]
        return [bytes(row[0]) for row in self._rows(stmts.keys_prefix, prefix)]

    def process_by_prefix(self, prefix: bytes, fn: Callable[[bytes, bytes], Optional[T]]) -> Optional[T]:
        """Call ``fn(key, value)`` for every key starting with *prefix*, in key order.

        The scan stops at the first call returning something other than
        ``None`` and hands that result back. Exceptions raised by *fn*
        propagate untouched.
        """
        stmts = self._check()
        prefix = as_bytes(prefix, "prefix")
        with contextlib.closing(self._scan(stmts.process_prefix, prefix)) as rows:
            for key, value in rows:
                result = fn(key, value)
                if result is not None:
                    return result
        return None

    def _like_prefix(self, prefix: bytes) -> bytes:
        """Longest leading part of *prefix* that ``LIKE`` compares byte for byte."""
        dialect = self._conn.dialect
        if not dialect.like_binary_safe:
            for i, b in enumerate(prefix):
                if b == 0 or b >= 0x80:
                    prefix = prefix[:i]
                    break
        if dialect.like_max_pattern is not None:
            prefix = fit_prefix(prefix, dialect.like_max_pattern, dialect.escape)
        return prefix

    def _rows(self, sql: str, prefix: bytes) -> Iterator[tuple]:
        pattern = prefix_pattern(prefix, self._conn.dialect.escape)
        errors = self._conn.errors
        with self._conn.acquire() as raw:
            with translate_errors(errors, "prefix scan"):
                cur = execute(raw, sql, (pattern,))
            try:
                while True:
                    with translate_errors(errors, "prefix scan"):
                        rows = cur.fetchmany(_FETCH_SIZE)
                    if not rows:
                        break
                    yield from rows
            finally:
                cur.close()

    def _scan(self, sql: str, prefix: bytes) -> Iterator[tuple[bytes, bytes]]:
        """Yield ``(key, value)`` for keys starting with *prefix*, ascending."""
        like = self._like_prefix(prefix)
        with contextlib.closing(self._rows(sql, like)) as rows:
            for key, value in rows:
                key = bytes(key)
                if like != prefix and not key.startswith(prefix):
                    continue
                yield key, bytes(value or b"")

    # ------------------------------------------------------------------
    # Transactions, batches, temporaries
    # ------------------------------------------------------------------
    def open_transaction(self) -> Transaction:
        return Transaction(self._conn, self._check())

    def create_batch(self) -> Batch:
        return Batch(Transaction(self._conn, self._check()))

    def create_temporary(self) -> "Storage":
        """Return a handle on a new, empty table sharing this handle's connection."""
        self._check()
        tmp = Storage(
            self._conn.driver.name,
            self._conn.data_source,
            f"{self.table}_{next_temporary_id()}",
            connection=self._conn,
        )
        tmp._stmts = tmp._create(tmp.table)
        tmp._open = True
        logger.debug("created temporary table %s", tmp.table)
        return tmp


def open_db(driver: str, data_source: str, table: str, **options) -> Storage:
    """Create a :class:`Storage` and open it."""
    s = Storage(driver, data_source, table, **options)
    s.open()
    return s


def recover_db(data_source: str) -> None:
    """No-op: an SQL database cannot be recovered through a library call."""
    logger.debug("recover_db is a no-op for %s", data_source)
