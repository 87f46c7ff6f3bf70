"""Transactions and write batches.

A :class:`Transaction` owns one pooled connection with an open database
transaction on it. Its writes are invisible to everybody else until
:meth:`Transaction.commit`; :meth:`Transaction.discard` throws them away.

    active ──commit()──▶ committed
      │
      └────discard()──▶ discarded

Both end states are terminal. ``discard`` on a finished transaction is a
no-op, so callers may always discard on the way out::

    with storage.open_transaction() as txn:
        txn.put(b"k", b"v")
        txn.commit()

Transactions deliberately have no prefix operations.
"""
from __future__ import annotations

import enum
from typing import Any

from .connection import Connection, query_one, run
from .dialect import Statements
from .errors import NotFoundError, TransactionClosedError, translate_errors

__all__ = ["Transaction", "Batch", "State", "as_bytes"]


def as_bytes(obj: Any, what: str = "key") -> bytes:
    """Coerce a bytes-like *obj* to ``bytes``; anything else is a ``TypeError``."""
    if isinstance(obj, bytes):
        return obj
    if isinstance(obj, (bytearray, memoryview)):
        return bytes(obj)
    raise TypeError(f"{what} must be bytes, not {type(obj).__name__}")


class State(enum.Enum):
    ACTIVE = "active"
    COMMITTED = "committed"
    DISCARDED = "discarded"


class Transaction:
    """Isolated Get/Put/Delete against one namespace."""

    def __init__(self, conn: Connection, stmts: Statements):
        self._conn = conn
        self._stmts = stmts
        self._errors = conn.errors
        self._raw = conn.checkout()
        try:
            with translate_errors(self._errors, "begin transaction"):
                run(self._raw, conn.dialect.begin)
        except Exception:
            conn.checkin(self._raw)
            raise
        self.state = State.ACTIVE

    def __enter__(self) -> "Transaction":
        return self

    def __exit__(self, *exc_info) -> None:
        self.discard()

    def _check(self) -> None:
        if self.state is not State.ACTIVE:
            raise TransactionClosedError(f"transaction already {self.state.value}")

    # ------------------------------------------------------------------
    # Reader / Writer
    # ------------------------------------------------------------------
    def get(self, key: bytes) -> bytes:
        self._check()
        key = as_bytes(key)
        with translate_errors(self._errors, "get"):
            row = query_one(self._raw, self._stmts.get, (key,))
        if row is None:
            raise NotFoundError(key)
        return bytes(row[0] or b"")

    def put(self, key: bytes, value: bytes) -> None:
        self._check()
        args = (as_bytes(key), as_bytes(value, "value"))
        with translate_errors(self._errors, "put"):
            run(self._raw, self._stmts.put, args)

    def delete(self, key: bytes) -> None:
        self._check()
        key = as_bytes(key)
        with translate_errors(self._errors, "delete"):
            run(self._raw, self._stmts.delete, (key,))

    # ------------------------------------------------------------------
    # Termination
    # ------------------------------------------------------------------
    def commit(self) -> None:
        """Apply every write atomically. A failed commit still ends the transaction."""
        self._check()
        try:
            with translate_errors(self._errors, "commit"):
                self._raw.commit()
        except Exception:
            self.state = State.DISCARDED
            broken = False
            try:
                self._raw.rollback()
            except self._errors.Error:
                # the commit error is what the caller needs to see
                broken = True
            self._release(broken)
            raise
        self.state = State.COMMITTED
        self._release()

    def discard(self) -> None:
        """Roll back. A no-op once the transaction is committed or discarded."""
        if self.state is not State.ACTIVE:
            return
        self.state = State.DISCARDED
        try:
            with translate_errors(self._errors, "rollback"):
                self._raw.rollback()
        except Exception:
            self._release(broken=True)
            raise
        self._release()

    def _release(self, broken: bool = False) -> None:
        raw, self._raw = self._raw, None
        if raw is not None:
            self._conn.checkin(raw, broken)


class Batch:
    """Write-only set of Put/Delete calls applied together by :meth:`write`."""

    def __init__(self, txn: Transaction):
        self._txn = txn

    def __enter__(self) -> "Batch":
        return self

    def __exit__(self, *exc_info) -> None:
        self.discard()

    def put(self, key: bytes, value: bytes) -> None:
        self._txn.put(key, value)

    def delete(self, key: bytes) -> None:
        self._txn.delete(key)

    def write(self) -> None:
        self._txn.commit()

    def discard(self) -> None:
        self._txn.discard()
