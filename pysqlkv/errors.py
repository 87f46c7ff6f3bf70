"""Exception hierarchy shared by every storage component.

Driver exceptions never leak out of the adapter: :func:`translate_errors`
wraps anything derived from the DB-API ``Error`` base class of the active
driver into :class:`StorageError`, keeping the original as ``__cause__``.
"""
from __future__ import annotations

import contextlib
from collections.abc import Iterator
from types import ModuleType

__all__ = [
    "StorageError",
    "NotFoundError",
    "StorageClosedError",
    "TransactionClosedError",
    "translate_errors",
]


class StorageError(Exception):
    """Backend failure (connection lost, disk error, DDL error, ...)."""


class NotFoundError(StorageError, KeyError):
    """Raised by ``get`` when no row holds the requested key."""

    def __init__(self, key: bytes):
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"key not found: {self.key!r}"


class StorageClosedError(StorageError):
    """Operation attempted on a closed storage handle."""


class TransactionClosedError(StorageError):
    """Operation attempted on a committed or discarded transaction."""


@contextlib.contextmanager
def translate_errors(driver: ModuleType, what: str) -> Iterator[None]:
    """Re-raise ``driver.Error`` subclasses as :class:`StorageError`."""
    try:
        yield
    except driver.Error as exc:
        raise StorageError(f"{what}: {exc}") from exc
