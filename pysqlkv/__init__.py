"""pysqlkv: an ordered byte-string key-value store on top of SQL databases.

The package exposes :class:`pysqlkv.Storage`, which gives any table reachable
through a DB-API driver (SQLite out of the box, MySQL with the ``mysql``
extra) LevelDB-style semantics: point lookups, ascending prefix scans,
transactions, write batches and throwaway temporary namespaces.
"""

from __future__ import annotations

__all__ = [
    "Storage",
    "open_db",
    "recover_db",
    "Transaction",
    "Batch",
    "StorageError",
    "NotFoundError",
    "StorageClosedError",
    "TransactionClosedError",
]

from .errors import NotFoundError, StorageClosedError, StorageError, TransactionClosedError
from .storage import Storage, open_db, recover_db
from .transaction import Batch, Transaction
