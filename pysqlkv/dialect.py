"""SQL dialects and statement generation.

Every backend is described by one frozen :class:`Dialect` record. The record
is picked once, by the driver a namespace is opened with, and turns
a table name into the fixed :class:`Statements` set used for the lifetime of
that namespace:

    ┌──────────────┬──────────────────────┬──────────────────────┐
    │              │ standard (SQLite)    │ mysql                │
    ├──────────────┼──────────────────────┼──────────────────────┤
    │ key column   │ BLOB                 │ VARBINARY(3072)      │
    │ value column │ BLOB                 │ LONGBLOB             │
    │ upsert       │ INSERT OR REPLACE    │ REPLACE              │
    │ LIKE escape  │ \\                    │ !                    │
    │ pragma       │ case_sensitive_like  │ (none)               │
    │ LIKE operand │ CAST(... AS TEXT)    │ raw VARBINARY        │
    │ max pattern  │ 50000 bytes          │ (no limit)           │
    └──────────────┴──────────────────────┴──────────────────────┘
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

__all__ = ["Dialect", "Statements", "SQLITE", "MYSQL", "check_table_name"]

# InnoDB refuses index keys longer than 3072 bytes, so this is the widest
# binary primary key MySQL accepts without silent prefix indexing.
MYSQL_KEY_LENGTH = 3072

# SQLITE_MAX_LIKE_PATTERN_LENGTH of a stock SQLite build; longer patterns
# fail with "LIKE or GLOB pattern too complex".
SQLITE_LIKE_PATTERN_LENGTH = 50_000

_TABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def check_table_name(name: str) -> str:
    """Return *name* unchanged, or raise ``ValueError`` if it is not a plain identifier."""
    if not isinstance(name, str) or not _TABLE_NAME.match(name):
        raise ValueError(f"invalid table name: {name!r}")
    return name


@dataclass(frozen=True)
class Statements:
    """Statement texts bound to one table of one dialect."""

    create_table: str
    pragma: Optional[str]
    put: str
    get: str
    delete: str
    count_prefix: str
    fetch_prefix: str
    keys_prefix: str
    process_prefix: str
    drop_table: str

    #: statements run per operation (everything but the DDL)
    QUERIES = ("put", "get", "delete", "count_prefix", "fetch_prefix", "keys_prefix", "process_prefix")

    def queries(self) -> dict[str, str]:
        return {name: getattr(self, name) for name in self.QUERIES}


@dataclass(frozen=True)
class Dialect:
    """Syntax and typing rules of one backend engine."""

    name: str
    placeholder: str
    quote: str
    key_type: str
    value_type: str
    upsert: str
    escape: bytes
    pragma: Optional[str]
    begin: str
    #: False when LIKE reads its operands as NUL-terminated UTF-8 text
    like_binary_safe: bool
    #: type both LIKE operands are cast to, None to compare the columns as stored
    like_cast: Optional[str] = None
    #: longest LIKE pattern in bytes the engine accepts, None if unbounded
    like_max_pattern: Optional[int] = None

    def ident(self, name: str) -> str:
        return f"{self.quote}{name}{self.quote}"

    def statements(self, table: str) -> Statements:
        """Generate the full statement set for *table*."""
        t = self.ident(check_table_name(table))
        k, v = self.ident("key"), self.ident("value")
        p = self.placeholder
        lhs, rhs = k, p
        if self.like_cast:
            lhs, rhs = f"CAST({k} AS {self.like_cast})", f"CAST({p} AS {self.like_cast})"
        like = f"{lhs} LIKE {rhs} ESCAPE '{self.escape.decode('ascii')}'"
        return Statements(
            create_table=(
                f"CREATE TABLE IF NOT EXISTS {t} "
                f"( {k} {self.key_type} NOT NULL PRIMARY KEY, {v} {self.value_type} )"
            ),
            pragma=self.pragma,
            put=f"{self.upsert} {t} ({k}, {v}) VALUES ({p}, {p})",
            get=f"SELECT {v} FROM {t} WHERE {k} = {p}",
            delete=f"DELETE FROM {t} WHERE {k} = {p}",
            count_prefix=f"SELECT COUNT(*) FROM {t} WHERE {like}",
            fetch_prefix=f"SELECT {v} FROM {t} WHERE {like} ORDER BY {k}",
            keys_prefix=f"SELECT {k} FROM {t} WHERE {like} ORDER BY {k}",
            process_prefix=f"SELECT {k}, {v} FROM {t} WHERE {like} ORDER BY {k}",
            drop_table=f"DROP TABLE IF EXISTS {t}",
        )


SQLITE = Dialect(
    name="standard",
    placeholder="?",
    quote='"',
    key_type="BLOB",
    value_type="BLOB",
    upsert="INSERT OR REPLACE INTO",
    escape=b"\\",
    pragma="PRAGMA case_sensitive_like = true",
    begin="BEGIN",
    like_binary_safe=False,
    # BLOB operands never match LIKE on builds with SQLITE_LIKE_DOESNT_MATCH_BLOBS
    like_cast="TEXT",
    like_max_pattern=SQLITE_LIKE_PATTERN_LENGTH,
)

MYSQL = Dialect(
    name="mysql",
    placeholder="%s",
    quote="`",
    key_type=f"VARBINARY({MYSQL_KEY_LENGTH})",
    value_type="LONGBLOB",
    upsert="REPLACE INTO",
    escape=b"!",
    pragma=None,  # VARBINARY compares bytes, LIKE is already case-sensitive
    begin="START TRANSACTION",
    like_binary_safe=True,
)
