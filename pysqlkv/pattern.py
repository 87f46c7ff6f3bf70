"""``LIKE`` pattern helpers.

SQL ``LIKE`` knows two wildcards, ``%`` (any sequence) and ``_`` (any single
character). A prefix scan over arbitrary binary keys therefore needs every
literal occurrence of those bytes, and of the escape byte itself, neutralised
before the trailing ``%`` is appended.
"""
from __future__ import annotations

__all__ = ["escape_like", "prefix_pattern", "fit_prefix", "ANY_SEQUENCE", "ANY_SINGLE"]

ANY_SEQUENCE = b"%"
ANY_SINGLE = b"_"
DEFAULT_ESCAPE = b"\\"


def escape_like(pattern: bytes, escape: bytes = DEFAULT_ESCAPE) -> bytes:
    """Escape ``LIKE`` wildcards in *pattern* using the single byte *escape*.

    The escape byte is handled in the same left-to-right pass as the
    wildcards, so an escape inserted for ``%`` is never escaped again.
    """
    if len(escape) != 1:
        raise ValueError(f"escape must be a single byte, got {escape!r}")
    special = (escape[0], ANY_SEQUENCE[0], ANY_SINGLE[0])
    out = bytearray()
    for b in bytes(pattern):
        if b in special:
            out.append(escape[0])
        out.append(b)
    return bytes(out)


def prefix_pattern(prefix: bytes, escape: bytes = DEFAULT_ESCAPE) -> bytes:
    """Return a pattern matching every value that starts with *prefix*."""
    return escape_like(prefix, escape) + ANY_SEQUENCE


def fit_prefix(prefix: bytes, limit: int, escape: bytes = DEFAULT_ESCAPE) -> bytes:
    """Longest leading part of *prefix* whose :func:`prefix_pattern` is at most *limit* bytes."""
    special = (escape[0], ANY_SEQUENCE[0], ANY_SINGLE[0])
    size = len(ANY_SEQUENCE)
    for i, b in enumerate(prefix):
        size += 2 if b in special else 1
        if size > limit:
            return prefix[:i]
    return prefix
