"""Unit tests for LIKE pattern escaping."""
import pytest

from pysqlkv.pattern import escape_like, fit_prefix, prefix_pattern


@pytest.mark.parametrize(
    "raw, expected",
    [
        (b"", b""),
        (b"plain", b"plain"),
        (b"100%", b"100\\%"),
        (b"a_b", b"a\\_b"),
        (b"C:\\dir", b"C:\\\\dir"),
        # escape first, otherwise "\%" would turn into "\\\%"
        (b"\\%", b"\\\\\\%"),
        (b"%_\\", b"\\%\\_\\\\"),
    ],
)
def test_escape_like(raw, expected):
    """Test escaping with the default backslash escape."""
    assert escape_like(raw) == expected


def test_escape_like_custom_escape():
    """Test escaping with another escape byte."""
    assert escape_like(b"a!b%c_d", b"!") == b"a!!b!%c!_d"
    # backslash is an ordinary byte when it is not the escape
    assert escape_like(b"a\\b", b"!") == b"a\\b"


def test_escape_like_binary():
    """Test that arbitrary bytes pass through untouched."""
    raw = bytes(range(256))
    escaped = escape_like(raw)
    assert escaped.replace(b"\\\\", b"\\").replace(b"\\%", b"%").replace(b"\\_", b"_") == raw
    assert len(escaped) == 256 + 3


def test_escape_like_rejects_long_escape():
    with pytest.raises(ValueError):
        escape_like(b"abc", b"!!")


def test_prefix_pattern():
    """Test that prefix patterns end with an unescaped wildcard."""
    assert prefix_pattern(b"") == b"%"
    assert prefix_pattern(b"Pamd64 ") == b"Pamd64 %"
    assert prefix_pattern(b"50%") == b"50\\%%"
    assert prefix_pattern(b"x_", b"!") == b"x!_%"


def test_escape_like_accepts_bytearray():
    assert escape_like(bytearray(b"a%")) == b"a\\%"


def test_fit_prefix():
    """Test that a fitted prefix keeps its escaped pattern within the limit."""
    assert fit_prefix(b"abc", 10) == b"abc"
    assert fit_prefix(b"abcdef", 4) == b"abc"
    # each "%" costs two pattern bytes once escaped
    assert fit_prefix(b"%%%", 5) == b"%%"
    assert fit_prefix(b"a%", 3) == b"a"
    assert fit_prefix(b"", 1) == b""

    long = b"a_" * 40000
    fitted = fit_prefix(long, 50000)
    assert long.startswith(fitted)
    assert len(prefix_pattern(fitted)) <= 50000
    assert len(prefix_pattern(long[: len(fitted) + 1])) > 50000
