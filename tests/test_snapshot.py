"""Tests for msgpack snapshots."""
import io

import pytest

from pysqlkv import snapshot


@pytest.fixture
def sample_data():
    return {
        b"Pamd64 lib 1.0": b"stanza-1",
        b"Pi386 lib 1.0": b"stanza-2",
        b"Pi386 dpkg 1.7": b"stanza-3",
        b"\x00\xff": b"",
    }


def test_dump_and_load(db, sample_data):
    """Test that a dumped namespace loads back in full."""
    for k, v in sample_data.items():
        db.put(k, v)

    buf = io.BytesIO()
    assert snapshot.dump(db, buf) == len(sample_data)

    tmp = db.create_temporary()
    buf.seek(0)
    assert snapshot.load(tmp, buf) == len(sample_data)
    assert tmp.keys_by_prefix(b"") == sorted(sample_data)
    for k, v in sample_data.items():
        assert tmp.get(k) == v


def test_dump_prefix(db, sample_data):
    for k, v in sample_data.items():
        db.put(k, v)

    buf = io.BytesIO()
    assert snapshot.dump(db, buf, prefix=b"Pi386 ") == 2
    buf.seek(0)
    assert [k for k, _ in snapshot.iter_records(buf)] == [b"Pi386 dpkg 1.7", b"Pi386 lib 1.0"]


def test_load_truncated_writes_nothing(db, sample_data):
    """Test that a damaged stream leaves the namespace untouched."""
    for k, v in sample_data.items():
        db.put(k, v)
    buf = io.BytesIO()
    snapshot.dump(db, buf)
    damaged = io.BytesIO(buf.getvalue()[:-3])

    tmp = db.create_temporary()
    with pytest.raises(ValueError):
        snapshot.load(tmp, damaged)
    assert not tmp.has_prefix(b"")


def test_empty_snapshot(db):
    buf = io.BytesIO()
    assert snapshot.dump(db, buf) == 0
    assert buf.getvalue() == b""
    buf.seek(0)
    assert snapshot.load(db, buf) == 0
