import io
import warnings
import zipfile

import pytest

from bcf_core.container import BcfContainer, read_source
from bcf_core.errors import (
    ArchiveError,
    DuplicatePathError,
    MissingEntryError,
    UnsupportedInputError,
)


def test_open_accepted_inputs(make_zip, tmp_path):
    data = make_zip({"a.txt": b"hello", "dir/b.txt": b"world"})
    path = tmp_path / "test.bcfzip"
    path.write_bytes(data)

    for src in [data, bytearray(data), memoryview(data), io.BytesIO(data), path]:
        cont = BcfContainer.open(src)
        assert cont.names() == ["a.txt", "dir/b.txt"]
        assert cont.get("a.txt") == b"hello"


@pytest.mark.parametrize("src", ["/some/path.bcf", "https://example.com/x.bcf", 42, None])
def test_open_unsupported_input(src):
    with pytest.raises(UnsupportedInputError):
        BcfContainer.open(src)


def test_read_source_text_stream():
    with pytest.raises(UnsupportedInputError):
        read_source(io.StringIO("not bytes"))


def test_open_invalid_archive(tmp_path):
    with pytest.raises(ArchiveError):
        BcfContainer.open(b"definitely not a zip file")
    with pytest.raises(ArchiveError):
        BcfContainer.open(tmp_path / "missing.bcfzip")


def test_open_duplicate_entries():
    buf = io.BytesIO()
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")  # zipfile warns about duplicate names
        with zipfile.ZipFile(buf, "w") as zf:
            zf.writestr("a.txt", b"1")
            zf.writestr("a.txt", b"2")
    with pytest.raises(ArchiveError) as e:
        BcfContainer.open(buf.getvalue())
    assert e.value.path == "a.txt"


def test_directory_entries_are_skipped(make_zip):
    cont = BcfContainer.open(make_zip({"g1/": b"", "g1/markup.bcf": b"<Markup/>"}))
    assert cont.names() == ["g1/markup.bcf"]
    assert len(cont) == 1
    assert "g1/" not in cont
    assert cont.get("g1/") is None


def test_get_and_entries(make_zip):
    cont = BcfContainer.open(make_zip({"x": b"1", "y": b"2"}))
    assert "x" in cont
    assert "z" not in cont
    assert cont.get("z") is None
    assert cont.get("x") == cont.get("x") == b"1"
    # entries can be iterated more than once
    assert list(cont.entries()) == [("x", b"1"), ("y", b"2")]
    assert list(cont.entries()) == [("x", b"1"), ("y", b"2")]


def test_put_read_only(make_zip):
    cont = BcfContainer.open(make_zip({"x": b"1"}))
    assert not cont.writable
    with pytest.raises(ArchiveError):
        cont.put("y", b"2")
    with pytest.raises(ArchiveError):
        cont.to_bytes()


def test_put():
    cont = BcfContainer.create()
    assert cont.writable
    cont.put("b", b"2")
    cont.put("a", b"1")
    assert cont.names() == ["b", "a"]
    assert cont.get("a") == b"1"

    with pytest.raises(DuplicatePathError) as e:
        cont.put("a", b"3")
    assert e.value.path == "a"
    assert cont.get("a") == b"1"

    with pytest.raises(ValueError):
        cont.put("", b"")
    with pytest.raises(ValueError):
        cont.put("dir/", b"")


def test_to_bytes_roundtrip():
    cont = BcfContainer.create()
    cont.put("g1/markup.bcf", b"<Markup/>")
    cont.put("g1/snapshot.png", bytes(range(256)))
    data = cont.to_bytes()

    reopened = BcfContainer.open(data)
    assert list(reopened.entries()) == list(cont.entries())


def test_to_bytes_deterministic():
    def build():
        cont = BcfContainer.create()
        cont.put("bcf.version", b"<Version/>")
        cont.put("g1/markup.bcf", b"<Markup/>" * 100)
        return cont.to_bytes()

    assert build() == build()


def test_unsupported_compression(make_odd_zip):
    cont = BcfContainer.open(make_odd_zip("a.txt", b"hello", method=99))
    assert "a.txt" in cont
    with pytest.raises(ArchiveError) as e:
        cont.get("a.txt")
    assert e.value.path == "a.txt"
    with pytest.raises(ArchiveError):
        list(cont.entries())


def test_encrypted_entry(make_odd_zip):
    with pytest.raises(ArchiveError) as e:
        BcfContainer.open(make_odd_zip("a.txt", b"hello", flags=0x1))
    assert e.value.path == "a.txt"


def test_require(make_zip):
    cont = BcfContainer.open(make_zip({"x": b"1"}))
    assert cont.require("x") == b"1"
    with pytest.raises(MissingEntryError) as e:
        cont.require("y")
    assert e.value.path == "y"
