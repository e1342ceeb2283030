# tests/test_manifest.py
import os

import pytest

from checksumly import manifest
from checksumly.config import temp_path_for
from checksumly.errors import ManifestError, ManifestReason, WriteError
from checksumly.manifest import initialize, load_header, read_scope, write_full, write_spliced
from checksumly.models import Entry, FileTypeFilter, Header, ManifestState, Scope
from tests.helpers import table_body

HEADER = Header(".", FileTypeFilter())

BODY = [
    "./,,,",
    "./,f1.txt,t1,h1",
    "./A,,,",
    "./A,a1.txt,ta1,ha1",
    "./A/deep,,,",
    "./A/deep,d1.txt,td1,hd1",
    "./B,,,",
    "./B,b1.txt,tb1,hb1",
    "./Folder,,,",
    "./Folder,x.txt,tx,hx",
    "./Folder2,,,",
    "./Folder2,y.txt,ty,hy",
]


@pytest.fixture
def stored(table):
    table.write_text("\n".join([*HEADER.lines(), *BODY]) + "\n", encoding="utf-8")
    return table


# ------------------------------
# Header
# ------------------------------
def test_load_header_missing_or_empty(table):
    with pytest.raises(ManifestError) as exc:
        load_header(table)
    assert exc.value.reason is ManifestReason.EMPTY_OR_MISSING

    table.write_text("", encoding="utf-8")
    with pytest.raises(ManifestError) as exc:
        load_header(table)
    assert exc.value.reason is ManifestReason.EMPTY_OR_MISSING
    assert manifest.manifest_state(table) is ManifestState.UNINITIALIZED


def test_load_header_reads_fields(stored):
    header = load_header(stored)
    assert header == HEADER
    assert manifest.manifest_state(stored) is ManifestState.INITIALIZED


@pytest.mark.parametrize(
    "content, message",
    [
        ("./\n*\n", "Incomplete header"),
        (".\n*\nPATH,HASH\n", "Unknown column layout"),
    ],
)
def test_load_header_bad_layout(table, content, message):
    table.write_text(content, encoding="utf-8")
    with pytest.raises(ManifestError) as exc:
        load_header(table)
    assert exc.value.reason is ManifestReason.SCHEMA_MISMATCH
    assert message in str(exc.value)


def test_load_header_expected_mismatch(stored):
    with pytest.raises(ManifestError, match="Wrong folder base"):
        load_header(stored, expected=Header("MyFolder", FileTypeFilter()))

    with pytest.raises(ManifestError, match="File types incoherence") as exc:
        load_header(stored, expected=Header(".", FileTypeFilter.parse("jpg")))
    assert exc.value.reason is ManifestReason.SCHEMA_MISMATCH


def test_initialize_is_idempotent(table):
    assert initialize(table, HEADER) is True
    assert table.read_text(encoding="utf-8") == ".\n*\nRELDIR,FILENAME,TIME,HASH\n"

    assert initialize(table, HEADER) is False
    assert table.read_text(encoding="utf-8") == ".\n*\nRELDIR,FILENAME,TIME,HASH\n"

    with pytest.raises(ManifestError):
        initialize(table, Header("other", FileTypeFilter()))


# ------------------------------
# Scoped reads
# ------------------------------
def test_read_scope_for_check_keeps_scope_lines(stored):
    read = read_scope(stored, Scope("./Folder"))

    assert read.inside == ("./Folder,,,", "./Folder,x.txt,tx,hx")
    assert read.outside == ()
    assert read.marker is None


def test_read_scope_whole_base(stored):
    read = read_scope(stored, Scope("./"))
    assert list(read.inside) == BODY


def test_read_scope_for_update_collapses_block(stored):
    read = read_scope(stored, Scope("./A"), for_update=True)

    assert read.inside == ()
    assert "./A,a1.txt,ta1,ha1" not in read.outside
    assert read.marker.position == 2
    assert read.marker.line_count == 4
    assert read.marker.contiguous
    assert read.marker.matches(BODY[2:6])
    assert not read.marker.matches(BODY[2:5])

    fresh = ["./A,,,", "./A,new.txt,tn,hn"]
    assert read.spliced(fresh) == [*BODY[:2], *fresh, *BODY[6:]]


def test_read_scope_unknown_folder_goes_to_depth_first_position(stored):
    read = read_scope(stored, Scope("./Aa"), for_update=True)

    assert read.marker.line_count == 0
    # after ./A/deep, before ./B
    assert read.marker.position == 6
    assert not read.marker.matches(["./Aa,,,"])


def test_read_scope_detects_non_contiguous_block(table):
    body = ["./,,,", "./A,,,", "./B,,,", "./A/x,,,"]
    table.write_text("\n".join([*HEADER.lines(), *body]) + "\n", encoding="utf-8")

    read = read_scope(table, Scope("./A"), for_update=True)

    assert read.marker.position == 1
    assert not read.marker.contiguous
    assert not read.marker.matches(["./A,,,", "./A/x,,,"])
    assert read.spliced(["./A,,,", "./A/x,,,"]) == ["./,,,", "./A,,,", "./A/x,,,", "./B,,,"]


def test_read_scope_skips_blank_lines(table):
    table.write_text("\n".join([*HEADER.lines(), "./,,,", "", "./,f,t,h"]) + "\n", encoding="utf-8")
    assert read_scope(table, Scope("./")).inside == ("./,,,", "./,f,t,h")


@pytest.mark.parametrize(
    "bad_line",
    [
        "./,only,three",
        "A,,,",
        "./,f1.txt,,",
        '"./unterminated,,,',
        "./C,c.txt,t,h",  # file record before its folder marker
    ],
)
def test_read_scope_rejects_corrupt_lines(table, bad_line):
    table.write_text("\n".join([*HEADER.lines(), "./,,,", bad_line]) + "\n", encoding="utf-8")

    with pytest.raises(ManifestError) as exc:
        read_scope(table, Scope("./"))
    assert exc.value.reason is ManifestReason.CORRUPT


@pytest.mark.parametrize(
    "raw",
    [
        b".\n*\nRELDIR,FILENAME,TIME,HASH\n./,,,\n./,\xff.txt,t,h\n",
        b".\xff\n*\nRELDIR,FILENAME,TIME,HASH\n./,,,\n",
    ],
)
def test_read_scope_rejects_undecodable_bytes(table, raw):
    table.write_bytes(raw)

    with pytest.raises(ManifestError) as exc:
        read_scope(table, Scope("./"))
    assert exc.value.reason is ManifestReason.CORRUPT


# ------------------------------
# Writes
# ------------------------------
def test_write_full_renders_entries(table):
    count = write_full(table, HEADER, [Entry("./"), Entry("./", "f1.txt", "t1", "h1")])

    assert count == 2
    assert table.read_text(encoding="utf-8") == (
        ".\n*\nRELDIR,FILENAME,TIME,HASH\n./,,,\n./,f1.txt,t1,h1\n"
    )
    assert not temp_path_for(table).exists()


def test_write_spliced_leaves_other_lines_untouched(stored):
    read = read_scope(stored, Scope("./B"), for_update=True)
    write_spliced(stored, HEADER, read, [Entry("./B"), Entry("./B", "b2.txt", "tb2", "hb2")])

    body = table_body(stored)
    assert body == [*BODY[:6], "./B,,,", "./B,b2.txt,tb2,hb2", *BODY[8:]]


def test_failed_swap_keeps_original(stored, monkeypatch):
    original = stored.read_bytes()

    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", broken_replace)

    with pytest.raises(WriteError):
        write_full(stored, HEADER, [Entry("./")])

    assert stored.read_bytes() == original
    assert not temp_path_for(stored).exists()


def test_temp_file_that_cannot_be_created_keeps_original(stored):
    original = stored.read_bytes()
    temp_path_for(stored).mkdir()

    with pytest.raises(WriteError):
        write_full(stored, HEADER, [Entry("./")])

    assert stored.read_bytes() == original


def test_unencodable_line_fails_write_and_removes_temp_file(stored):
    original = stored.read_bytes()

    with pytest.raises(WriteError):
        write_full(stored, HEADER, ["./,,,", "./,bad\udcff.txt,t,h"])

    assert stored.read_bytes() == original
    assert not temp_path_for(stored).exists()
