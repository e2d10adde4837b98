from __future__ import annotations

import errno
from typing import TYPE_CHECKING

import pytest

from codemap.config import ContentKind, FileContent, UnreadableReason
from codemap.content_reader import read_file_content, unreadable_from_error

if TYPE_CHECKING:
    from pathlib import Path


@pytest.mark.unit
def test_read_file_content_returns_text_with_line_endings(tmp_path: Path) -> None:
    path = tmp_path / "crlf.txt"
    path.write_bytes(b"one\r\ntwo\r\n")

    content = read_file_content(path, 1024)

    assert content == FileContent.of_text("one\r\ntwo\r\n")


@pytest.mark.unit
def test_read_file_content_replaces_invalid_utf8(tmp_path: Path) -> None:
    path = tmp_path / "latin.txt"
    path.write_bytes(b"caf\xe9")

    content = read_file_content(path, 1024)

    assert content.text == "caf\ufffd"


@pytest.mark.unit
def test_read_file_content_too_large_placeholder(tmp_path: Path) -> None:
    path = tmp_path / "big.txt"
    path.write_bytes(b"x" * 2000)

    content = read_file_content(path, 1000)

    assert content.kind is ContentKind.TOO_LARGE
    assert content.size_bytes == 2000  # noqa: PLR2004
    assert content.display == "[File too large to display: 0.00 MB]"


@pytest.mark.unit
def test_read_file_content_at_limit_is_read(tmp_path: Path) -> None:
    path = tmp_path / "edge.txt"
    path.write_bytes(b"x" * 10)

    assert read_file_content(path, 10).is_text


@pytest.mark.unit
def test_read_file_content_missing_file(tmp_path: Path) -> None:
    content = read_file_content(tmp_path / "gone.py", 1024)

    assert content.reason is UnreadableReason.NOT_FOUND
    assert content.display == "[File not found: File may have been deleted]"


@pytest.mark.unit
def test_read_file_content_directory(tmp_path: Path) -> None:
    content = read_file_content(tmp_path, 10**9)

    assert content.kind is ContentKind.UNREADABLE
    assert content.display == "[Error: Path is a directory, not a file]"


@pytest.mark.unit
@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (PermissionError(errno.EACCES, "denied"), "[Permission denied: Cannot read file]"),
        (OSError(errno.ENAMETOOLONG, "File name too long"), "[Error: File path too long]"),
        (OSError(errno.EIO, "Input/output error"), "[Error reading file: Input/output error]"),
    ],
)
def test_unreadable_from_error_messages(error: OSError, expected: str) -> None:
    assert unreadable_from_error(error).display == expected
