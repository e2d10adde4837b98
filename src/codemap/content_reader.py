from __future__ import annotations

import errno
from typing import TYPE_CHECKING

from codemap.config import FileContent, UnreadableReason

if TYPE_CHECKING:
    from pathlib import Path


def unreadable_from_error(error: OSError) -> FileContent:
    """Map an OS error raised while reading a file to an unreadable placeholder.

    Args:
        error (OSError): the error raised by ``stat`` or ``open``

    Returns:
        FileContent: an ``unreadable`` content naming the cause
    """
    if isinstance(error, PermissionError):
        return FileContent.unreadable(UnreadableReason.PERMISSION_DENIED)
    if isinstance(error, FileNotFoundError):
        return FileContent.unreadable(UnreadableReason.NOT_FOUND)
    if isinstance(error, IsADirectoryError):
        return FileContent.unreadable(UnreadableReason.IS_DIRECTORY)
    if error.errno == errno.ENAMETOOLONG:
        return FileContent.unreadable(UnreadableReason.NAME_TOO_LONG)
    return FileContent.unreadable(UnreadableReason.OTHER, detail=error.strerror or str(error))


def read_file_content(path: Path, max_size_bytes: int) -> FileContent:
    """Read a file as UTF-8 text without ever raising.

    The size is checked before anything is read, so oversized files are
    never loaded. Bytes are decoded as they are: line endings are kept and
    invalid UTF-8 sequences become U+FFFD.

    Args:
        path (Path): the file to read
        max_size_bytes (int): files strictly larger than this are not read

    Returns:
        FileContent: the text, a ``too_large`` marker, or an ``unreadable``
            marker describing why the file could not be read
    """
    try:
        size = path.stat().st_size
        if size > max_size_bytes:
            return FileContent.too_large(size)
        return FileContent.of_text(path.read_bytes().decode("utf-8", errors="replace"))
    except OSError as e:
        return unreadable_from_error(e)
