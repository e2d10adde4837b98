"""Recursive, error tolerant directory scan producing ordered file records."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import StrEnum, auto
from pathlib import Path
from typing import TYPE_CHECKING

from codemap.classifier import is_directory_eligible, is_file_eligible
from codemap.config import FileRecord, ScanOptions
from codemap.content_reader import read_file_content
from codemap.exceptions import RootDirectoryError
from codemap.logging import logger

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


class ScanWarningKind(StrEnum):
    """Non fatal conditions met while scanning."""

    SYMLINK_SKIPPED = auto()
    DIRECTORY_UNREADABLE = auto()
    ENTRY_ERROR = auto()
    SIZE_UNAVAILABLE = auto()


@dataclass(frozen=True)
class ScanWarning:
    """A structured warning emitted by the scanner."""

    kind: ScanWarningKind
    path: Path
    message: str


def log_scan_warning(warning: ScanWarning) -> None:
    """Default sink: log the warning through structlog."""
    logger.warning(warning.message, kind=str(warning.kind), path=str(warning.path))


def describe_directory_error(path: Path, error: OSError) -> str:
    """Build a human readable message for a directory that cannot be listed.

    Returns:
        str: the message
    """
    if isinstance(error, PermissionError):
        return f"Permission denied: Cannot access directory {path}"
    if isinstance(error, FileNotFoundError):
        return f"Directory not found: {path}"
    return f"Error scanning directory {path}: {error.strerror or error}"


def list_directory(path: Path) -> list[os.DirEntry[str]]:
    """List a directory, entries sorted by name.

    Raises:
        OSError: if the directory cannot be listed

    Returns:
        list[os.DirEntry[str]]: the directory entries
    """
    with os.scandir(path) as it:
        return sorted(it, key=lambda e: e.name)


def file_size(path: Path) -> int:
    """Return the size of a file without following symbolic links."""
    return path.stat(follow_symlinks=False).st_size


def relpath(path: Path, root: Path) -> str:
    """Send the relative path of path from root, with POSIX separators.

    Returns:
        str: the relative path, or the path itself if it is not under root
    """
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def make_record(path: Path, root: Path, options: ScanOptions, sink: Callable[[ScanWarning], None]) -> FileRecord:
    """Read one eligible file into a record.

    A failing size lookup is reported to ``sink`` and the size defaults to 0.

    Returns:
        FileRecord: the record for ``path``
    """
    rel = relpath(path, root)
    content = read_file_content(path, options.max_file_size_bytes)
    size = 0
    try:
        size = file_size(path)
    except OSError as e:
        sink(ScanWarning(ScanWarningKind.SIZE_UNAVAILABLE, path, f"Could not get size for {rel}: {e}"))
    return FileRecord(
        path=path,
        rel=rel,
        name=path.name,
        extension=path.suffix,
        size=size,
        content=content,
    )


def scan_directory(
    root: Path | str,
    options: ScanOptions | None = None,
    sink: Callable[[ScanWarning], None] = log_scan_warning,
) -> list[FileRecord]:
    """Collect every eligible file under ``root``, depth first, in name order.

    Symbolic links are never followed. Directories that cannot be listed
    below the root, files whose entry fails, and sizes that cannot be read
    are reported to ``sink`` and skipped (or defaulted) without stopping the
    scan. The walk uses an explicit stack, so deep trees do not hit the
    interpreter recursion limit.

    Args:
        root (Path | str): the directory to scan
        options (ScanOptions | None): scan options; defaults when None
        sink (Callable[[ScanWarning], None]): receives non fatal warnings

    Raises:
        RootDirectoryError: if ``root`` itself cannot be listed

    Returns:
        list[FileRecord]: the records in traversal order
    """
    opts = options or ScanOptions()
    root_path = Path(root).absolute()
    try:
        top = list_directory(root_path)
    except OSError as e:
        raise RootDirectoryError(folder=root_path, reason=describe_directory_error(root_path, e)) from e

    results: list[FileRecord] = []
    stack: list[tuple[Iterator[os.DirEntry[str]], int]] = [(iter(top), 0)]
    while stack:
        entries, depth = stack[-1]
        entry = next(entries, None)
        if entry is None:
            stack.pop()
            continue

        path = Path(entry.path)
        try:
            if entry.is_symlink():
                sink(ScanWarning(ScanWarningKind.SYMLINK_SKIPPED, path, f"Skipping symbolic link {entry.name}"))
            elif entry.is_dir(follow_symlinks=False):
                if not is_directory_eligible(entry.name, opts.extra_ignore_directories):
                    continue
                if opts.max_depth is not None and depth >= opts.max_depth:
                    continue
                try:
                    children = list_directory(path)
                except OSError as e:
                    sink(ScanWarning(ScanWarningKind.DIRECTORY_UNREADABLE, path, describe_directory_error(path, e)))
                    continue
                stack.append((iter(children), depth + 1))
            elif entry.is_file(follow_symlinks=False):
                if is_file_eligible(path, relpath(path, root_path), opts):
                    results.append(make_record(path, root_path, opts, sink))
        except OSError as e:
            sink(ScanWarning(ScanWarningKind.ENTRY_ERROR, path, f"Error processing {entry.name}: {e}"))

    logger.info("Scanned %s: %d file(s)", root_path, len(results))
    return results
