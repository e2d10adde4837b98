"""Decide which directories are descended into and which files are collected."""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import PurePath
from typing import TYPE_CHECKING

from codemap.config import CODE_EXTENSIONS, IGNORE_DIRS, IGNORE_FILES
from codemap.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from codemap.config import ScanOptions


def normalize_rel(rel: str) -> str:
    """Normalize a relative path to ``/`` separators.

    Args:
        rel (str): a relative path, possibly with Windows separators

    Returns:
        str: the same path with every ``\\`` replaced by ``/``
    """
    return rel.replace("\\", "/")


def glob_to_regex(pattern: str) -> str:
    """Translate a shell-like exclude pattern into an unanchored regex.

    Only ``.`` is escaped; ``*`` matches any run of characters and ``?`` a
    single character. Any other character is kept as regex syntax.

    Args:
        pattern (str): the exclude pattern, e.g. ``*.test.js``

    Returns:
        str: the regular expression source
    """
    return pattern.replace(".", r"\.").replace("*", ".*").replace("?", ".")


@lru_cache(maxsize=256)
def compile_exclude_pattern(pattern: str) -> re.Pattern[str] | None:
    """Compile an exclude pattern for substring search.

    A pattern that is not a valid expression once translated matches
    nothing, so a typo never hides files.

    Args:
        pattern (str): the exclude pattern

    Returns:
        re.Pattern[str] | None: the compiled matcher, or None when invalid
    """
    try:
        return re.compile(glob_to_regex(pattern))
    except re.error as e:
        logger.warning("Ignoring invalid exclude pattern %r: %s", pattern, e)
        return None


def matches_exclude(name: str, rel: str, patterns: Iterable[str]) -> bool:
    """Check whether a file's base name or relative path matches any exclude pattern.

    Args:
        name (str): the base name of the file
        rel (str): the root-relative path of the file
        patterns (Iterable[str]): the exclude patterns

    Returns:
        bool: True if any pattern is found in the name or the normalized path
    """
    rel_norm = normalize_rel(rel)
    for pattern in patterns:
        if not pattern:
            continue
        matcher = compile_exclude_pattern(pattern)
        if matcher is None:
            continue
        if matcher.search(name) or matcher.search(rel_norm):
            return True
    return False


def is_directory_eligible(name: str, extra_ignore: Sequence[str] = ()) -> bool:
    """Check if a directory should be descended into.

    Args:
        name (str): the directory's own name (not its path)
        extra_ignore (Sequence[str]): directory names ignored on top of the defaults

    Returns:
        bool: False if the name is ignored, True otherwise
    """
    return name not in IGNORE_DIRS and name not in extra_ignore


def is_file_eligible(path: PurePath, rel: str, options: ScanOptions) -> bool:
    """Check if a file should be collected.

    Args:
        path (PurePath): the file path; only its name and suffix are used
        rel (str): the root-relative path used for exclude matching
        options (ScanOptions): include and exclude settings of the scan

    Returns:
        bool: True if the file passes the ignore list, the exclude patterns
            and the extension allow-list
    """
    name = path.name
    if name in IGNORE_FILES:
        return False
    if options.exclude_patterns and matches_exclude(name, rel, options.exclude_patterns):
        return False
    ext = path.suffix.lower()
    if not ext:
        return False
    allowed = options.include_extensions if options.include_extensions is not None else CODE_EXTENSIONS
    return ext in allowed
