"""Project statistics computed from scanned records."""

from __future__ import annotations

import io
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from codemap.config import language_name

if TYPE_CHECKING:
    from collections.abc import Sequence

    from codemap.config import FileRecord

LARGEST_FILES_LIMIT = 10
CHART_WIDTH = 40


class LanguageStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    language: str
    files: int = 0
    lines: int = 0
    size: int = 0


class SizeBuckets(BaseModel):
    """File counts per size class."""

    model_config = ConfigDict(frozen=True)

    small: int = Field(default=0, description="< 10KB")
    medium: int = Field(default=0, description="10KB - 100KB")
    large: int = Field(default=0, description="100KB - 1MB")
    very_large: int = Field(default=0, description="> 1MB")


class FileSizeEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    size: int
    lines: int


class ProjectStatistics(BaseModel):
    """Aggregated numbers about a scanned project.

    Only files with readable text count towards lines, languages and
    extensions; every file counts towards sizes.
    """

    model_config = ConfigDict(frozen=True)

    total_files: int = 0
    total_size: int = 0
    total_lines: int = 0
    by_language: dict[str, LanguageStats] = Field(default_factory=dict)
    by_extension: dict[str, int] = Field(default_factory=dict)
    files_by_size: SizeBuckets = Field(default_factory=SizeBuckets)
    largest_files: list[FileSizeEntry] = Field(default_factory=list)
    languages_by_lines: list[LanguageStats] = Field(default_factory=list)


def size_bucket(size: int) -> str:
    kb = size / 1024
    if kb < 10:  # noqa: PLR2004
        return "small"
    if kb < 100:  # noqa: PLR2004
        return "medium"
    if kb < 1024:  # noqa: PLR2004
        return "large"
    return "very_large"


def calculate_statistics(records: Sequence[FileRecord]) -> ProjectStatistics:
    """Compute totals, per language and per extension counts, size classes and the largest files.

    Args:
        records (Sequence[FileRecord]): the scanned files

    Returns:
        ProjectStatistics: the aggregated statistics
    """
    total_size = 0
    total_lines = 0
    langs: dict[str, dict[str, int]] = {}
    by_ext: dict[str, int] = {}
    buckets = {"small": 0, "medium": 0, "large": 0, "very_large": 0}
    largest: list[FileSizeEntry] = []

    for rec in records:
        total_size += rec.size
        lines = rec.content.line_count()
        if lines:
            total_lines += lines
            ext = rec.extension.lower()
            entry = langs.setdefault(language_name(ext), {"files": 0, "lines": 0, "size": 0})
            entry["files"] += 1
            entry["lines"] += lines
            entry["size"] += rec.size
            by_ext[ext] = by_ext.get(ext, 0) + 1
        buckets[size_bucket(rec.size)] += 1
        largest.append(FileSizeEntry(path=rec.rel, size=rec.size, lines=lines))

    largest.sort(key=lambda e: e.size, reverse=True)
    by_language = {name: LanguageStats(language=name, **data) for name, data in langs.items()}
    return ProjectStatistics(
        total_files=len(records),
        total_size=total_size,
        total_lines=total_lines,
        by_language=by_language,
        by_extension=by_ext,
        files_by_size=SizeBuckets(**buckets),
        largest_files=largest[:LARGEST_FILES_LIMIT],
        languages_by_lines=sorted(by_language.values(), key=lambda s: s.lines, reverse=True),
    )


def format_file_size(size: int) -> str:
    """Format a byte count as ``B``, ``KB`` or ``MB`` with two decimals.

    Returns:
        str: the formatted size
    """
    if size < 1024:  # noqa: PLR2004
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.2f} KB"
    return f"{size / 1024 / 1024:.2f} MB"


def generate_language_chart(stats: ProjectStatistics, max_width: int = CHART_WIDTH) -> str:
    """Render a text bar chart of lines per language.

    Returns:
        str: one line per language, or ``No data available``
    """
    if not stats.languages_by_lines or not stats.total_lines:
        return "No data available"
    max_lines = stats.languages_by_lines[0].lines
    out = io.StringIO()
    for lang in stats.languages_by_lines:
        percentage = lang.lines / stats.total_lines * 100
        bar = "█" * max(1, int(lang.lines / max_lines * max_width))
        out.write(f"{lang.language:<15} {bar} {percentage:.1f}% ({lang.files} files, {lang.lines:,} lines)\n")
    return out.getvalue()


def format_statistics(stats: ProjectStatistics) -> str:
    """Render the statistics summary as markdown.

    Returns:
        str: the summary block
    """
    sizes = stats.files_by_size
    out = io.StringIO()
    out.write(f"📊 **Total Files:** {stats.total_files}\n")
    out.write(f"📏 **Total Lines of Code:** {stats.total_lines:,}\n")
    out.write(f"💾 **Total Size:** {format_file_size(stats.total_size)}\n\n")
    out.write("**Files by Size:**\n")
    out.write(f"- Small (< 10KB): {sizes.small}\n")
    out.write(f"- Medium (10KB - 100KB): {sizes.medium}\n")
    out.write(f"- Large (100KB - 1MB): {sizes.large}\n")
    out.write(f"- Very Large (> 1MB): {sizes.very_large}\n\n")
    return out.getvalue()
