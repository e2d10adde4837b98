from __future__ import annotations

from pathlib import Path

import pytest

from codemap.config import FileContent, FileRecord
from codemap.statistics import (
    calculate_statistics,
    format_file_size,
    format_statistics,
    generate_language_chart,
)


def _rec(rel: str, content: FileContent, size: int) -> FileRecord:
    path = Path("/project") / rel
    return FileRecord(path=path, rel=rel, name=path.name, extension=path.suffix, size=size, content=content)


@pytest.fixture
def records() -> list[FileRecord]:
    return [
        _rec("a.py", FileContent.of_text("a\nb\nc"), 500),
        _rec("b.py", FileContent.of_text("x"), 20 * 1024),
        _rec("c.JS", FileContent.of_text("1\n2"), 200 * 1024),
        _rec("big.txt", FileContent.too_large(3 * 1024 * 1024), 3 * 1024 * 1024),
    ]


@pytest.mark.unit
def test_calculate_statistics_counts_text_only_lines(records: list[FileRecord]) -> None:
    stats = calculate_statistics(records)

    assert stats.total_files == 4  # noqa: PLR2004
    assert stats.total_lines == 6  # noqa: PLR2004
    assert stats.total_size == 500 + 20 * 1024 + 200 * 1024 + 3 * 1024 * 1024
    assert set(stats.by_language) == {"Python", "JavaScript"}
    assert stats.by_language["Python"].files == 2  # noqa: PLR2004
    assert stats.by_language["Python"].lines == 4  # noqa: PLR2004
    assert stats.by_extension == {".py": 2, ".js": 1}
    assert [lang.language for lang in stats.languages_by_lines] == ["Python", "JavaScript"]


@pytest.mark.unit
def test_calculate_statistics_size_buckets_and_largest(records: list[FileRecord]) -> None:
    stats = calculate_statistics(records)

    buckets = stats.files_by_size
    assert (buckets.small, buckets.medium, buckets.large, buckets.very_large) == (1, 1, 1, 1)
    assert [f.path for f in stats.largest_files] == ["big.txt", "c.JS", "b.py", "a.py"]
    assert stats.largest_files[0].lines == 0


@pytest.mark.unit
def test_largest_files_keeps_top_ten() -> None:
    recs = [_rec(f"f{i}.py", FileContent.of_text("x"), i) for i in range(15)]

    stats = calculate_statistics(recs)

    assert len(stats.largest_files) == 10  # noqa: PLR2004
    assert stats.largest_files[0].size == 14  # noqa: PLR2004


@pytest.mark.unit
@pytest.mark.parametrize(
    ("size", "expected"),
    [(0, "0 B"), (1023, "1023 B"), (1024, "1.00 KB"), (1536, "1.50 KB"), (2000, "1.95 KB"), (3 * 1024**2, "3.00 MB")],
)
def test_format_file_size(size: int, expected: str) -> None:
    assert format_file_size(size) == expected


@pytest.mark.unit
def test_generate_language_chart(records: list[FileRecord]) -> None:
    chart = generate_language_chart(calculate_statistics(records))

    lines = chart.splitlines()
    assert lines[0].startswith(f"{'Python':<15} " + "█" * 40 + " 66.7% (2 files, 4 lines)")
    assert lines[1].startswith(f"{'JavaScript':<15} " + "█" * 20 + " 33.3%")


@pytest.mark.unit
def test_generate_language_chart_without_data() -> None:
    assert generate_language_chart(calculate_statistics([])) == "No data available"


@pytest.mark.unit
def test_format_statistics(records: list[FileRecord]) -> None:
    text = format_statistics(calculate_statistics(records))

    assert "📊 **Total Files:** 4" in text
    assert "📏 **Total Lines of Code:** 6" in text
    assert "- Very Large (> 1MB): 1" in text
