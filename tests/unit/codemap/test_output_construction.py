from __future__ import annotations

import json
from pathlib import Path

import pytest

from codemap.config import FileContent, FileGitInfo, FileRecord, TransformMetadata
from codemap.git_info import GitInfo
from codemap.output_construction import (
    ProjectDocument,
    build_html,
    build_json,
    build_markdown,
    escape_markdown,
)
from codemap.statistics import calculate_statistics
from codemap.tree_builder import build_tree

ROOT = Path("/work/demo")


def _rec(rel: str, content: FileContent, **kwargs: object) -> FileRecord:
    path = ROOT / rel
    return FileRecord(
        path=path,
        rel=rel,
        name=path.name,
        extension=path.suffix,
        size=kwargs.pop("size", 12),  # type: ignore[arg-type]
        content=content,
        **kwargs,  # type: ignore[arg-type]
    )


@pytest.fixture
def document() -> ProjectDocument:
    records = [
        _rec(
            "src/my_app.py",
            FileContent.of_text("print('ok')"),
            git=FileGitInfo(last_modified="2024-05-01", last_author="Ada", commit_count=2),
        ),
        _rec("big.txt", FileContent.too_large(2000), size=2000),
        _rec("page.html", FileContent.of_text("<script>alert('x')</script>\n")),
    ]
    return ProjectDocument(
        root=ROOT,
        is_project_root=True,
        records=records,
        tree=build_tree(ROOT.name, [r.rel for r in records]),
        statistics=calculate_statistics(records),
        git=GitInfo(branch="main", commit_hash="abc1234", commit_date="2024-05-01", remote_url="git@x:y.git"),
        generated_at="2024-05-01T00:00:00+00:00",
    )


@pytest.mark.unit
def test_escape_markdown() -> None:
    assert escape_markdown("my_file*.py") == "my\\_file\\*.py"


@pytest.mark.unit
def test_build_markdown_sections(document: ProjectDocument) -> None:
    output = build_markdown(document)

    assert output.startswith("# CodeMap: demo\n\n> Generated on: 2024-05-01T00:00:00+00:00\n")
    assert "**Total Files Scanned:** 3" in output
    assert "- [Statistics](#statistics)" in output
    assert "- [Git Information](#git-information)" in output
    assert "**Project Root:** Yes" in output
    assert "**Branch:** `main`" in output
    assert "**Remote:** `git@x:y.git`" in output
    assert "```\ndemo/\n├── src/\n│   └── my_app.py\n├── big.txt\n└── page.html\n```" in output
    assert "| 1 | `src/my_app.py` | python | 12 B |" in output
    assert output.rstrip().endswith("automatically generated by CodeMap.")


@pytest.mark.unit
def test_build_markdown_file_contents(document: ProjectDocument) -> None:
    output = build_markdown(document)

    assert "### 1. src/my\\_app.py\n\n**Path:** `src/my_app.py`" in output
    assert "**Last Modified:** 2024-05-01 by Ada\n\n**Commits:** 2" in output
    assert "```python\nprint('ok')\n```" in output
    assert "\n[File too large to display: 0.00 MB]\n" in output
    assert "```text\n[File too large" not in output
    assert "```html\n<script>alert('x')</script>\n```" in output


@pytest.mark.unit
def test_build_markdown_without_content_stats_or_git(document: ProjectDocument) -> None:
    bare = document.model_copy(update={"no_content": True, "statistics": None, "git": None})

    output = build_markdown(bare)

    assert "## File Contents" not in output
    assert "## Statistics" not in output
    assert "## Git Information" not in output
    assert "## File Summary" in output


@pytest.mark.unit
def test_build_markdown_notes_truncation() -> None:
    meta = TransformMetadata(truncated=True, total_lines=250, shown_lines=100, omitted_lines=150)
    doc = ProjectDocument(root=ROOT, records=[_rec("a.py", FileContent.of_text("x"), transform=meta)])

    assert "**Truncated:** showing 100 of 250 lines" in build_markdown(doc)


@pytest.mark.unit
def test_build_json(document: ProjectDocument) -> None:
    payload = json.loads(build_json(document))

    assert payload["metadata"]["total_files"] == 3  # noqa: PLR2004
    assert payload["metadata"]["is_project_root"] is True
    assert payload["git_info"]["commit_hash"] == "abc1234"
    assert payload["statistics"]["total_lines"] == 3  # noqa: PLR2004
    assert [f["path"] for f in payload["files"]] == ["src/my_app.py", "big.txt", "page.html"]
    assert payload["files"][1]["content"] == "[File too large to display: 0.00 MB]"
    assert payload["files"][0]["git_info"]["last_author"] == "Ada"


@pytest.mark.unit
def test_build_json_without_content(document: ProjectDocument) -> None:
    payload = json.loads(build_json(document.model_copy(update={"no_content": True})))

    assert all("content" not in f for f in payload["files"])


@pytest.mark.unit
def test_build_html_escapes_dynamic_text(document: ProjectDocument) -> None:
    output = build_html(document)

    assert output.startswith("<!DOCTYPE html>")
    assert "<title>CodeMap: demo</title>" in output
    assert "<script>alert" not in output
    assert "&lt;script&gt;alert(&#x27;x&#x27;)&lt;/script&gt;" in output
    assert "<p>[File too large to display: 0.00 MB]</p>" in output
    assert "Last Modified:</strong> 2024-05-01 by Ada" in output
    assert output.rstrip().endswith("</html>")
