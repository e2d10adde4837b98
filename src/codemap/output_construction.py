from __future__ import annotations

import html
import io
import json
import re
from datetime import UTC, datetime
from pathlib import Path  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field

from codemap.config import FileRecord
from codemap.git_info import GitInfo, GitStatistics
from codemap.statistics import ProjectStatistics, format_file_size, format_statistics, generate_language_chart

_MD_ESCAPE = re.compile(r"[_*]")


def now_iso() -> str:
    return datetime.now(UTC).isoformat()


class ProjectDocument(BaseModel):
    """Everything a renderer needs to produce the output document."""

    model_config = ConfigDict(frozen=True)

    root: Path = Field(..., description="Scanned directory")
    is_project_root: bool = Field(default=False, description="Whether root looks like a project root")
    records: list[FileRecord] = Field(default_factory=list, description="Scanned files, in scan order")
    tree: str = Field(default="", description="Rendered project tree")
    statistics: ProjectStatistics | None = None
    git: GitInfo | None = None
    git_statistics: GitStatistics | None = None
    no_content: bool = Field(default=False, description="Leave file contents out")
    generated_at: str = Field(default_factory=now_iso)

    @property
    def project_name(self) -> str:
        return self.root.name or str(self.root)


def escape_markdown(text: str) -> str:
    """Escape the characters that turn heading text into emphasis.

    Returns:
        str: the text with ``_`` and ``*`` backslash escaped
    """
    return _MD_ESCAPE.sub(lambda m: "\\" + m.group(0), text)


def _write_statistics_md(out: io.StringIO, stats: ProjectStatistics) -> None:
    out.write("---\n\n")
    out.write("## Statistics\n\n")
    out.write(format_statistics(stats))
    out.write("\n**Language Distribution:**\n\n")
    out.write("```\n")
    out.write(generate_language_chart(stats))
    out.write("```\n\n")
    if stats.largest_files:
        out.write("**Largest Files:**\n\n")
        out.write("| File | Size | Lines |\n")
        out.write("|------|------|-------|\n")
        for entry in stats.largest_files:
            out.write(f"| `{entry.path}` | {format_file_size(entry.size)} | {entry.lines:,} |\n")
        out.write("\n")


def _write_git_md(out: io.StringIO, git: GitInfo, git_stats: GitStatistics | None) -> None:
    out.write("---\n\n")
    out.write("## Git Information\n\n")
    out.write(f"**Branch:** `{git.branch}`\n\n")
    out.write(f"**Commit:** `{git.commit_hash}`\n\n")
    out.write(f"**Last Commit:** {git.commit_date}\n\n")
    if git.remote_url:
        out.write(f"**Remote:** `{git.remote_url}`\n\n")
    if git_stats is not None:
        out.write(f"**Total Commits:** {git_stats.total_commits}\n\n")
        out.write(f"**Contributors:** {git_stats.contributor_count}\n\n")


def _write_file_md(out: io.StringIO, index: int, rec: FileRecord) -> None:
    out.write(f"### {index}. {escape_markdown(rec.rel)}\n\n")
    out.write(f"**Path:** `{rec.rel}`\n\n")
    out.write(f"**Size:** {format_file_size(rec.size)}\n\n")
    if rec.git is not None:
        if rec.git.last_modified:
            out.write(f"**Last Modified:** {rec.git.last_modified}")
            if rec.git.last_author:
                out.write(f" by {rec.git.last_author}")
            out.write("\n\n")
        if rec.git.commit_count > 0:
            out.write(f"**Commits:** {rec.git.commit_count}\n\n")
    if rec.transform is not None and rec.transform.truncated:
        out.write(f"**Truncated:** showing {rec.transform.shown_lines} of {rec.transform.total_lines} lines\n\n")

    if not rec.content.is_text:
        out.write(f"{rec.content.display}\n\n")
    else:
        body = rec.content.text
        out.write(f"```{rec.language}\n{body}")
        if not body.endswith("\n"):
            out.write("\n")
        out.write("```\n\n")
    out.write("---\n\n")


def build_markdown(document: ProjectDocument) -> str:
    """Build the markdown document describing a scanned project.

    Sections: header, table of contents, overview, optional statistics and
    git information, the project tree, a file summary table, the file
    contents (unless ``no_content``) and a footer. Placeholders are written
    as plain text, real text inside a fenced block.

    Args:
        document (ProjectDocument): the scan result and its metadata

    Returns:
        str: the markdown document
    """
    recs = document.records
    stats = document.statistics
    out = io.StringIO()
    out.write(f"# CodeMap: {document.project_name}\n\n")
    out.write(f"> Generated on: {document.generated_at}\n\n")
    out.write(f"**Total Files Scanned:** {len(recs)}\n\n")

    out.write("## Table of Contents\n\n")
    out.write("- [Project Overview](#project-overview)\n")
    if stats is not None:
        out.write("- [Statistics](#statistics)\n")
    if document.git is not None:
        out.write("- [Git Information](#git-information)\n")
    out.write("- [Project Structure](#project-structure)\n")
    out.write("- [File Summary](#file-summary)\n")
    if not document.no_content:
        out.write("- [File Contents](#file-contents)\n")
    out.write("\n---\n\n")

    out.write("## Project Overview\n\n")
    out.write(f"**Directory:** `{document.root}`\n\n")
    out.write(f"**Project Root:** {'Yes' if document.is_project_root else 'No'}\n\n")

    if stats is not None:
        _write_statistics_md(out, stats)
    if document.git is not None:
        _write_git_md(out, document.git, document.git_statistics)

    out.write("---\n\n")
    out.write("## Project Structure\n\n")
    out.write("```\n")
    out.write(document.tree.rstrip("\n"))
    out.write("\n```\n\n")
    out.write("---\n\n")

    out.write("## File Summary\n\n")
    out.write("| # | File Path | Type | Size |\n")
    out.write("|---|-----------|------|------|\n")
    for i, rec in enumerate(recs, start=1):
        out.write(f"| {i} | `{rec.rel}` | {rec.language} | {format_file_size(rec.size)} |\n")
    out.write("\n---\n\n")

    if not document.no_content:
        out.write("## File Contents\n\n")
        for i, rec in enumerate(recs, start=1):
            _write_file_md(out, i, rec)

    out.write("## Generated by CodeMap\n\n")
    out.write("This document was automatically generated by CodeMap.\n")
    return out.getvalue()


def build_json(document: ProjectDocument) -> str:
    """Serialize the document as pretty printed JSON.

    File contents are the displayed text, so placeholders appear as their
    bracketed messages. With ``no_content`` the ``content`` key is omitted.

    Returns:
        str: the JSON document
    """
    files = []
    for rec in document.records:
        item: dict[str, object] = {
            "path": rec.rel,
            "name": rec.name,
            "extension": rec.extension,
            "language": rec.language,
            "size": rec.size,
        }
        if not document.no_content:
            item["content"] = rec.content.display
        item["git_info"] = rec.git.model_dump(mode="json") if rec.git else None
        item["transform"] = rec.transform.model_dump(mode="json") if rec.transform else None
        files.append(item)

    payload = {
        "metadata": {
            "generated_at": document.generated_at,
            "working_directory": str(document.root),
            "is_project_root": document.is_project_root,
            "total_files": len(document.records),
        },
        "git_info": document.git.model_dump(mode="json") if document.git else None,
        "git_statistics": document.git_statistics.model_dump(mode="json") if document.git_statistics else None,
        "statistics": document.statistics.model_dump(mode="json") if document.statistics else None,
        "project_tree": document.tree,
        "files": files,
    }
    return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"


HTML_STYLE = """\
    :root {
      --bg-primary: #ffffff;
      --bg-secondary: #f6f8fa;
      --text-primary: #24292f;
      --text-secondary: #57606a;
      --border-color: #d0d7de;
      --accent-color: #0969da;
    }
    * { margin: 0; padding: 0; box-sizing: border-box; }
    body {
      font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Helvetica, Arial, sans-serif;
      line-height: 1.6;
      color: var(--text-primary);
      background: var(--bg-secondary);
      padding: 20px;
    }
    .container {
      max-width: 1200px;
      margin: 0 auto;
      background: var(--bg-primary);
      padding: 40px;
      border-radius: 8px;
      box-shadow: 0 1px 3px rgba(0,0,0,0.1);
    }
    h1 { margin-bottom: 10px; font-size: 2em; }
    h2 { margin: 30px 0 15px; padding-bottom: 10px; border-bottom: 1px solid var(--border-color); }
    h3 { margin: 25px 0 10px; font-size: 1.2em; }
    .metadata { color: var(--text-secondary); margin-bottom: 30px; font-size: 0.9em; }
    .stats { background: var(--bg-secondary); padding: 20px; border-radius: 6px; margin: 20px 0; }
    .stats-grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 15px; }
    .stat-label { color: var(--text-secondary); font-size: 0.85em; text-transform: uppercase; }
    .stat-value { font-size: 1.5em; font-weight: bold; color: var(--accent-color); }
    pre {
      background: var(--bg-secondary);
      padding: 16px;
      border-radius: 6px;
      overflow-x: auto;
      border: 1px solid var(--border-color);
      font-size: 0.9em;
    }
    code { font-family: "SFMono-Regular", Consolas, "Liberation Mono", Menlo, monospace; font-size: 0.9em; }
    table { width: 100%; border-collapse: collapse; margin: 20px 0; }
    th, td { padding: 12px; text-align: left; border-bottom: 1px solid var(--border-color); }
    th { background: var(--bg-secondary); font-weight: 600; color: var(--text-secondary); }
    .file-section { margin: 30px 0; padding: 20px; border: 1px solid var(--border-color); border-radius: 6px; }
    .toc { background: var(--bg-secondary); padding: 20px; border-radius: 6px; margin: 20px 0; }
    .toc ul { list-style: none; }
    .toc a { color: var(--accent-color); text-decoration: none; }
    .language-chart { font-family: monospace; white-space: pre; }
    .badge { display: inline-block; padding: 3px 8px; border-radius: 3px; font-size: 0.85em; background: var(--bg-secondary); }
"""


def _esc(value: object) -> str:
    return html.escape(str(value), quote=True)


def _write_statistics_html(out: io.StringIO, stats: ProjectStatistics) -> None:
    items = (
        ("Total Files", str(stats.total_files)),
        ("Lines of Code", f"{stats.total_lines:,}"),
        ("Total Size", format_file_size(stats.total_size)),
        ("Languages", str(len(stats.by_language))),
    )
    out.write('    <h2 id="statistics">📊 Statistics</h2>\n')
    out.write('    <div class="stats">\n      <div class="stats-grid">\n')
    for label, value in items:
        out.write(
            f'        <div class="stat-item"><div class="stat-label">{label}</div>'
            f'<div class="stat-value">{_esc(value)}</div></div>\n',
        )
    out.write("      </div>\n    </div>\n")
    out.write(f'    <pre class="language-chart">{_esc(generate_language_chart(stats))}</pre>\n')


def _write_git_html(out: io.StringIO, git: GitInfo) -> None:
    out.write('    <h2 id="git">🔗 Git Information</h2>\n')
    out.write(f"    <p><strong>Branch:</strong> <code>{_esc(git.branch)}</code></p>\n")
    out.write(f"    <p><strong>Commit:</strong> <code>{_esc(git.commit_hash)}</code></p>\n")
    out.write(f"    <p><strong>Last Commit:</strong> {_esc(git.commit_date)}</p>\n")
    if git.remote_url:
        out.write(f"    <p><strong>Remote:</strong> <code>{_esc(git.remote_url)}</code></p>\n")


def build_html(document: ProjectDocument) -> str:
    """Build a self contained HTML page for the document.

    Every piece of dynamic text (names, paths, contents, git fields) is
    HTML escaped.

    Returns:
        str: the HTML page
    """
    recs = document.records
    name = _esc(document.project_name)
    out = io.StringIO()
    out.write("<!DOCTYPE html>\n<html lang=\"en\">\n<head>\n")
    out.write('  <meta charset="UTF-8">\n')
    out.write('  <meta name="viewport" content="width=device-width, initial-scale=1.0">\n')
    out.write(f"  <title>CodeMap: {name}</title>\n")
    out.write(f"  <style>\n{HTML_STYLE}  </style>\n</head>\n<body>\n  <div class=\"container\">\n")
    out.write(f"    <h1>🗺️ CodeMap: {name}</h1>\n")
    out.write(
        f'    <div class="metadata">Generated on: {_esc(document.generated_at)}<br>Total Files: {len(recs)}</div>\n',
    )

    out.write('    <div class="toc">\n      <h2>📑 Table of Contents</h2>\n      <ul>\n')
    out.write('        <li><a href="#overview">Project Overview</a></li>\n')
    if document.statistics is not None:
        out.write('        <li><a href="#statistics">Statistics</a></li>\n')
    if document.git is not None:
        out.write('        <li><a href="#git">Git Information</a></li>\n')
    out.write('        <li><a href="#structure">Project Structure</a></li>\n')
    out.write('        <li><a href="#files">File Summary</a></li>\n')
    if not document.no_content:
        out.write('        <li><a href="#contents">File Contents</a></li>\n')
    out.write("      </ul>\n    </div>\n")

    out.write('    <h2 id="overview">📂 Project Overview</h2>\n')
    out.write(f"    <p><strong>Directory:</strong> <code>{_esc(document.root)}</code></p>\n")
    out.write(f"    <p><strong>Project Root:</strong> {'Yes' if document.is_project_root else 'No'}</p>\n")

    if document.statistics is not None:
        _write_statistics_html(out, document.statistics)
    if document.git is not None:
        _write_git_html(out, document.git)

    out.write('    <h2 id="structure">🌳 Project Structure</h2>\n')
    out.write(f"    <pre><code>{_esc(document.tree)}</code></pre>\n")

    out.write('    <h2 id="files">📄 File Summary</h2>\n')
    out.write("    <table>\n      <thead><tr><th>#</th><th>File Path</th><th>Type</th><th>Size</th></tr></thead>\n")
    out.write("      <tbody>\n")
    for i, rec in enumerate(recs, start=1):
        out.write(
            f"        <tr><td>{i}</td><td><code>{_esc(rec.rel)}</code></td>"
            f'<td><span class="badge">{_esc(rec.language)}</span></td>'
            f"<td>{format_file_size(rec.size)}</td></tr>\n",
        )
    out.write("      </tbody>\n    </table>\n")

    if not document.no_content:
        out.write('    <h2 id="contents">📝 File Contents</h2>\n')
        for i, rec in enumerate(recs, start=1):
            out.write('    <div class="file-section">\n')
            out.write(f"      <h3>{i}. {_esc(rec.rel)}</h3>\n")
            out.write(f"      <p><strong>Size:</strong> {format_file_size(rec.size)}</p>\n")
            if rec.git is not None and rec.git.last_author:
                out.write(
                    f"      <p><strong>Last Modified:</strong> {_esc(rec.git.last_modified or '')}"
                    f" by {_esc(rec.git.last_author)}</p>\n",
                )
            if rec.content.is_text:
                out.write(f"      <pre><code>{_esc(rec.content.text)}</code></pre>\n")
            else:
                out.write(f"      <p>{_esc(rec.content.display)}</p>\n")
            out.write("    </div>\n")

    out.write('    <hr style="margin: 40px 0;">\n')
    out.write('    <p style="text-align: center;">Generated by CodeMap</p>\n')
    out.write("  </div>\n</body>\n</html>\n")
    return out.getvalue()
