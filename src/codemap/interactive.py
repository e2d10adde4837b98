"""Guided configuration wizard for ``codemap --interactive``."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from codemap.config import DEFAULT_MAX_FILE_SIZE, DEFAULT_TRUNCATE_LINES, normalize_extensions
from codemap.settings import FORMAT_SUFFIX, OutputFormat, Settings, split_list
from codemap.statistics import format_file_size

SIZE_CHOICES: dict[str, tuple[int, str]] = {
    "1": (512 * 1024, "512 KB - Conservative"),
    "2": (DEFAULT_MAX_FILE_SIZE, "1 MB - Default"),
    "3": (2 * 1024 * 1024, "2 MB - Large files"),
    "4": (5 * 1024 * 1024, "5 MB - Very large files"),
}

FORMAT_CHOICES: dict[str, tuple[OutputFormat, str]] = {
    "1": (OutputFormat.MARKDOWN, "Markdown (.md) - Human readable documentation"),
    "2": (OutputFormat.JSON, "JSON (.json) - Structured data for processing"),
    "3": (OutputFormat.HTML, "HTML (.html) - Styled web page"),
}


def _menu(console: Console, title: str, labels: dict[str, str], default: str) -> str:
    console.print(f"\n[bold]{title}[/bold]")
    for key, label in labels.items():
        marker = "→" if key == default else " "
        suffix = " (default)" if key == default else ""
        console.print(f"  {marker} {key}. {label}{suffix}")
    return Prompt.ask("Enter choice", choices=list(labels), default=default, console=console)


def summary_table(settings: Settings) -> Table:
    """Build the configuration summary shown before confirmation.

    Returns:
        Table: a two column grid
    """
    grid = Table.grid(padding=(0, 2))
    grid.add_column(style="bold")
    grid.add_column()
    grid.add_row("Format:", settings.resolved_format().value)
    grid.add_row("Output:", str(settings.output))
    grid.add_row("Max size:", format_file_size(settings.max_size))
    if settings.filter:
        grid.add_row("Filter:", ", ".join(settings.filter))
    if settings.exclude:
        grid.add_row("Exclude:", ", ".join(settings.exclude))
    if settings.depth is not None:
        grid.add_row("Depth:", str(settings.depth))
    grid.add_row("Content:", "No" if settings.no_content else "Yes")
    if settings.truncate:
        grid.add_row("Truncate:", f"{settings.truncate_lines} lines")
    grid.add_row("Redact:", "Yes" if settings.redact else "No")
    grid.add_row("Stats:", "Yes" if settings.stats else "No")
    grid.add_row("Git:", "Yes" if settings.git else "No")
    return grid


def run_interactive(base: Settings, console: Console | None = None) -> Settings | None:
    """Ask the user for every generation option.

    Options not covered by the wizard (repo, watch, logging) are kept from
    ``base``.

    Args:
        base (Settings): the settings parsed from the command line
        console (Console | None): where prompts are written; stderr by default

    Returns:
        Settings | None: the chosen settings, or None when the user declines
    """
    con = console or Console(stderr=True)
    con.print(Panel("Answer the following questions to configure your code map.\n"
                    "Press Enter to accept the default value.", title="🗺️  CodeMap Interactive Configuration"))

    choice = _menu(con, "📄 Output Format:", {k: v[1] for k, v in FORMAT_CHOICES.items()}, "1")
    fmt = FORMAT_CHOICES[choice][0]
    output = Prompt.ask("\n📁 Output file path", default=f"CODEMAP{FORMAT_SUFFIX[fmt]}", console=con)

    filter_exts: list[str] = []
    if Confirm.ask("\n🔍 Filter specific file types?", default=False, console=con):
        answer = Prompt.ask("Enter extensions (comma-separated, e.g., .js,.ts,.py)", default="", console=con)
        filter_exts = sorted(normalize_extensions(split_list(answer)))

    exclude: list[str] = []
    if Confirm.ask("\n🚫 Exclude specific patterns?", default=False, console=con):
        answer = Prompt.ask("Enter patterns (comma-separated, e.g., *.test.js,*.spec.ts)", default="", console=con)
        exclude = split_list(answer)

    size_key = _menu(con, "📏 Maximum file size to include:", {k: v[1] for k, v in SIZE_CHOICES.items()}, "2")
    max_size = SIZE_CHOICES[size_key][0]

    depth: int | None = None
    if Confirm.ask("\n📂 Limit directory depth?", default=False, console=con):
        value = IntPrompt.ask("Enter maximum depth (e.g., 3)", default=3, console=con)
        depth = value if value > 0 else None

    no_content = Confirm.ask("\n📝 Skip file contents (structure only)?", default=False, console=con)
    truncate = False
    truncate_lines = DEFAULT_TRUNCATE_LINES
    redact = False
    if not no_content:
        truncate = Confirm.ask("\n✂️  Truncate large files?", default=False, console=con)
        if truncate:
            lines = IntPrompt.ask("Maximum lines per file", default=DEFAULT_TRUNCATE_LINES, console=con)
            truncate_lines = lines if lines > 0 else DEFAULT_TRUNCATE_LINES
        redact = Confirm.ask("\n🔒 Redact sensitive information (API keys, tokens)?", default=False, console=con)

    stats = Confirm.ask("\n📊 Include statistics dashboard?", default=True, console=con)
    git = Confirm.ask("\n📜 Include git information?", default=True, console=con)

    chosen = base.model_copy(
        update={
            "format": fmt,
            "output": Path(output),
            "filter": filter_exts,
            "exclude": exclude,
            "max_size": max_size,
            "depth": depth,
            "no_content": no_content,
            "truncate": truncate,
            "truncate_lines": truncate_lines,
            "redact": redact,
            "stats": stats,
            "git": git,
            "interactive": False,
        },
    )

    con.print(Panel(summary_table(chosen), title="📋 Configuration Summary", expand=False))
    if not Confirm.ask("▶️  Proceed with these settings?", default=True, console=con):
        con.print("\n⚠️  Operation cancelled.\n")
        return None
    return chosen
