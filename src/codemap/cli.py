"""
codemap: map a project directory into a single document.

Overview
--------
Scans the project directory for source files and writes one document
describing it:

1) **Markdown (`--format markdown`)**: table of contents, statistics, git
   metadata, a project tree, a file summary table and fenced file contents.
2) **JSON (`--format json`)**: the same data as structured JSON.
3) **HTML (`--format html`)**: a self contained, styled web page.

Options may also come from a `.codemaprc.json` (or YAML) file at the project
root; command line flags win. With `--watch` the document is regenerated
whenever a watched file changes.

Usage
-----
Run `codemap --help` for full options. Common examples:
    - Markdown for the current directory:
        codemap
    - Only Python and TOML files, truncated and redacted, as HTML:
        codemap --filter py,toml --truncate 80 --redact --format html
    - Keep the map up to date while editing:
        codemap --watch --debounce-ms 1000
"""

from __future__ import annotations

import argparse
import errno
import signal
from pathlib import Path
from typing import TYPE_CHECKING, NamedTuple

from pydantic import ValidationError

from codemap import __version__
from codemap.config import DEFAULT_OUTPUT_NAMES, DEFAULT_TRUNCATE_LINES
from codemap.config_loader import load_config, merge_configs
from codemap.content_processor import transform_records
from codemap.exceptions import InvalidSizeError, RootDirectoryError
from codemap.git_info import enrich_with_git, get_git_info, get_git_statistics, is_git_repository
from codemap.interactive import run_interactive
from codemap.logging import logger, setup_logging
from codemap.output_construction import ProjectDocument, build_html, build_json, build_markdown
from codemap.scanner import scan_directory
from codemap.settings import OutputFormat, Settings, parse_size, split_list
from codemap.statistics import calculate_statistics
from codemap.tree_builder import build_tree
from codemap.watcher import Watcher, WatchOptions

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

PROJECT_MARKERS = (".git", "package.json", "pyproject.toml")

RENDERERS: dict[OutputFormat, Callable[[ProjectDocument], str]] = {
    OutputFormat.MARKDOWN: build_markdown,
    OutputFormat.JSON: build_json,
    OutputFormat.HTML: build_html,
}


class GenerationResult(NamedTuple):
    output: Path
    format: OutputFormat
    files: int
    redactions: int


def _size_arg(value: str) -> int:
    try:
        return parse_size(value)
    except InvalidSizeError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser.

    Options that are not given stay absent from the namespace, so a config
    file can fill them in.

    Returns:
        argparse.ArgumentParser: the parser
    """
    p = argparse.ArgumentParser(
        prog="codemap",
        description="Map a project directory into a single markdown, JSON or HTML document.",
        argument_default=argparse.SUPPRESS,
    )
    p.add_argument("--repo", type=Path, help="Directory to scan (default: current directory).")
    p.add_argument("-o", "--output", type=Path, help="Output file (default: CODEMAP.<ext> in the repo).")
    p.add_argument(
        "-f",
        "--format",
        type=str.lower,
        choices=[f.value for f in OutputFormat],
        help="Output format (default: from the output suffix, else markdown).",
    )
    p.add_argument("--config", type=Path, help="Config file to load before the defaults.")
    p.add_argument("--no-config", action="store_true", default=False, help="Ignore config files.")
    p.add_argument("--log-file", type=str, help="Log file path.")

    p.add_argument("--max-size", dest="max_size", type=_size_arg, help="Skip reading files above, e.g. 2MB, 500KB.")
    p.add_argument("--filter", type=split_list, help="Comma list of extensions to include, e.g. js,ts,py.")
    p.add_argument("--exclude", type=split_list, help="Comma list of patterns to exclude, e.g. *.test.js.")
    p.add_argument("--ignore-dirs", dest="ignore_dirs", type=split_list, help="Comma list of extra directories to skip.")
    p.add_argument("--depth", type=int, help="Maximum directory depth (0: root files only).")

    p.add_argument("--no-content", dest="no_content", action="store_true", help="Only structure and summary.")
    p.add_argument("--no-stats", dest="stats", action="store_false", help="Do not render statistics.")
    p.add_argument("--no-git", dest="git", action="store_false", help="Do not render git metadata.")
    p.add_argument(
        "--truncate",
        dest="truncate_at",
        type=int,
        nargs="?",
        const=DEFAULT_TRUNCATE_LINES,
        metavar="LINES",
        help=f"Truncate files to LINES lines (default: {DEFAULT_TRUNCATE_LINES}).",
    )
    p.add_argument("--redact", action="store_true", help="Redact API keys, tokens and passwords.")

    p.add_argument("-i", "--interactive", action="store_true", help="Run the configuration wizard.")
    p.add_argument("-w", "--watch", action="store_true", help="Regenerate whenever files change.")
    p.add_argument("--debounce-ms", dest="debounce_ms", type=int, help="Watch mode debounce delay in ms.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    p = build_parser()
    args = vars(p.parse_args(argv))

    no_config = args.pop("no_config")
    explicit = args.pop("config", None)
    if "truncate_at" in args:
        args["truncate"] = True
        args["truncate_lines"] = args.pop("truncate_at")

    repo = args.get("repo", Path.cwd())
    file_config = None if no_config else load_config(repo, explicit)
    try:
        return Settings(**merge_configs(file_config, args))
    except ValidationError as e:
        p.error(str(e))


def is_project_root(path: Path) -> bool:
    """Check if a directory looks like the root of a project.

    Returns:
        bool: True if it holds ``.git``, ``package.json`` or ``pyproject.toml``
    """
    return any((path / marker).exists() for marker in PROJECT_MARKERS)


def describe_write_error(error: OSError) -> str:
    if isinstance(error, PermissionError):
        return "Permission denied: Cannot write to the output location"
    if error.errno == errno.ENOSPC:
        return "No space left on device: Cannot write file"
    if error.errno == errno.EROFS:
        return "Read-only file system: Cannot write file"
    return f"Error writing file: {error.strerror or error}"


def generate(settings: Settings) -> GenerationResult:
    """Run one full generation: scan, transform, enrich, render and write.

    Args:
        settings (Settings): the run configuration

    Raises:
        RootDirectoryError: if the directory to scan cannot be listed
        OSError: if the output cannot be written

    Returns:
        GenerationResult: where the document went and what it holds
    """
    root = settings.repo.absolute()
    out_path = settings.resolved_output()
    fmt = settings.resolved_format()

    records = scan_directory(root, settings.to_scan_options())
    records = [r for r in records if r.path != out_path and r.rel not in DEFAULT_OUTPUT_NAMES]
    if not records:
        logger.warning("No code files found in %s", root)

    redactions = 0
    transform = settings.to_transform_options()
    if transform.enabled and not settings.no_content:
        redactions = transform_records(records, transform)
        if transform.redact:
            logger.info("Redacted %d sensitive value(s)", redactions)

    git = None
    git_stats = None
    if settings.git and is_git_repository(root):
        git = get_git_info(root)
        git_stats = get_git_statistics(root)
        enrich_with_git(records, root)

    document = ProjectDocument(
        root=root,
        is_project_root=is_project_root(root),
        records=records,
        tree=build_tree(root.name, [r.rel for r in records]),
        statistics=calculate_statistics(records) if settings.stats else None,
        git=git,
        git_statistics=git_stats,
        no_content=settings.no_content,
    )
    content = RENDERERS[fmt](document)
    out_path.write_text(content, encoding="utf-8")
    logger.info("Wrote %s", out_path, format=fmt.value, files=len(records))
    return GenerationResult(output=out_path, format=fmt, files=len(records), redactions=redactions)


def watch_options(settings: Settings) -> WatchOptions:
    """Build the watch options for a run.

    The output file and the log file are written by every regeneration, so
    their names never trigger a rebuild.

    Returns:
        WatchOptions: the options passed to the watcher
    """
    own_files = {settings.resolved_output().name}
    if settings.log_file:
        own_files.add(Path(settings.log_file).name)
    return WatchOptions(
        ignore_dirs=tuple(settings.ignore_dirs),
        extension_filter=settings.filter or None,
        debounce_ms=settings.debounce_ms,
        output_names=DEFAULT_OUTPUT_NAMES | own_files,
    )


def run_watch(settings: Settings) -> int:
    """Regenerate on every debounced batch of changes until SIGINT or SIGTERM.

    Returns:
        int: the exit code
    """

    def regenerate(batch: list[str]) -> None:
        logger.info("Change detected in %d file(s), regenerating", len(batch), paths=batch[:10])
        try:
            result = generate(settings)
        except RootDirectoryError as e:
            logger.error(str(e))
            return
        except OSError as e:
            logger.error(describe_write_error(e))
            return
        logger.info("Regenerated %s", result.output, files=result.files)

    watcher = Watcher(settings.repo.absolute(), regenerate, watch_options(settings))

    def _stop(_signum: int, _frame: FrameType | None) -> None:
        watcher.stop()

    previous = {sig: signal.signal(sig, _stop) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        watcher.start()
        print("Watching for changes, press Ctrl+C to stop")
        while not watcher.wait(timeout=0.5):
            pass
    finally:
        watcher.stop()
        for sig, handler in previous.items():
            signal.signal(sig, handler)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    settings = parse_args(argv)
    if settings.log_file:
        setup_logging(settings.log_file)

    if settings.interactive:
        chosen = run_interactive(settings)
        if chosen is None:
            return 0
        settings = chosen

    try:
        result = generate(settings)
    except RootDirectoryError as e:
        logger.error(str(e))
        return 1
    except OSError as e:
        logger.error(describe_write_error(e))
        return 1

    print(f"Wrote {result.output} format={result.format.value} files={result.files}")
    if settings.watch:
        return run_watch(settings)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
