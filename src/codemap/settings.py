from __future__ import annotations

import re
from enum import StrEnum
from pathlib import Path

from dotenv import find_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from codemap.config import (
    DEFAULT_DEBOUNCE_MS,
    DEFAULT_MAX_FILE_SIZE,
    DEFAULT_TRUNCATE_LINES,
    ScanOptions,
    TransformOptions,
)
from codemap.exceptions import InvalidSizeError

ENV_FILE = find_dotenv(usecwd=True)

_SIZE_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*(B|KB|MB|GB)?$", re.IGNORECASE)
_UNITS = {"B": 1, "KB": 1024, "MB": 1024**2, "GB": 1024**3}


class OutputFormat(StrEnum):
    MARKDOWN = "markdown"
    JSON = "json"
    HTML = "html"


FORMAT_SUFFIX: dict[OutputFormat, str] = {
    OutputFormat.MARKDOWN: ".md",
    OutputFormat.JSON: ".json",
    OutputFormat.HTML: ".html",
}


def parse_size(text: str | int) -> int:
    """Parse a human readable size such as ``2MB``, ``500 kb`` or ``1.5GB``.

    A bare number is a byte count. Fractional results are floored.

    Args:
        text (str | int): the size to parse

    Raises:
        InvalidSizeError: if the text is not a size

    Returns:
        int: the size in bytes
    """
    if isinstance(text, int):
        if text < 0:
            raise InvalidSizeError(value=str(text))
        return text
    match = _SIZE_RE.match(text.strip())
    if not match:
        raise InvalidSizeError(value=text)
    value = float(match.group(1))
    unit = (match.group(2) or "B").upper()
    return int(value * _UNITS[unit])


def split_list(value: str | list[str] | tuple[str, ...] | None) -> list[str]:
    """Split a comma separated option into trimmed, non empty items.

    Returns:
        list[str]: the items
    """
    if value is None:
        return []
    items = value.split(",") if isinstance(value, str) else list(value)
    return [item.strip() for item in items if item and item.strip()]


class Settings(BaseModel):
    """Configuration settings for one codemap run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    repo: Path = Field(default_factory=Path.cwd, description="Directory to scan.")
    output: Path | None = Field(default=None, description="Output file; CODEMAP.<ext> in the repo when unset.")
    format: OutputFormat | None = Field(default=None, description="Output format, from the suffix when unset.")
    log_file: str = Field(default="", description="Log file path.")

    max_size: int = Field(default=DEFAULT_MAX_FILE_SIZE, ge=0, description="Files above are not read.")
    filter: list[str] = Field(default_factory=list, description="Only include these extensions.")
    exclude: list[str] = Field(default_factory=list, description="Exclude patterns (* and ? wildcards).")
    ignore_dirs: list[str] = Field(default_factory=list, description="Extra directory names to skip.")
    depth: int | None = Field(default=None, ge=0, description="Maximum directory depth.")

    no_content: bool = Field(default=False, description="Only render structure and summary.")
    stats: bool = Field(default=True, description="Render project statistics.")
    git: bool = Field(default=True, description="Render git metadata when available.")
    truncate: bool = Field(default=False, description="Truncate long files.")
    truncate_lines: int = Field(default=DEFAULT_TRUNCATE_LINES, ge=1, description="Lines kept when truncating.")
    redact: bool = Field(default=False, description="Redact secrets.")

    interactive: bool = Field(default=False, description="Run the configuration wizard.")
    watch: bool = Field(default=False, description="Regenerate on file changes.")
    debounce_ms: int = Field(default=DEFAULT_DEBOUNCE_MS, ge=0, description="Watch mode debounce delay.")

    @field_validator("max_size", mode="before")
    @classmethod
    def _parse_max_size(cls, value: object) -> object:
        if isinstance(value, str):
            return parse_size(value)
        return value

    @field_validator("filter", "exclude", "ignore_dirs", mode="before")
    @classmethod
    def _split_lists(cls, value: object) -> object:
        if value is None or isinstance(value, (str, list, tuple)):
            return split_list(value)  # type: ignore[arg-type]
        return value

    def to_scan_options(self) -> ScanOptions:
        return ScanOptions(
            max_file_size_bytes=self.max_size,
            include_extensions=self.filter or None,
            exclude_patterns=tuple(self.exclude),
            max_depth=self.depth,
            extra_ignore_directories=tuple(self.ignore_dirs),
        )

    def to_transform_options(self) -> TransformOptions:
        return TransformOptions(redact=self.redact, truncate=self.truncate, truncate_lines=self.truncate_lines)

    def resolved_format(self) -> OutputFormat:
        """Get the output format.

        An explicit format wins. Otherwise it is inferred from the output
        suffix, falling back to markdown.

        Returns:
            OutputFormat: the format to render
        """
        if self.format is not None:
            return self.format
        if self.output is not None:
            suffix = self.output.suffix.lower()
            if suffix in {".htm", ".html"}:
                return OutputFormat.HTML
            if suffix == ".json":
                return OutputFormat.JSON
        return OutputFormat.MARKDOWN

    def resolved_output(self) -> Path:
        """Get the absolute output path, ``<repo>/CODEMAP.<ext>`` by default.

        Returns:
            Path: where the document is written
        """
        if self.output is not None:
            return self.output if self.output.is_absolute() else (Path.cwd() / self.output)
        return self.repo.absolute() / f"CODEMAP{FORMAT_SUFFIX[self.resolved_format()]}"
