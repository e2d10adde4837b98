from __future__ import annotations

from enum import StrEnum, auto
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

_ = Path()

DEFAULT_MAX_FILE_SIZE = 1024 * 1024
DEFAULT_TRUNCATE_LINES = 100
DEFAULT_DEBOUNCE_MS = 500

CODE_EXTENSIONS: frozenset[str] = frozenset({
    ".js",
    ".jsx",
    ".ts",
    ".tsx",
    ".py",
    ".java",
    ".cpp",
    ".c",
    ".h",
    ".hpp",
    ".cs",
    ".go",
    ".rs",
    ".rb",
    ".php",
    ".swift",
    ".kt",
    ".scala",
    ".sh",
    ".bash",
    ".sql",
    ".r",
    ".m",
    ".mm",
    ".dart",
    ".vue",
    ".svelte",
    ".html",
    ".css",
    ".scss",
    ".json",
    ".xml",
    ".yaml",
    ".yml",
    ".toml",
    ".md",
    ".txt",
})

IGNORE_DIRS: frozenset[str] = frozenset({
    "node_modules",
    ".git",
    ".svn",
    ".hg",
    "dist",
    "build",
    "out",
    "target",
    "bin",
    "obj",
    ".next",
    ".nuxt",
    ".cache",
    "coverage",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".ruff_cache",
    ".venv",
    "venv",
    "env",
    ".idea",
    ".vscode",
})

IGNORE_FILES: frozenset[str] = frozenset({
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    ".DS_Store",
    "Thumbs.db",
    ".env",
    ".env.local",
    ".env.production",
})

DEFAULT_OUTPUT_NAMES: frozenset[str] = frozenset({"CODEMAP.md", "CODEMAP.json", "CODEMAP.html"})

FENCE_LANGUAGE: dict[str, str] = {
    ".js": "javascript",
    ".jsx": "jsx",
    ".ts": "typescript",
    ".tsx": "tsx",
    ".py": "python",
    ".java": "java",
    ".cpp": "cpp",
    ".c": "c",
    ".h": "c",
    ".hpp": "cpp",
    ".cs": "csharp",
    ".go": "go",
    ".rs": "rust",
    ".rb": "ruby",
    ".php": "php",
    ".swift": "swift",
    ".kt": "kotlin",
    ".scala": "scala",
    ".sh": "bash",
    ".bash": "bash",
    ".sql": "sql",
    ".r": "r",
    ".m": "objectivec",
    ".mm": "objectivec",
    ".dart": "dart",
    ".vue": "vue",
    ".svelte": "svelte",
    ".html": "html",
    ".css": "css",
    ".scss": "scss",
    ".json": "json",
    ".xml": "xml",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".toml": "toml",
    ".md": "markdown",
    ".txt": "text",
}

LANGUAGE_NAMES: dict[str, str] = {
    ".js": "JavaScript",
    ".jsx": "JavaScript",
    ".ts": "TypeScript",
    ".tsx": "TypeScript",
    ".py": "Python",
    ".java": "Java",
    ".cpp": "C++",
    ".c": "C",
    ".h": "C/C++",
    ".hpp": "C++",
    ".cs": "C#",
    ".go": "Go",
    ".rs": "Rust",
    ".rb": "Ruby",
    ".php": "PHP",
    ".swift": "Swift",
    ".kt": "Kotlin",
    ".scala": "Scala",
    ".sh": "Shell",
    ".bash": "Shell",
    ".sql": "SQL",
    ".r": "R",
    ".m": "Objective-C",
    ".mm": "Objective-C",
    ".dart": "Dart",
    ".vue": "Vue",
    ".svelte": "Svelte",
    ".html": "HTML",
    ".css": "CSS",
    ".scss": "SCSS",
    ".json": "JSON",
    ".xml": "XML",
    ".yaml": "YAML",
    ".yml": "YAML",
    ".toml": "TOML",
    ".md": "Markdown",
    ".txt": "Text",
}

BINARY_PLACEHOLDER = "[Binary file - content not displayed]"


def fence_language(extension: str) -> str:
    """Get the code fence language for an extension, ``text`` when unknown."""
    return FENCE_LANGUAGE.get(extension.lower(), "text")


def language_name(extension: str) -> str:
    """Get the human readable language name for an extension, ``Other`` when unknown."""
    return LANGUAGE_NAMES.get(extension.lower(), "Other")


def normalize_extensions(extensions: list[str] | tuple[str, ...] | frozenset[str]) -> frozenset[str]:
    """Normalize user supplied extensions to lower case with a leading dot.

    Args:
        extensions: extensions such as ``js``, ``.TS`` or `` .py ``

    Returns:
        frozenset[str]: the normalized extensions, blanks dropped
    """
    out: set[str] = set()
    for ext in extensions:
        e = (ext or "").strip().lower()
        if not e:
            continue
        out.add(e if e.startswith(".") else f".{e}")
    return frozenset(out)


class ContentKind(StrEnum):
    """Discriminant of :class:`FileContent`."""

    TEXT = auto()
    TOO_LARGE = auto()
    UNREADABLE = auto()
    BINARY = auto()


class UnreadableReason(StrEnum):
    """Why a file could not be read."""

    PERMISSION_DENIED = auto()
    NOT_FOUND = auto()
    IS_DIRECTORY = auto()
    NAME_TOO_LONG = auto()
    OTHER = auto()


_UNREADABLE_MESSAGES: dict[UnreadableReason, str] = {
    UnreadableReason.PERMISSION_DENIED: "[Permission denied: Cannot read file]",
    UnreadableReason.NOT_FOUND: "[File not found: File may have been deleted]",
    UnreadableReason.IS_DIRECTORY: "[Error: Path is a directory, not a file]",
    UnreadableReason.NAME_TOO_LONG: "[Error: File path too long]",
}


class FileContent(BaseModel):
    """Content of a scanned file, or the reason it is not shown.

    Only ``TEXT`` carries real file content; every other kind renders as a
    bracketed placeholder through :attr:`display`. Consumers switch on
    :attr:`kind` instead of inspecting the string.
    """

    model_config = ConfigDict(frozen=True)

    kind: ContentKind
    text: str = ""
    size_bytes: int = Field(default=0, ge=0)
    reason: UnreadableReason | None = None
    detail: str = ""

    @classmethod
    def of_text(cls, text: str) -> FileContent:
        return cls(kind=ContentKind.TEXT, text=text)

    @classmethod
    def too_large(cls, size_bytes: int) -> FileContent:
        return cls(kind=ContentKind.TOO_LARGE, size_bytes=size_bytes)

    @classmethod
    def unreadable(cls, reason: UnreadableReason, detail: str = "") -> FileContent:
        return cls(kind=ContentKind.UNREADABLE, reason=reason, detail=detail)

    @classmethod
    def binary(cls) -> FileContent:
        return cls(kind=ContentKind.BINARY)

    @property
    def is_text(self) -> bool:
        return self.kind is ContentKind.TEXT

    @property
    def display(self) -> str:
        """The text to render: the file text itself, or a placeholder."""
        match self.kind:
            case ContentKind.TEXT:
                return self.text
            case ContentKind.TOO_LARGE:
                return f"[File too large to display: {self.size_bytes / 1024 / 1024:.2f} MB]"
            case ContentKind.BINARY:
                return BINARY_PLACEHOLDER
            case _:
                if self.reason in _UNREADABLE_MESSAGES:
                    return _UNREADABLE_MESSAGES[self.reason]
                return f"[Error reading file: {self.detail}]"

    def line_count(self) -> int:
        """Number of ``\\n`` separated lines, 0 for placeholders."""
        return len(self.text.split("\n")) if self.is_text and self.text else 0


class TransformMetadata(BaseModel):
    """What the transformation stage did to one file."""

    model_config = ConfigDict(frozen=True)

    redacted: bool = False
    truncated: bool = False
    binary: bool = False
    redactions: int = 0
    total_lines: int | None = None
    shown_lines: int | None = None
    omitted_lines: int | None = None


class FileGitInfo(BaseModel):
    """Per-file history pulled from git."""

    model_config = ConfigDict(frozen=True)

    last_modified: str | None = None
    last_author: str | None = None
    commit_count: int = 0


class FileRecord(BaseModel):
    """One scanned file.

    Attributes:
        path: Absolute path to the file on disk.
        rel: Path relative to the scanned root, always with ``/`` separators.
        name: Base name of the file.
        extension: Extension with its original case (``.JS`` stays ``.JS``).
        size: File size in bytes, 0 when it could not be read.
        content: The decoded text or a placeholder variant.
        transform: Set once by the transformation stage when it ran.
        git: Optional git history for the file.
    """

    model_config = ConfigDict(frozen=True)

    path: Path = Field(..., description="Absolute file path")
    rel: str = Field(..., description="File path relative to the scanned root")
    name: str = Field(..., description="File base name")
    extension: str = Field("", description="Extension, original case")
    size: int = Field(0, ge=0, description="File size in bytes")
    content: FileContent = Field(..., description="File content or placeholder")
    transform: TransformMetadata | None = Field(default=None, description="Transformation summary")
    git: FileGitInfo | None = Field(default=None, description="Git history summary")

    @computed_field
    @property
    def language(self) -> str:
        """Get the suggested code fence language based on the extension."""
        return fence_language(self.extension)


class ScanOptions(BaseModel):
    """Immutable options for one scan."""

    model_config = ConfigDict(frozen=True)

    max_file_size_bytes: int = Field(default=DEFAULT_MAX_FILE_SIZE, ge=0)
    include_extensions: frozenset[str] | None = None
    exclude_patterns: tuple[str, ...] = ()
    max_depth: int | None = Field(default=None, ge=0)
    extra_ignore_directories: tuple[str, ...] = ()

    @field_validator("include_extensions", mode="before")
    @classmethod
    def _normalize_include(cls, value: object) -> frozenset[str] | None:
        if value is None:
            return None
        if isinstance(value, str):
            value = value.split(",")
        return normalize_extensions(tuple(value))  # type: ignore[arg-type]


class TransformOptions(BaseModel):
    """Options for the redaction and truncation stage."""

    model_config = ConfigDict(frozen=True)

    redact: bool = False
    truncate: bool = False
    truncate_lines: int = Field(default=DEFAULT_TRUNCATE_LINES, ge=1)

    @property
    def enabled(self) -> bool:
        return self.redact or self.truncate
