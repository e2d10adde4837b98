from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class CodeMapError(Exception):
    """Base exception for errors in the codemap package."""


@dataclass(frozen=True)
class GitCommandError(CodeMapError):
    """Raised when a git command fails."""

    command: str
    returncode: int
    stdout: str
    stderr: str


@dataclass(frozen=True)
class RootDirectoryError(CodeMapError):
    """Raised when the directory to scan cannot be listed at all."""

    folder: Path
    reason: str
    message: str = "The root directory cannot be read."

    def __str__(self) -> str:
        return f"{self.message} {self.folder}: {self.reason}"


@dataclass(frozen=True)
class ConfigFileError(CodeMapError):
    """Raised when a configuration file cannot be parsed."""

    file: Path
    reason: str

    def __str__(self) -> str:
        return f"Could not parse config file {self.file.name}: {self.reason}"


@dataclass(frozen=True)
class InvalidSizeError(CodeMapError, ValueError):
    """Raised when a human readable size such as ``2MB`` cannot be parsed."""

    value: str

    def __str__(self) -> str:
        return f"Invalid size format: {self.value}"
