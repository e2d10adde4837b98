"""Read-only git metadata for the generated document.

Every helper shells out to ``git`` and degrades to ``None`` or an empty
result when git is missing or the directory is not a work tree, so git
enrichment never blocks a scan.
"""

from __future__ import annotations

import subprocess  # noqa: S404
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from codemap.config import FileGitInfo
from codemap.exceptions import GitCommandError
from codemap.logging import logger

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from codemap.config import FileRecord


class GitInfo(BaseModel):
    """Repository level git metadata."""

    model_config = ConfigDict(frozen=True)

    branch: str
    commit_hash: str
    commit_date: str
    remote_url: str | None = None


class GitStatistics(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_commits: int = 0
    contributor_count: int = 0
    contributors: list[str] = Field(default_factory=list)


def run_git(args: Sequence[str], cwd: Path) -> str:
    """Run a git command and return its stripped standard output.

    Args:
        args (Sequence[str]): the arguments after ``git``
        cwd (Path): the working directory

    Raises:
        GitCommandError: if git cannot be started or exits with a non zero status

    Returns:
        str: the command output
    """
    command = ["git", *args]
    try:
        out = subprocess.run(  # noqa: S603
            command,
            cwd=str(cwd),
            text=True,
            capture_output=True,
            check=False,
        )
    except OSError as e:
        raise GitCommandError(command=" ".join(command), returncode=-1, stdout="", stderr=str(e)) from e
    if out.returncode != 0:
        raise GitCommandError(
            command=" ".join(command),
            returncode=out.returncode,
            stdout=out.stdout,
            stderr=out.stderr,
        )
    return out.stdout.strip()


def is_git_repository(dir_path: Path) -> bool:
    try:
        return run_git(["rev-parse", "--is-inside-work-tree"], dir_path) == "true"
    except GitCommandError:
        return False


def get_remote_url(dir_path: Path) -> str | None:
    try:
        return run_git(["config", "--get", "remote.origin.url"], dir_path) or None
    except GitCommandError:
        return None


def get_git_info(dir_path: Path) -> GitInfo | None:
    """Get the current branch, short commit hash, commit date and origin URL.

    Returns:
        GitInfo | None: the metadata, or None outside a git work tree
    """
    if not is_git_repository(dir_path):
        return None
    try:
        return GitInfo(
            branch=run_git(["rev-parse", "--abbrev-ref", "HEAD"], dir_path),
            commit_hash=run_git(["rev-parse", "--short", "HEAD"], dir_path),
            commit_date=run_git(["log", "-1", "--format=%ai"], dir_path),
            remote_url=get_remote_url(dir_path),
        )
    except GitCommandError as e:
        logger.warning("Could not fetch git information: %s", e.stderr.strip() or e.command)
        return None


def get_file_git_info(file_path: Path, dir_path: Path) -> FileGitInfo | None:
    """Get the last change date, last author and commit count of one file.

    Returns:
        FileGitInfo | None: the history summary, or None when git fails
    """
    try:
        last_modified = run_git(["log", "-1", "--format=%ai", "--", str(file_path)], dir_path)
        last_author = run_git(["log", "-1", "--format=%an", "--", str(file_path)], dir_path)
        commits = run_git(["log", "--oneline", "--", str(file_path)], dir_path)
    except GitCommandError:
        return None
    return FileGitInfo(
        last_modified=last_modified or None,
        last_author=last_author or None,
        commit_count=len([line for line in commits.splitlines() if line.strip()]),
    )


def get_contributors(dir_path: Path) -> list[str]:
    """List unique ``name <email>`` contributors, sorted.

    Returns:
        list[str]: the contributors, empty when unavailable
    """
    try:
        output = run_git(["log", "--format=%an <%ae>"], dir_path)
    except GitCommandError:
        logger.warning("Could not fetch contributors")
        return []
    return sorted({line.strip() for line in output.splitlines() if line.strip()})


def get_git_statistics(dir_path: Path) -> GitStatistics | None:
    """Count commits and contributors.

    Returns:
        GitStatistics | None: the counts, or None outside a git work tree
    """
    if not is_git_repository(dir_path):
        return None
    try:
        total = run_git(["rev-list", "--count", "HEAD"], dir_path)
    except GitCommandError:
        return None
    contributors = get_contributors(dir_path)
    return GitStatistics(
        total_commits=int(total) if total.isdigit() else 0,
        contributor_count=len(contributors),
        contributors=contributors,
    )


def enrich_with_git(records: list[FileRecord], dir_path: Path) -> None:
    """Attach per-file git history to each record, replacing list elements in place."""
    for i, rec in enumerate(records):
        info = get_file_git_info(rec.path, dir_path)
        if info is not None:
            records[i] = rec.model_copy(update={"git": info})
