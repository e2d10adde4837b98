from __future__ import annotations

from typing import TYPE_CHECKING, Any, NamedTuple

if TYPE_CHECKING:
    from collections.abc import Sequence

_FILES = "__files__"


class TreeCounts(NamedTuple):
    files: int
    directories: int


def build_nested(rel_paths: Sequence[str]) -> dict[str, Any]:
    """Nest ``/`` separated relative paths into a dict of directories.

    Files of a directory are collected under the ``__files__`` key.

    Returns:
        dict[str, Any]: the nested tree
    """
    tree: dict[str, Any] = {}
    for rp in {p.strip("/").replace("\\", "/") for p in rel_paths if p.strip()}:
        cur = tree
        parts = rp.split("/")
        for part in parts[:-1]:
            cur = cur.setdefault(part, {})
        cur.setdefault(_FILES, set()).add(parts[-1])
    return tree


def build_tree_lines(root_name: str, rel_paths: Sequence[str]) -> list[str]:
    """Build a visual tree representation of file paths.

    Directories come before files at every level; each group is sorted by name.

    Args:
        root_name (str): the name to use for the root of the tree
        rel_paths (Sequence[str]): file paths relative to the root, using POSIX separators (e.g. "src/main.py")

    Returns:
        list[str]: a list of strings representing the tree structure, suitable for printing
    """
    tree = build_nested(rel_paths)
    lines: list[str] = [f"{root_name}/"]

    def walk(node: dict[str, Any], prefix: str) -> None:
        dirs = sorted(k for k in node if k != _FILES)
        files = sorted(node.get(_FILES, set()))
        entries: list[tuple[str, Any]] = [(d, node[d]) for d in dirs]
        entries.extend((f, None) for f in files)
        for idx, (name, child) in enumerate(entries):
            last = idx == len(entries) - 1
            branch = "└── " if last else "├── "
            lines.append(prefix + branch + name + ("/" if child is not None else ""))
            if child is not None:
                walk(child, prefix + ("    " if last else "│   "))

    walk(tree, "")
    return lines


def build_tree(root_name: str, rel_paths: Sequence[str]) -> str:
    return "\n".join(build_tree_lines(root_name, rel_paths)) + "\n"


def count_tree_elements(rel_paths: Sequence[str]) -> TreeCounts:
    """Count the files and the directories implied by a set of relative paths.

    Returns:
        TreeCounts: the number of files and directories
    """
    files = 0
    directories = 0
    stack = [build_nested(rel_paths)]
    while stack:
        node = stack.pop()
        files += len(node.get(_FILES, ()))
        children = [v for k, v in node.items() if k != _FILES]
        directories += len(children)
        stack.extend(children)
    return TreeCounts(files=files, directories=directories)
