"""Load optional project configuration files and merge them under CLI options.

A project may carry one of :data:`CONFIG_FILES` at its root. Files are parsed
with PyYAML, which also reads JSON. Keys may be camelCase and use the aliases
of older config files (``maxFileSize``/``maxSize``, ``filter``/``include``,
``exclude``/``ignorePatterns``); they are normalized to :class:`Settings`
field names. An explicit file can be named by ``CODEMAP_CONFIG``, either in
the environment or in a ``.env`` file.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values

from codemap.config import DEFAULT_MAX_FILE_SIZE
from codemap.exceptions import ConfigFileError, InvalidSizeError
from codemap.logging import logger
from codemap.settings import ENV_FILE, parse_size

CONFIG_FILES: tuple[str, ...] = (
    ".codemaprc.json",
    ".codemaprc",
    "codemap.config.json",
    ".codemaprc.yaml",
    ".codemaprc.yml",
)

CONFIG_ENV_VAR = "CODEMAP_CONFIG"

_BOOL_KEYS = {
    "noContent": "no_content",
    "no_content": "no_content",
    "stats": "stats",
    "truncate": "truncate",
    "redact": "redact",
    "git": "git",
}

_INT_KEYS = {
    "depth": "depth",
    "truncateLines": "truncate_lines",
    "truncate_lines": "truncate_lines",
    "debounceMs": "debounce_ms",
    "debounce_ms": "debounce_ms",
}


def _as_list(value: Any) -> list[str]:  # noqa: ANN401
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


def _first(raw: dict[str, Any], *keys: str) -> Any:  # noqa: ANN401
    for key in keys:
        if raw.get(key):
            return raw[key]
    return None


def parse_config_size(value: Any) -> int:  # noqa: ANN401
    """Parse a size from a config file, falling back to 1 MiB when invalid.

    Returns:
        int: the size in bytes
    """
    if isinstance(value, bool):
        return DEFAULT_MAX_FILE_SIZE
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            return parse_size(value)
        except InvalidSizeError:
            logger.warning("Invalid size in config: %s, using default", value)
    return DEFAULT_MAX_FILE_SIZE


def normalize_config(raw: dict[str, Any]) -> dict[str, Any]:
    """Normalize a raw config mapping to :class:`Settings` keyword arguments.

    Unknown keys are dropped. Booleans must really be booleans to count.

    Args:
        raw (dict[str, Any]): the parsed config file

    Returns:
        dict[str, Any]: the normalized options
    """
    normalized: dict[str, Any] = {}

    if raw.get("output"):
        normalized["output"] = Path(str(raw["output"]))
    if raw.get("format"):
        fmt = str(raw["format"]).lower()
        normalized["format"] = "markdown" if fmt == "md" else fmt

    size = _first(raw, "maxFileSize", "maxSize", "max_size")
    if size is not None:
        normalized["max_size"] = parse_config_size(size)

    include = _first(raw, "filter", "include")
    if include is not None:
        normalized["filter"] = [ext if ext.startswith(".") else f".{ext}" for ext in _as_list(include)]

    exclude = _first(raw, "exclude", "ignorePatterns")
    if exclude is not None:
        normalized["exclude"] = _as_list(exclude)

    ignore_dirs = _first(raw, "ignoreDirs", "ignore_dirs")
    if ignore_dirs is not None:
        normalized["ignore_dirs"] = _as_list(ignore_dirs)

    for key, field in _BOOL_KEYS.items():
        if isinstance(raw.get(key), bool):
            normalized[field] = raw[key]

    for key, field in _INT_KEYS.items():
        if raw.get(key) is None:
            continue
        try:
            normalized[field] = int(raw[key])
        except (TypeError, ValueError):
            logger.warning("Ignoring non numeric config value %s=%r", key, raw[key])

    return normalized


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse one config file.

    Raises:
        ConfigFileError: if the file cannot be read or is not a mapping

    Returns:
        dict[str, Any]: the normalized options
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        raise ConfigFileError(file=path, reason=str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigFileError(file=path, reason="top level value is not a mapping")
    return normalize_config(data)


def config_path_from_env() -> Path | None:
    """Get the config file named by ``CODEMAP_CONFIG``, from the environment or ``.env``.

    Returns:
        Path | None: the configured path, if any
    """
    value = os.environ.get(CONFIG_ENV_VAR)
    if not value and ENV_FILE:
        value = dotenv_values(ENV_FILE).get(CONFIG_ENV_VAR)
    return Path(value) if value else None


def load_config(dir_path: Path | str, explicit: Path | None = None) -> dict[str, Any] | None:
    """Load the first usable config file for a project.

    ``explicit`` (or ``CODEMAP_CONFIG``) is tried first, then each of
    :data:`CONFIG_FILES` in ``dir_path``. Unparsable files are logged and
    skipped.

    Args:
        dir_path (Path | str): the project directory
        explicit (Path | None): a config file to try before the defaults

    Returns:
        dict[str, Any] | None: the normalized options, or None when no file was loaded
    """
    base = Path(dir_path)
    candidates: list[Path] = []
    named = explicit or config_path_from_env()
    if named is not None:
        candidates.append(named if named.is_absolute() else base / named)
    candidates.extend(base / name for name in CONFIG_FILES)

    for path in candidates:
        if not path.is_file():
            continue
        try:
            config = read_config_file(path)
        except ConfigFileError as e:
            logger.warning(str(e))
            continue
        logger.info("Loaded configuration from: %s", path.name)
        return config
    return None


def merge_configs(file_config: dict[str, Any] | None, cli_args: dict[str, Any]) -> dict[str, Any]:
    """Merge config file options with CLI options; the CLI wins.

    Returns:
        dict[str, Any]: the merged options
    """
    return {**(file_config or {}), **cli_args}
