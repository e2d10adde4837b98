from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from pathlib import Path

    from structlog.typing import EventDict

_LOGGING_CONFIGURED = False

LEVEL_ICONS: dict[str, str] = {
    "debug": "·",
    "info": "ℹ️",
    "warning": "⚠️",
    "error": "❌",
    "critical": "❌",
}


def add_level_icon(_logger: Any, _method: str, event_dict: EventDict) -> EventDict:  # noqa: ANN401
    """Tag each event with an icon so warnings stand out from progress lines.

    Returns:
        EventDict: the event dict with an ``icon`` key.
    """
    event_dict.setdefault("icon", LEVEL_ICONS.get(event_dict.get("level", ""), ""))
    return event_dict


def setup_logging(filename: str | Path | None = None) -> structlog.BoundLogger:
    """Set up structured logging for the codemap package.

    The first call wins: stdlib handlers and the structlog pipeline are only
    configured once per process, except that passing a ``filename`` later
    redirects the output to that file.

    Args:
        filename: Optional path to a log file. If None, logs are written to stderr.

    Returns:
        A structlog logger instance configured for the codemap package.
    """
    global _LOGGING_CONFIGURED  # noqa: PLW0603
    if not _LOGGING_CONFIGURED or filename:
        handlers: list[logging.Handler] = []
        if filename:
            handlers.append(logging.FileHandler(str(filename), encoding="utf-8"))
        else:
            handlers.append(logging.StreamHandler(sys.stderr))

        logging.basicConfig(
            level=logging.INFO,
            handlers=handlers,
            format="%(message)s",
            force=bool(filename),
        )
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                add_level_icon,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(ensure_ascii=False),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _LOGGING_CONFIGURED = True

    return structlog.get_logger("codemap")


logger = setup_logging()
