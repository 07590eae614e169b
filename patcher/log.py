"""Logging setup."""

import logging

from rich.console import Console
from rich.logging import RichHandler

# stderr, so log lines never mix with the report on stdout
_log_console = Console(stderr=True)

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def resolve_level(name: str | None) -> int:
    """Map a LOG_LEVEL name to a logging level; unknown names mean INFO."""
    return _LEVELS.get((name or "").strip().lower(), logging.INFO)


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger with a rich handler."""
    resolved = resolve_level(level)
    root = logging.getLogger()
    if not root.hasHandlers():
        logging.basicConfig(
            level=resolved,
            format="%(message)s",
            handlers=[RichHandler(console=_log_console, rich_tracebacks=True, show_path=False)],
        )
    else:
        root.setLevel(resolved)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(resolved, logging.WARNING))
