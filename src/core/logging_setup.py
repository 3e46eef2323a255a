"""Logging setup.

Loggers are plain `logging.getLogger(__name__)`; this module only wires the
root handler once, rendering through Rich so log lines do not tear the
progress bar apart.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_ROOT_LOGGERS = ("core", "adapters", "cli")


def setup_logging(level: str | int = logging.WARNING, console: Console | None = None) -> None:
    """Configure the application loggers.

    Args:
        level: Level name ("DEBUG", "info", ...) or numeric level.
        console: Console to render on. Defaults to a stderr console.
    """

    if isinstance(level, str):
        numeric = logging.getLevelName(level.strip().upper())
        level = numeric if isinstance(numeric, int) else logging.WARNING

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s | %(message)s"))

    for name in _ROOT_LOGGERS:
        log = logging.getLogger(name)
        log.handlers.clear()
        log.addHandler(handler)
        log.setLevel(level)
        log.propagate = False
