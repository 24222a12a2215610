"""Root logging setup used by the CLI entry points."""

from __future__ import annotations

import contextlib
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, Optional, Union

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
LOG_MAX_BYTES = 500 * 1024
LOG_BACKUP_COUNT = 2

# Third-party loggers that are noisy at DEBUG.
QUIET_LOGGERS = ("asyncio",)

_configured = False


def coerce_level(level: Union[int, str]) -> int:
    """Accept ``logging`` constants or level names such as ``"debug"``."""
    if isinstance(level, int):
        return level
    value = getattr(logging, str(level).strip().upper(), None)
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level '{level}'")
    return value


def _console_handler(level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _file_handler(path: Path, level: int, formatter: logging.Formatter) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        path,
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def configure_logging(
    level: Union[int, str] = logging.INFO,
    *,
    console: bool = True,
    log_file: Optional[Union[str, Path]] = None,
    force: bool = False,
    quiet: Iterable[str] = QUIET_LOGGERS,
) -> None:
    """Install stdout and optional rotating file handlers on the root logger.

    A second call only adjusts the level unless ``force`` is set, so library
    code can call this defensively without duplicating handlers.
    """

    global _configured
    numeric_level = coerce_level(level)
    root = logging.getLogger()

    if _configured and not force:
        root.setLevel(numeric_level)
        return

    for handler in list(root.handlers):
        root.removeHandler(handler)
        with contextlib.suppress(Exception):
            handler.close()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
    if console:
        root.addHandler(_console_handler(numeric_level, formatter))
    if log_file:
        root.addHandler(_file_handler(Path(log_file), numeric_level, formatter))
    if not root.handlers:
        root.addHandler(logging.NullHandler())

    root.setLevel(numeric_level)
    for name in quiet:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    _configured = True


__all__ = ["LOG_DATEFMT", "LOG_FORMAT", "coerce_level", "configure_logging"]
