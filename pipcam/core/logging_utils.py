"""Component-scoped loggers for pipcam.

Every logger handed out here lives under the ``pipcam`` namespace and
prefixes its messages with ``[Component]`` so interleaved pipeline and
permission output stays readable in a single log file.
"""

from __future__ import annotations

import logging
from typing import Any, MutableMapping, Optional, Union

LOGGER_NAMESPACE = "pipcam"
DEFAULT_COMPONENT = "Core"


def _qualify(name: Optional[str]) -> str:
    if not name:
        return LOGGER_NAMESPACE
    if name == LOGGER_NAMESPACE or name.startswith(f"{LOGGER_NAMESPACE}."):
        return name
    return f"{LOGGER_NAMESPACE}.{name}"


def _component_for(name: str) -> str:
    if name.startswith(LOGGER_NAMESPACE):
        return name[len(LOGGER_NAMESPACE):].lstrip(".") or DEFAULT_COMPONENT
    return name or DEFAULT_COMPONENT


class StructuredLogger(logging.LoggerAdapter):
    """Logger adapter that tags records with a component prefix."""

    def __init__(self, logger: logging.Logger, component: Optional[str] = None) -> None:
        super().__init__(logger, {})
        self.component = component or _component_for(logger.name)

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]):
        text = str(msg)
        prefix = f"[{self.component}]"
        if not text.startswith(prefix):
            text = f"{prefix} {text}"
        return text, kwargs

    @property
    def name(self) -> str:
        return self.logger.name


LoggerLike = Union[StructuredLogger, logging.Logger, logging.LoggerAdapter, None]


def get_module_logger(name: Optional[str] = None, *, component: Optional[str] = None) -> StructuredLogger:
    """Return a structured logger scoped to the pipcam namespace."""
    return StructuredLogger(logging.getLogger(_qualify(name)), component=component)


def ensure_structured_logger(
    logger: LoggerLike,
    *,
    component: Optional[str] = None,
    fallback_name: Optional[str] = None,
) -> StructuredLogger:
    """Wrap an injected logger, or build a module logger when none is given."""

    if isinstance(logger, StructuredLogger):
        return logger
    if isinstance(logger, logging.LoggerAdapter):
        logger = logger.logger
    if isinstance(logger, logging.Logger):
        return StructuredLogger(logger, component=component)
    return get_module_logger(fallback_name, component=component)


__all__ = [
    "LOGGER_NAMESPACE",
    "LoggerLike",
    "StructuredLogger",
    "ensure_structured_logger",
    "get_module_logger",
]
