"""Loader for ``key = value`` configuration files."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional

import aiofiles

from .logging_utils import get_module_logger

logger = get_module_logger("ConfigLoader")

_TRUE_WORDS = {"true", "yes", "on", "1"}
_BOOL_WORDS = _TRUE_WORDS | {"false", "no", "off", "0"}


def parse_lines(lines: Iterable[str]) -> Dict[str, str]:
    """Return raw string values, skipping blanks, comments and malformed lines."""
    values: Dict[str, str] = {}
    for line_num, raw_line in enumerate(lines, 1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            logger.warning("Invalid config line %d (missing '='): %s", line_num, line)
            continue

        key, value = line.split("=", 1)
        value = value.split("#", 1)[0].strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
            value = value[1:-1]
        values[key.strip()] = value
    return values


def coerce_value(value: str, like: Any = None) -> Any:
    """Convert ``value`` to the type of ``like``, or guess when ``like`` is None."""
    if like is None:
        lowered = value.lower()
        if lowered in _BOOL_WORDS:
            return lowered in _TRUE_WORDS
        for cast in (int, float):
            try:
                return cast(value)
            except ValueError:
                pass
        return value

    if isinstance(like, bool):
        return value.lower() in _TRUE_WORDS
    if isinstance(like, (int, float)):
        try:
            return type(like)(value)
        except ValueError:
            logger.warning("Cannot parse '%s' as %s, keeping default", value, type(like).__name__)
            return like
    if isinstance(like, Path):
        return Path(value).expanduser() if value else like
    return value


class ConfigLoader:
    """Reads config files and layers them over typed defaults."""

    @staticmethod
    def merge(
        raw: Mapping[str, str],
        defaults: Optional[Mapping[str, Any]] = None,
        base: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        config = dict(base) if base is not None else dict(defaults or {})
        defaults = defaults or {}
        for key, value in raw.items():
            config[key] = coerce_value(value, defaults.get(key))
        return config

    @staticmethod
    def load(
        config_path: Path,
        defaults: Optional[Mapping[str, Any]] = None,
        base: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        if not config_path.exists():
            logger.debug("Config file not found at %s, using defaults", config_path)
            return dict(base) if base is not None else dict(defaults or {})

        with open(config_path, "r", encoding="utf-8") as fh:
            raw = parse_lines(fh)
        logger.info("Loaded config from %s (%d values)", config_path, len(raw))
        return ConfigLoader.merge(raw, defaults, base)

    @staticmethod
    async def load_async(
        config_path: Path,
        defaults: Optional[Mapping[str, Any]] = None,
        base: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        if not await asyncio.to_thread(config_path.exists):
            logger.debug("Config file not found at %s, using defaults", config_path)
            return dict(base) if base is not None else dict(defaults or {})

        lines: list[str] = []
        async with aiofiles.open(config_path, "r", encoding="utf-8") as fh:
            async for line in fh:
                lines.append(line)
        raw = parse_lines(lines)
        logger.info("Loaded config from %s (%d values)", config_path, len(raw))
        return ConfigLoader.merge(raw, defaults, base)


__all__ = ["ConfigLoader", "coerce_value", "parse_lines"]
