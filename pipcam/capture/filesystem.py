"""Local filesystem collaborator backed by aiofiles."""

from __future__ import annotations

import asyncio
import errno
import shutil

import aiofiles.os

from ..core.logging_utils import get_module_logger
from .collaborators import PathLike, uri_to_path

logger = get_module_logger("Filesystem")


class LocalFilesystem:
    """Async file operations; every path argument may also be a ``file://`` URI."""

    async def exists(self, path: PathLike) -> bool:
        return await aiofiles.os.path.exists(uri_to_path(path))

    async def mkdir(self, path: PathLike) -> None:
        await aiofiles.os.makedirs(uri_to_path(path), exist_ok=True)

    async def move_file(self, src: PathLike, dst: PathLike) -> None:
        source, target = uri_to_path(src), uri_to_path(dst)
        try:
            await aiofiles.os.replace(source, target)
        except OSError as exc:
            if exc.errno != errno.EXDEV:
                raise
            # Different mount points: copy then remove
            await asyncio.to_thread(shutil.move, str(source), str(target))
        logger.debug("Moved %s -> %s", source, target)

    async def copy_file(self, src: PathLike, dst: PathLike) -> None:
        source, target = uri_to_path(src), uri_to_path(dst)
        await asyncio.to_thread(shutil.copyfile, source, target)
        logger.debug("Copied %s -> %s", source, target)

    async def unlink(self, path: PathLike) -> None:
        await aiofiles.os.remove(uri_to_path(path))


__all__ = ["LocalFilesystem"]
