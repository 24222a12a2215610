"""Media gallery collaborator for desktop hosts."""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path

import aiofiles.os

from ..core.logging_utils import get_module_logger
from .collaborators import uri_to_path

logger = get_module_logger("Gallery")

SUPPORTED_MEDIA_TYPES = ("video",)


class AlbumDirectoryGallery:
    """Registers media by copying it into ``<root>/<album>/``.

    Mirrors a phone gallery's album layout on a desktop, where the user's
    video folder plays the role of the camera roll.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def album_dir(self, album: str) -> Path:
        return self.root / album

    async def save(self, uri: str, *, media_type: str, album: str) -> None:
        if media_type not in SUPPORTED_MEDIA_TYPES:
            raise ValueError(f"Unsupported media type: {media_type}")
        source = uri_to_path(uri)
        if not await aiofiles.os.path.isfile(source):
            raise FileNotFoundError(f"Nothing to save at {source}")
        target_dir = self.album_dir(album)
        await aiofiles.os.makedirs(target_dir, exist_ok=True)
        await asyncio.to_thread(shutil.copyfile, source, target_dir / source.name)
        logger.info("Saved %s to album %s", source.name, album)


__all__ = ["AlbumDirectoryGallery"]
