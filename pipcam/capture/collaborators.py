"""Interfaces of the collaborators the capture pipeline drives."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Union, runtime_checkable

FILE_SCHEME = "file://"

PathLike = Union[str, Path]
ProgressCallback = Callable[[int], None]


def uri_to_path(uri: PathLike) -> Path:
    text = str(uri)
    if text.startswith(FILE_SCHEME):
        text = text[len(FILE_SCHEME):]
    return Path(text)


def path_to_uri(path: PathLike) -> str:
    return f"{FILE_SCHEME}{uri_to_path(path)}"


@dataclass(frozen=True, slots=True)
class RecordOptions:
    max_duration_s: float = 300.0
    mute: bool = False


@dataclass(frozen=True, slots=True)
class RecordedClip:
    uri: str


@dataclass(frozen=True, slots=True)
class TranscodeProfile:
    """Target encoding: downsampled resolution, fixed rate, bounded bitrate."""

    width: int = 960
    height: int = 540
    frame_rate: int = 25
    video_bitrate: str = "2M"
    video_codec: str = "libx265"
    preset: str = "medium"
    audio_bitrate: str = "128k"

    def ffmpeg_args(self) -> List[str]:
        return [
            "-vf", f"scale={self.width}:{self.height}",
            "-r", str(self.frame_rate),
            "-c:v", self.video_codec,
            "-preset", self.preset,
            "-b:v", self.video_bitrate,
            "-maxrate", self.video_bitrate,
            "-bufsize", self.video_bitrate,
            "-c:a", "aac",
            "-b:a", self.audio_bitrate,
            "-movflags", "+faststart",
        ]


@runtime_checkable
class Camera(Protocol):
    @property
    def ready(self) -> bool: ...

    async def record_async(self, options: RecordOptions) -> RecordedClip: ...

    def stop_recording(self) -> None: ...


@runtime_checkable
class Filesystem(Protocol):
    async def exists(self, path: PathLike) -> bool: ...

    async def mkdir(self, path: PathLike) -> None: ...

    async def move_file(self, src: PathLike, dst: PathLike) -> None: ...

    async def copy_file(self, src: PathLike, dst: PathLike) -> None: ...

    async def unlink(self, path: PathLike) -> None: ...


@runtime_checkable
class Transcoder(Protocol):
    async def compress(
        self,
        input_uri: str,
        profile: TranscodeProfile,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str: ...


@runtime_checkable
class Gallery(Protocol):
    async def save(self, uri: str, *, media_type: str, album: str) -> None: ...


__all__ = [
    "Camera",
    "Filesystem",
    "Gallery",
    "ProgressCallback",
    "RecordOptions",
    "RecordedClip",
    "TranscodeProfile",
    "Transcoder",
    "path_to_uri",
    "uri_to_path",
]
