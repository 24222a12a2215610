"""Where a recording lives at each archive stage."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

RECORDINGS_DIRNAME = "recordings"


@dataclass(frozen=True, slots=True)
class RecordingPaths:
    timestamp_ms: int
    recordings_dir: Path
    temp_path: Path
    final_path: Path
    downloads_dir: Path
    downloads_path: Path


@dataclass(frozen=True, slots=True)
class RecordingLayout:
    """Roots for app-private documents and public downloads."""

    documents_dir: Path
    downloads_dir: Path
    album_name: str

    @property
    def recordings_dir(self) -> Path:
        return Path(self.documents_dir) / RECORDINGS_DIRNAME

    def for_timestamp(self, timestamp_ms: int) -> RecordingPaths:
        recordings_dir = self.recordings_dir
        downloads_dir = Path(self.downloads_dir) / self.album_name
        name = f"recording_{timestamp_ms}.mp4"
        return RecordingPaths(
            timestamp_ms=timestamp_ms,
            recordings_dir=recordings_dir,
            temp_path=recordings_dir / f"temp_recording_{timestamp_ms}.mp4",
            final_path=recordings_dir / name,
            downloads_dir=downloads_dir,
            downloads_path=downloads_dir / name,
        )


__all__ = ["RECORDINGS_DIRNAME", "RecordingLayout", "RecordingPaths"]
