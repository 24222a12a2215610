"""Sample video catalog shown before playback."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True, slots=True)
class Video:
    id: str
    title: str
    thumbnail_uri: str
    duration: str
    size: str
    source_uri: str


_GTV = "https://commondatastorage.googleapis.com/gtv-videos-bucket/sample"

SAMPLE_VIDEOS = (
    Video(
        id="1",
        title="Sample Video 1",
        thumbnail_uri="https://picsum.photos/300/200?random=1",
        duration="0:30",
        size="2.1 MB",
        source_uri="https://www.learningcontainer.com/wp-content/uploads/2020/05/sample-mp4-file.mp4",
    ),
    Video("2", "Sample Video 2", "https://picsum.photos/300/200?random=2", "0:45", "3.2 MB",
          f"{_GTV}/BigBuckBunny.mp4"),
    Video("3", "Sample Video 3", "https://picsum.photos/300/200?random=3", "1:15", "4.8 MB",
          f"{_GTV}/ElephantsDream.mp4"),
    Video("4", "Sample Video 4", "https://picsum.photos/300/200?random=4", "0:58", "1.8 MB",
          f"{_GTV}/ForBiggerBlazes.mp4"),
    Video("5", "Sample Video 5", "https://picsum.photos/300/200?random=5", "1:22", "2.5 MB",
          f"{_GTV}/ForBiggerEscape.mp4"),
)


def load_sample_videos() -> List[Video]:
    return list(SAMPLE_VIDEOS)


def find_video(video_id: str) -> Optional[Video]:
    return next((video for video in SAMPLE_VIDEOS if video.id == video_id), None)


__all__ = ["SAMPLE_VIDEOS", "Video", "find_video", "load_sample_videos"]
