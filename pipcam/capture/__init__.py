"""Capture-to-archive pipeline and its collaborators."""

from .collaborators import (
    Camera,
    Filesystem,
    Gallery,
    RecordedClip,
    RecordOptions,
    TranscodeProfile,
    Transcoder,
    path_to_uri,
    uri_to_path,
)
from .layout import RecordingLayout, RecordingPaths
from .pipeline import ArchiveOutcome, ArchiveStatus, CapturePipeline, success_message
from .state import PipelineState

__all__ = [
    "ArchiveOutcome",
    "ArchiveStatus",
    "Camera",
    "CapturePipeline",
    "Filesystem",
    "Gallery",
    "PipelineState",
    "RecordOptions",
    "RecordedClip",
    "RecordingLayout",
    "RecordingPaths",
    "TranscodeProfile",
    "Transcoder",
    "path_to_uri",
    "success_message",
    "uri_to_path",
]
