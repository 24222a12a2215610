"""Playback session driving the picture-in-picture recorder.

Playing the video can start a recording automatically, and the manual
record toggle goes through the same ``CapturePipeline.start`` guard, so both
triggers share the one-lifecycle-at-a-time rule.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from ..capture.collaborators import Camera
from ..capture.pipeline import CapturePipeline
from ..capture.state import PipelineState
from ..catalog import Video
from ..core.logging_utils import LoggerLike, ensure_structured_logger
from ..errors import CameraNotReadyError


class BackAction(Enum):
    LEAVE = "leave"
    CONFIRM_STOP = "confirm_stop"        # recording: ask before stopping
    WAIT_PROCESSING = "wait_processing"  # archiving: cannot leave yet


class OverlayPosition(Enum):
    TOP_LEFT = "topLeft"
    TOP_RIGHT = "topRight"
    BOTTOM_LEFT = "bottomLeft"
    BOTTOM_RIGHT = "bottomRight"


_POSITIONS = tuple(OverlayPosition)


def format_time(seconds: float) -> str:
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"


def parse_time(text: str) -> float:
    """Inverse of ``format_time``: "1:15" -> 75.0."""
    minutes, _, seconds = text.strip().rpartition(":")
    return float(int(minutes or 0) * 60 + int(seconds))


class PlaybackSession:
    def __init__(
        self,
        video: Video,
        pipeline: CapturePipeline,
        camera: Optional[Camera] = None,
        *,
        auto_record_on_play: bool = True,
        logger: LoggerLike = None,
    ) -> None:
        self.video = video
        self.pipeline = pipeline
        self.camera = camera if camera is not None else pipeline.camera
        self.auto_record_on_play = auto_record_on_play
        self._logger = ensure_structured_logger(logger, component="PlaybackSession", fallback_name=__name__)

        self.is_playing = False
        self.is_camera_ready = bool(self.camera.ready)
        self.is_loading = True
        self.show_camera = True
        self.camera_position = OverlayPosition.TOP_RIGHT
        self.current_time = 0.0
        self.duration = 0.0

    @property
    def is_recording(self) -> bool:
        return self.pipeline.is_recording

    @property
    def is_processing(self) -> bool:
        return self.pipeline.is_processing

    async def _maybe_auto_record(self) -> bool:
        if not (self.auto_record_on_play and self.is_playing and self.show_camera):
            return False
        if self.pipeline.state is not PipelineState.IDLE:
            return False
        if not (self.is_camera_ready and self.camera.ready):
            return False
        try:
            return await self.pipeline.start()
        except CameraNotReadyError as exc:
            self._logger.warning("Auto-record skipped: %s", exc)
            return False

    # ------------------------------------------------------------------
    # Player events

    def on_load(self, duration: float) -> None:
        self.duration = duration
        self.is_loading = False

    def on_progress(self, current_time: float) -> None:
        self.current_time = current_time

    async def on_end(self) -> None:
        self.is_playing = False
        if self.pipeline.is_recording:
            self.pipeline.stop()

    async def camera_ready(self) -> bool:
        self.is_camera_ready = True
        return await self._maybe_auto_record()

    # ------------------------------------------------------------------
    # User controls

    async def toggle_play_pause(self) -> bool:
        self.is_playing = not self.is_playing
        self._logger.debug("%s %s", "Playing" if self.is_playing else "Paused", self.video.title)
        if self.is_playing:
            await self._maybe_auto_record()
        return self.is_playing

    async def toggle_camera(self) -> bool:
        self.show_camera = not self.show_camera
        if self.show_camera:
            await self._maybe_auto_record()
        return self.show_camera

    async def toggle_recording(self) -> bool:
        """Manual record button; raises CameraNotReadyError like ``start``."""
        return await self.pipeline.toggle()

    def cycle_camera_position(self) -> OverlayPosition:
        index = _POSITIONS.index(self.camera_position)
        self.camera_position = _POSITIONS[(index + 1) % len(_POSITIONS)]
        return self.camera_position

    def request_back(self) -> BackAction:
        if self.pipeline.is_recording:
            return BackAction.CONFIRM_STOP
        if self.pipeline.is_processing:
            return BackAction.WAIT_PROCESSING
        return BackAction.LEAVE

    def stop_and_leave(self) -> BackAction:
        self.pipeline.stop()
        self.is_playing = False
        return BackAction.LEAVE


__all__ = ["BackAction", "OverlayPosition", "PlaybackSession", "format_time", "parse_time"]
