"""Capture-to-archive pipeline.

One pipeline instance owns at most one recording lifecycle at a time:

    IDLE -> RECORDING -> STOPPED -> PERSISTED_TEMP -> TRANSCODING
         -> PERSISTED_FINAL -> DOWNLOADS_COPY -> GALLERY_SAVE -> IDLE

Only the move into app storage is fatal. A failed transcode falls back to
promoting the raw recording, and the downloads and gallery copies are best
effort, so once the temp file is persisted the final artifact always exists.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from ..core.logging_utils import LoggerLike, ensure_structured_logger
from ..errors import CameraNotReadyError, SaveError
from .collaborators import (
    Camera,
    Filesystem,
    Gallery,
    RecordedClip,
    RecordOptions,
    TranscodeProfile,
    Transcoder,
    path_to_uri,
)
from .layout import RecordingLayout, RecordingPaths
from .state import PipelineState, check_transition

DEFAULT_MAX_DURATION_S = 300.0
DEFAULT_TRANSCODE_TIMEOUT_S = 600.0
GALLERY_MEDIA_TYPE = "video"


class ArchiveStatus(Enum):
    SAVED = "saved"
    SAVE_ERROR = "save_error"
    RECORD_ERROR = "record_error"


@dataclass(slots=True)
class ArchiveOutcome:
    """User-facing result of one recording lifecycle."""

    status: ArchiveStatus
    title: str
    message: str
    timestamp_ms: Optional[int] = None
    final_path: Optional[Path] = None
    downloads_path: Optional[Path] = None
    gallery_saved: bool = False
    transcoded: bool = False
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.status is ArchiveStatus.SAVED


def success_message(album: str, downloads_saved: bool, gallery_saved: bool) -> str:
    places = []
    if gallery_saved:
        places.append("Gallery")
    if downloads_saved:
        places.append(f"Downloads/{album}")
    if not places:
        return "Video has been processed and saved to app storage."
    return f"Video has been processed and saved to {' and '.join(places)}."


StateListener = Callable[[PipelineState], None]
OutcomeListener = Callable[[ArchiveOutcome], None]


class CapturePipeline:
    """Records a clip, then moves it through transcode and archive stages."""

    def __init__(
        self,
        camera: Camera,
        filesystem: Filesystem,
        transcoder: Transcoder,
        gallery: Gallery,
        layout: RecordingLayout,
        *,
        profile: TranscodeProfile = TranscodeProfile(),
        max_duration_s: float = DEFAULT_MAX_DURATION_S,
        transcode_timeout_s: Optional[float] = DEFAULT_TRANSCODE_TIMEOUT_S,
        tick_s: float = 1.0,
        clock: Callable[[], float] = time.time,
        on_state_change: Optional[StateListener] = None,
        on_outcome: Optional[OutcomeListener] = None,
        logger: LoggerLike = None,
    ) -> None:
        self.camera = camera
        self.filesystem = filesystem
        self.transcoder = transcoder
        self.gallery = gallery
        self.layout = layout
        self.profile = profile
        self.max_duration_s = max_duration_s
        self.transcode_timeout_s = transcode_timeout_s
        self.tick_s = tick_s
        self._clock = clock
        self._on_state_change = on_state_change
        self._on_outcome = on_outcome
        self._logger = ensure_structured_logger(logger, component="CapturePipeline", fallback_name=__name__)

        self._state = PipelineState.IDLE
        self._lifecycle: Optional[asyncio.Task] = None
        self._timer: Optional[asyncio.Task] = None
        self._recording_seconds = 0.0
        self._progress = 0
        self._last_outcome: Optional[ArchiveOutcome] = None

    # ------------------------------------------------------------------
    # Observable state

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state is PipelineState.RECORDING

    @property
    def is_processing(self) -> bool:
        return self._state.is_processing

    @property
    def recording_seconds(self) -> float:
        return self._recording_seconds

    @property
    def processing_progress(self) -> int:
        return self._progress

    @property
    def last_outcome(self) -> Optional[ArchiveOutcome]:
        return self._last_outcome

    def _transition(self, target: PipelineState) -> None:
        previous = self._state
        self._state = check_transition(previous, target)
        self._logger.debug("State %s -> %s", previous.value, target.value)
        if self._on_state_change is not None:
            self._on_state_change(target)

    # ------------------------------------------------------------------
    # Controls

    async def start(self) -> bool:
        """Begin a recording lifecycle.

        Returns False without side effects when a lifecycle is already in
        flight. Raises CameraNotReadyError if the camera cannot record yet.
        """
        if self._state is not PipelineState.IDLE:
            self._logger.debug("Start ignored while %s", self._state.value)
            return False
        if not self.camera.ready:
            self._logger.warning("Camera is not ready; not starting")
            raise CameraNotReadyError()

        self._transition(PipelineState.RECORDING)
        self._recording_seconds = 0.0
        self._progress = 0
        self._timer = asyncio.create_task(self._run_timer(), name="pipcam-recording-timer")
        self._lifecycle = asyncio.create_task(self._run_lifecycle(), name="pipcam-capture")
        self._logger.info("Recording started (ceiling %.0fs)", self.max_duration_s)
        return True

    def stop(self) -> bool:
        if self._state is not PipelineState.RECORDING:
            return False
        self._logger.info("Stopping recording after %.0fs", self._recording_seconds)
        self.camera.stop_recording()
        return True

    async def toggle(self) -> bool:
        if self._state is PipelineState.RECORDING:
            return self.stop()
        return await self.start()

    async def wait(self) -> Optional[ArchiveOutcome]:
        """Wait for the in-flight lifecycle, if any, and return its outcome."""
        if self._lifecycle is not None:
            await self._lifecycle
        return self._last_outcome

    async def shutdown(self) -> Optional[ArchiveOutcome]:
        self.stop()
        return await self.wait()

    # ------------------------------------------------------------------
    # Lifecycle

    async def _run_timer(self) -> None:
        while self._state is PipelineState.RECORDING:
            await asyncio.sleep(self.tick_s)
            if self._state is not PipelineState.RECORDING:
                return
            self._recording_seconds += self.tick_s
            if self._recording_seconds >= self.max_duration_s:
                self._logger.info("Maximum recording duration reached (%.0fs)", self.max_duration_s)
                self.camera.stop_recording()
                return

    async def _stop_timer(self) -> None:
        timer, self._timer = self._timer, None
        if timer is None:
            return
        timer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await timer

    async def _run_lifecycle(self) -> ArchiveOutcome:
        try:
            outcome = await self._capture_and_archive()
        finally:
            await self._stop_timer()
            self._progress = 0
            if self._state is not PipelineState.IDLE:
                self._transition(PipelineState.IDLE)

        self._last_outcome = outcome
        if self._on_outcome is not None:
            self._on_outcome(outcome)
        return outcome

    async def _capture_and_archive(self) -> ArchiveOutcome:
        try:
            clip = await self.camera.record_async(RecordOptions(max_duration_s=self.max_duration_s))
        except Exception as exc:
            self._logger.error("Recording error: %s", exc)
            return ArchiveOutcome(ArchiveStatus.RECORD_ERROR, "Error", "Failed to record video", error=exc)

        self._transition(PipelineState.STOPPED)
        await self._stop_timer()
        paths = self.layout.for_timestamp(int(self._clock() * 1000))

        try:
            await self._persist_temp(clip, paths)
            transcoded = await self._transcode_and_promote(paths)
        except SaveError as exc:
            self._logger.error("Failed to save recording: %s", exc)
            return ArchiveOutcome(
                ArchiveStatus.SAVE_ERROR,
                "Save Error",
                "Recording completed but failed to save.",
                timestamp_ms=paths.timestamp_ms,
                error=exc,
            )

        downloads_path = await self._copy_to_downloads(paths)
        gallery_saved = await self._save_to_gallery(paths)
        return ArchiveOutcome(
            ArchiveStatus.SAVED,
            "Recording Saved",
            success_message(self.layout.album_name, downloads_path is not None, gallery_saved),
            timestamp_ms=paths.timestamp_ms,
            final_path=paths.final_path,
            downloads_path=downloads_path,
            gallery_saved=gallery_saved,
            transcoded=transcoded,
        )

    async def _persist_temp(self, clip: RecordedClip, paths: RecordingPaths) -> None:
        try:
            if not await self.filesystem.exists(paths.recordings_dir):
                await self.filesystem.mkdir(paths.recordings_dir)
            await self.filesystem.move_file(clip.uri, paths.temp_path)
        except Exception as exc:
            await self._discard(clip.uri, "raw recording")
            raise SaveError(f"Could not move recording into {paths.recordings_dir}: {exc}") from exc
        self._transition(PipelineState.PERSISTED_TEMP)
        self._logger.info("Recording moved to temp location: %s", paths.temp_path)

    async def _transcode_and_promote(self, paths: RecordingPaths) -> bool:
        """Return True when the final artifact is the transcoded file."""
        self._transition(PipelineState.TRANSCODING)
        output_uri: Optional[str] = None
        try:
            output_uri = await self._compress(paths.temp_path)
            await self.filesystem.move_file(output_uri, paths.final_path)
        except Exception as exc:
            self._logger.warning("Transcoding failed, keeping original recording: %s", exc)
            if output_uri is not None:
                await self._discard(output_uri, "transcoder output")
            try:
                await self.filesystem.move_file(paths.temp_path, paths.final_path)
            except Exception as move_exc:
                raise SaveError(f"Could not promote recording to {paths.final_path}: {move_exc}") from move_exc
            self._transition(PipelineState.PERSISTED_FINAL)
            return False

        try:
            await self.filesystem.unlink(paths.temp_path)
        except Exception as exc:
            self._logger.warning("Failed to delete temp file %s: %s", paths.temp_path, exc)
        self._transition(PipelineState.PERSISTED_FINAL)
        self._logger.info("Transcoded recording saved: %s", paths.final_path)
        return True

    async def _compress(self, temp_path: Path) -> str:
        call = self.transcoder.compress(path_to_uri(temp_path), self.profile, self._set_progress)
        if self.transcode_timeout_s is None:
            return await call
        return await asyncio.wait_for(call, timeout=self.transcode_timeout_s)

    def _set_progress(self, percent: int) -> None:
        self._progress = max(0, min(100, int(percent)))

    async def _copy_to_downloads(self, paths: RecordingPaths) -> Optional[Path]:
        self._transition(PipelineState.DOWNLOADS_COPY)
        try:
            if not await self.filesystem.exists(paths.downloads_dir):
                await self.filesystem.mkdir(paths.downloads_dir)
            await self.filesystem.copy_file(paths.final_path, paths.downloads_path)
        except Exception as exc:
            self._logger.warning("Failed to copy to Downloads: %s", exc)
            return None
        self._logger.info("Recording copied to Downloads: %s", paths.downloads_path)
        return paths.downloads_path

    async def _save_to_gallery(self, paths: RecordingPaths) -> bool:
        self._transition(PipelineState.GALLERY_SAVE)
        try:
            await self.gallery.save(
                path_to_uri(paths.final_path),
                media_type=GALLERY_MEDIA_TYPE,
                album=self.layout.album_name,
            )
        except Exception as exc:
            self._logger.warning("Failed to save to gallery: %s", exc)
            return False
        return True

    async def _discard(self, uri: str, label: str) -> None:
        try:
            if await self.filesystem.exists(uri):
                await self.filesystem.unlink(uri)
        except Exception as exc:
            self._logger.warning("Could not remove %s %s: %s", label, uri, exc)


__all__ = [
    "ArchiveOutcome",
    "ArchiveStatus",
    "CapturePipeline",
    "DEFAULT_MAX_DURATION_S",
    "DEFAULT_TRANSCODE_TIMEOUT_S",
    "success_message",
]
