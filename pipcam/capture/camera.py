"""Picture-in-picture camera built on OpenCV."""

from __future__ import annotations

import asyncio
import os
import sys
import tempfile
import threading
import time
from pathlib import Path
from typing import Optional, Union

# MSMF hardware transforms make camera start-up very slow on Windows.
if sys.platform == "win32":
    os.environ.setdefault("OPENCV_VIDEOIO_MSMF_ENABLE_HW_TRANSFORMS", "0")

import cv2

from ..core.logging_utils import LoggerLike, ensure_structured_logger
from ..errors import CameraNotReadyError
from .collaborators import RecordedClip, RecordOptions, path_to_uri

MAX_CONSECUTIVE_READ_FAILURES = 30


class OpenCVCamera:
    """Camera capability: a ready flag plus start/stop of a single recording.

    ``record_async`` captures frames in a worker thread until
    ``stop_recording`` is called or ``options.max_duration_s`` elapses, and
    returns the URI of the raw clip. The clip belongs to the caller.
    """

    def __init__(
        self,
        device: Union[int, str] = 0,
        resolution: tuple[int, int] = (1280, 720),
        fps: float = 30.0,
        *,
        capture_dir: Optional[Path] = None,
        logger: LoggerLike = None,
    ) -> None:
        self._device = device
        self._resolution = resolution
        self._fps = fps
        self._capture_dir = Path(capture_dir) if capture_dir else Path(tempfile.gettempdir()) / "pipcam-capture"
        self._logger = ensure_structured_logger(logger, component="Camera", fallback_name=__name__)

        self._cap: Optional[cv2.VideoCapture] = None
        self._stop_event = threading.Event()
        self._recording = False
        self._actual_resolution = resolution

    @property
    def ready(self) -> bool:
        return self._cap is not None and self._cap.isOpened()

    @property
    def is_recording(self) -> bool:
        return self._recording

    async def open(self) -> bool:
        return await asyncio.to_thread(self._open_sync)

    def _open_sync(self) -> bool:
        device = self._device
        if isinstance(device, str) and device.isdigit():
            device = int(device)

        if sys.platform == "win32":
            cap = cv2.VideoCapture(device, cv2.CAP_MSMF)
        else:
            cap = cv2.VideoCapture(device)
        if not cap or not cap.isOpened():
            self._logger.error("Failed to open camera: %s", self._device)
            return False

        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._resolution[0])
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._resolution[1])
        cap.set(cv2.CAP_PROP_FPS, self._fps)
        self._actual_resolution = (
            int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)) or self._resolution[0],
            int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)) or self._resolution[1],
        )
        self._cap = cap
        self._logger.info(
            "Camera opened: device=%s, resolution=%dx%d, fps=%.1f",
            self._device,
            *self._actual_resolution,
            self._fps,
        )
        return True

    async def record_async(self, options: RecordOptions) -> RecordedClip:
        if not self.ready:
            raise CameraNotReadyError()
        if self._recording:
            raise RuntimeError("Camera is already recording")

        self._capture_dir.mkdir(parents=True, exist_ok=True)
        path = self._capture_dir / f"capture_{int(time.time() * 1000)}.mp4"
        if not options.mute:
            self._logger.debug("OpenCV capture has no audio track; recording video only")

        # A stop issued before the worker starts still ends this recording;
        # the event is only reset once the recording is over.
        self._recording = True
        try:
            frames = await asyncio.to_thread(self._record_sync, path, options.max_duration_s)
        finally:
            self._recording = False
            self._stop_event.clear()
        self._logger.info("Captured %d frames to %s", frames, path.name)
        return RecordedClip(uri=path_to_uri(path))

    def _record_sync(self, path: Path, max_duration_s: float) -> int:
        try:
            return self._capture_frames(path, max_duration_s)
        except BaseException:
            path.unlink(missing_ok=True)
            raise

    def _capture_frames(self, path: Path, max_duration_s: float) -> int:
        cap = self._cap
        if cap is None:
            raise CameraNotReadyError()
        writer = cv2.VideoWriter(
            str(path), cv2.VideoWriter_fourcc(*"mp4v"), self._fps, self._actual_resolution
        )
        if not writer.isOpened():
            raise RuntimeError(f"Failed to open video writer: {path}")

        frames = 0
        failures = 0
        deadline = time.monotonic() + max_duration_s
        try:
            while not self._stop_event.is_set() and time.monotonic() < deadline:
                ok, frame = cap.read()
                if not ok:
                    failures += 1
                    if failures >= MAX_CONSECUTIVE_READ_FAILURES:
                        raise RuntimeError("Camera stopped delivering frames")
                    time.sleep(0.01)
                    continue
                failures = 0
                if (frame.shape[1], frame.shape[0]) != self._actual_resolution:
                    frame = cv2.resize(frame, self._actual_resolution)
                writer.write(frame)
                frames += 1
        finally:
            writer.release()

        if frames == 0:
            raise RuntimeError("No frames captured")
        return frames

    def stop_recording(self) -> None:
        self._stop_event.set()

    async def close(self) -> None:
        self.stop_recording()
        if self._cap is not None:
            await asyncio.to_thread(self._cap.release)
            self._cap = None
            self._logger.info("Camera closed")


__all__ = ["MAX_CONSECUTIVE_READ_FAILURES", "OpenCVCamera"]
