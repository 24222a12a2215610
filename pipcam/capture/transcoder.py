"""ffmpeg-backed transcoder."""

from __future__ import annotations

import asyncio
import contextlib
import re
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Deque, List, Optional

from ..core.logging_utils import LoggerLike, ensure_structured_logger
from ..errors import TranscodeError
from .collaborators import ProgressCallback, TranscodeProfile, path_to_uri, uri_to_path

_DURATION_RE = re.compile(r"Duration:\s*(\d+):(\d+):(\d+(?:\.\d+)?)")
_OUT_TIME_RE = re.compile(r"^out_time=(\d+):(\d+):(\d+(?:\.\d+)?)$")


def _seconds(hours: str, minutes: str, seconds: str) -> float:
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


@dataclass(slots=True)
class _RunState:
    duration_s: Optional[float] = None
    percent: int = 0
    log_tail: Deque[str] = field(default_factory=lambda: deque(maxlen=20))


class FFmpegTranscoder:
    """Runs ``ffmpeg`` as an asyncio subprocess.

    The output is written next to the input as ``<stem>.transcoded.mp4``.
    Any failure, including cancellation by a caller's timeout, kills the
    process and removes the partial output before the error propagates.
    """

    def __init__(self, ffmpeg_binary: str = "ffmpeg", *, logger: LoggerLike = None) -> None:
        self.ffmpeg_binary = ffmpeg_binary
        self._logger = ensure_structured_logger(logger, component="Transcoder", fallback_name=__name__)

    @staticmethod
    def output_path_for(input_path: Path) -> Path:
        return input_path.with_name(f"{input_path.stem}.transcoded.mp4")

    def build_command(self, input_path: Path, output_path: Path, profile: TranscodeProfile) -> List[str]:
        return [
            self.ffmpeg_binary, "-y", "-hide_banner", "-nostats",
            "-progress", "pipe:1",
            "-i", str(input_path),
            *profile.ffmpeg_args(),
            str(output_path),
        ]

    async def compress(
        self,
        input_uri: str,
        profile: TranscodeProfile,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        input_path = uri_to_path(input_uri)
        if not input_path.is_file():
            raise TranscodeError(f"Input not found: {input_path}")
        output_path = self.output_path_for(input_path)
        cmd = self.build_command(input_path, output_path, profile)
        self._logger.debug("ffmpeg command: %s", " ".join(cmd))

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise TranscodeError(f"ffmpeg binary not found: {self.ffmpeg_binary}") from exc

        state = _RunState()
        try:
            await asyncio.gather(
                self._read_progress(process.stdout, state, on_progress),
                self._read_log(process.stderr, state),
            )
            returncode = await process.wait()
        except (asyncio.CancelledError, Exception):
            if process.returncode is None:
                process.kill()
                await process.wait()
            self._discard(output_path)
            raise

        if returncode != 0:
            self._discard(output_path)
            tail = " | ".join(state.log_tail)
            self._logger.error("ffmpeg failed with return code %d: %s", returncode, tail[-500:])
            raise TranscodeError(f"ffmpeg failed with return code {returncode}")
        if not output_path.exists():
            raise TranscodeError(f"ffmpeg completed but output file not found: {output_path}")

        if on_progress is not None and state.percent < 100:
            on_progress(100)
        self._logger.info("Transcoded %s -> %s", input_path.name, output_path.name)
        return path_to_uri(output_path)

    async def _read_progress(
        self,
        stream: Optional[asyncio.StreamReader],
        state: _RunState,
        on_progress: Optional[ProgressCallback],
    ) -> None:
        if stream is None:
            return
        async for raw in stream:
            match = _OUT_TIME_RE.match(raw.decode("utf-8", errors="ignore").strip())
            if match is None or not state.duration_s:
                continue
            percent = min(100, int(_seconds(*match.groups()) / state.duration_s * 100))
            if percent > state.percent:
                state.percent = percent
                if on_progress is not None:
                    on_progress(percent)

    async def _read_log(self, stream: Optional[asyncio.StreamReader], state: _RunState) -> None:
        if stream is None:
            return
        async for raw in stream:
            line = raw.decode("utf-8", errors="ignore").rstrip()
            if not line:
                continue
            state.log_tail.append(line)
            if state.duration_s is None:
                match = _DURATION_RE.search(line)
                if match is not None:
                    state.duration_s = _seconds(*match.groups())

    def _discard(self, output_path: Path) -> None:
        with contextlib.suppress(FileNotFoundError):
            output_path.unlink()
            self._logger.debug("Removed partial output %s", output_path)


class DisabledTranscoder:
    """Always fails, so the pipeline archives the raw recording."""

    async def compress(
        self,
        input_uri: str,
        profile: TranscodeProfile,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        raise TranscodeError("Transcoding disabled")


__all__ = ["DisabledTranscoder", "FFmpegTranscoder"]
