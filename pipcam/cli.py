"""Command line entry point: ``pipcam permissions|videos|record|play``."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import sys
from pathlib import Path
from typing import Optional, Sequence

from .capture import CapturePipeline, RecordingLayout, TranscodeProfile
from .capture.camera import OpenCVCamera
from .capture.filesystem import LocalFilesystem
from .capture.gallery import AlbumDirectoryGallery
from .capture.transcoder import DisabledTranscoder, FFmpegTranscoder
from .catalog import find_video, load_sample_videos
from .config import AppConfig, load_app_config
from .core.logging_config import configure_logging
from .core.logging_utils import get_module_logger
from .core.paths import LOG_FILE, ensure_directories
from .errors import CameraNotReadyError, PermissionQueryError
from .permissions import (
    AdbPermissionProvider,
    GrantState,
    PermissionEngine,
    PermissionKey,
    StaticPermissionProvider,
    needs_settings_remediation,
    storage_tier,
)
from .player import PlaybackSession, parse_time

logger = get_module_logger("CLI")

LOG_LEVELS: dict[str, int] = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_UNSATISFIED = 2


def positive_float(value: str) -> float:
    try:
        parsed = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("Value must be a number") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("Value must be positive")
    return parsed


def permission_key(value: str) -> PermissionKey:
    try:
        return PermissionKey(value)
    except ValueError as exc:
        choices = ", ".join(key.value for key in PermissionKey)
        raise argparse.ArgumentTypeError(f"Unknown permission '{value}' (choose from {choices})") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pipcam", description="Picture-in-picture video recorder")
    parser.add_argument(
        "--log-level",
        choices=sorted(LOG_LEVELS.keys()),
        default=None,
        help="Logging verbosity (defaults to the config value)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help=f"Path to write logs to (default: {LOG_FILE})",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Configuration file layered over the defaults",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    perms = subparsers.add_parser("permissions", help="Check or request the permissions the app needs")
    perms.add_argument("--request", action="store_true", help="Request missing permissions")
    perms.add_argument("--sdk", type=int, default=None, help="Platform API level to evaluate against")
    perms.add_argument(
        "--grant",
        type=permission_key,
        nargs="*",
        default=[],
        metavar="KEY",
        help="Simulated grants (ignored with --adb)",
    )
    perms.add_argument("--adb", action="store_true", help="Query a device attached through adb")
    perms.add_argument("--serial", default=None, help="adb device serial")
    perms.add_argument("--package", default=None, help="Android package name to inspect")
    perms.add_argument("--open-settings", action="store_true", help="Open the app's settings page afterwards")

    subparsers.add_parser("videos", help="List the sample videos")

    record = subparsers.add_parser("record", help="Record a clip and archive it")
    record.add_argument(
        "--duration",
        type=positive_float,
        default=None,
        help="Seconds to record (default: until Ctrl+C or the maximum duration)",
    )
    record.add_argument("--no-transcode", action="store_true", help="Archive the raw recording")

    play = subparsers.add_parser("play", help="Play a sample video with the camera overlay recording")
    play.add_argument("video_id", help="Sample video id (see 'pipcam videos')")
    play.add_argument(
        "--duration",
        type=positive_float,
        default=None,
        help="Seconds of playback (default: the video's length)",
    )
    play.add_argument("--no-transcode", action="store_true", help="Archive the raw recording")
    return parser


def build_layout(config: AppConfig) -> RecordingLayout:
    return RecordingLayout(config.documents_dir, config.downloads_dir, config.album_name)


def build_profile(config: AppConfig) -> TranscodeProfile:
    return TranscodeProfile(
        width=config.transcode_width,
        height=config.transcode_height,
        frame_rate=config.transcode_frame_rate,
        video_bitrate=config.transcode_video_bitrate,
        video_codec=config.transcode_codec,
        preset=config.transcode_preset,
        audio_bitrate=config.transcode_audio_bitrate,
    )


def build_pipeline(config: AppConfig, camera, *, transcode: bool = True) -> CapturePipeline:
    transcoder = FFmpegTranscoder(config.ffmpeg_binary) if transcode else DisabledTranscoder()
    return CapturePipeline(
        camera,
        LocalFilesystem(),
        transcoder,
        AlbumDirectoryGallery(config.gallery_dir),
        build_layout(config),
        profile=build_profile(config),
        max_duration_s=config.max_duration_s,
        transcode_timeout_s=config.transcode_timeout_s,
    )


# ----------------------------------------------------------------------
# permissions


async def _build_engine(args: argparse.Namespace, config: AppConfig) -> PermissionEngine:
    if args.adb:
        provider = AdbPermissionProvider(
            args.package or config.package_name,
            adb_binary=config.adb_binary,
            serial=args.serial or config.adb_serial,
        )
        sdk = args.sdk if args.sdk is not None else await provider.read_sdk_version()
    else:
        provider = StaticPermissionProvider(
            {key: GrantState.GRANTED for key in args.grant},
            grant_on_request=args.request,
        )
        sdk = args.sdk if args.sdk is not None else config.sdk_version
    return PermissionEngine(provider, sdk)


async def run_permissions(args: argparse.Namespace, config: AppConfig) -> int:
    try:
        engine = await _build_engine(args, config)
        report = await (engine.request_all() if args.request else engine.check_all())
    except PermissionQueryError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    tier = storage_tier(report.info)
    print(f"Platform: {report.info} (storage: {tier.name}, {tier.summary})")
    for item in engine.describe(report.statuses):
        mark = "x" if item.granted else " "
        label = "required" if item.required else "optional"
        print(f"  [{mark}] {item.display_name} ({label}): {item.description}")
    print(f"Permissions satisfied: {'yes' if report.satisfied else 'no'}")

    if not report.satisfied:
        missing = ", ".join(key.display_name for key in report.denied_required())
        if missing:
            print(f"Missing: {missing}")
        if needs_settings_remediation(report.info):
            print("Some permissions must be granted from system settings on this Android version.")

    if args.open_settings and not await engine.open_settings():
        print("Open Settings > Apps > Permissions manually.", file=sys.stderr)

    return EXIT_OK if report.satisfied else EXIT_UNSATISFIED


# ----------------------------------------------------------------------
# videos


def run_videos() -> int:
    for video in load_sample_videos():
        print(f"{video.id:>3}  {video.title:<16} {video.duration:>6}  {video.size:>8}  {video.source_uri}")
    return EXIT_OK


# ----------------------------------------------------------------------
# record


async def _open_camera(config: AppConfig) -> Optional[OpenCVCamera]:
    camera = OpenCVCamera(
        config.camera_device,
        (config.camera_width, config.camera_height),
        config.camera_fps,
    )
    if not await camera.open():
        print(f"Error: could not open camera {config.camera_device}", file=sys.stderr)
        return None
    return camera


def _report_outcome(outcome) -> int:
    print(f"{outcome.title}: {outcome.message}")
    if outcome.final_path is not None:
        print(f"  file: {outcome.final_path}")
    return EXIT_OK if outcome.succeeded else EXIT_FAILURE


async def run_record(args: argparse.Namespace, config: AppConfig) -> int:
    camera = await _open_camera(config)
    if camera is None:
        return EXIT_FAILURE

    pipeline = build_pipeline(config, camera, transcode=not args.no_transcode)
    loop = asyncio.get_running_loop()
    stop_handle: Optional[asyncio.TimerHandle] = None
    signals_installed = False
    try:
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(signal.SIGINT, pipeline.stop)
            signals_installed = True

        try:
            await pipeline.start()
        except CameraNotReadyError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return EXIT_FAILURE

        if args.duration is not None:
            stop_handle = loop.call_later(args.duration, pipeline.stop)
        print("Recording... press Ctrl+C to stop.")
        outcome = await pipeline.wait()
    finally:
        if stop_handle is not None:
            stop_handle.cancel()
        if signals_installed:
            loop.remove_signal_handler(signal.SIGINT)
        await camera.close()

    if outcome is None:
        return EXIT_FAILURE
    return _report_outcome(outcome)


# ----------------------------------------------------------------------
# play


async def run_play(args: argparse.Namespace, config: AppConfig) -> int:
    video = find_video(args.video_id)
    if video is None:
        print(f"Error: unknown video '{args.video_id}' (see 'pipcam videos')", file=sys.stderr)
        return EXIT_FAILURE

    camera = await _open_camera(config)
    if camera is None:
        return EXIT_FAILURE

    pipeline = build_pipeline(config, camera, transcode=not args.no_transcode)
    session = PlaybackSession(video, pipeline, camera, auto_record_on_play=config.auto_record_on_play)
    session.on_load(parse_time(video.duration))

    loop = asyncio.get_running_loop()
    ended = asyncio.Event()
    end_handle = loop.call_later(args.duration or session.duration, ended.set)
    signals_installed = False
    try:
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(signal.SIGINT, ended.set)
            signals_installed = True

        print(f"Playing {video.title} ({video.duration})... press Ctrl+C to stop.")
        await session.toggle_play_pause()
        if not session.is_recording:
            print("Auto-record is off; playing without recording.")
        await ended.wait()
        await session.on_end()
        outcome = await pipeline.wait()
    finally:
        end_handle.cancel()
        if signals_installed:
            loop.remove_signal_handler(signal.SIGINT)
        await camera.close()

    if outcome is None:
        return EXIT_OK
    return _report_outcome(outcome)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_app_config([args.config] if args.config else ())

    ensure_directories()
    configure_logging(
        args.log_level or config.log_level,
        log_file=args.log_file or config.log_file or LOG_FILE,
    )
    logger.debug("Running %s with %s", args.command, config.to_dict())

    if args.command == "videos":
        return run_videos()
    try:
        if args.command == "permissions":
            return asyncio.run(run_permissions(args, config))
        if args.command == "play":
            return asyncio.run(run_play(args, config))
        return asyncio.run(run_record(args, config))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return EXIT_FAILURE


__all__ = ["build_parser", "build_pipeline", "main"]
