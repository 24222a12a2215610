"""Typed application configuration."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

from .core.config_loader import ConfigLoader
from .core.logging_utils import get_module_logger
from .core.paths import (
    DEFAULT_CONFIG_PATH,
    DOCUMENTS_DIR,
    DOWNLOADS_DIR,
    GALLERY_DIR,
    USER_CONFIG_PATH,
)

logger = get_module_logger("Config")

DEFAULT_ALBUM_NAME = "VideoPermissionsApp"


@dataclass(slots=True)
class AppConfig:
    """Settings for the permission engine, capture pipeline and CLI."""

    sdk_version: int = 34
    documents_dir: Path = DOCUMENTS_DIR
    downloads_dir: Path = DOWNLOADS_DIR
    gallery_dir: Path = GALLERY_DIR
    album_name: str = DEFAULT_ALBUM_NAME
    max_duration_s: float = 300.0

    transcode_width: int = 960
    transcode_height: int = 540
    transcode_frame_rate: int = 25
    transcode_video_bitrate: str = "2M"
    transcode_codec: str = "libx265"
    transcode_preset: str = "medium"
    transcode_audio_bitrate: str = "128k"
    transcode_timeout_s: float = 600.0
    ffmpeg_binary: str = "ffmpeg"

    camera_device: str = "0"
    camera_width: int = 1280
    camera_height: int = 720
    camera_fps: float = 30.0
    auto_record_on_play: bool = True

    log_level: str = "info"
    log_file: Optional[Path] = None

    adb_binary: str = "adb"
    adb_serial: str = ""
    package_name: str = "com.videopermissionsapp"

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "AppConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(unknown))

        kwargs = {key: value for key, value in values.items() if key in known}
        log_file = kwargs.get("log_file")
        if log_file in ("", None):
            kwargs["log_file"] = None
        else:
            kwargs["log_file"] = Path(str(log_file)).expanduser()
        kwargs["camera_device"] = str(kwargs.get("camera_device", cls.camera_device))
        kwargs["adb_serial"] = str(kwargs.get("adb_serial", "") or "")
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def load_app_config(extra_paths: Sequence[Path] = ()) -> AppConfig:
    """Layer the packaged defaults, the per-user file and ``extra_paths``."""

    defaults = AppConfig().to_dict()
    values = ConfigLoader.load(DEFAULT_CONFIG_PATH, defaults)
    for path in (USER_CONFIG_PATH, *extra_paths):
        values = ConfigLoader.load(Path(path), defaults, base=values)
    return AppConfig.from_mapping(values)


__all__ = ["AppConfig", "DEFAULT_ALBUM_NAME", "load_app_config"]
