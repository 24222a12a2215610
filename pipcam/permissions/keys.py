"""Permission identities and their native identifiers."""

from __future__ import annotations

from enum import Enum
from typing import Dict


class GrantState(Enum):
    """OS answer to whether a permission is currently allowed."""

    GRANTED = "granted"
    DENIED = "denied"
    BLOCKED = "blocked"      # denied with "don't ask again"; only settings can grant
    LIMITED = "limited"      # partial access (e.g. selected photos only)
    UNAVAILABLE = "unavailable"  # not supported on this device / OS version

    @property
    def granted(self) -> bool:
        return self is GrantState.GRANTED


class PermissionKey(Enum):
    CAMERA = "camera"
    FINE_LOCATION = "fineLocation"
    COARSE_LOCATION = "coarseLocation"
    READ_STORAGE = "readStorage"
    WRITE_STORAGE = "writeStorage"
    MANAGE_STORAGE = "manageStorage"
    READ_MEDIA_VIDEO = "readMediaVideo"
    READ_MEDIA_IMAGES = "readMediaImages"
    READ_MEDIA_AUDIO = "readMediaAudio"

    @property
    def native_id(self) -> str:
        return NATIVE_IDS[self]

    @property
    def display_name(self) -> str:
        return DISPLAY_NAMES[self]

    @property
    def description(self) -> str:
        return DESCRIPTIONS[self]

    @classmethod
    def from_native(cls, native_id: str) -> "PermissionKey":
        try:
            return _KEYS_BY_NATIVE_ID[native_id]
        except KeyError:
            raise ValueError(f"Unknown native permission id: {native_id!r}") from None


NATIVE_IDS: Dict[PermissionKey, str] = {
    PermissionKey.CAMERA: "android.permission.CAMERA",
    PermissionKey.FINE_LOCATION: "android.permission.ACCESS_FINE_LOCATION",
    PermissionKey.COARSE_LOCATION: "android.permission.ACCESS_COARSE_LOCATION",
    PermissionKey.READ_STORAGE: "android.permission.READ_EXTERNAL_STORAGE",
    PermissionKey.WRITE_STORAGE: "android.permission.WRITE_EXTERNAL_STORAGE",
    PermissionKey.MANAGE_STORAGE: "android.permission.MANAGE_EXTERNAL_STORAGE",
    PermissionKey.READ_MEDIA_VIDEO: "android.permission.READ_MEDIA_VIDEO",
    PermissionKey.READ_MEDIA_IMAGES: "android.permission.READ_MEDIA_IMAGES",
    PermissionKey.READ_MEDIA_AUDIO: "android.permission.READ_MEDIA_AUDIO",
}

_KEYS_BY_NATIVE_ID: Dict[str, PermissionKey] = {value: key for key, value in NATIVE_IDS.items()}

DISPLAY_NAMES: Dict[PermissionKey, str] = {
    PermissionKey.CAMERA: "Camera",
    PermissionKey.FINE_LOCATION: "Precise Location",
    PermissionKey.COARSE_LOCATION: "Approximate Location",
    PermissionKey.READ_STORAGE: "Read Storage",
    PermissionKey.WRITE_STORAGE: "Write Storage",
    PermissionKey.MANAGE_STORAGE: "All Files Access",
    PermissionKey.READ_MEDIA_VIDEO: "Access Videos",
    PermissionKey.READ_MEDIA_IMAGES: "Access Images",
    PermissionKey.READ_MEDIA_AUDIO: "Access Audio",
}

DESCRIPTIONS: Dict[PermissionKey, str] = {
    PermissionKey.CAMERA: "Take photos and record videos",
    PermissionKey.FINE_LOCATION: "Access your precise location using GPS",
    PermissionKey.COARSE_LOCATION: "Access your approximate location",
    PermissionKey.READ_STORAGE: "Read files from device storage",
    PermissionKey.WRITE_STORAGE: "Write files to device storage",
    PermissionKey.MANAGE_STORAGE: "Access all files on your device",
    PermissionKey.READ_MEDIA_VIDEO: "Access video files on your device",
    PermissionKey.READ_MEDIA_IMAGES: "Access image files on your device",
    PermissionKey.READ_MEDIA_AUDIO: "Access audio files on your device",
}


__all__ = ["DESCRIPTIONS", "DISPLAY_NAMES", "GrantState", "NATIVE_IDS", "PermissionKey"]
