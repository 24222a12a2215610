"""Classification of the OS API level into permission-relevant generations."""

from __future__ import annotations

from dataclasses import dataclass

RUNTIME_PERMISSIONS_VERSION = 23   # runtime permission prompts
SCOPED_STORAGE_VERSION = 29        # scoped storage
ALL_FILES_ACCESS_VERSION = 30      # MANAGE_EXTERNAL_STORAGE
PERMISSION_DIALOG_VERSION = 31     # reworked permission dialog
GRANULAR_MEDIA_VERSION = 33        # READ_MEDIA_* permissions
PRIVACY_EXTENSIONS_VERSION = 34


@dataclass(frozen=True, slots=True)
class PlatformVersionInfo:
    """Immutable snapshot of the platform generation flags.

    Attributes:
        version: Raw OS API level.
        is_v6_plus: Runtime permissions are prompted for (API 23+).
        is_v10_plus: Scoped storage applies (API 29+).
        is_v11_plus: All-files access exists as a special permission (API 30+).
        is_v12_plus: Reworked permission dialog (API 31+).
        is_v13_plus: Granular media permissions replace storage reads (API 33+).
        is_v14_plus: Additional privacy restrictions (API 34+).
    """

    version: int
    is_v6_plus: bool
    is_v10_plus: bool
    is_v11_plus: bool
    is_v12_plus: bool
    is_v13_plus: bool
    is_v14_plus: bool

    def __str__(self) -> str:
        return f"API {self.version}"


def classify(version: int) -> PlatformVersionInfo:
    """Derive the generation flags for ``version``; total over all integers."""
    version = int(version)
    return PlatformVersionInfo(
        version=version,
        is_v6_plus=version >= RUNTIME_PERMISSIONS_VERSION,
        is_v10_plus=version >= SCOPED_STORAGE_VERSION,
        is_v11_plus=version >= ALL_FILES_ACCESS_VERSION,
        is_v12_plus=version >= PERMISSION_DIALOG_VERSION,
        is_v13_plus=version >= GRANULAR_MEDIA_VERSION,
        is_v14_plus=version >= PRIVACY_EXTENSIONS_VERSION,
    )


__all__ = [
    "ALL_FILES_ACCESS_VERSION",
    "GRANULAR_MEDIA_VERSION",
    "PERMISSION_DIALOG_VERSION",
    "PRIVACY_EXTENSIONS_VERSION",
    "PlatformVersionInfo",
    "RUNTIME_PERMISSIONS_VERSION",
    "SCOPED_STORAGE_VERSION",
    "classify",
]
