"""Permission resolution engine."""

from .engine import (
    ASSUME_GRANTED_WHEN_UNQUERYABLE,
    PermissionDescriptor,
    PermissionEngine,
    PermissionReport,
    denied_required,
    describe,
    needs_settings_remediation,
)
from .keys import GrantState, PermissionKey
from .platform import PlatformVersionInfo, classify
from .providers import AdbPermissionProvider, PermissionProvider, StaticPermissionProvider
from .tiers import (
    STORAGE_TIERS,
    StorageTier,
    is_required,
    is_satisfied,
    required_permission_keys,
    storage_tier,
)

__all__ = [
    "ASSUME_GRANTED_WHEN_UNQUERYABLE",
    "AdbPermissionProvider",
    "GrantState",
    "PermissionDescriptor",
    "PermissionEngine",
    "PermissionKey",
    "PermissionProvider",
    "PermissionReport",
    "PlatformVersionInfo",
    "STORAGE_TIERS",
    "StaticPermissionProvider",
    "StorageTier",
    "classify",
    "denied_required",
    "describe",
    "is_required",
    "is_satisfied",
    "needs_settings_remediation",
    "required_permission_keys",
    "storage_tier",
]
