"""Version-banded permission requirements.

Storage access is resolved from ``STORAGE_TIERS``, an ordered table scanned
newest first; the first tier whose threshold the platform meets is the only
one that applies. Tiers never combine.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Mapping, Tuple

from .keys import PermissionKey
from .platform import (
    ALL_FILES_ACCESS_VERSION,
    GRANULAR_MEDIA_VERSION,
    SCOPED_STORAGE_VERSION,
    PlatformVersionInfo,
)

BASE_REQUIRED_KEYS: FrozenSet[PermissionKey] = frozenset(
    {PermissionKey.CAMERA, PermissionKey.FINE_LOCATION, PermissionKey.COARSE_LOCATION}
)
LOCATION_KEYS: FrozenSet[PermissionKey] = frozenset(
    {PermissionKey.FINE_LOCATION, PermissionKey.COARSE_LOCATION}
)


class TierRule(Enum):
    ALL = "all"
    ANY = "any"


@dataclass(frozen=True, slots=True)
class StorageTier:
    name: str
    min_version: int
    keys: FrozenSet[PermissionKey]
    rule: TierRule
    summary: str

    def evaluate(self, statuses: Mapping[PermissionKey, bool]) -> bool:
        grants = (bool(statuses.get(key, False)) for key in self.keys)
        return any(grants) if self.rule is TierRule.ANY else all(grants)


STORAGE_TIERS: Tuple[StorageTier, ...] = (
    StorageTier(
        name="granular_media",
        min_version=GRANULAR_MEDIA_VERSION,
        keys=frozenset({PermissionKey.READ_MEDIA_VIDEO, PermissionKey.READ_MEDIA_IMAGES}),
        rule=TierRule.ALL,
        summary="Uses granular media permissions for better privacy",
    ),
    StorageTier(
        name="scoped_broad",
        min_version=ALL_FILES_ACCESS_VERSION,
        keys=frozenset({PermissionKey.MANAGE_STORAGE, PermissionKey.READ_STORAGE}),
        rule=TierRule.ANY,
        summary="May require manual setup for storage access",
    ),
    StorageTier(
        name="scoped",
        min_version=SCOPED_STORAGE_VERSION,
        keys=frozenset({PermissionKey.READ_STORAGE}),
        rule=TierRule.ALL,
        summary="Uses scoped storage for better security",
    ),
    StorageTier(
        name="legacy",
        min_version=-(2**31),
        keys=frozenset({PermissionKey.READ_STORAGE, PermissionKey.WRITE_STORAGE}),
        rule=TierRule.ALL,
        summary="Uses traditional permission model",
    ),
)


def storage_tier(info: PlatformVersionInfo) -> StorageTier:
    for tier in STORAGE_TIERS:
        if info.version >= tier.min_version:
            return tier
    return STORAGE_TIERS[-1]


def required_permission_keys(info: PlatformVersionInfo) -> FrozenSet[PermissionKey]:
    return BASE_REQUIRED_KEYS | storage_tier(info).keys


def special_permission_keys(info: PlatformVersionInfo) -> FrozenSet[PermissionKey]:
    """Keys granted through the system settings screen, queried one at a time."""
    if info.is_v11_plus:
        return frozenset({PermissionKey.MANAGE_STORAGE})
    return frozenset()


def regular_permission_keys(info: PlatformVersionInfo) -> Tuple[PermissionKey, ...]:
    """Required keys that go through the batch prompt, in declaration order."""
    wanted = required_permission_keys(info) - special_permission_keys(info)
    return tuple(key for key in PermissionKey if key in wanted)


def is_required(key: PermissionKey, info: PlatformVersionInfo) -> bool:
    return key in required_permission_keys(info)


def is_satisfied(statuses: Mapping[PermissionKey, bool], info: PlatformVersionInfo) -> bool:
    """Camera AND any location AND the active storage tier."""
    if not statuses.get(PermissionKey.CAMERA, False):
        return False
    if not any(statuses.get(key, False) for key in LOCATION_KEYS):
        return False
    return storage_tier(info).evaluate(statuses)


__all__ = [
    "BASE_REQUIRED_KEYS",
    "STORAGE_TIERS",
    "StorageTier",
    "TierRule",
    "is_required",
    "is_satisfied",
    "regular_permission_keys",
    "required_permission_keys",
    "special_permission_keys",
    "storage_tier",
]
