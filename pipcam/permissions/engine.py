"""Permission resolution: query, request and evaluate the mandatory set."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Tuple

from ..core.logging_utils import LoggerLike, ensure_structured_logger
from ..errors import PermissionQueryError
from .keys import GrantState, PermissionKey
from .platform import PlatformVersionInfo, classify
from . import tiers
from .providers import PermissionProvider

# Product policy: a special permission whose status cannot be queried on this
# device is treated as granted at check time. Requests that fail are denied.
ASSUME_GRANTED_WHEN_UNQUERYABLE = True

PermissionStatus = Dict[PermissionKey, bool]


@dataclass(frozen=True, slots=True)
class PermissionDescriptor:
    key: PermissionKey
    display_name: str
    description: str
    granted: bool
    required: bool


@dataclass(slots=True)
class PermissionReport:
    """Outcome of one check or request cycle."""

    statuses: PermissionStatus
    satisfied: bool
    info: PlatformVersionInfo
    results: Dict[PermissionKey, GrantState] = field(default_factory=dict)

    def denied_required(self) -> List[PermissionKey]:
        return denied_required(self.statuses, self.info)


def describe(statuses: Mapping[PermissionKey, bool], info: PlatformVersionInfo) -> List[PermissionDescriptor]:
    """Descriptors for every reported key, required first, then by name."""
    details = [
        PermissionDescriptor(
            key=key,
            display_name=key.display_name,
            description=key.description,
            granted=bool(granted),
            required=tiers.is_required(key, info),
        )
        for key, granted in statuses.items()
        if granted is not None
    ]
    return sorted(details, key=lambda item: (not item.required, item.display_name.lower()))


def denied_required(statuses: Mapping[PermissionKey, bool], info: PlatformVersionInfo) -> List[PermissionKey]:
    return [
        key
        for key in PermissionKey
        if key in statuses and not statuses[key] and tiers.is_required(key, info)
    ]


def needs_settings_remediation(info: PlatformVersionInfo) -> bool:
    """On API 30+ some storage grants are only reachable from system settings."""
    return info.is_v11_plus


class PermissionEngine:
    """Resolves the permission set against an injected OS provider.

    Nothing is cached: each ``check_all``/``request_all`` re-reads the
    provider because grants can change in system settings at any time.
    """

    def __init__(
        self,
        provider: PermissionProvider,
        os_version: int,
        *,
        assume_granted_when_unqueryable: bool = ASSUME_GRANTED_WHEN_UNQUERYABLE,
        logger: LoggerLike = None,
    ) -> None:
        self.provider = provider
        self.os_version = int(os_version)
        self.assume_granted_when_unqueryable = assume_granted_when_unqueryable
        self.logger = ensure_structured_logger(logger, component="PermissionEngine", fallback_name=__name__)

    # ------------------------------------------------------------------
    # Pure helpers bound to this engine's platform

    def version_info(self) -> PlatformVersionInfo:
        return classify(self.os_version)

    def required_keys(self) -> frozenset:
        return tiers.required_permission_keys(self.version_info())

    def is_required(self, key: PermissionKey) -> bool:
        return tiers.is_required(key, self.version_info())

    def is_satisfied(self, statuses: Mapping[PermissionKey, bool]) -> bool:
        return tiers.is_satisfied(statuses, self.version_info())

    def describe(self, statuses: Mapping[PermissionKey, bool]) -> List[PermissionDescriptor]:
        return describe(statuses, self.version_info())

    # ------------------------------------------------------------------
    # Provider round trips

    async def _check_special(self, key: PermissionKey) -> bool:
        try:
            state = await self.provider.check(key.native_id)
        except Exception as exc:
            self.logger.warning("Status of %s unavailable (%s); assuming granted=%s",
                                key.value, exc, self.assume_granted_when_unqueryable)
            return self.assume_granted_when_unqueryable
        if state is GrantState.UNAVAILABLE:
            self.logger.debug("%s unsupported on this device; assuming granted=%s",
                              key.value, self.assume_granted_when_unqueryable)
            return self.assume_granted_when_unqueryable
        return state.granted

    async def check_all(self) -> PermissionReport:
        info = self.version_info()
        regular = tiers.regular_permission_keys(info)
        special = [key for key in PermissionKey if key in tiers.special_permission_keys(info)]

        try:
            states: Tuple[GrantState, ...] = tuple(
                await asyncio.gather(*(self.provider.check(key.native_id) for key in regular))
            )
        except PermissionQueryError:
            raise
        except Exception as exc:
            self.logger.error("Error checking permissions: %s", exc)
            raise PermissionQueryError(f"Permission check failed: {exc}") from exc

        statuses: PermissionStatus = {key: state.granted for key, state in zip(regular, states)}
        special_grants = await asyncio.gather(*(self._check_special(key) for key in special))
        statuses.update(zip(special, special_grants))

        report = PermissionReport(statuses=statuses, satisfied=tiers.is_satisfied(statuses, info), info=info)
        self.logger.info("Checked %d permissions on %s: satisfied=%s", len(statuses), info, report.satisfied)
        return report

    async def request_all(self) -> PermissionReport:
        info = self.version_info()
        regular = tiers.regular_permission_keys(info)
        special = [key for key in PermissionKey if key in tiers.special_permission_keys(info)]

        try:
            raw = await self.provider.request_many([key.native_id for key in regular])
        except PermissionQueryError:
            raise
        except Exception as exc:
            self.logger.error("Error requesting permissions: %s", exc)
            raise PermissionQueryError(f"Permission request failed: {exc}") from exc

        results: Dict[PermissionKey, GrantState] = {}
        for native_id, state in raw.items():
            try:
                results[PermissionKey.from_native(native_id)] = state
            except ValueError:
                self.logger.warning("Ignoring result for unknown permission %s", native_id)

        for key in special:
            try:
                results[key] = await self.provider.request(key.native_id)
            except Exception as exc:
                self.logger.info("Failed to request %s: %s", key.native_id, exc)
                results[key] = GrantState.DENIED

        statuses: PermissionStatus = {key: state.granted for key, state in results.items()}
        report = PermissionReport(
            statuses=statuses,
            satisfied=tiers.is_satisfied(statuses, info),
            info=info,
            results=results,
        )
        self.logger.info("Requested %d permissions on %s: satisfied=%s", len(results), info, report.satisfied)
        return report

    async def open_settings(self) -> bool:
        try:
            await self.provider.open_app_settings()
        except Exception as exc:
            self.logger.error(
                "Could not open settings (%s). Open Settings > Apps > Permissions manually.", exc
            )
            return False
        return True


__all__ = [
    "ASSUME_GRANTED_WHEN_UNQUERYABLE",
    "PermissionDescriptor",
    "PermissionEngine",
    "PermissionReport",
    "PermissionStatus",
    "denied_required",
    "describe",
    "needs_settings_remediation",
]
