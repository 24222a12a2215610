"""OS permission providers consumed by the permission engine."""

from __future__ import annotations

import asyncio
import re
from typing import Dict, Iterable, Mapping, Optional, Protocol, Sequence, Union, runtime_checkable

from ..core.logging_utils import LoggerLike, ensure_structured_logger
from ..errors import PermissionQueryError
from .keys import GrantState, PermissionKey


@runtime_checkable
class PermissionProvider(Protocol):
    """Capability object wrapping the platform permission API."""

    async def check(self, native_id: str) -> GrantState: ...

    async def request(self, native_id: str) -> GrantState: ...

    async def request_many(self, native_ids: Sequence[str]) -> Dict[str, GrantState]: ...

    async def open_app_settings(self) -> None: ...


def _native(key: Union[PermissionKey, str]) -> str:
    return key.native_id if isinstance(key, PermissionKey) else str(key)


class StaticPermissionProvider:
    """In-memory provider for simulation runs and tests.

    Unknown permissions are reported as denied; ids listed in ``unsupported``
    report ``UNAVAILABLE``. With ``grant_on_request`` every request succeeds
    and is remembered, mimicking a user who taps "Allow".
    """

    def __init__(
        self,
        grants: Optional[Mapping[Union[PermissionKey, str], GrantState]] = None,
        *,
        grant_on_request: bool = False,
        unsupported: Iterable[Union[PermissionKey, str]] = (),
    ) -> None:
        self._grants: Dict[str, GrantState] = {_native(k): v for k, v in (grants or {}).items()}
        self._unsupported = {_native(k) for k in unsupported}
        self.grant_on_request = grant_on_request
        self.settings_opened = 0

    def set_grant(self, key: Union[PermissionKey, str], state: GrantState) -> None:
        self._grants[_native(key)] = state

    async def check(self, native_id: str) -> GrantState:
        if native_id in self._unsupported:
            return GrantState.UNAVAILABLE
        return self._grants.get(native_id, GrantState.DENIED)

    async def request(self, native_id: str) -> GrantState:
        if native_id in self._unsupported:
            return GrantState.UNAVAILABLE
        if self.grant_on_request:
            self._grants[native_id] = GrantState.GRANTED
        return self._grants.get(native_id, GrantState.DENIED)

    async def request_many(self, native_ids: Sequence[str]) -> Dict[str, GrantState]:
        return {native_id: await self.request(native_id) for native_id in native_ids}

    async def open_app_settings(self) -> None:
        self.settings_opened += 1


_GRANT_LINE = re.compile(r"^\s*([\w.]+): granted=(true|false)(?:, flags=\[(.*)\])?", re.MULTILINE)
_APPOP_LINE = re.compile(r"MANAGE_EXTERNAL_STORAGE:\s*(\w+)")


def parse_runtime_grants(dumpsys_output: str) -> Dict[str, GrantState]:
    """Extract runtime permission grants from ``dumpsys package`` output."""
    grants: Dict[str, GrantState] = {}
    for match in _GRANT_LINE.finditer(dumpsys_output):
        native_id, granted, flags = match.group(1), match.group(2), match.group(3) or ""
        if granted == "true":
            grants[native_id] = GrantState.GRANTED
        elif "USER_FIXED" in flags or "POLICY_FIXED" in flags:
            grants[native_id] = GrantState.BLOCKED
        else:
            grants[native_id] = GrantState.DENIED
    return grants


def parse_appop_mode(appops_output: str) -> GrantState:
    match = _APPOP_LINE.search(appops_output)
    if match is None:
        return GrantState.DENIED
    return GrantState.GRANTED if match.group(1) == "allow" else GrantState.DENIED


class AdbPermissionProvider:
    """Provider backed by a USB-attached Android device via ``adb``.

    Requests are granted through ``pm grant``/``appops set`` on the user's
    behalf, so this provider is meant for development devices.
    """

    def __init__(
        self,
        package: str,
        *,
        adb_binary: str = "adb",
        serial: Optional[str] = None,
        timeout_s: float = 15.0,
        logger: LoggerLike = None,
    ) -> None:
        self.package = package
        self.adb_binary = adb_binary
        self.serial = serial or None
        self.timeout_s = timeout_s
        self._logger = ensure_structured_logger(logger, component="AdbPermissions", fallback_name=__name__)

    async def _adb(self, *args: str) -> str:
        cmd = [self.adb_binary]
        if self.serial:
            cmd += ["-s", self.serial]
        cmd += list(args)

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise PermissionQueryError(f"adb binary not found: {self.adb_binary}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout_s)
        except asyncio.TimeoutError as exc:
            process.kill()
            await process.wait()
            raise PermissionQueryError(f"adb timed out after {self.timeout_s:.0f}s: {' '.join(args)}") from exc

        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="ignore").strip()
            raise PermissionQueryError(f"adb {' '.join(args)} failed ({process.returncode}): {message[:200]}")
        return stdout.decode("utf-8", errors="ignore")

    async def read_sdk_version(self) -> int:
        output = await self._adb("shell", "getprop", "ro.build.version.sdk")
        try:
            return int(output.strip())
        except ValueError as exc:
            raise PermissionQueryError(f"Unexpected SDK version output: {output!r}") from exc

    async def _runtime_grants(self) -> Dict[str, GrantState]:
        return parse_runtime_grants(await self._adb("shell", "dumpsys", "package", self.package))

    async def check(self, native_id: str) -> GrantState:
        if native_id == PermissionKey.MANAGE_STORAGE.native_id:
            output = await self._adb("shell", "appops", "get", self.package, "MANAGE_EXTERNAL_STORAGE")
            return parse_appop_mode(output)
        grants = await self._runtime_grants()
        return grants.get(native_id, GrantState.UNAVAILABLE)

    async def _grant(self, native_id: str) -> None:
        if native_id == PermissionKey.MANAGE_STORAGE.native_id:
            await self._adb("shell", "appops", "set", self.package, "MANAGE_EXTERNAL_STORAGE", "allow")
        else:
            await self._adb("shell", "pm", "grant", self.package, native_id)

    async def request(self, native_id: str) -> GrantState:
        await self._grant(native_id)
        return await self.check(native_id)

    async def request_many(self, native_ids: Sequence[str]) -> Dict[str, GrantState]:
        for native_id in native_ids:
            try:
                await self._grant(native_id)
            except PermissionQueryError as exc:
                # Not declared in the manifest or not changeable; the
                # follow-up read reports its real state.
                self._logger.warning("Could not grant %s: %s", native_id, exc)
        grants = await self._runtime_grants()
        return {native_id: grants.get(native_id, GrantState.UNAVAILABLE) for native_id in native_ids}

    async def open_app_settings(self) -> None:
        await self._adb(
            "shell", "am", "start",
            "-a", "android.settings.APPLICATION_DETAILS_SETTINGS",
            "-d", f"package:{self.package}",
        )


__all__ = [
    "AdbPermissionProvider",
    "PermissionProvider",
    "StaticPermissionProvider",
    "parse_appop_mode",
    "parse_runtime_grants",
]
