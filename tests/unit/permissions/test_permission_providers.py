"""Unit tests for the static and adb permission providers."""

import asyncio

import pytest

from pipcam.permissions.keys import GrantState, PermissionKey


DUMPSYS = """\
Packages:
  Package [com.videopermissionsapp] (4f1c2a):
    runtime permissions:
      android.permission.CAMERA: granted=true, flags=[ USER_SET|USER_SENSITIVE_WHEN_GRANTED ]
      android.permission.ACCESS_FINE_LOCATION: granted=false, flags=[ USER_SET|USER_FIXED ]
      android.permission.ACCESS_COARSE_LOCATION: granted=false
      android.permission.READ_MEDIA_VIDEO: granted=false, flags=[ POLICY_FIXED ]
"""


class FakeProcess:
    def __init__(self, stdout=b"", stderr=b"", returncode=0, hang=False):
        self._stdout = stdout
        self._stderr = stderr
        self._hang = hang
        self.returncode = None if hang else returncode
        self._final = returncode
        self.killed = False

    async def communicate(self):
        if self._hang:
            await asyncio.sleep(3600)
        return self._stdout, self._stderr

    def kill(self):
        self.killed = True
        self.returncode = -9

    async def wait(self):
        return self.returncode


@pytest.fixture
def fake_adb(monkeypatch):
    """Route ``create_subprocess_exec`` to canned responses keyed by adb args."""
    calls = []
    responses = {}

    async def fake_exec(*cmd, **kwargs):
        calls.append(list(cmd))
        for needle, factory in responses.items():
            if needle in " ".join(cmd):
                return factory()
        return FakeProcess()

    monkeypatch.setattr(asyncio, "create_subprocess_exec", fake_exec)
    return calls, responses


class TestParsers:
    """dumpsys/appops output parsing."""

    def test_runtime_grants(self):
        from pipcam.permissions.providers import parse_runtime_grants

        grants = parse_runtime_grants(DUMPSYS)

        assert grants == {
            "android.permission.CAMERA": GrantState.GRANTED,
            "android.permission.ACCESS_FINE_LOCATION": GrantState.BLOCKED,
            "android.permission.ACCESS_COARSE_LOCATION": GrantState.DENIED,
            "android.permission.READ_MEDIA_VIDEO": GrantState.BLOCKED,
        }

    def test_appop_mode(self):
        from pipcam.permissions.providers import parse_appop_mode

        assert parse_appop_mode("MANAGE_EXTERNAL_STORAGE: allow") is GrantState.GRANTED
        assert parse_appop_mode("MANAGE_EXTERNAL_STORAGE: default; rejectTime=+1d") is GrantState.DENIED
        assert parse_appop_mode("No operations.") is GrantState.DENIED


class TestStaticProvider:
    """In-memory provider."""

    @pytest.mark.asyncio
    async def test_defaults_to_denied(self):
        from pipcam.permissions.providers import StaticPermissionProvider

        provider = StaticPermissionProvider({PermissionKey.CAMERA: GrantState.GRANTED})

        assert await provider.check(PermissionKey.CAMERA.native_id) is GrantState.GRANTED
        assert await provider.check(PermissionKey.READ_STORAGE.native_id) is GrantState.DENIED

    @pytest.mark.asyncio
    async def test_unsupported(self):
        from pipcam.permissions.providers import StaticPermissionProvider

        provider = StaticPermissionProvider(unsupported=[PermissionKey.MANAGE_STORAGE], grant_on_request=True)
        native = PermissionKey.MANAGE_STORAGE.native_id

        assert await provider.check(native) is GrantState.UNAVAILABLE
        assert await provider.request(native) is GrantState.UNAVAILABLE

    @pytest.mark.asyncio
    async def test_grant_on_request_is_remembered(self):
        from pipcam.permissions.providers import StaticPermissionProvider

        provider = StaticPermissionProvider(grant_on_request=True)
        native = PermissionKey.CAMERA.native_id

        assert await provider.request_many([native]) == {native: GrantState.GRANTED}
        assert await provider.check(native) is GrantState.GRANTED

    def test_satisfies_protocol(self):
        from pipcam.permissions.providers import PermissionProvider, StaticPermissionProvider

        assert isinstance(StaticPermissionProvider(), PermissionProvider)


class TestAdbProvider:
    """adb-backed provider with a faked subprocess layer."""

    @pytest.mark.asyncio
    async def test_check_runtime_permission(self, fake_adb):
        from pipcam.permissions.providers import AdbPermissionProvider

        calls, responses = fake_adb
        responses["dumpsys package"] = lambda: FakeProcess(DUMPSYS.encode())
        provider = AdbPermissionProvider("com.videopermissionsapp", serial="emulator-5554")

        assert await provider.check("android.permission.CAMERA") is GrantState.GRANTED
        assert await provider.check("android.permission.READ_MEDIA_IMAGES") is GrantState.UNAVAILABLE
        assert calls[0][:3] == ["adb", "-s", "emulator-5554"]

    @pytest.mark.asyncio
    async def test_check_manage_storage_uses_appops(self, fake_adb):
        from pipcam.permissions.providers import AdbPermissionProvider

        calls, responses = fake_adb
        responses["appops get"] = lambda: FakeProcess(b"MANAGE_EXTERNAL_STORAGE: allow\n")
        provider = AdbPermissionProvider("com.videopermissionsapp")

        assert await provider.check(PermissionKey.MANAGE_STORAGE.native_id) is GrantState.GRANTED
        assert "appops" in calls[0]

    @pytest.mark.asyncio
    async def test_read_sdk_version(self, fake_adb):
        from pipcam.permissions.providers import AdbPermissionProvider

        _, responses = fake_adb
        responses["getprop"] = lambda: FakeProcess(b"33\n")

        assert await AdbPermissionProvider("pkg").read_sdk_version() == 33

    @pytest.mark.asyncio
    async def test_nonzero_exit_raises(self, fake_adb):
        from pipcam.errors import PermissionQueryError
        from pipcam.permissions.providers import AdbPermissionProvider

        _, responses = fake_adb
        responses["getprop"] = lambda: FakeProcess(stderr=b"error: no devices/emulators found", returncode=1)

        with pytest.raises(PermissionQueryError, match="no devices"):
            await AdbPermissionProvider("pkg").read_sdk_version()

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self, fake_adb):
        from pipcam.errors import PermissionQueryError
        from pipcam.permissions.providers import AdbPermissionProvider

        _, responses = fake_adb
        process = FakeProcess(hang=True)
        responses["getprop"] = lambda: process

        with pytest.raises(PermissionQueryError, match="timed out"):
            await AdbPermissionProvider("pkg", timeout_s=0.05).read_sdk_version()
        assert process.killed

    @pytest.mark.asyncio
    async def test_missing_binary(self, monkeypatch):
        from pipcam.errors import PermissionQueryError
        from pipcam.permissions.providers import AdbPermissionProvider

        async def missing(*cmd, **kwargs):
            raise FileNotFoundError(cmd[0])

        monkeypatch.setattr(asyncio, "create_subprocess_exec", missing)

        with pytest.raises(PermissionQueryError, match="not found"):
            await AdbPermissionProvider("pkg", adb_binary="/nope/adb").check("android.permission.CAMERA")

    @pytest.mark.asyncio
    async def test_request_many_tolerates_grant_failures(self, fake_adb):
        from pipcam.permissions.providers import AdbPermissionProvider

        calls, responses = fake_adb
        responses["pm grant"] = lambda: FakeProcess(stderr=b"not a changeable permission type", returncode=255)
        responses["dumpsys package"] = lambda: FakeProcess(DUMPSYS.encode())
        provider = AdbPermissionProvider("com.videopermissionsapp")

        result = await provider.request_many(["android.permission.CAMERA", "android.permission.READ_MEDIA_IMAGES"])

        assert result == {
            "android.permission.CAMERA": GrantState.GRANTED,
            "android.permission.READ_MEDIA_IMAGES": GrantState.UNAVAILABLE,
        }
        assert sum("grant" in call for call in calls) == 2

    @pytest.mark.asyncio
    async def test_open_app_settings(self, fake_adb):
        from pipcam.permissions.providers import AdbPermissionProvider

        calls, _ = fake_adb
        await AdbPermissionProvider("com.videopermissionsapp").open_app_settings()

        assert "android.settings.APPLICATION_DETAILS_SETTINGS" in calls[0]
        assert "package:com.videopermissionsapp" in calls[0]
