"""Unit tests for the pipcam command line."""

import pytest


@pytest.fixture
def logging_calls():
    return []


@pytest.fixture
def cli(monkeypatch, tmp_path, logging_calls):
    """pipcam.cli with hermetic config and logging."""
    import pipcam.cli as cli_module
    from pipcam.config import AppConfig

    config = AppConfig(
        documents_dir=tmp_path / "documents",
        downloads_dir=tmp_path / "Downloads",
        gallery_dir=tmp_path / "Videos",
        album_name="CliAlbum",
    )
    monkeypatch.setattr(cli_module, "load_app_config", lambda extra_paths=(): config)
    monkeypatch.setattr(cli_module, "configure_logging", lambda *args, **kwargs: logging_calls.append(kwargs))
    monkeypatch.setattr(cli_module, "ensure_directories", lambda: None)
    return cli_module


@pytest.fixture
def openable_camera(cli, monkeypatch, tmp_path):
    from tests.infrastructure.mocks.capture_mocks import MockCamera

    class OpenableCamera(MockCamera):
        def __init__(self, *args, **kwargs):
            super().__init__(tmp_path / "cache")
            self.closed = False

        async def open(self):
            return True

        async def close(self):
            self.closed = True

    monkeypatch.setattr(cli, "OpenCVCamera", OpenableCamera)
    return OpenableCamera


class TestParser:
    def test_requires_command(self, cli):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])

    def test_permissions_arguments(self, cli):
        from pipcam.permissions.keys import PermissionKey

        args = cli.build_parser().parse_args(
            ["--log-level", "debug", "permissions", "--request", "--sdk", "30", "--grant", "camera", "readStorage"]
        )

        assert args.log_level == "debug"
        assert args.request is True
        assert args.sdk == 30
        assert args.grant == [PermissionKey.CAMERA, PermissionKey.READ_STORAGE]

    def test_unknown_permission_rejected(self, cli):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["permissions", "--grant", "microphone"])

    def test_duration_must_be_positive(self, cli):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["record", "--duration", "0"])


class TestPermissionsCommand:
    def test_satisfied(self, cli, capsys):
        code = cli.main(
            ["permissions", "--sdk", "34", "--grant", "camera", "fineLocation", "readMediaVideo", "readMediaImages"]
        )

        out = capsys.readouterr().out
        assert code == 0
        assert "Platform: API 34 (storage: granular_media" in out
        assert "[x] Camera (required)" in out
        assert "Permissions satisfied: yes" in out

    def test_unsatisfied(self, cli, capsys):
        code = cli.main(["permissions", "--sdk", "30", "--grant", "camera", "fineLocation"])

        out = capsys.readouterr().out
        assert code == 2
        assert "Permissions satisfied: no" in out
        assert "Missing: " in out
        assert "system settings" in out

    def test_request_grants_everything(self, cli, capsys):
        assert cli.main(["permissions", "--sdk", "22", "--request"]) == 0
        assert "Permissions satisfied: yes" in capsys.readouterr().out


class TestVideosCommand:
    def test_lists_catalog(self, cli, capsys):
        assert cli.main(["videos"]) == 0

        lines = capsys.readouterr().out.strip().splitlines()
        assert len(lines) == 5
        assert "Sample Video 1" in lines[0]


class TestRecordCommand:
    def test_record_without_transcode(self, cli, openable_camera, tmp_path, capsys):
        from tests.infrastructure.mocks.capture_mocks import RAW_BYTES

        code = cli.main(["record", "--duration", "0.05", "--no-transcode"])

        out = capsys.readouterr().out
        assert code == 0
        assert "Recording Saved: Video has been processed and saved to Gallery and Downloads/CliAlbum." in out
        finals = list((tmp_path / "documents" / "recordings").glob("recording_*.mp4"))
        assert len(finals) == 1
        assert finals[0].read_bytes() == RAW_BYTES
        assert (tmp_path / "Videos" / "CliAlbum" / finals[0].name).exists()

    def test_camera_unavailable(self, cli, monkeypatch, capsys):
        class BrokenCamera:
            def __init__(self, *args, **kwargs):
                pass

            async def open(self):
                return False

        monkeypatch.setattr(cli, "OpenCVCamera", BrokenCamera)

        assert cli.main(["record"]) == 1
        assert "could not open camera" in capsys.readouterr().err


class TestPlayCommand:
    def test_play_auto_records(self, cli, openable_camera, tmp_path, capsys):
        from tests.infrastructure.mocks.capture_mocks import RAW_BYTES

        code = cli.main(["play", "2", "--duration", "0.05", "--no-transcode"])

        out = capsys.readouterr().out
        assert code == 0
        assert "Playing Sample Video 2 (0:45)" in out
        assert "Recording Saved:" in out
        finals = list((tmp_path / "documents" / "recordings").glob("recording_*.mp4"))
        assert len(finals) == 1
        assert finals[0].read_bytes() == RAW_BYTES

    def test_auto_record_disabled_in_config(self, cli, openable_camera, monkeypatch, tmp_path, capsys):
        import dataclasses

        config = dataclasses.replace(cli.load_app_config(), auto_record_on_play=False)
        monkeypatch.setattr(cli, "load_app_config", lambda extra_paths=(): config)

        code = cli.main(["play", "1", "--duration", "0.05"])

        out = capsys.readouterr().out
        assert code == 0
        assert "Auto-record is off" in out
        assert "Recording Saved" not in out
        assert not (tmp_path / "documents" / "recordings").exists()

    def test_unknown_video(self, cli, capsys):
        assert cli.main(["play", "99"]) == 1
        assert "unknown video '99'" in capsys.readouterr().err


class TestLoggingSetup:
    def test_defaults_to_state_log_file(self, cli, logging_calls):
        from pipcam.core.paths import LOG_FILE

        cli.main(["videos"])

        assert logging_calls[-1]["log_file"] == LOG_FILE

    def test_log_file_argument_wins(self, cli, logging_calls, tmp_path):
        cli.main(["--log-file", str(tmp_path / "run.log"), "videos"])

        assert logging_calls[-1]["log_file"] == tmp_path / "run.log"
