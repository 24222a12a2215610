"""Unit tests for config loading and the logging helpers."""

import logging
from pathlib import Path

import pytest


class TestConfigLoaderParsing:
    """key = value parsing."""

    def test_parse_lines(self):
        from pipcam.core.config_loader import parse_lines

        values = parse_lines([
            "# comment",
            "",
            "album_name = My Album  # trailing",
            "ffmpeg_binary = '/usr/bin/ffmpeg'",
            "not a pair",
        ])

        assert values == {"album_name": "My Album", "ffmpeg_binary": "/usr/bin/ffmpeg"}

    def test_coerce_guessing(self):
        from pipcam.core.config_loader import coerce_value

        assert coerce_value("yes") is True
        assert coerce_value("off") is False
        assert coerce_value("42") == 42
        assert coerce_value("2.5") == pytest.approx(2.5)
        assert coerce_value("libx265") == "libx265"

    def test_coerce_like_default(self):
        from pipcam.core.config_loader import coerce_value

        assert coerce_value("300", 1.0) == 300.0
        assert isinstance(coerce_value("300", 1.0), float)
        assert coerce_value("nope", 25) == 25
        assert coerce_value("true", False) is True
        assert coerce_value("~/videos", Path("/x")) == Path("~/videos").expanduser()
        assert coerce_value("", Path("/x")) == Path("/x")
        assert coerce_value("2M", "1M") == "2M"


class TestConfigLoaderFiles:
    def test_missing_file_returns_defaults(self, tmp_path):
        from pipcam.core.config_loader import ConfigLoader

        assert ConfigLoader.load(tmp_path / "missing.txt", {"a": 1}) == {"a": 1}

    def test_layering(self, tmp_path):
        from pipcam.core.config_loader import ConfigLoader

        first = tmp_path / "first.txt"
        first.write_text("a = 2\nb = x\n")
        second = tmp_path / "second.txt"
        second.write_text("b = y\n")

        values = ConfigLoader.load(first, {"a": 1, "b": "w", "c": True})
        values = ConfigLoader.load(second, {"a": 1, "b": "w", "c": True}, base=values)

        assert values == {"a": 2, "b": "y", "c": True}

    @pytest.mark.asyncio
    async def test_load_async(self, tmp_path):
        from pipcam.core.config_loader import ConfigLoader

        path = tmp_path / "config.txt"
        path.write_text("max_duration_s = 120\n")

        values = await ConfigLoader.load_async(path, {"max_duration_s": 300.0})

        assert values == {"max_duration_s": 120.0}


class TestAppConfig:
    def test_packaged_defaults(self):
        from pipcam.config import AppConfig
        from pipcam.core.config_loader import ConfigLoader
        from pipcam.core.paths import DEFAULT_CONFIG_PATH

        defaults = AppConfig().to_dict()
        config = AppConfig.from_mapping(ConfigLoader.load(DEFAULT_CONFIG_PATH, defaults))

        assert DEFAULT_CONFIG_PATH.exists()
        assert config.sdk_version == 34
        assert config.album_name == "VideoPermissionsApp"
        assert config.max_duration_s == 300.0
        assert config.transcode_width == 960
        assert config.transcode_frame_rate == 25
        assert config.camera_device == "0"
        assert config.auto_record_on_play is True

    def test_from_mapping_ignores_unknown(self, caplog):
        from pipcam.config import AppConfig

        with caplog.at_level(logging.WARNING, logger="pipcam"):
            config = AppConfig.from_mapping({"album_name": "X", "bogus": 1, "log_file": ""})

        assert config.album_name == "X"
        assert config.log_file is None
        assert "bogus" in caplog.text

    def test_load_app_config_with_override(self, tmp_path):
        from pipcam.config import load_app_config

        override = tmp_path / "override.txt"
        override.write_text(
            f"sdk_version = 29\ndocuments_dir = {tmp_path / 'docs'}\nlog_file = {tmp_path / 'pipcam.log'}\n"
        )

        config = load_app_config([override])

        assert config.sdk_version == 29
        assert config.documents_dir == tmp_path / "docs"
        assert config.log_file == tmp_path / "pipcam.log"


class TestLogging:
    def test_module_logger_namespace_and_prefix(self, caplog):
        from pipcam.core.logging_utils import get_module_logger

        logger = get_module_logger("Pipeline")

        with caplog.at_level(logging.INFO, logger="pipcam"):
            logger.info("hello %s", "world")

        assert logger.name == "pipcam.Pipeline"
        assert caplog.records[-1].getMessage() == "[Pipeline] hello world"

    def test_ensure_structured_logger_wraps_plain_logger(self, caplog):
        from pipcam.core.logging_utils import StructuredLogger, ensure_structured_logger

        plain = logging.getLogger("pipcam.tests.plain")
        wrapped = ensure_structured_logger(plain, component="Engine")

        with caplog.at_level(logging.INFO, logger="pipcam"):
            wrapped.info("ready")

        assert isinstance(wrapped, StructuredLogger)
        assert ensure_structured_logger(wrapped) is wrapped
        assert caplog.records[-1].getMessage() == "[Engine] ready"

    def test_fallback_logger(self):
        from pipcam.core.logging_utils import ensure_structured_logger

        assert ensure_structured_logger(None, fallback_name="capture").name == "pipcam.capture"

    def test_coerce_level(self):
        from pipcam.core.logging_config import coerce_level

        assert coerce_level("debug") == logging.DEBUG
        assert coerce_level(logging.ERROR) == logging.ERROR
        with pytest.raises(ValueError):
            coerce_level("chatty")

    def test_configure_logging_writes_file(self, tmp_path):
        from pipcam.core.logging_config import configure_logging
        from pipcam.core.logging_utils import get_module_logger

        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level
        log_file = tmp_path / "logs" / "pipcam.log"
        try:
            configure_logging("info", console=False, log_file=log_file, force=True)
            get_module_logger("CLI").info("written")
            for handler in root.handlers:
                handler.flush()

            text = log_file.read_text()
            assert "| INFO     | pipcam.CLI | [CLI] written" in text
        finally:
            for handler in list(root.handlers):
                root.removeHandler(handler)
                handler.close()
            for handler in saved_handlers:
                root.addHandler(handler)
            root.setLevel(saved_level)


class TestPaths:
    def test_ensure_directories(self, monkeypatch, tmp_path):
        import pipcam.core.paths as paths

        monkeypatch.setattr(paths, "USER_STATE_DIR", tmp_path / "state")
        monkeypatch.setattr(paths, "LOGS_DIR", tmp_path / "state" / "logs")
        monkeypatch.setattr(paths, "DOCUMENTS_DIR", tmp_path / "state" / "documents")

        paths.ensure_directories()
        paths.ensure_directories()

        assert (tmp_path / "state" / "logs").is_dir()
        assert (tmp_path / "state" / "documents").is_dir()
        assert paths.LOG_FILE.name == "pipcam.log"
