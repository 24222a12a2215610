"""Shared pytest configuration and fixtures for the pipcam test suite."""

import sys
from pathlib import Path

import pytest

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "hardware: mark test as requiring a camera or ffmpeg binary"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


def pytest_addoption(parser):
    parser.addoption(
        "--run-hardware",
        action="store_true",
        default=False,
        help="Run tests that require a real camera or ffmpeg",
    )


def pytest_collection_modifyitems(config, items):
    """Skip hardware tests unless --run-hardware is specified."""
    if config.getoption("--run-hardware"):
        return

    skip_hardware = pytest.mark.skip(reason="Need --run-hardware option to run")
    for item in items:
        if "hardware" in item.keywords:
            item.add_marker(skip_hardware)


# =============================================================================
# Capture fixtures
# =============================================================================

@pytest.fixture
def layout(tmp_path: Path):
    from pipcam.capture.layout import RecordingLayout

    return RecordingLayout(tmp_path / "documents", tmp_path / "downloads", "TestAlbum")


@pytest.fixture
def camera(tmp_path: Path):
    from tests.infrastructure.mocks.capture_mocks import MockCamera

    return MockCamera(tmp_path / "cache")


@pytest.fixture
def make_pipeline(layout, camera):
    """Factory building a pipeline with mock collaborators.

    Keyword arguments override the collaborators or pipeline options; the
    recorded state transitions are available as ``pipeline.states``.
    """
    from pipcam.capture.filesystem import LocalFilesystem
    from pipcam.capture.pipeline import CapturePipeline
    from tests.infrastructure.mocks.capture_mocks import FIXED_CLOCK_S, MockGallery, MockTranscoder

    def factory(**overrides):
        states = []
        pipeline = CapturePipeline(
            overrides.pop("camera", camera),
            overrides.pop("filesystem", LocalFilesystem()),
            overrides.pop("transcoder", MockTranscoder()),
            overrides.pop("gallery", MockGallery()),
            overrides.pop("layout", layout),
            clock=overrides.pop("clock", lambda: FIXED_CLOCK_S),
            on_state_change=states.append,
            **overrides,
        )
        pipeline.states = states
        return pipeline

    return factory
