"""pipcam: picture-in-picture video recording with permission resolution."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pipcam")
except PackageNotFoundError:
    __version__ = "0.0.0"
