"""Video playback session coupled to the capture pipeline."""

from .session import BackAction, OverlayPosition, PlaybackSession, format_time, parse_time

__all__ = ["BackAction", "OverlayPosition", "PlaybackSession", "format_time", "parse_time"]
