"""Capture-to-archive lifecycle states and their allowed transitions."""

from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet

from ..errors import InvalidTransitionError


class PipelineState(Enum):
    IDLE = "idle"
    RECORDING = "recording"
    STOPPED = "stopped"                  # raw file handed back by the camera
    PERSISTED_TEMP = "persisted_temp"    # raw file moved into app storage
    TRANSCODING = "transcoding"
    PERSISTED_FINAL = "persisted_final"  # authoritative artifact in place
    DOWNLOADS_COPY = "downloads_copy"
    GALLERY_SAVE = "gallery_save"

    @property
    def is_processing(self) -> bool:
        return self not in (PipelineState.IDLE, PipelineState.RECORDING)


_S = PipelineState

# Every non-idle state may also abort back to IDLE.
TRANSITIONS: Dict[PipelineState, FrozenSet[PipelineState]] = {
    _S.IDLE: frozenset({_S.RECORDING}),
    _S.RECORDING: frozenset({_S.STOPPED}),
    _S.STOPPED: frozenset({_S.PERSISTED_TEMP}),
    _S.PERSISTED_TEMP: frozenset({_S.TRANSCODING}),
    _S.TRANSCODING: frozenset({_S.PERSISTED_FINAL}),
    _S.PERSISTED_FINAL: frozenset({_S.DOWNLOADS_COPY}),
    _S.DOWNLOADS_COPY: frozenset({_S.GALLERY_SAVE}),
    _S.GALLERY_SAVE: frozenset(),
}


def can_transition(current: PipelineState, target: PipelineState) -> bool:
    if target is PipelineState.IDLE:
        return current is not PipelineState.IDLE
    return target in TRANSITIONS[current]


def check_transition(current: PipelineState, target: PipelineState) -> PipelineState:
    if not can_transition(current, target):
        raise InvalidTransitionError(current, target)
    return target


__all__ = ["PipelineState", "TRANSITIONS", "can_transition", "check_transition"]
