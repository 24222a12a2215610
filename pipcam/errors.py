"""Exception hierarchy shared by the permission engine and capture pipeline."""


class PipcamError(RuntimeError):
    """Base class for pipcam failures."""


class PreconditionError(PipcamError):
    """A precondition for an operation is not met; the user can remediate it."""


class CameraNotReadyError(PreconditionError):
    def __init__(self, message: str = "Camera is not ready") -> None:
        super().__init__(message)


class PermissionQueryError(PreconditionError):
    """The OS permission provider rejected a check or request."""


class InvalidTransitionError(PipcamError):
    def __init__(self, current, target) -> None:
        super().__init__(f"Invalid pipeline transition {current.value} -> {target.value}")
        self.current = current
        self.target = target


class TranscodeError(PipcamError):
    """The transcoder could not produce an output file."""


class SaveError(PipcamError):
    """The raw recording could not be persisted to app storage."""


__all__ = [
    "CameraNotReadyError",
    "InvalidTransitionError",
    "PermissionQueryError",
    "PipcamError",
    "PreconditionError",
    "SaveError",
    "TranscodeError",
]
