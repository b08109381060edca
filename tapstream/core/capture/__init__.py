"""System audio capture session package."""

from .base import (
    AlreadyStartedError,
    AudioChunk,
    CaptureAbortedError,
    CaptureError,
    CapturePermissionError,
    ConfigurationError,
    InvalidStateError,
    NotRunningError,
    ProcessExitError,
    ProtocolDecodeError,
    SpawnError,
    StartTimeoutError,
)
from .controller import AudioTapCapture
from .events import CaptureEvent
from .lifecycle import LifecycleState

__all__ = [
    "AlreadyStartedError",
    "AudioChunk",
    "AudioTapCapture",
    "CaptureAbortedError",
    "CaptureError",
    "CaptureEvent",
    "CapturePermissionError",
    "ConfigurationError",
    "InvalidStateError",
    "LifecycleState",
    "NotRunningError",
    "ProcessExitError",
    "ProtocolDecodeError",
    "SpawnError",
    "StartTimeoutError",
]
