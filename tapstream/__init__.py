"""tapstream: typed, event-driven access to a system audio capture process."""

from .core.capture import (
    AudioChunk,
    AudioTapCapture,
    CaptureError,
    CaptureEvent,
    LifecycleState,
)
from .data.models import CaptureOptions, LogRecord, MessageType

__version__ = "0.1.0"

__all__ = [
    "AudioChunk",
    "AudioTapCapture",
    "CaptureError",
    "CaptureEvent",
    "CaptureOptions",
    "LifecycleState",
    "LogRecord",
    "MessageType",
]
