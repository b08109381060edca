"""Audio chunk value type and capture error hierarchy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from ...data.models import LogRecord


@dataclass(frozen=True)
class AudioChunk:
    """Bytes delivered by one read of the audio pipe.

    Chunks are not aligned to the configured chunk duration; the operating
    system may split or coalesce deliveries.
    """

    data: bytes
    sample_dtype: Optional[np.dtype] = None

    def __len__(self) -> int:
        return len(self.data)

    def __bytes__(self) -> bytes:
        return self.data

    def as_array(self, dtype: Optional[np.dtype] = None) -> np.ndarray:
        """Return a read-only numpy view over the chunk's complete samples."""

        dtype = np.dtype(dtype or self.sample_dtype or np.float32)
        usable = len(self.data) - len(self.data) % dtype.itemsize
        return np.frombuffer(self.data, dtype=dtype, count=usable // dtype.itemsize)


class CaptureError(RuntimeError):
    """Base class for every error raised by a capture session."""


class ConfigurationError(CaptureError):
    """Raised when capture options are invalid or conflicting."""


class SpawnError(CaptureError):
    """Raised when the capture executable cannot be launched."""


class ProcessExitError(CaptureError):
    """Raised when the capture process exits abnormally."""

    def __init__(self, returncode: int, last_record: Optional[LogRecord] = None) -> None:
        message = f"Capture process exited with code {returncode}"
        if last_record is not None:
            message += f": {last_record.message}"
        super().__init__(message)
        self.returncode = returncode
        self.last_record = last_record


class CapturePermissionError(CaptureError):
    """Raised when the capture process reports a missing permission."""


class ProtocolDecodeError(CaptureError):
    """Raised when a status line is not a well formed record."""


class StartTimeoutError(CaptureError):
    """Raised when the capture stream does not start within the timeout."""


class CaptureAbortedError(CaptureError):
    """Raised on a pending start when the session ends before streaming."""


class InvalidStateError(CaptureError):
    """Raised when a start or stop request does not fit the current state."""


class AlreadyStartedError(InvalidStateError):
    """Raised when a session is started more than once."""


class NotRunningError(InvalidStateError):
    """Raised when stopping a session that is not starting or running."""


__all__ = [
    "AlreadyStartedError",
    "AudioChunk",
    "CaptureAbortedError",
    "CaptureError",
    "CapturePermissionError",
    "ConfigurationError",
    "InvalidStateError",
    "NotRunningError",
    "ProcessExitError",
    "ProtocolDecodeError",
    "SpawnError",
    "StartTimeoutError",
]
