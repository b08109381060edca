"""Data models used by tapstream."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, PositiveInt

DEFAULT_CHUNK_DURATION_MS = 200.0
MAX_CHUNK_DURATION_MS = 5000.0


class MessageType(str, Enum):
    """Kinds of status record written by the capture process."""

    METADATA = "metadata"
    STREAM_START = "stream_start"
    STREAM_STOP = "stream_stop"
    INFO = "info"
    ERROR = "error"
    DEBUG = "debug"


class CaptureOptions(BaseModel):
    """Caller supplied options for one capture session.

    Absent fields leave the capture process on its own defaults. The include
    and exclude filters are mutually exclusive; the conflict is reported by
    :func:`tapstream.core.capture.arguments.build_arguments`.
    """

    model_config = ConfigDict(frozen=True)

    sample_rate: Optional[PositiveInt] = None
    chunk_duration_ms: Optional[float] = Field(default=None, ge=0.0, le=MAX_CHUNK_DURATION_MS)
    mute: bool = False
    include_processes: Optional[FrozenSet[PositiveInt]] = None
    exclude_processes: Optional[FrozenSet[PositiveInt]] = None

    @property
    def effective_chunk_duration_ms(self) -> float:
        if self.chunk_duration_ms is None:
            return DEFAULT_CHUNK_DURATION_MS
        return self.chunk_duration_ms

    @property
    def sample_dtype(self) -> np.dtype:
        """Sample format of the audio stream produced for these options.

        The process emits 32-bit floats at the device rate unless a sample rate
        conversion is requested, in which case it emits 16-bit integers.
        """

        if self.sample_rate is None:
            return np.dtype(np.float32)
        return np.dtype(np.int16)


class LogRecord(BaseModel):
    """One line of the capture process status stream."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    message_type: MessageType
    message: str
    context: Optional[Dict[str, Any]] = None
    parsed: bool = True

    @classmethod
    def unparsed(cls, line: str) -> "LogRecord":
        """Build the fallback record for a line that is not a status record."""

        return cls(
            timestamp=datetime.now(timezone.utc),
            message_type=MessageType.INFO,
            message=line,
            parsed=False,
        )


__all__ = [
    "CaptureOptions",
    "DEFAULT_CHUNK_DURATION_MS",
    "LogRecord",
    "MAX_CHUNK_DURATION_MS",
    "MessageType",
]
