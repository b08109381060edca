from __future__ import annotations

import numpy as np
import pytest
from pydantic import ValidationError

from tapstream.core.capture.base import AudioChunk
from tapstream.data.models import CaptureOptions, LogRecord, MessageType


def test_capture_options_validate_ranges() -> None:
    with pytest.raises(ValidationError):
        CaptureOptions(chunk_duration_ms=5000.5)
    with pytest.raises(ValidationError):
        CaptureOptions(chunk_duration_ms=-1)
    with pytest.raises(ValidationError):
        CaptureOptions(sample_rate=0)
    with pytest.raises(ValidationError):
        CaptureOptions(include_processes=[0])


def test_capture_options_are_immutable() -> None:
    options = CaptureOptions(sample_rate=16000)

    with pytest.raises(ValidationError):
        options.sample_rate = 8000  # type: ignore[misc]


def test_capture_options_defaults() -> None:
    options = CaptureOptions()

    assert options.effective_chunk_duration_ms == 200.0
    assert options.sample_dtype == np.dtype(np.float32)
    assert CaptureOptions(sample_rate=16000).sample_dtype == np.dtype(np.int16)


def test_audio_chunk_as_array_ignores_partial_samples() -> None:
    samples = np.array([1, -2, 3], dtype=np.int16)
    chunk = AudioChunk(data=samples.tobytes() + b"\x01", sample_dtype=np.dtype(np.int16))

    array = chunk.as_array()

    assert array.tolist() == [1, -2, 3]
    assert len(chunk) == 7
    assert bytes(chunk) == chunk.data


def test_unparsed_record_keeps_raw_text() -> None:
    record = LogRecord.unparsed("not json at all")

    assert record.message == "not json at all"
    assert record.message_type is MessageType.INFO
    assert record.parsed is False
