"""Translate capture options into command line tokens."""

from __future__ import annotations

from typing import FrozenSet, List, Optional

from ...data.models import CaptureOptions
from .base import ConfigurationError

SAMPLE_RATE_FLAG = "--sample-rate"
CHUNK_DURATION_FLAG = "--chunk-duration"
MUTE_FLAG = "--mute"
INCLUDE_PROCESSES_FLAG = "--include-processes"
EXCLUDE_PROCESSES_FLAG = "--exclude-processes"


def _format_seconds(milliseconds: float) -> str:
    seconds = milliseconds / 1000.0
    if seconds.is_integer():
        return str(int(seconds))
    return repr(seconds)


def _process_ids(values: Optional[FrozenSet[int]]) -> List[str]:
    return [str(pid) for pid in sorted(values or ())]


def validate_options(options: CaptureOptions) -> None:
    """Raise :class:`ConfigurationError` for option combinations the process rejects."""

    if options.include_processes is not None and options.exclude_processes is not None:
        raise ConfigurationError(
            "include_processes and exclude_processes are mutually exclusive"
        )


def build_arguments(options: CaptureOptions) -> List[str]:
    """Return the command line tokens for ``options``.

    Each present option contributes exactly one flag, absent options none.
    Process id lists are emitted in ascending order.
    """

    validate_options(options)

    arguments: List[str] = []
    if options.sample_rate is not None:
        arguments.extend([SAMPLE_RATE_FLAG, str(options.sample_rate)])
    if options.chunk_duration_ms is not None:
        arguments.extend([CHUNK_DURATION_FLAG, _format_seconds(options.chunk_duration_ms)])
    if options.mute:
        arguments.append(MUTE_FLAG)
    if options.include_processes:
        arguments.append(INCLUDE_PROCESSES_FLAG)
        arguments.extend(_process_ids(options.include_processes))
    if options.exclude_processes:
        arguments.append(EXCLUDE_PROCESSES_FLAG)
        arguments.extend(_process_ids(options.exclude_processes))
    return arguments


__all__ = [
    "CHUNK_DURATION_FLAG",
    "EXCLUDE_PROCESSES_FLAG",
    "INCLUDE_PROCESSES_FLAG",
    "MUTE_FLAG",
    "SAMPLE_RATE_FLAG",
    "build_arguments",
    "validate_options",
]
