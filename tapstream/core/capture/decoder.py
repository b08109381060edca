"""Newline-delimited JSON decoder for the capture process status stream."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime
from typing import AsyncIterator, List, Optional

from pydantic import ValidationError

from ...data.models import LogRecord
from ...logging import get_logger
from .base import ProtocolDecodeError

LOGGER = get_logger(__name__)

DEFAULT_READ_SIZE = 65_536


def parse_log_line(line: str) -> LogRecord:
    """Parse one status line.

    The line is a JSON object with ``timestamp``, ``message_type`` and a
    ``data`` object holding ``message`` plus optional context fields.
    """

    try:
        payload = json.loads(line)
    except json.JSONDecodeError as exc:
        raise ProtocolDecodeError(f"Status line is not JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ProtocolDecodeError("Status line is not a JSON object")

    data = payload.get("data")
    if not isinstance(data, dict):
        raise ProtocolDecodeError("Status line has no data object")

    context = {key: value for key, value in data.items() if key != "message"}
    try:
        return LogRecord(
            timestamp=_parse_timestamp(payload.get("timestamp")),
            message_type=payload.get("message_type"),
            message=data.get("message"),
            context=context or None,
        )
    except ValidationError as exc:
        raise ProtocolDecodeError(f"Status line has invalid fields: {exc}") from exc


def _parse_timestamp(value: object) -> datetime:
    if not isinstance(value, str):
        raise ProtocolDecodeError("Status line timestamp must be a string")
    # datetime.fromisoformat only accepts the "Z" suffix from Python 3.11.
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise ProtocolDecodeError(f"Invalid timestamp: {value!r}") from exc


class LogRecordDecoder:
    """Split an arbitrarily chunked byte stream into status records.

    Bytes are buffered until a newline arrives; each complete line is parsed
    with :func:`parse_log_line`. Lines that do not parse come back as
    fallback records carrying the raw text. Blank lines are skipped.
    """

    def __init__(self) -> None:
        self._pending = bytearray()
        self._finished = False

    @property
    def pending(self) -> bytes:
        return bytes(self._pending)

    def feed(self, data: bytes) -> List[LogRecord]:
        """Consume ``data`` and return the records for every completed line."""

        if self._finished:
            raise ValueError("Decoder already finished")

        self._pending.extend(data)
        end = self._pending.rfind(b"\n")
        if end < 0:
            return []

        complete = bytes(self._pending[: end + 1])
        del self._pending[: end + 1]

        records: List[LogRecord] = []
        for raw in complete.split(b"\n")[:-1]:
            record = self._decode_line(raw)
            if record is not None:
                records.append(record)
        return records

    def finish(self) -> List[LogRecord]:
        """Flush a trailing unterminated line once and close the decoder."""

        if self._finished:
            return []
        self._finished = True

        remainder = bytes(self._pending)
        self._pending.clear()
        record = self._decode_line(remainder)
        return [record] if record is not None else []

    def _decode_line(self, raw: bytes) -> Optional[LogRecord]:
        line = raw.decode("utf-8", errors="replace").rstrip("\r")
        if not line.strip():
            return None
        try:
            return parse_log_line(line)
        except ProtocolDecodeError as exc:
            LOGGER.debug("Falling back to raw status line: %s", exc)
            return LogRecord.unparsed(line)


async def decode_stream(
    reader: asyncio.StreamReader,
    *,
    read_size: int = DEFAULT_READ_SIZE,
) -> AsyncIterator[LogRecord]:
    """Yield status records from ``reader`` until end of stream."""

    decoder = LogRecordDecoder()
    while True:
        data = await reader.read(read_size)
        if not data:
            break
        for record in decoder.feed(data):
            yield record
    for record in decoder.finish():
        yield record


__all__ = ["DEFAULT_READ_SIZE", "LogRecordDecoder", "decode_stream", "parse_log_line"]
