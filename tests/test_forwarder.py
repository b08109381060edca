from __future__ import annotations

import asyncio

import numpy as np

from tapstream.core.capture.forwarder import iter_chunks


class _ScriptedReader:
    """Reader returning one scripted delivery per read call."""

    def __init__(self, deliveries: list[bytes]) -> None:
        self._deliveries = list(deliveries)
        self.read_sizes: list[int] = []

    async def read(self, n: int = -1) -> bytes:
        self.read_sizes.append(n)
        if not self._deliveries:
            return b""
        return self._deliveries.pop(0)


def test_iter_chunks_forwards_each_read_verbatim() -> None:
    deliveries = [b"\x00\x01\x02", b"\x03", b"\x04\x05\x06\x07\x08"]
    reader = _ScriptedReader(deliveries)

    async def scenario():
        return [chunk async for chunk in iter_chunks(reader, read_size=4096)]

    chunks = asyncio.run(scenario())

    assert [chunk.data for chunk in chunks] == deliveries
    assert reader.read_sizes == [4096] * 4


def test_iter_chunks_tags_sample_dtype() -> None:
    reader = _ScriptedReader([np.array([0.5, -0.5], dtype=np.float32).tobytes()])

    async def scenario():
        return [chunk async for chunk in iter_chunks(reader, sample_dtype=np.dtype(np.float32))]

    (chunk,) = asyncio.run(scenario())

    assert chunk.as_array().tolist() == [0.5, -0.5]


def test_iter_chunks_with_stream_reader() -> None:
    async def scenario():
        reader = asyncio.StreamReader()
        reader.feed_data(b"abc")
        reader.feed_eof()
        return [chunk.data async for chunk in iter_chunks(reader)]

    assert asyncio.run(scenario()) == [b"abc"]
