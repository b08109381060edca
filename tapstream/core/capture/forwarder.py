"""Pass-through of raw audio reads as :class:`AudioChunk` values."""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, Optional

import numpy as np

from .base import AudioChunk
from .decoder import DEFAULT_READ_SIZE


async def iter_chunks(
    reader: asyncio.StreamReader,
    *,
    read_size: int = DEFAULT_READ_SIZE,
    sample_dtype: Optional[np.dtype] = None,
) -> AsyncIterator[AudioChunk]:
    """Yield one chunk per read of ``reader`` until end of stream.

    Reads are never merged or re-split. An asyncio reader only returns an
    empty read at end of stream, so every yielded chunk is non-empty.
    """

    while True:
        data = await reader.read(read_size)
        if not data:
            return
        yield AudioChunk(data=bytes(data), sample_dtype=sample_dtype)


__all__ = ["iter_chunks"]
