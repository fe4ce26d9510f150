"""Byte stream helpers used by the execution engine and the sinks.

- read_chunks: iterate over the chunks of a stream reader until EOF
- drain: consume and discard the rest of a stream
- pump: forward a reader into a writer (the forwarding hop between nodes)
- iter_records: split a byte stream into decoded lines
"""

from __future__ import annotations

import asyncio
import codecs
import logging
from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)

_PIPE_CLOSED_ERRORS = (BrokenPipeError, ConnectionResetError)


async def read_chunks(reader: asyncio.StreamReader, chunk_size: int) -> AsyncIterator[bytes]:
    """Yield chunks from ``reader`` as they arrive, until EOF."""
    while True:
        chunk = await reader.read(chunk_size)
        if not chunk:
            return
        yield chunk


async def drain(reader: asyncio.StreamReader, chunk_size: int) -> int:
    """Consume ``reader`` to EOF, discarding the data.

    Returns:
        Number of bytes discarded.
    """
    discarded = 0
    async for chunk in read_chunks(reader, chunk_size):
        discarded += len(chunk)
    return discarded


async def pump(
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
    chunk_size: int,
) -> int:
    """Forward ``reader`` into ``writer`` and close the writer at EOF.

    If the consuming side closes early (broken pipe), the remaining input
    is drained and discarded so the producing process never blocks on a
    full pipe.

    Args:
        reader: Output stream of the upstream process.
        writer: Input stream of the downstream process.
        chunk_size: Maximum bytes read per chunk.

    Returns:
        Number of bytes delivered to the writer.
    """
    delivered = 0
    try:
        async for chunk in read_chunks(reader, chunk_size):
            writer.write(chunk)
            await writer.drain()
            delivered += len(chunk)
    except _PIPE_CLOSED_ERRORS:
        discarded = await drain(reader, chunk_size)
        logger.debug("Consumer closed its input after %d bytes, discarded %d bytes", delivered, discarded)
    finally:
        writer.close()
        try:
            await writer.wait_closed()
        except _PIPE_CLOSED_ERRORS:
            pass
    return delivered


async def iter_records(
    reader: asyncio.StreamReader,
    *,
    encoding: str = "utf-8",
    errors: str = "replace",
    chunk_size: int = 65536,
) -> AsyncIterator[str]:
    """Yield decoded lines from ``reader`` in arrival order.

    Trailing ``\\n`` and ``\\r\\n`` are stripped. A final line without a
    terminating newline is still yielded; empty input yields nothing.

    Args:
        reader: Stream to split.
        encoding: Text encoding of the stream.
        errors: Decoding error handler.
        chunk_size: Maximum bytes read per chunk.
    """
    decoder = codecs.getincrementaldecoder(encoding)(errors=errors)
    pending: list[str] = []
    async for chunk in read_chunks(reader, chunk_size):
        for line in _complete_lines(decoder.decode(chunk), pending):
            yield line
    for line in _complete_lines(decoder.decode(b"", final=True), pending):
        yield line
    tail = "".join(pending)
    if tail:
        yield tail.removesuffix("\r")


def _complete_lines(text: str, pending: list[str]) -> list[str]:
    # pending holds the pieces of the current unterminated line
    *lines, tail = text.split("\n")
    if lines:
        lines[0] = "".join(pending) + lines[0]
        pending.clear()
    if tail:
        pending.append(tail)
    return [line.removesuffix("\r") for line in lines]


__all__ = [
    "drain",
    "iter_records",
    "pump",
    "read_chunks",
]
