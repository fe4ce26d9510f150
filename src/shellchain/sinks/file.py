"""File sink for shellchain.

Writes a node's output bytes to a file, either appending to it or
replacing its contents. The file is opened when the sink starts
consuming, so overwrite mode truncates only once the node runs.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from shellchain.exceptions import StreamError
from shellchain.streams import read_chunks

logger = logging.getLogger(__name__)


class FileSink:
    """Write a node's output to a file.

    Args:
        path: Destination file.
        append: Append to the file instead of truncating it.
        chunk_size: Maximum bytes read per chunk.

    Examples:
        >>> sink = FileSink("/tmp/out.log", append=True)
        >>> sink.name
        '/tmp/out.log'
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        append: bool = False,
        chunk_size: int = 65536,
    ) -> None:
        """Initialize FileSink.

        Args:
            path: Destination file.
            append: Append to the file instead of truncating it.
            chunk_size: Maximum bytes read per chunk.
        """
        self.path = Path(path)
        self.append = append
        self.chunk_size = chunk_size

    @property
    def name(self) -> str:
        """Return the destination path."""
        return str(self.path)

    async def consume(self, reader: asyncio.StreamReader) -> None:
        """Copy ``reader`` into the file until EOF.

        Writes run in a worker thread so the event loop keeps serving
        the other pipes.

        Raises:
            StreamError: If the file cannot be opened or written.
        """
        mode = "ab" if self.append else "wb"
        written = 0
        try:
            with self.path.open(mode) as fh:
                async for chunk in read_chunks(reader, self.chunk_size):
                    await asyncio.to_thread(fh.write, chunk)
                    written += len(chunk)
        except OSError as exc:
            raise StreamError(self.name, str(exc)) from exc

        logger.debug("FileSink %s: wrote %d bytes (mode=%s)", self.name, written, mode)


__all__ = [
    "FileSink",
]
