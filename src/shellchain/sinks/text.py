"""String accumulator sink for shellchain."""

from __future__ import annotations

from typing import TYPE_CHECKING

from shellchain.exceptions import StreamError
from shellchain.streams import read_chunks

if TYPE_CHECKING:
    import asyncio


class StringSink:
    """Accumulate a node's output and decode it to a string.

    Examples:
        >>> StringSink().name
        'string'
    """

    def __init__(
        self,
        *,
        encoding: str = "utf-8",
        errors: str = "replace",
        chunk_size: int = 65536,
    ) -> None:
        self.encoding = encoding
        self.errors = errors
        self.chunk_size = chunk_size

    @property
    def name(self) -> str:
        """Return the sink label."""
        return "string"

    async def consume(self, reader: asyncio.StreamReader) -> str:
        """Read ``reader`` to EOF and return the decoded text.

        Raises:
            StreamError: If the output cannot be decoded with ``errors="strict"``.
        """
        chunks = [chunk async for chunk in read_chunks(reader, self.chunk_size)]
        try:
            return b"".join(chunks).decode(self.encoding, self.errors)
        except UnicodeDecodeError as exc:
            raise StreamError(self.name, str(exc)) from exc


__all__ = [
    "StringSink",
]
