"""Per-record callback sink for shellchain.

Splits a node's output into lines and hands each one to a callback in
arrival order. Callbacks may be plain functions or coroutine functions;
an awaitable result is awaited before the next record is processed.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from shellchain.exceptions import StreamError
from shellchain.streams import iter_records

if TYPE_CHECKING:
    import asyncio


class RecordSink:
    """Call ``fn`` for every line of a node's output.

    Args:
        fn: Callback receiving one record (a line without its newline).
        collect: Collect the callback results and return them as a list.
        encoding: Text encoding of the output.
        errors: Decoding error handler.
        chunk_size: Maximum bytes read per chunk.

    Examples:
        >>> sink = RecordSink(str.upper, collect=True)
        >>> sink.collect
        True
    """

    def __init__(
        self,
        fn: Callable[[str], Any],
        *,
        collect: bool = False,
        encoding: str = "utf-8",
        errors: str = "replace",
        chunk_size: int = 65536,
    ) -> None:
        """Initialize RecordSink.

        Args:
            fn: Callback receiving one record.
            collect: Collect the callback results.
            encoding: Text encoding of the output.
            errors: Decoding error handler.
            chunk_size: Maximum bytes read per chunk.
        """
        if not callable(fn):
            raise TypeError(f"Record callback must be callable, got {type(fn).__name__}")
        self.fn = fn
        self.collect = collect
        self.encoding = encoding
        self.errors = errors
        self.chunk_size = chunk_size

    @property
    def name(self) -> str:
        """Return the sink label, derived from the callback name."""
        return f"records:{getattr(self.fn, '__name__', type(self.fn).__name__)}"

    async def consume(self, reader: asyncio.StreamReader) -> list[Any] | None:
        """Feed every record of ``reader`` to the callback.

        Returns:
            The callback results in order when ``collect`` is set, else None.

        Raises:
            StreamError: If the output cannot be decoded with ``errors="strict"``.
        """
        results: list[Any] = []
        records = iter_records(
            reader,
            encoding=self.encoding,
            errors=self.errors,
            chunk_size=self.chunk_size,
        )
        try:
            async for record in records:
                value = self.fn(record)
                if inspect.isawaitable(value):
                    value = await value
                if self.collect:
                    results.append(value)
        except UnicodeDecodeError as exc:
            raise StreamError(self.name, str(exc)) from exc
        return results if self.collect else None


__all__ = [
    "RecordSink",
]
