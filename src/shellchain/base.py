"""Abstract base protocol for output sinks.

This module defines the protocol that all sink implementations must
satisfy, enabling a node to drive file, string and record sinks the
same way.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    import asyncio


@runtime_checkable
class AbstractSink(Protocol):
    """Protocol defining the interface for output sinks.

    A sink consumes the output stream of a node while the node's process
    runs. Implementations (FileSink, StringSink, RecordSink) must read
    ``reader`` to EOF on success.

    Examples:
        >>> async def run(sink: AbstractSink, reader) -> object:
        ...     return await sink.consume(reader)
    """

    @property
    def name(self) -> str:
        """Short description used in error messages."""
        ...

    async def consume(self, reader: asyncio.StreamReader) -> Any:
        """Consume ``reader`` until EOF.

        Args:
            reader: Output stream of the node.

        Returns:
            Sink-specific value (collected string, records, or None).

        Raises:
            StreamError: If the sink-side I/O fails.
        """
        ...


__all__ = [
    "AbstractSink",
]
