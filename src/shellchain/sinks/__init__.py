"""Output sink implementations.

Provides concrete sinks consuming a node's output stream:

- FileSink: Append to or overwrite a file
- StringSink: Accumulate the output into a decoded string
- RecordSink: Call a function for each line, optionally collecting results
"""

from shellchain.sinks.file import FileSink
from shellchain.sinks.records import RecordSink
from shellchain.sinks.text import StringSink

__all__ = [
    "FileSink",
    "RecordSink",
    "StringSink",
]
