"""Data models for shellchain.

This module defines the core data structures used by pipeline nodes:

- StreamMode: Enum for how a standard stream is connected (inherit, pipe, node)
- StreamSelector: Enum naming a process output stream (stdout, stderr)
- NodeState: Enum for the node execution lifecycle
- StreamConfig: Frozen disposition of one standard stream
- Spawned: Node mode for a node owning a live process
- Aliased: Node mode for a node exposing another node's stream
- ExitStatus: Raw outcome of a process before the error policy is applied
"""

from __future__ import annotations

import errno as errno_module
import signal as signal_module
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    import asyncio

    from shellchain.node import PipelineNode


class StreamMode(str, Enum):
    """Disposition of a standard stream.

    Attributes:
        INHERIT: Pass the parent's stream through to the process.
        PIPE: Managed byte pipe forwarded by the engine or a sink.
        NODE: Connected to another pipeline node.
    """

    INHERIT = "inherit"
    PIPE = "pipe"
    NODE = "node"


class StreamSelector(str, Enum):
    """Output stream of a process.

    Attributes:
        STDOUT: Standard output (descriptor 1).
        STDERR: Standard error (descriptor 2).
    """

    STDOUT = "stdout"
    STDERR = "stderr"


class NodeState(str, Enum):
    """Lifecycle state of a pipeline node.

    Transitions are monotonic::

        UNCONFIGURED -> CONFIGURED -> STARTING -> STARTED -> SETTLED

    Attributes:
        UNCONFIGURED: Identity node without an upstream (a bare root).
        CONFIGURED: Node has a command or an upstream and can be started.
        STARTING: ``start()`` was called, launch is in progress.
        STARTED: Node owns a live process or resolved its alias.
        SETTLED: Completion has settled.
    """

    UNCONFIGURED = "unconfigured"
    CONFIGURED = "configured"
    STARTING = "starting"
    STARTED = "started"
    SETTLED = "settled"

    @property
    def started(self) -> bool:
        """Whether the node has left the configuration phase."""
        return self in (NodeState.STARTING, NodeState.STARTED, NodeState.SETTLED)


@dataclass(frozen=True, slots=True)
class StreamConfig:
    """Disposition of one standard stream of a node.

    Attributes:
        mode: How the stream is connected.
        node: Peer node when ``mode`` is ``NODE``.

    Examples:
        >>> StreamConfig.inherit().mode
        <StreamMode.INHERIT: 'inherit'>
        >>> StreamConfig.pipe().managed
        True
    """

    mode: StreamMode = StreamMode.INHERIT
    node: PipelineNode | None = None

    @classmethod
    def inherit(cls) -> StreamConfig:
        """Literal passthrough of the parent's stream."""
        return cls(StreamMode.INHERIT)

    @classmethod
    def pipe(cls) -> StreamConfig:
        """Managed byte pipe."""
        return cls(StreamMode.PIPE)

    @classmethod
    def linked(cls, node: PipelineNode) -> StreamConfig:
        """Connection to a peer node."""
        return cls(StreamMode.NODE, node)

    @property
    def managed(self) -> bool:
        """Whether the stream needs an OS pipe rather than passthrough."""
        return self.mode is not StreamMode.INHERIT


@dataclass(frozen=True, slots=True)
class Spawned:
    """Mode of a node that owns a live process.

    Attributes:
        process: The process spawned for this node, or ``None`` when the
            spawn itself failed.
    """

    process: asyncio.subprocess.Process | None


@dataclass(frozen=True, slots=True)
class Aliased:
    """Mode of a node that exposes a stream of another node.

    Attributes:
        target: Node whose stream is exposed.
        selector: Which output stream of ``target`` is exposed.
    """

    target: PipelineNode
    selector: StreamSelector


NodeMode = Union[Spawned, Aliased]


@dataclass(frozen=True, slots=True)
class ExitStatus:
    """Raw outcome of a process, before the error policy is applied.

    Exactly one of ``code``, ``signal`` or ``error`` describes the outcome.

    Attributes:
        code: Exit code when the process exited normally.
        signal: Signal name when the process was killed.
        error: OS error when the process could not be spawned.

    Examples:
        >>> ExitStatus.from_returncode(0).success
        True
        >>> ExitStatus.from_returncode(-15).signal
        'SIGTERM'
    """

    code: int | None = None
    signal: str | None = None
    error: OSError | None = None

    @classmethod
    def from_returncode(cls, returncode: int) -> ExitStatus:
        """Build a status from an ``asyncio`` return code.

        Negative return codes mean the process was killed by the signal
        of the same absolute value.
        """
        if returncode >= 0:
            return cls(code=returncode)
        try:
            name = signal_module.Signals(-returncode).name
        except ValueError:
            name = f"SIG{-returncode}"
        return cls(signal=name)

    @property
    def success(self) -> bool:
        """Whether the process exited with code 0."""
        return self.code == 0

    @property
    def error_code(self) -> str | int | None:
        """Symbolic OS error code of a spawn failure (e.g. ``"ENOENT"``)."""
        if self.error is None:
            return None
        if self.error.errno is None:
            return None
        return errno_module.errorcode.get(self.error.errno, self.error.errno)

    @property
    def sentinel(self) -> int | str | None:
        """Value a completion resolves to when errors are suppressed."""
        if self.error is not None:
            return self.error_code
        if self.code is not None:
            return self.code
        return self.signal


__all__ = [
    "Aliased",
    "ExitStatus",
    "NodeMode",
    "NodeState",
    "Spawned",
    "StreamConfig",
    "StreamMode",
    "StreamSelector",
]
