"""Specialized exceptions raised by shellchain.

Exception hierarchy::

    PipelineError (base for all shellchain errors)
        StructuralError (misuse of the pipeline graph, never suppressed)
            AlreadyStartedError (link or sink on a started node)
            AlreadyDeadError (upstream settled before downstream connected)
            InvalidDestinationError (unsupported link target, also TypeError)
            InvalidShellError (start on a node without command or upstream)
        ProcessError (process outcome, subject to throw_on_error)
            NonZeroExitError (process exited with a non-zero code)
            SignalTerminationError (process killed by a signal)
            SpawnError (process could not be spawned, also OSError)
        StreamError (sink-side I/O failure, never suppressed)
        ArgumentError (argument expansion failure, also TypeError)
        ConfigError (invalid settings, also ValueError)
"""

from __future__ import annotations

from typing import Any


def describe(target: Any) -> str:
    """Return a short label for a node or value used in error messages.

    Nodes expose a ``label`` (their command, or ``"null shell"`` for
    identity nodes); any other value is rendered with ``str()``.

    Examples:
        >>> describe("grep")
        'grep'
        >>> describe(42)
        '42'
    """
    label = getattr(target, "label", None)
    if isinstance(label, str):
        return label
    return str(target)


class PipelineError(Exception):
    """Base exception for all shellchain errors.

    All shellchain-specific exceptions inherit from this class,
    allowing for easy catching of any pipeline error.
    """


# ============================================================================
# Structural errors
# ============================================================================


class StructuralError(PipelineError):
    """Contract violation on the pipeline graph itself.

    Structural errors indicate programmer misuse and are raised
    regardless of the ``throw_on_error`` policy.
    """


class AlreadyStartedError(StructuralError):
    """A link or sink was attached to a node that already started.

    Attributes:
        target: Label of the offending node.
        direction: Either ``"from"`` or ``"to"``.
    """

    def __init__(self, target: Any, *, direction: str = "from") -> None:
        """Initialize AlreadyStartedError.

        Args:
            target: Node (or label) that already started.
            direction: ``"from"`` when the node is the link source,
                ``"to"`` when it is the destination.
        """
        self.target = describe(target)
        self.direction = direction
        super().__init__(f"Can't pipe {direction} {self.target}: Process already started")


class AlreadyDeadError(StructuralError):
    """The upstream node settled before the downstream could connect.

    Attributes:
        target: Label of the upstream node.
    """

    def __init__(self, target: Any) -> None:
        """Initialize AlreadyDeadError.

        Args:
            target: Upstream node (or label) that is already dead.
        """
        self.target = describe(target)
        super().__init__(f"Can't pipe from {self.target}: Process already dead")


class InvalidDestinationError(StructuralError, TypeError):
    """A node was linked to something that is not a command, node or callable.

    Attributes:
        destination: The rejected destination value.
    """

    def __init__(self, destination: Any) -> None:
        """Initialize InvalidDestinationError.

        Args:
            destination: The rejected destination value.
        """
        self.destination = destination
        super().__init__(f"Can't pipe to {describe(destination)}: Invalid pipe destination")


class InvalidShellError(StructuralError):
    """A node with neither a command nor an upstream was started."""

    def __init__(self, target: Any) -> None:
        """Initialize InvalidShellError.

        Args:
            target: Node (or label) that cannot be started.
        """
        self.target = describe(target)
        super().__init__(f"Can't start {self.target}: Invalid shell")


# ============================================================================
# Process errors
# ============================================================================


class ProcessError(PipelineError):
    """A spawned process ended badly.

    Process errors are subject to the ``throw_on_error`` policy: when the
    policy is disabled, the completion resolves with a sentinel value
    instead of raising.
    """


class NonZeroExitError(ProcessError):
    """A process exited with a non-zero code.

    Attributes:
        command: Command that failed.
        code: Exit code reported by the process.
    """

    def __init__(self, command: str, code: int) -> None:
        """Initialize NonZeroExitError.

        Args:
            command: Command that failed.
            code: Exit code reported by the process.
        """
        self.command = command
        self.code = code
        super().__init__(f"{command} exited with code {code}")


class SignalTerminationError(ProcessError):
    """A process was terminated by a signal.

    Attributes:
        command: Command that was killed.
        signal: Signal name, e.g. ``"SIGTERM"``.
    """

    def __init__(self, command: str, signal: str) -> None:
        """Initialize SignalTerminationError.

        Args:
            command: Command that was killed.
            signal: Signal name.
        """
        self.command = command
        self.signal = signal
        super().__init__(f"{command} terminated by signal {signal}")


class SpawnError(ProcessError, OSError):
    """The operating system refused to spawn a process.

    Carries the same ``errno`` as the underlying :class:`OSError`, which
    is also chained as ``__cause__``.

    Attributes:
        command: Command that could not be spawned.
    """

    def __init__(self, command: str, cause: OSError) -> None:
        """Initialize SpawnError.

        Args:
            command: Command that could not be spawned.
            cause: Error raised by the spawn primitive.
        """
        super().__init__(cause.errno, f"Can't spawn {command}: {cause.strerror or cause}")
        self.command = command


# ============================================================================
# Other errors
# ============================================================================


class StreamError(PipelineError):
    """A sink failed while consuming a node's output.

    Attributes:
        sink: Short description of the sink (e.g. the file path).
        reason: Description of the failure.
    """

    def __init__(self, sink: str, reason: str) -> None:
        """Initialize StreamError.

        Args:
            sink: Short description of the sink.
            reason: Description of the failure.
        """
        self.sink = sink
        self.reason = reason
        super().__init__(f"Sink {sink} failed: {reason}")


class ArgumentError(PipelineError, TypeError):
    """A command argument could not be expanded to a string."""


class ConfigError(PipelineError, ValueError):
    """Settings are invalid.

    Raised when the configuration file cannot be read or contains
    invalid values.
    """


__all__ = [
    "AlreadyDeadError",
    "AlreadyStartedError",
    "ArgumentError",
    "ConfigError",
    "InvalidDestinationError",
    "InvalidShellError",
    "NonZeroExitError",
    "PipelineError",
    "ProcessError",
    "SignalTerminationError",
    "SpawnError",
    "StreamError",
    "StructuralError",
]
