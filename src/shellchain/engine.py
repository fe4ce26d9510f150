"""Process-level primitives of the execution engine.

Nodes drive their own lifecycle (see :mod:`shellchain.node`); this module
holds the operations that touch the operating system and the error
policy applied to a settled process:

- stdio_for: map a stream disposition to an ``asyncio`` stdio argument
- spawn: start a process without ever raising on OS failures
- wait: wait for a process and report its raw exit status
- apply_policy: turn a raw exit status into a completion value or error
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from shellchain.exceptions import NonZeroExitError, SignalTerminationError, SpawnError
from shellchain.models import ExitStatus

if TYPE_CHECKING:
    from collections.abc import Sequence

    from shellchain.models import StreamConfig

logger = logging.getLogger(__name__)


def stdio_for(config: StreamConfig) -> int | None:
    """Return the ``asyncio`` stdio argument for a stream disposition.

    Inherited streams map to ``None`` (passthrough); managed pipes and
    node connections map to ``asyncio.subprocess.PIPE``.
    """
    return asyncio.subprocess.PIPE if config.managed else None


async def spawn(
    command: str,
    args: Sequence[str],
    *,
    stdin: int | None,
    stdout: int | None,
    stderr: int | None,
) -> asyncio.subprocess.Process | ExitStatus:
    """Spawn ``command`` with ``args``.

    OS-level failures (command not found, permission denied) are not
    raised; they are returned as an :class:`ExitStatus` carrying the
    error so they can go through the node's error policy.

    Args:
        command: Executable name or path, resolved through ``PATH``.
        args: Already expanded arguments.
        stdin: ``asyncio`` stdio argument for standard input.
        stdout: ``asyncio`` stdio argument for standard output.
        stderr: ``asyncio`` stdio argument for standard error.

    Returns:
        The live process, or the failed ExitStatus.
    """
    try:
        process = await asyncio.create_subprocess_exec(
            command,
            *args,
            stdin=stdin,
            stdout=stdout,
            stderr=stderr,
        )
    except OSError as exc:
        logger.warning("Cannot spawn %s: %s", command, exc)
        return ExitStatus(error=exc)

    logger.debug("Spawned %s %s (pid=%d)", command, list(args), process.pid)
    return process


async def wait(process: asyncio.subprocess.Process, command: str) -> ExitStatus:
    """Wait for ``process`` to exit and return its raw status."""
    returncode = await process.wait()
    status = ExitStatus.from_returncode(returncode)
    if status.success:
        logger.debug("%s (pid=%d) exited with code 0", command, process.pid)
    else:
        logger.warning(
            "%s (pid=%d) ended badly: %s",
            command,
            process.pid,
            f"code {status.code}" if status.code is not None else f"signal {status.signal}",
        )
    return status


def apply_policy(command: str, status: ExitStatus, *, throw_on_error: bool) -> int | str | None:
    """Map a raw exit status to a completion value.

    Args:
        command: Command label used in error messages.
        status: Raw exit status.
        throw_on_error: Whether failures raise or resolve to a sentinel.

    Returns:
        ``0`` on success. With ``throw_on_error=False``, the exit code,
        the signal name, or the symbolic OS error code of a spawn failure.

    Raises:
        NonZeroExitError: Non-zero exit with ``throw_on_error=True``.
        SignalTerminationError: Signal termination with ``throw_on_error=True``.
        SpawnError: Spawn failure with ``throw_on_error=True``.

    Examples:
        >>> apply_policy("true", ExitStatus(code=0), throw_on_error=True)
        0
        >>> apply_policy("false", ExitStatus(code=1), throw_on_error=False)
        1
        >>> apply_policy("sleep", ExitStatus(signal="SIGKILL"), throw_on_error=False)
        'SIGKILL'
    """
    if status.success:
        return 0
    if not throw_on_error:
        return status.sentinel
    if status.error is not None:
        raise SpawnError(command, status.error) from status.error
    if status.code is not None:
        raise NonZeroExitError(command, status.code)
    raise SignalTerminationError(command, status.signal or "unknown")


__all__ = [
    "apply_policy",
    "spawn",
    "stdio_for",
    "wait",
]
