"""Pipeline nodes: construction, linking and execution.

A :class:`PipelineNode` is either a command with arguments or an identity
stage carrying policy flags. Nodes are linked into a simple chain and
executed once: the first ``start()`` launches every upstream node, wires
the standard streams together and returns a task that settles when the
process, the forwarding hop and the upstream chain have all settled.

Examples:
    >>> node = command("echo", "hello").link("sed", "s/hello/hi/")
    >>> node.label
    'sed'
    >>> text = await node.collect_to_string()  # doctest: +SKIP
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from shellchain import engine
from shellchain.args import expand_args
from shellchain.config import get_settings
from shellchain.exceptions import (
    AlreadyDeadError,
    AlreadyStartedError,
    InvalidDestinationError,
    InvalidShellError,
    StreamError,
)
from shellchain.models import (
    Aliased,
    ExitStatus,
    NodeState,
    Spawned,
    StreamConfig,
    StreamMode,
    StreamSelector,
)
from shellchain.sinks import FileSink, RecordSink, StringSink
from shellchain.streams import drain, pump

if TYPE_CHECKING:
    import os
    from collections.abc import Generator

    from shellchain.base import AbstractSink
    from shellchain.config import PipelineSettings
    from shellchain.models import NodeMode

logger = logging.getLogger(__name__)

#: Attributes copied from a source node to the node it links into.
INHERITED_ATTRS = ("_throw_on_error", "settings")

_STATE_ORDER = tuple(NodeState)


class PipelineNode:
    """A command or identity stage of a pipeline.

    Nodes are built with :func:`command` or by linking from another node.
    Awaiting a node starts it and returns its completion value.

    Args:
        command: Executable to run, or None for an identity node.
        *args: Positional arguments, expanded with :func:`expand_args`.
        **flags: Keyword flags, expanded after the positional arguments.

    Attributes:
        command: Executable name, None for identity nodes.
        args: Expanded arguments.
        settings: Settings shared along the chain.
        stdin_config: Disposition of standard input.
        stdout_config: Disposition of standard output.
        stderr_config: Disposition of standard error.
        mode: ``Spawned`` or ``Aliased`` once launched, else None.
        state: Lifecycle state.

    Examples:
        >>> node = PipelineNode("git", "diff", cached=True)
        >>> node.args
        ('diff', '--cached')
        >>> node.state
        <NodeState.CONFIGURED: 'configured'>
    """

    def __init__(self, command: str | None = None, *args: Any, **flags: Any) -> None:
        """Initialize PipelineNode.

        Args:
            command: Executable to run, or None for an identity node.
            *args: Positional arguments.
            **flags: Keyword flags.
        """
        self.command = command or None
        self.args = expand_args(args, flags)
        self.settings: PipelineSettings = get_settings()
        self._throw_on_error = self.settings.throw_on_error

        self.stdin_config = StreamConfig.inherit()
        self.stdout_config = StreamConfig.inherit()
        self.stderr_config = StreamConfig.inherit()

        self.mode: NodeMode | None = None
        self.state = NodeState.CONFIGURED if self.command else NodeState.UNCONFIGURED

        # Set on error views: stream of the upstream exposed by this node
        self._view_selector: StreamSelector | None = None
        self._spawn_status: ExitStatus | None = None
        self._forwarding: asyncio.Task[Any] | None = None
        self._launching: asyncio.Task[None] | None = None
        self._execution: asyncio.Task[ExitStatus] | None = None
        self._completion: asyncio.Task[int | str | None] | None = None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.label} {list(self.args)} state={self.state.value}>"

    def __await__(self) -> Generator[Any, None, int | str | None]:
        return self.start().__await__()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def label(self) -> str:
        """Command name, or ``"null shell"`` for identity nodes."""
        return self.command or "null shell"

    @property
    def throws(self) -> bool:
        """Whether process failures raise instead of resolving to a sentinel."""
        return self._throw_on_error

    @property
    def upstream(self) -> PipelineNode | None:
        """Node feeding this node's standard input, if any."""
        if self.stdin_config.mode is StreamMode.NODE:
            return self.stdin_config.node
        return None

    @property
    def downstream(self) -> PipelineNode | None:
        """Node consuming this node's standard output, if any."""
        if self.stdout_config.mode is StreamMode.NODE:
            return self.stdout_config.node
        return None

    @property
    def process(self) -> asyncio.subprocess.Process | None:
        """Process backing this node: its own, or the aliased node's."""
        if isinstance(self.mode, Spawned):
            return self.mode.process
        if isinstance(self.mode, Aliased):
            return self.mode.target.process
        return None

    @property
    def started(self) -> bool:
        """Whether ``start()`` was requested for this node."""
        return self.state.started

    # ------------------------------------------------------------------
    # Linking
    # ------------------------------------------------------------------

    def link(self, destination: Any, *args: Any, **flags: Any) -> Any:
        """Pipe this node's output into ``destination``.

        Args:
            destination: A command name, another node, or a transform
                function called as ``destination(self, *args, **flags)``.
            *args: Arguments for a command destination or the transform.
            **flags: Flags for a command destination or the transform.

        Returns:
            The destination node, or whatever the transform returns.

        Raises:
            AlreadyStartedError: If this node or the destination node started.
            InvalidDestinationError: If the destination is not supported.
        """
        if self.started:
            raise AlreadyStartedError(self)

        if isinstance(destination, str):
            return self._link_node(type(self)(destination, *args, **flags))
        if isinstance(destination, PipelineNode):
            return self._link_node(destination)
        if callable(destination):
            return destination(self, *args, **flags)

        raise InvalidDestinationError(destination)

    def _link_node(self, destination: PipelineNode) -> PipelineNode:
        if destination.started:
            raise AlreadyStartedError(destination, direction="to")
        if destination.upstream is not None or self.downstream is not None:
            # Chains never branch or merge
            raise InvalidDestinationError(destination)
        node: PipelineNode | None = self
        while node is not None:
            if node is destination:
                raise InvalidDestinationError(destination)
            node = node.upstream

        for attr in INHERITED_ATTRS:
            setattr(destination, attr, getattr(self, attr))

        if self.state is NodeState.UNCONFIGURED:
            # Bare root: policy carrier only, no stream to connect
            logger.debug("Policy %s -> %s (throws=%s)", self.label, destination.label, self.throws)
            return destination

        self.stdout_config = StreamConfig.linked(destination)
        destination.stdin_config = StreamConfig.linked(self)
        destination._advance(NodeState.CONFIGURED)
        logger.debug("Linked %s -> %s", self.label, destination.label)
        return destination

    def throw_on_error(self, value: bool = True) -> PipelineNode:
        """Return a pass-through node with the given error policy.

        The current node is linked into a new identity node whose policy
        is set to ``value``; this node is not modified.

        Args:
            value: Whether process failures raise.

        Returns:
            The new identity node.

        Raises:
            AlreadyStartedError: If this node already started.
        """
        carrier = type(self)()
        self.link(carrier)
        carrier._throw_on_error = bool(value)
        return carrier

    def error_view(self) -> PipelineNode:
        """Return a node exposing this node's standard error as its output.

        The view never spawns a process of its own: running it runs this
        node and surfaces only its error stream. Calling ``error_view()``
        again returns the same view.

        Returns:
            The error view node.

        Raises:
            AlreadyStartedError: If this node already started.
            InvalidShellError: If this node is a bare root.
        """
        if self.started:
            raise AlreadyStartedError(self)
        if self.state is NodeState.UNCONFIGURED:
            raise InvalidShellError(self)
        if self.stderr_config.mode is StreamMode.NODE and self.stderr_config.node is not None:
            return self.stderr_config.node

        view = type(self)(self.command, *self.args)
        for attr in INHERITED_ATTRS:
            setattr(view, attr, getattr(self, attr))
        view._view_selector = StreamSelector.STDERR
        view.stdin_config = StreamConfig.linked(self)
        view._advance(NodeState.CONFIGURED)
        self.stderr_config = StreamConfig.linked(view)
        logger.debug("Error view of %s created", self.label)
        return view

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def start(self) -> asyncio.Task[int | str | None]:
        """Start this node and every node upstream of it.

        Idempotent: later calls return the same task, and the command is
        never run twice. Must be called with a running event loop.

        Returns:
            Task resolving to ``0`` on success or, when errors are
            suppressed, to the exit code, signal name or OS error code.

        Raises:
            InvalidShellError: If the node has no command and no upstream.
        """
        if self._completion is None:
            self._ensure_launched()
            self._completion = asyncio.get_running_loop().create_task(self._complete())
        return self._completion

    def _advance(self, state: NodeState) -> None:
        if _STATE_ORDER.index(state) > _STATE_ORDER.index(self.state):
            self.state = state

    def _ensure_launched(self) -> asyncio.Task[None]:
        if self._launching is None:
            if self.state is NodeState.UNCONFIGURED:
                raise InvalidShellError(self)
            upstream = self.upstream
            if upstream is not None:
                upstream._ensure_launched()
            self._advance(NodeState.STARTING)
            self._launching = asyncio.get_running_loop().create_task(self._launch())
        return self._launching

    def _ensure_executing(self) -> asyncio.Task[ExitStatus]:
        if self._execution is None:
            launching = self._ensure_launched()
            self._execution = asyncio.get_running_loop().create_task(self._execute(launching))
        return self._execution

    @property
    def _passthrough(self) -> bool:
        return self._view_selector is not None or self.command is None

    def _effective(self, config: StreamConfig) -> StreamConfig:
        # Pass-through nodes hand the stream on to whatever follows them
        while config.mode is StreamMode.NODE and config.node is not None and config.node._passthrough:
            config = config.node.stdout_config
        return config

    def _output_stream(self, selector: StreamSelector = StreamSelector.STDOUT) -> asyncio.StreamReader | None:
        if isinstance(self.mode, Aliased):
            if selector is StreamSelector.STDOUT:
                return self.mode.target._output_stream(self.mode.selector)
            return None
        if isinstance(self.mode, Spawned) and self.mode.process is not None:
            stream: asyncio.StreamReader | None = getattr(self.mode.process, selector.value)
            return stream
        return None

    async def _launch(self) -> None:
        upstream = self.upstream
        source: asyncio.StreamReader | None = None
        if upstream is not None:
            await upstream._ensure_launched()
            if upstream.state is NodeState.SETTLED:
                raise AlreadyDeadError(upstream)
            source = upstream._output_stream()

        if upstream is not None and self._passthrough:
            self.mode = Aliased(upstream, self._view_selector or StreamSelector.STDOUT)
            logger.debug("%s aliases %s of %s", self.label, self.mode.selector.value, upstream.label)
            self._advance(NodeState.STARTED)
            return

        if upstream is None:
            stdin = engine.stdio_for(self.stdin_config)
        elif source is not None:
            stdin = asyncio.subprocess.PIPE
        else:
            # Upstream failed to spawn: run on empty input
            stdin = asyncio.subprocess.DEVNULL

        result = await engine.spawn(
            self.command or "",
            self.args,
            stdin=stdin,
            stdout=engine.stdio_for(self._effective(self.stdout_config)),
            stderr=engine.stdio_for(self._effective(self.stderr_config)),
        )
        if isinstance(result, ExitStatus):
            self.mode = Spawned(None)
            self._spawn_status = result
            if source is not None:
                self._forwarding = asyncio.get_running_loop().create_task(drain(source, self.settings.chunk_size))
        else:
            self.mode = Spawned(result)
            if source is not None and upstream is not None and result.stdin is not None:
                self._forwarding = asyncio.get_running_loop().create_task(
                    self._forward(upstream, source, result.stdin)
                )
        self._advance(NodeState.STARTED)

    async def _forward(
        self,
        upstream: PipelineNode,
        source: asyncio.StreamReader,
        sink: asyncio.StreamWriter,
    ) -> None:
        try:
            delivered = await pump(source, sink, self.settings.chunk_size)
        except OSError as exc:
            raise StreamError(f"{upstream.label} | {self.label}", str(exc)) from exc
        logger.debug("Forwarded %d bytes %s -> %s", delivered, upstream.label, self.label)

    async def _execute(self, launching: asyncio.Task[None]) -> ExitStatus:
        await launching
        if isinstance(self.mode, Aliased):
            return await self.mode.target._ensure_executing()

        if self._spawn_status is not None:
            waiting: Any = _resolved(self._spawn_status)
        elif isinstance(self.mode, Spawned) and self.mode.process is not None:
            waiting = engine.wait(self.mode.process, self.label)
        else:
            raise InvalidShellError(self)

        pending: list[Any] = [waiting]
        upstream = self.upstream
        if upstream is not None:
            pending.append(upstream.start())
        if self._forwarding is not None:
            pending.append(self._forwarding)

        status, *others = await asyncio.gather(*pending, return_exceptions=True)
        for outcome in (status, *others):
            if isinstance(outcome, BaseException):
                raise outcome
        return status

    async def _complete(self) -> int | str | None:
        try:
            status = await self._ensure_executing()
            return engine.apply_policy(self.label, status, throw_on_error=self._throw_on_error)
        finally:
            self._advance(NodeState.SETTLED)

    # ------------------------------------------------------------------
    # Sinks
    # ------------------------------------------------------------------

    async def _run_sink(self, sink: AbstractSink) -> tuple[int | str | None, Any]:
        if self.started:
            raise AlreadyStartedError(self)
        if self.stdout_config.mode is not StreamMode.INHERIT:
            # Output already feeds a linked node
            raise InvalidDestinationError(sink.name)

        self.stdout_config = StreamConfig.pipe()
        completion = self.start()
        feeding = asyncio.get_running_loop().create_task(self._feed(sink))

        value, result = await asyncio.gather(completion, feeding, return_exceptions=True)
        for outcome in (value, result):
            if isinstance(outcome, BaseException):
                raise outcome
        return value, result

    async def _feed(self, sink: AbstractSink) -> Any:
        await self._ensure_launched()
        reader = self._output_stream()
        if reader is None:
            # Nothing was spawned: the sink sees an empty stream
            reader = asyncio.StreamReader()
            reader.feed_eof()
        try:
            return await sink.consume(reader)
        except Exception:
            await drain(reader, self.settings.chunk_size)
            raise

    async def append_to_file(self, path: str | os.PathLike[str]) -> int | str | None:
        """Run the node and append its output to ``path``.

        Returns:
            The node's completion value.

        Raises:
            AlreadyStartedError: If the node already started.
            InvalidDestinationError: If the node output feeds a linked node.
            StreamError: If the file cannot be opened or written.
        """
        sink = FileSink(path, append=True, chunk_size=self.settings.chunk_size)
        value, _ = await self._run_sink(sink)
        return value

    async def write_to_file(self, path: str | os.PathLike[str]) -> int | str | None:
        """Run the node and replace the contents of ``path`` with its output.

        Returns:
            The node's completion value.

        Raises:
            AlreadyStartedError: If the node already started.
            InvalidDestinationError: If the node output feeds a linked node.
            StreamError: If the file cannot be opened or written.
        """
        sink = FileSink(path, append=False, chunk_size=self.settings.chunk_size)
        value, _ = await self._run_sink(sink)
        return value

    async def collect_to_string(self) -> str:
        """Run the node and return its decoded output."""
        sink = StringSink(
            encoding=self.settings.encoding,
            errors=self.settings.encoding_errors,
            chunk_size=self.settings.chunk_size,
        )
        _, text = await self._run_sink(sink)
        return str(text)

    async def for_each_record(self, fn: Callable[[str], Any]) -> None:
        """Run the node and call ``fn`` for each output line, in order.

        ``fn`` may return an awaitable, which is awaited before the next line.
        """
        await self._run_sink(self._record_sink(fn, collect=False))

    async def map_records(self, fn: Callable[[str], Any]) -> list[Any]:
        """Run the node and return ``fn`` applied to each output line."""
        _, results = await self._run_sink(self._record_sink(fn, collect=True))
        return list(results)

    async def records(self) -> list[str]:
        """Run the node and return its output lines."""
        return await self.map_records(_identity)

    def _record_sink(self, fn: Callable[[str], Any], *, collect: bool) -> RecordSink:
        return RecordSink(
            fn,
            collect=collect,
            encoding=self.settings.encoding,
            errors=self.settings.encoding_errors,
            chunk_size=self.settings.chunk_size,
        )


async def _resolved(status: ExitStatus) -> ExitStatus:
    return status


def _identity(record: str) -> str:
    return record


def command(name: str | None = None, *args: Any, **flags: Any) -> PipelineNode:
    """Create a fresh root node.

    Args:
        name: Executable to run; omit it for a bare identity root.
        *args: Positional arguments.
        **flags: Keyword flags.

    Returns:
        A new node sharing no state with any other node.

    Examples:
        >>> command("head", n=1).args
        ('-n', '1')
    """
    return PipelineNode(name, *args, **flags)


__all__ = [
    "INHERITED_ATTRS",
    "PipelineNode",
    "command",
]
