"""Typed pipelines of external commands for asyncio.

shellchain builds chains of external commands and output sinks, then
runs them with one completion per node, a per-node error policy and
streaming between processes. It is a pipeline builder, not a shell: no
globbing, variable expansion or job control.

Examples:
    Chain two commands and capture the output:

    >>> from shellchain import command
    >>> text = await command("echo", "hello").link("sed", "s/hello/hi/").collect_to_string()  # doctest: +SKIP
    >>> text  # doctest: +SKIP
    'hi\\n'

    Attribute-style construction:

    >>> from shellchain import sh
    >>> await sh.git("show", "HEAD").head(n=1)  # doctest: +SKIP
    0

    Suppress process failures:

    >>> await command("false").throw_on_error(False)  # doctest: +SKIP
    1
"""

from shellchain.args import expand_args
from shellchain.base import AbstractSink
from shellchain.config import PipelineSettings, get_settings, load_settings
from shellchain.exceptions import (
    AlreadyDeadError,
    AlreadyStartedError,
    ArgumentError,
    ConfigError,
    InvalidDestinationError,
    InvalidShellError,
    NonZeroExitError,
    PipelineError,
    ProcessError,
    SignalTerminationError,
    SpawnError,
    StreamError,
    StructuralError,
)
from shellchain.facade import Shell, ShellNode
from shellchain.models import (
    Aliased,
    ExitStatus,
    NodeState,
    Spawned,
    StreamConfig,
    StreamMode,
    StreamSelector,
)
from shellchain.node import PipelineNode, command
from shellchain.sinks import FileSink, RecordSink, StringSink

__version__ = "0.1.0"

#: Default attribute-style factory. Holds no node state.
sh = Shell()

__all__ = [
    "AbstractSink",
    "Aliased",
    "AlreadyDeadError",
    "AlreadyStartedError",
    "ArgumentError",
    "ConfigError",
    "ExitStatus",
    "FileSink",
    "InvalidDestinationError",
    "InvalidShellError",
    "NodeState",
    "NonZeroExitError",
    "PipelineError",
    "PipelineNode",
    "PipelineSettings",
    "ProcessError",
    "RecordSink",
    "Shell",
    "ShellNode",
    "SignalTerminationError",
    "Spawned",
    "SpawnError",
    "StreamConfig",
    "StreamError",
    "StreamMode",
    "StreamSelector",
    "StringSink",
    "StructuralError",
    "command",
    "expand_args",
    "get_settings",
    "load_settings",
    "sh",
]
