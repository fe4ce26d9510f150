"""Attribute-style command construction.

:class:`Shell` turns attribute access into node construction, so
pipelines read like shell one-liners::

    await sh.git("show", "HEAD").head(n=1)
    text = await sh.echo("Hello, world.").sed("s/world/my friend/").collect_to_string()

Known operation names are resolved through an explicit per-instance
registry; any other public name builds a command node of that name.
Nodes built by a :class:`Shell` are :class:`ShellNode` instances, which
resolve unknown public attributes to ``link(name, ...)``.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from typing import Any

from shellchain.config import PipelineSettings, get_settings
from shellchain.node import PipelineNode

logger = logging.getLogger(__name__)

#: Signature of a registered shell operation: ``operation(shell, *args, **flags)``.
Operation = Callable[..., Any]


class ShellNode(PipelineNode):
    """Pipeline node resolving unknown attributes to linked commands.

    Examples:
        >>> node = ShellNode("echo", "hi").sed("s/hi/yo/")
        >>> node.label
        'sed'
    """

    def __getattr__(self, name: str) -> Callable[..., Any]:
        # Only reached for attributes that do not exist on the node
        if name.startswith("_"):
            raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")
        return functools.partial(self.link, name)


def _throw_on_error(shell: Shell, value: bool = True) -> PipelineNode:
    return shell.root().throw_on_error(value)


_DEFAULT_OPERATIONS: dict[str, Operation] = {
    "throw_on_error": _throw_on_error,
}


class Shell:
    """Factory of pipeline roots with attribute-style command lookup.

    A Shell holds no node state: every call returns a fresh root.

    Args:
        settings: Settings given to every node built by this shell.
            Defaults to :func:`shellchain.config.get_settings`.
        node_class: Node type to build.

    Examples:
        >>> sh = Shell()
        >>> sh.git("diff", cached=True).args
        ('diff', '--cached')
        >>> sh("notify-send", "hello").label
        'notify-send'
        >>> sh.throw_on_error(False).throws
        False
    """

    def __init__(
        self,
        settings: PipelineSettings | None = None,
        *,
        node_class: type[PipelineNode] = ShellNode,
    ) -> None:
        """Initialize Shell.

        Args:
            settings: Settings given to every node built by this shell.
            node_class: Node type to build.
        """
        self._settings = settings
        self._node_class = node_class
        self._operations: dict[str, Operation] = dict(_DEFAULT_OPERATIONS)

    def __repr__(self) -> str:
        return f"<Shell operations={sorted(self._operations)}>"

    def __call__(self, name: str, *args: Any, **flags: Any) -> PipelineNode:
        """Build a root command node, like ``sh("git", "diff")``."""
        return self.command(name, *args, **flags)

    def __getattr__(self, name: str) -> Callable[..., Any]:
        if name.startswith("_"):
            raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")
        operation = self._operations.get(name)
        if operation is not None:
            return functools.partial(operation, self)
        return functools.partial(self.command, name)

    @property
    def settings(self) -> PipelineSettings:
        """Settings given to new nodes."""
        return self._settings or get_settings()

    def register(self, name: str, operation: Operation) -> None:
        """Register an operation reachable as ``shell.<name>(...)``.

        Args:
            name: Public attribute name.
            operation: Called as ``operation(shell, *args, **flags)``.

        Raises:
            ValueError: If the name is private or shadows a Shell attribute.
        """
        if not name or name.startswith("_") or hasattr(type(self), name):
            raise ValueError(f"Cannot register operation {name!r}")
        self._operations[name] = operation
        logger.debug("Registered shell operation %r", name)

    def unregister(self, name: str) -> None:
        """Remove a registered operation; unknown names are ignored."""
        self._operations.pop(name, None)

    def root(self) -> PipelineNode:
        """Return a fresh bare root carrying this shell's settings."""
        return self._configure(self._node_class())

    def command(self, name: str, *args: Any, **flags: Any) -> PipelineNode:
        """Return a fresh root command node."""
        return self._configure(self._node_class(name, *args, **flags))

    def _configure(self, node: PipelineNode) -> PipelineNode:
        settings = self.settings
        node.settings = settings
        node._throw_on_error = settings.throw_on_error
        return node


__all__ = [
    "Operation",
    "Shell",
    "ShellNode",
]
