"""Argument expansion for shellchain commands.

Turns the mixed positional values and flag mappings accepted by
:func:`shellchain.command` and :meth:`PipelineNode.link` into the flat
list of strings handed to the spawn primitive.

Expansion rules:

- strings are kept as-is, ints and floats are stringified
- lists and tuples are flattened in place
- mappings (and keyword arguments) expand key by key: one-character
  keys become ``-k``, longer keys become ``--key`` with underscores
  turned into dashes
- a ``True`` value emits the flag alone, ``False`` and ``None`` omit it,
  a list or tuple repeats the flag per item, anything else emits the
  flag followed by ``str(value)``
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from shellchain.exceptions import ArgumentError

# ============================================================================
# Constants
# ============================================================================

#: Prefix for one-character flags.
SHORT_FLAG_PREFIX = "-"

#: Prefix for long flags.
LONG_FLAG_PREFIX = "--"


# ============================================================================
# Expansion Functions
# ============================================================================


def flag_name(key: str) -> str:
    """Return the command-line spelling of a flag key.

    Args:
        key: Flag key as written by the caller.

    Returns:
        ``-k`` for one-character keys, ``--long-key`` otherwise.

    Raises:
        ArgumentError: If the key is empty or not a string.

    Examples:
        >>> flag_name("n")
        '-n'
        >>> flag_name("cached")
        '--cached'
        >>> flag_name("dry_run")
        '--dry-run'
    """
    if not isinstance(key, str) or not key:
        raise ArgumentError(f"Flag name must be a non-empty string, got {key!r}")
    if len(key) == 1:
        return f"{SHORT_FLAG_PREFIX}{key}"
    return f"{LONG_FLAG_PREFIX}{key.replace('_', '-')}"


def _scalar(value: Any) -> str:
    if isinstance(value, bool) or value is None:
        raise ArgumentError(f"Positional argument cannot be {value!r}, use a flag mapping instead")
    if isinstance(value, (str, int, float)):
        return str(value)
    raise ArgumentError(f"Unsupported argument type {type(value).__name__}: {value!r}")


def expand_flags(flags: Mapping[str, Any]) -> list[str]:
    """Expand a flag mapping into command-line arguments.

    Args:
        flags: Mapping of flag keys to values.

    Returns:
        Ordered list of arguments, following the mapping's key order.

    Raises:
        ArgumentError: If a key or value cannot be expanded.

    Examples:
        >>> expand_flags({"n": 1})
        ['-n', '1']
        >>> expand_flags({"cached": True, "stat": False})
        ['--cached']
        >>> expand_flags({"e": ["a", "b"]})
        ['-e', 'a', '-e', 'b']
    """
    out: list[str] = []
    for key, value in flags.items():
        name = flag_name(key)
        if value is True:
            out.append(name)
        elif value is False or value is None:
            continue
        elif isinstance(value, (list, tuple)):
            for item in value:
                out.extend((name, _scalar(item)))
        else:
            out.extend((name, _scalar(value)))
    return out


def expand_args(
    args: Iterable[Any],
    flags: Mapping[str, Any] | None = None,
) -> tuple[str, ...]:
    """Expand positional values and flags into a flat argument tuple.

    Positional mappings are expanded where they appear; keyword ``flags``
    are appended after all positional values.

    Args:
        args: Positional values (strings, numbers, nested lists, mappings).
        flags: Extra flag mapping, typically the caller's keyword arguments.

    Returns:
        Flat tuple of string arguments.

    Raises:
        ArgumentError: If any value cannot be expanded.

    Examples:
        >>> expand_args(["show", "HEAD"])
        ('show', 'HEAD')
        >>> expand_args(["diff", {"cached": True}])
        ('diff', '--cached')
        >>> expand_args([{"n": 1}])
        ('-n', '1')
        >>> expand_args(["log"], {"max_count": 3})
        ('log', '--max-count', '3')
    """
    out: list[str] = []
    for value in args:
        if isinstance(value, Mapping):
            out.extend(expand_flags(value))
        elif isinstance(value, (list, tuple)):
            out.extend(expand_args(value))
        else:
            out.append(_scalar(value))
    if flags:
        out.extend(expand_flags(flags))
    return tuple(out)


__all__ = [
    "LONG_FLAG_PREFIX",
    "SHORT_FLAG_PREFIX",
    "expand_args",
    "expand_flags",
    "flag_name",
]
