"""Settings for shellchain.

Settings are read from the ``shellchain`` section of a YAML file:

.. code-block:: yaml

    shellchain:
      encoding: utf-8
      encoding_errors: replace
      chunk_size: 65536
      throw_on_error: true

The file is looked up, in order, from the explicit ``path`` argument,
the ``SHELLCHAIN_CONFIG`` environment variable, and ``shellchain.conf.yml``
in the current directory. Missing files fall back to defaults.
"""

from __future__ import annotations

import codecs
import functools
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from box import Box

from shellchain.exceptions import ConfigError

logger = logging.getLogger(__name__)

#: Environment variable pointing to a settings file.
CONFIG_ENV_VAR = "SHELLCHAIN_CONFIG"

#: Settings file looked up in the current directory.
DEFAULT_CONFIG_FILENAME = "shellchain.conf.yml"

#: Section of the settings file read by shellchain.
CONFIG_SECTION = "shellchain"

# Deep defense: hard limits on the read size of managed pipes
_MIN_CHUNK_SIZE = 1
_MAX_CHUNK_SIZE = 16 * 1024 * 1024

_ALLOWED_ENCODING_ERRORS = frozenset({"strict", "replace", "ignore", "backslashreplace", "surrogateescape"})


@dataclass(frozen=True, slots=True)
class PipelineSettings:
    """Settings shared by every node of a pipeline.

    Attributes:
        encoding: Encoding used to decode output for string and record sinks.
        encoding_errors: Error handler used while decoding.
        chunk_size: Maximum number of bytes read per chunk from managed pipes.
        throw_on_error: Default error policy of new root nodes.

    Examples:
        >>> PipelineSettings().chunk_size
        65536
        >>> PipelineSettings(chunk_size=0)
        Traceback (most recent call last):
            ...
        shellchain.exceptions.ConfigError: chunk_size must be between 1 and 16777216, got 0
    """

    encoding: str = "utf-8"
    encoding_errors: str = "replace"
    chunk_size: int = 65536
    throw_on_error: bool = True

    def __post_init__(self) -> None:
        """Validate settings values.

        Raises:
            ConfigError: If any value is invalid.
        """
        try:
            codecs.lookup(self.encoding)
        except (LookupError, TypeError):
            raise ConfigError(f"Unknown encoding {self.encoding!r}") from None
        if self.encoding_errors not in _ALLOWED_ENCODING_ERRORS:
            raise ConfigError(f"Invalid encoding_errors {self.encoding_errors!r}")
        if (
            isinstance(self.chunk_size, bool)
            or not isinstance(self.chunk_size, int)
            or not _MIN_CHUNK_SIZE <= self.chunk_size <= _MAX_CHUNK_SIZE
        ):
            raise ConfigError(
                f"chunk_size must be between {_MIN_CHUNK_SIZE} and {_MAX_CHUNK_SIZE}, got {self.chunk_size!r}"
            )
        if not isinstance(self.throw_on_error, bool):
            raise ConfigError(f"throw_on_error must be a boolean, got {self.throw_on_error!r}")


def _resolve_path(path: str | os.PathLike[str] | None) -> Path | None:
    if path is not None:
        return Path(path)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    candidate = Path.cwd() / DEFAULT_CONFIG_FILENAME
    if candidate.is_file():
        return candidate
    return None


def _read_section(path: Path) -> Box:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read settings file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in settings file {path}: {exc}") from exc

    if raw is None:
        return Box()
    if not isinstance(raw, dict):
        raise ConfigError(f"Settings file {path} must contain a mapping")

    section: Any = raw.get(CONFIG_SECTION, {})
    if section is None:
        return Box()
    if not isinstance(section, dict):
        raise ConfigError(f"Section '{CONFIG_SECTION}' in {path} must be a mapping")
    return Box(section)


def load_settings(path: str | os.PathLike[str] | None = None, **overrides: Any) -> PipelineSettings:
    """Load settings from a YAML file.

    Args:
        path: Explicit settings file. When omitted, ``SHELLCHAIN_CONFIG``
            and then ``./shellchain.conf.yml`` are tried.
        **overrides: Values taking precedence over the file.

    Returns:
        Validated PipelineSettings.

    Raises:
        ConfigError: If the file is unreadable or holds invalid values.

    Examples:
        >>> load_settings(chunk_size=1024).chunk_size  # doctest: +SKIP
        1024
    """
    resolved = _resolve_path(path)
    section = Box()
    if resolved is not None:
        logger.debug("Loading shellchain settings from %s", resolved)
        section = _read_section(resolved)

    known = PipelineSettings.__dataclass_fields__.keys()
    unknown = sorted(set(section) - set(known))
    if unknown:
        raise ConfigError(f"Unknown settings: {', '.join(unknown)}")

    values = {**section.to_dict(), **overrides}
    try:
        return PipelineSettings(**values)
    except TypeError as exc:
        raise ConfigError(str(exc)) from exc


@functools.lru_cache(maxsize=1)
def get_settings() -> PipelineSettings:
    """Return the default settings, loaded once per process.

    Call ``get_settings.cache_clear()`` to reload them.
    """
    return load_settings()


__all__ = [
    "CONFIG_ENV_VAR",
    "CONFIG_SECTION",
    "DEFAULT_CONFIG_FILENAME",
    "PipelineSettings",
    "get_settings",
    "load_settings",
]
