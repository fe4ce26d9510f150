"""Shared pytest fixtures for the shellchain test suite."""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from shellchain.config import CONFIG_ENV_VAR, get_settings

# pylint: disable=redefined-outer-name


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Keep user settings files out of the tests.

    Runs every test from an empty temporary directory with no
    ``SHELLCHAIN_CONFIG`` override, and resets the cached settings.
    """
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def py() -> Callable[[str], tuple[str, str, str]]:
    """Build the ``python -c <code>`` argument triple for the running interpreter."""

    def _py(code: str) -> tuple[str, str, str]:
        """Return the command and arguments running ``code``."""

        return (sys.executable, "-c", code)

    return _py


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write a YAML settings file into the temp directory."""

    def _write(content: str, name: str = "shellchain.conf.yml") -> Path:
        """Write ``content`` to ``name`` and return its path."""

        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write
