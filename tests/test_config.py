"""Tests for the shellchain.config module."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from shellchain.config import (
    CONFIG_ENV_VAR,
    PipelineSettings,
    get_settings,
    load_settings,
)
from shellchain.exceptions import ConfigError
from shellchain.node import command


class TestPipelineSettings:
    """Tests for PipelineSettings validation."""

    def test_defaults(self) -> None:
        """Defaults are usable as-is."""
        settings = PipelineSettings()
        assert settings.encoding == "utf-8"
        assert settings.encoding_errors == "replace"
        assert settings.chunk_size == 65536
        assert settings.throw_on_error is True

    def test_unknown_encoding(self) -> None:
        """Unknown encodings are rejected."""
        with pytest.raises(ConfigError, match="Unknown encoding"):
            PipelineSettings(encoding="no-such-codec")

    def test_invalid_error_handler(self) -> None:
        """Only known decoding error handlers are accepted."""
        with pytest.raises(ConfigError, match="encoding_errors"):
            PipelineSettings(encoding_errors="explode")

    @pytest.mark.parametrize("chunk_size", [0, -1, True, "1024", 32 * 1024 * 1024])
    def test_invalid_chunk_size(self, chunk_size: object) -> None:
        """Chunk sizes must be sane integers."""
        with pytest.raises(ConfigError, match="chunk_size"):
            PipelineSettings(chunk_size=chunk_size)  # type: ignore[arg-type]

    def test_invalid_throw_on_error(self) -> None:
        """The default policy must be a boolean."""
        with pytest.raises(ConfigError, match="throw_on_error"):
            PipelineSettings(throw_on_error="yes")  # type: ignore[arg-type]


class TestLoadSettings:
    """Tests for load_settings."""

    def test_no_file_gives_defaults(self) -> None:
        """Without any file the defaults are returned."""
        assert load_settings() == PipelineSettings()

    def test_explicit_path(self, write_config: Callable[..., Path]) -> None:
        """An explicit path is read."""
        path = write_config("shellchain:\n  chunk_size: 1024\n  throw_on_error: false\n", "custom.yml")
        settings = load_settings(path)
        assert settings.chunk_size == 1024
        assert settings.throw_on_error is False

    def test_env_var(self, write_config: Callable[..., Path], monkeypatch: pytest.MonkeyPatch) -> None:
        """SHELLCHAIN_CONFIG points to the settings file."""
        path = write_config("shellchain:\n  encoding: latin-1\n", "env.yml")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert load_settings().encoding == "latin-1"

    def test_default_file_in_cwd(self, write_config: Callable[..., Path]) -> None:
        """shellchain.conf.yml in the current directory is picked up."""
        write_config("shellchain:\n  encoding_errors: strict\n")
        assert load_settings().encoding_errors == "strict"

    def test_missing_section(self, write_config: Callable[..., Path]) -> None:
        """Files without a shellchain section give defaults."""
        write_config("other:\n  key: value\n")
        assert load_settings() == PipelineSettings()

    def test_empty_file(self, write_config: Callable[..., Path]) -> None:
        """Empty files give defaults."""
        write_config("")
        assert load_settings() == PipelineSettings()

    def test_overrides_win(self, write_config: Callable[..., Path]) -> None:
        """Keyword overrides take precedence over the file."""
        write_config("shellchain:\n  chunk_size: 1024\n")
        assert load_settings(chunk_size=4096).chunk_size == 4096

    def test_unknown_key(self, write_config: Callable[..., Path]) -> None:
        """Unknown settings are reported."""
        write_config("shellchain:\n  timeout: 3\n")
        with pytest.raises(ConfigError, match="Unknown settings: timeout"):
            load_settings()

    def test_invalid_yaml(self, write_config: Callable[..., Path]) -> None:
        """Malformed YAML raises ConfigError."""
        write_config("shellchain: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_settings()

    def test_not_a_mapping(self, write_config: Callable[..., Path]) -> None:
        """The top level must be a mapping."""
        write_config("- a\n- b\n")
        with pytest.raises(ConfigError, match="must contain a mapping"):
            load_settings()

    def test_section_not_a_mapping(self, write_config: Callable[..., Path]) -> None:
        """The shellchain section must be a mapping."""
        write_config("shellchain: 3\n")
        with pytest.raises(ConfigError, match="must be a mapping"):
            load_settings()

    def test_missing_explicit_file(self, tmp_path: Path) -> None:
        """An explicit path that does not exist raises ConfigError."""
        with pytest.raises(ConfigError, match="Cannot read"):
            load_settings(tmp_path / "absent.yml")

    def test_invalid_value(self, write_config: Callable[..., Path]) -> None:
        """Invalid values in the file raise ConfigError."""
        write_config("shellchain:\n  chunk_size: 0\n")
        with pytest.raises(ConfigError):
            load_settings()


class TestGetSettings:
    """Tests for get_settings caching and node defaults."""

    def test_cached(self) -> None:
        """The same settings object is returned until the cache is cleared."""
        assert get_settings() is get_settings()

    def test_nodes_use_settings(self, write_config: Callable[..., Path]) -> None:
        """New nodes take their default policy from the settings."""
        write_config("shellchain:\n  throw_on_error: false\n")
        get_settings.cache_clear()
        node = command("true")
        assert node.throws is False
        assert node.settings.throw_on_error is False
