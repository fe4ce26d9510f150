"""Tests for the shellchain.engine module."""

from __future__ import annotations

import asyncio
import errno
import sys

import pytest

from shellchain.engine import apply_policy, spawn, stdio_for, wait
from shellchain.exceptions import NonZeroExitError, SignalTerminationError, SpawnError
from shellchain.models import ExitStatus, StreamConfig
from shellchain.node import command


class TestStdioFor:
    """Tests for stdio_for."""

    def test_inherit(self) -> None:
        """Inherited streams pass through."""
        assert stdio_for(StreamConfig.inherit()) is None

    def test_pipe(self) -> None:
        """Managed pipes become asyncio pipes."""
        assert stdio_for(StreamConfig.pipe()) == asyncio.subprocess.PIPE

    def test_node(self) -> None:
        """Node connections also need a pipe."""
        assert stdio_for(StreamConfig.linked(command("cat"))) == asyncio.subprocess.PIPE


class TestApplyPolicy:
    """Tests for apply_policy."""

    @pytest.mark.parametrize("throw_on_error", [True, False])
    def test_success(self, throw_on_error: bool) -> None:
        """Exit code 0 always resolves to 0."""
        assert apply_policy("true", ExitStatus(code=0), throw_on_error=throw_on_error) == 0

    def test_non_zero_raises(self) -> None:
        """Non-zero exits raise when the policy is on."""
        with pytest.raises(NonZeroExitError) as exc_info:
            apply_policy("make", ExitStatus(code=2), throw_on_error=True)
        assert exc_info.value.code == 2
        assert "code 2" in str(exc_info.value)

    def test_non_zero_suppressed(self) -> None:
        """Non-zero exits resolve to the code when the policy is off."""
        assert apply_policy("make", ExitStatus(code=2), throw_on_error=False) == 2

    def test_signal_raises(self) -> None:
        """Signal terminations raise when the policy is on."""
        with pytest.raises(SignalTerminationError, match="SIGKILL"):
            apply_policy("sleep", ExitStatus(signal="SIGKILL"), throw_on_error=True)

    def test_signal_suppressed(self) -> None:
        """Signal terminations resolve to the signal name when the policy is off."""
        assert apply_policy("sleep", ExitStatus(signal="SIGKILL"), throw_on_error=False) == "SIGKILL"

    def test_spawn_failure_raises(self) -> None:
        """Spawn failures raise SpawnError chained to the OS error."""
        cause = FileNotFoundError(errno.ENOENT, "No such file or directory")
        with pytest.raises(SpawnError) as exc_info:
            apply_policy("nope", ExitStatus(error=cause), throw_on_error=True)
        assert exc_info.value.errno == errno.ENOENT
        assert exc_info.value.__cause__ is cause

    def test_spawn_failure_suppressed(self) -> None:
        """Spawn failures resolve to the OS error code when the policy is off."""
        cause = FileNotFoundError(errno.ENOENT, "No such file or directory")
        assert apply_policy("nope", ExitStatus(error=cause), throw_on_error=False) == "ENOENT"


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX subprocess test")
class TestSpawnAndWait:
    """Tests for spawn and wait with real processes."""

    @pytest.mark.asyncio
    async def test_spawn_and_wait(self) -> None:
        """A spawned process reports its exit code."""
        process = await spawn(sys.executable, ["-c", "raise SystemExit(3)"], stdin=None, stdout=None, stderr=None)
        assert isinstance(process, asyncio.subprocess.Process)
        status = await wait(process, "python")
        assert status.code == 3

    @pytest.mark.asyncio
    async def test_spawn_missing_command(self) -> None:
        """A missing executable is reported, not raised."""
        result = await spawn("shellchain-no-such-command", [], stdin=None, stdout=None, stderr=None)
        assert isinstance(result, ExitStatus)
        assert isinstance(result.error, FileNotFoundError)
        assert result.error_code == "ENOENT"

    @pytest.mark.asyncio
    async def test_wait_signal(self) -> None:
        """A killed process reports the signal name."""
        process = await spawn(
            sys.executable,
            ["-c", "import time; time.sleep(30)"],
            stdin=None,
            stdout=None,
            stderr=None,
        )
        assert isinstance(process, asyncio.subprocess.Process)
        process.kill()
        status = await wait(process, "python")
        assert status.signal == "SIGKILL"
