"""Tests for the shellchain.facade module."""

from __future__ import annotations

import sys

import pytest

from shellchain import sh
from shellchain.config import PipelineSettings
from shellchain.exceptions import NonZeroExitError
from shellchain.facade import Shell, ShellNode
from shellchain.models import NodeState
from shellchain.node import PipelineNode


class TestShellCommands:
    """Tests for attribute-style command construction."""

    def test_attribute_builds_command(self) -> None:
        """Unknown attributes build command roots."""
        node = sh.git("diff", cached=True)
        assert isinstance(node, ShellNode)
        assert node.command == "git"
        assert node.args == ("diff", "--cached")

    def test_call_builds_command(self) -> None:
        """Calling the shell allows names that are not identifiers."""
        node = sh("notify-send", "hello")
        assert node.command == "notify-send"
        assert node.args == ("hello",)

    def test_fresh_roots(self) -> None:
        """Each access returns a new, unlinked root."""
        first = sh.echo("a")
        second = sh.echo("a")
        assert first is not second
        first.cat()
        assert second.downstream is None

    def test_chained_attributes(self) -> None:
        """Unknown node attributes link further commands."""
        node = sh.echo("hello").sed("s/hello/hi/").wc(l=True)
        assert node.command == "wc"
        assert node.args == ("-l",)
        assert node.upstream is not None
        assert node.upstream.command == "sed"

    def test_private_attributes(self) -> None:
        """Private names are never turned into commands."""
        with pytest.raises(AttributeError):
            sh._private  # noqa: B018  # pylint: disable=pointless-statement,protected-access
        with pytest.raises(AttributeError):
            sh.echo()._private  # noqa: B018  # pylint: disable=pointless-statement,protected-access

    def test_node_methods_win(self) -> None:
        """Real node methods are not shadowed by command lookup."""
        node = sh.make()
        assert node.error_view().command == "make"


class TestShellOperations:
    """Tests for the operation registry."""

    def test_throw_on_error_root(self) -> None:
        """throw_on_error builds a policy carrier for the next command."""
        node = sh.throw_on_error(False).git("status")
        assert isinstance(node, PipelineNode)
        assert node.command == "git"
        assert node.throws is False
        assert node.upstream is None
        assert node.state == NodeState.CONFIGURED

    def test_register(self) -> None:
        """Registered operations receive the shell."""
        shell = Shell()
        shell.register("grep_todo", lambda s, path: s.grep("TODO", path))
        node = shell.grep_todo("notes.txt")
        assert node.command == "grep"
        assert node.args == ("TODO", "notes.txt")

    def test_registry_is_per_instance(self) -> None:
        """Registering on one shell leaves others untouched."""
        shell = Shell()
        shell.register("hello", lambda s: s.echo("hello"))
        assert Shell().hello().command == "hello"

    def test_unregister(self) -> None:
        """Unregistered names fall back to commands."""
        shell = Shell()
        shell.register("ls_all", lambda s: s.ls(a=True))
        shell.unregister("ls_all")
        shell.unregister("never-registered")
        assert shell.ls_all().command == "ls_all"

    @pytest.mark.parametrize("name", ["", "_hidden", "command", "root", "register"])
    def test_register_rejects(self, name: str) -> None:
        """Private names and Shell attributes cannot be registered."""
        with pytest.raises(ValueError, match="Cannot register"):
            Shell().register(name, lambda s: s)

    def test_repr(self) -> None:
        """repr lists the registered operations."""
        assert repr(Shell()) == "<Shell operations=['throw_on_error']>"


class TestShellSettings:
    """Tests for shell-level settings."""

    def test_settings_applied(self) -> None:
        """Nodes take their policy from the shell settings."""
        shell = Shell(PipelineSettings(throw_on_error=False))
        node = shell.ls()
        assert node.throws is False
        assert node.settings is shell.settings

    def test_settings_inherited_by_links(self) -> None:
        """Linked nodes share the root settings."""
        settings = PipelineSettings(chunk_size=1024)
        node = Shell(settings).echo("x").cat()
        assert node.settings is settings

    def test_root_settings(self) -> None:
        """Bare roots carry the shell settings too."""
        settings = PipelineSettings(throw_on_error=False)
        root = Shell(settings).root()
        assert root.command is None
        assert root.throws is False

    def test_default_settings(self) -> None:
        """Without explicit settings the loaded ones are used."""
        assert Shell().settings == PipelineSettings()


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX subprocess test")
class TestShellExecution:
    """End-to-end runs through the facade."""

    @pytest.mark.asyncio
    async def test_echo_sed(self) -> None:
        """Attribute-built chains run like linked nodes."""
        text = await sh.echo("Hello, world.").sed("s/world/my friend/").collect_to_string()
        assert text == "Hello, my friend.\n"

    @pytest.mark.asyncio
    async def test_head_flag(self) -> None:
        """Keyword flags expand for linked commands."""
        assert await sh.printf("1\\n2\\n3\\n").head(n=1).records() == ["1"]

    @pytest.mark.asyncio
    async def test_failure_raises(self) -> None:
        """Default policy raises on failure."""
        with pytest.raises(NonZeroExitError):
            await sh.false()

    @pytest.mark.asyncio
    async def test_failure_suppressed(self) -> None:
        """A policy carrier suppresses failure of the next command."""
        assert await sh.throw_on_error(False).false() == 1
