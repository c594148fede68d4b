"""Tests for CLI commands using context injection.

The main command accepts a _context parameter so the pipeline can be
driven with fake services instead of a real npm.
"""

from __future__ import annotations

import io
from unittest.mock import AsyncMock, MagicMock

import pytest
import typer
from rich.console import Console
from typer.testing import CliRunner

from npx_runner import __version__, cli
from npx_runner.console import Reporter
from npx_runner.context import AppContext
from npx_runner.types import ExitOutcome

runner = CliRunner()


@pytest.fixture
def output() -> io.StringIO:
    """Capture reporter output."""
    return io.StringIO()


@pytest.fixture
def mock_context(output: io.StringIO) -> AppContext:
    """Create an AppContext with mocked services."""
    return AppContext(
        package_manager=MagicMock(),
        runner=MagicMock(),
        filesystem=MagicMock(),
        reporter=Reporter(console=Console(file=output, width=200)),
    )


@pytest.fixture
def mock_run(monkeypatch: pytest.MonkeyPatch) -> AsyncMock:
    """Replace the engine entry point."""
    run = AsyncMock(return_value=ExitOutcome.success())
    monkeypatch.setattr(cli.engine, "run", run)
    return run


class TestParseCommandSpec:
    """Tests for command spec parsing."""

    @pytest.mark.parametrize(
        ("spec", "expected"),
        [
            ("cowsay", ("cowsay", False, False)),
            ("cowsay@1.4.0", ("cowsay", True, False)),
            ("@scope/tool", ("tool", False, False)),
            ("@scope/tool@2", ("tool", True, False)),
            ("./bin/run.js", ("./bin/run.js", False, True)),
            ("../tool", ("../tool", False, True)),
            ("/abs/tool", ("/abs/tool", False, True)),
            ("C:\\tools\\x", ("C:\\tools\\x", False, True)),
        ],
    )
    def test_parse(self, spec: str, expected: tuple[str, bool, bool]) -> None:
        """Test names, version pins and local paths are recognised."""
        assert cli.parse_command_spec(spec) == expected


class TestBuildRequest:
    """Tests for request construction."""

    def test_spec_becomes_package(self) -> None:
        """Test the command spec is installed when no -p is given."""
        request = cli.build_request("cowsay@1.4", ["hi"], None)

        assert request.command == "cowsay"
        assert request.packages == ("cowsay@1.4",)
        assert request.cmd_opts == ("hi",)
        assert request.cmd_had_version is True
        assert request.package_requested is False

    def test_explicit_packages(self) -> None:
        """Test -p packages are installed and the command is kept literally."""
        request = cli.build_request("cowsay", None, ["cowsay@1.5", "lolcatjs"])

        assert request.command == "cowsay"
        assert request.packages == ("cowsay@1.5", "lolcatjs")
        assert request.package_requested is True
        assert request.cmd_had_version is False

    def test_local_path(self) -> None:
        """Test local paths are flagged."""
        request = cli.build_request("./run.js", None, None)

        assert request.is_local is True
        assert request.command == "./run.js"

    def test_call_only(self) -> None:
        """Test a call string needs no command."""
        request = cli.build_request(None, None, None, call="echo hi")

        assert request.command is None
        assert request.packages == ()
        assert request.call == "echo hi"

    def test_no_install(self) -> None:
        """Test options are carried onto the request."""
        request = cli.build_request(
            "cowsay", None, None, install=False, quiet=True, npm="/opt/npm", cache="/c"
        )

        assert request.install is False
        assert request.quiet is True
        assert request.npm == "/opt/npm"
        assert request.cache == "/c"


class TestMain:
    """Tests for the main command."""

    def test_missing_command(self, mock_context: AppContext, mock_run: AsyncMock) -> None:
        """Test running without a command exits 1."""
        with pytest.raises(typer.Exit) as exc_info:
            cli.main(_context=mock_context)

        assert exc_info.value.exit_code == 1
        mock_run.assert_not_awaited()

    def test_success(self, mock_context: AppContext, mock_run: AsyncMock) -> None:
        """Test a successful run returns normally."""
        cli.main(command="cowsay", args=["moo"], _context=mock_context)

        request, ctx = mock_run.call_args.args
        assert request.command == "cowsay"
        assert request.cmd_opts == ("moo",)
        assert ctx is mock_context

    def test_operational_failure_is_silent(
        self, mock_context: AppContext, mock_run: AsyncMock, output: io.StringIO
    ) -> None:
        """Test the child's exit code is propagated without a message."""
        mock_run.return_value = ExitOutcome(3, operational=True)

        with pytest.raises(typer.Exit) as exc_info:
            cli.main(command="cowsay", _context=mock_context)

        assert exc_info.value.exit_code == 3
        assert output.getvalue() == ""

    def test_failure_message_shown(
        self, mock_context: AppContext, mock_run: AsyncMock, output: io.StringIO
    ) -> None:
        """Test a resolution failure prints its message."""
        mock_run.return_value = ExitOutcome(127, message="command not found: cowsay")

        with pytest.raises(typer.Exit) as exc_info:
            cli.main(command="cowsay", _context=mock_context)

        assert exc_info.value.exit_code == 127
        assert "command not found: cowsay" in output.getvalue()


class TestCliRunner:
    """Tests through the Typer command line parser."""

    def test_version(self) -> None:
        """Test --version prints the version."""
        result = runner.invoke(cli.app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_arguments_after_command_are_forwarded(
        self, monkeypatch: pytest.MonkeyPatch, mock_context: AppContext, mock_run: AsyncMock
    ) -> None:
        """Test options after the command belong to the command."""
        factory = MagicMock(return_value=mock_context)
        monkeypatch.setattr(cli, "create_context", factory)

        result = runner.invoke(cli.app, ["-p", "cowsay", "cowsay", "--moo", "-q"])

        assert result.exit_code == 0
        request, _ = mock_run.call_args.args
        assert request.packages == ("cowsay",)
        assert request.cmd_opts == ("--moo", "-q")
        assert request.quiet is False
        factory.assert_called_once_with(npm="npm", userconfig=None, quiet=False)
