"""CLI entry point using Typer."""

from __future__ import annotations

import asyncio
import re
from typing import TYPE_CHECKING, Annotated

if TYPE_CHECKING:
    from npx_runner.context import AppContext

import typer

from npx_runner import __version__, engine
from npx_runner.console import Reporter, configure_logging
from npx_runner.context import create_context
from npx_runner.types import InvocationRequest

app = typer.Typer(
    name="npx-runner",
    help="Run a command from an npm package, installing it temporarily if needed",
    add_completion=False,
)

# ./cmd, ../cmd, /cmd, C:\cmd
LOCAL_PATH = re.compile(r"^(?:\.{1,2}[\\/]|[\\/]|[a-zA-Z]:[\\/])")


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"npx-runner v{__version__}")
        raise typer.Exit()


def parse_command_spec(spec: str) -> tuple[str, bool, bool]:
    """Split a command spec into its command name and flags.

    Args:
        spec: What the user typed, e.g. ``cowsay``, ``cowsay@1.4``,
            ``@scope/tool@2`` or ``./bin/run.js``.

    Returns:
        Tuple of (command name, had version, is local path).

    Example:
        >>> parse_command_spec("@scope/tool@2")
        ('tool', True, False)
    """
    if LOCAL_PATH.match(spec):
        return spec, False, True
    at = spec.rfind("@")
    had_version = at > 0
    name = spec[:at] if had_version else spec
    return name.rsplit("/", 1)[-1], had_version, False


def build_request(
    command: str | None,
    args: list[str] | None,
    packages: list[str] | None,
    *,
    ignore_existing: bool = False,
    install: bool = True,
    quiet: bool = False,
    npm: str = "npm",
    cache: str | None = None,
    userconfig: str | None = None,
    call: str | None = None,
    shell: bool = False,
) -> InvocationRequest:
    """Build the invocation request from parsed command line values.

    Without ``-p`` the command spec itself is the package to install.
    """
    package_requested = bool(packages)
    cmd_had_version = False
    is_local = False
    if command and package_requested:
        is_local = bool(LOCAL_PATH.match(command))
    elif command:
        name, cmd_had_version, is_local = parse_command_spec(command)
        packages = [command]
        command = name
    return InvocationRequest(
        command=command,
        packages=tuple(packages or ()),
        cmd_opts=tuple(args or ()),
        package_requested=package_requested,
        ignore_existing=ignore_existing,
        is_local=is_local,
        cmd_had_version=cmd_had_version,
        install=install,
        quiet=quiet,
        npm=npm,
        cache=cache,
        userconfig=userconfig,
        call=call,
        shell=shell,
    )


@app.command(
    context_settings={
        "allow_extra_args": True,
        "ignore_unknown_options": True,
        "allow_interspersed_args": False,
    }
)
def main(
    command: Annotated[str | None, typer.Argument(help="Command to run (name, name@version or path)")] = None,
    args: Annotated[list[str] | None, typer.Argument(help="Arguments passed to the command")] = None,
    package: Annotated[
        list[str] | None, typer.Option("--package", "-p", help="Package to install (repeatable)")
    ] = None,
    cache: Annotated[str | None, typer.Option("--cache", help="npm cache location")] = None,
    userconfig: Annotated[str | None, typer.Option("--userconfig", help="npm user config file")] = None,
    npm: Annotated[str, typer.Option("--npm", help="npm executable to use")] = "npm",
    call: Annotated[
        str | None, typer.Option("--call", "-c", help="Shell string to run with the npm script environment")
    ] = None,
    shell: Annotated[bool, typer.Option("--shell", help="Run the command through the shell")] = False,
    ignore_existing: Annotated[
        bool, typer.Option("--ignore-existing", help="Ignore commands already on the search path")
    ] = False,
    no_install: Annotated[
        bool, typer.Option("--no-install", help="Fail instead of installing missing commands")
    ] = False,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Suppress output")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", help="Log resolution details")] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
    _context=None,
) -> None:
    """Run COMMAND, installing its package into a temporary prefix if needed."""
    configure_logging(verbose)
    if not command and not call:
        Reporter(quiet=quiet).show_error("ERROR: You must supply a command.")
        raise typer.Exit(1)

    request = build_request(
        command,
        args,
        package,
        ignore_existing=ignore_existing,
        install=not no_install,
        quiet=quiet,
        npm=npm,
        cache=cache,
        userconfig=userconfig,
        call=call,
        shell=shell,
    )
    ctx: AppContext = _context or create_context(npm=npm, userconfig=userconfig, quiet=quiet)

    outcome = asyncio.run(engine.run(request, ctx))
    if outcome.message:
        ctx.reporter.show_error(outcome.message)
    if not outcome.ok:
        raise typer.Exit(outcome.exit_code)


if __name__ == "__main__":
    app()
