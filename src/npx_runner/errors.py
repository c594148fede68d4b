"""Error types raised while resolving and running a command."""

from __future__ import annotations

# Exit status a shell uses for an unknown command
COMMAND_NOT_FOUND_EXIT = 127


class NpxError(Exception):
    """Base error carrying the exit code this process should finish with."""

    def __init__(self, message: str, exit_code: int = 1) -> None:
        super().__init__(message)
        self.exit_code = exit_code


class CommandNotFoundError(NpxError):
    """The requested command could not be resolved."""

    def __init__(self, command: str, exit_code: int = COMMAND_NOT_FOUND_EXIT) -> None:
        super().__init__(f"command not found: {command}", exit_code)
        self.command = command


class InstallError(NpxError):
    """The package manager failed to install the requested packages."""

    def __init__(self, specs: list[str] | tuple[str, ...], exit_code: int) -> None:
        super().__init__(
            f"Install for {', '.join(specs)} failed with code {exit_code}", exit_code
        )
        self.specs = list(specs)


class PackageManagerError(NpxError):
    """A read-only package manager query failed."""

    pass


class OperationalError(NpxError):
    """The resolved command ran and exited unsuccessfully."""

    def __init__(self, command: str, exit_code: int, signal: int | None = None) -> None:
        super().__init__(f"Command failed: {command}", exit_code)
        self.signal = signal
