"""Shared data types for npx-runner."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

__all__ = [
    "ExecutionStrategy",
    "ExecutionTarget",
    "ExitOutcome",
    "InvocationRequest",
    "Provenance",
    "ResolvedPath",
]


@dataclass(frozen=True)
class InvocationRequest:
    """Everything the caller asked for, built once per invocation.

    Attributes:
        command: Command name to run (None when only ``call`` is given).
        packages: Package specifiers to install if needed.
        cmd_opts: Arguments forwarded to the resolved command.
        package_requested: Packages were named explicitly (``-p``). Forces install.
        ignore_existing: Skip the search-path lookup.
        is_local: The command is a filesystem path to run as-is.
        cmd_had_version: The command carried a version pin (``foo@1.2``).
        install: Whether fallback installation is allowed.
        quiet: Suppress diagnostics and package manager stderr.
        npm: Package manager executable.
        cache: Package manager cache directory override.
        userconfig: Package manager user config override.
        call: Shell string to run with the lifecycle environment.
        shell: Run the command through the shell.
    """

    command: str | None = None
    packages: tuple[str, ...] = ()
    cmd_opts: tuple[str, ...] = ()
    package_requested: bool = False
    ignore_existing: bool = False
    is_local: bool = False
    cmd_had_version: bool = False
    install: bool = True
    quiet: bool = False
    npm: str = "npm"
    cache: str | None = None
    userconfig: str | None = None
    call: str | None = None
    shell: bool = False

    def __post_init__(self) -> None:
        """Validate invariants."""
        if not self.command and not self.call:
            raise ValueError("either command or call is required")


class Provenance(str, Enum):
    """Where a resolved path came from."""

    NONE = "none"
    SEARCH_PATH = "already-on-search-path"
    PROJECT_LOCAL = "project-local"
    INSTALLED = "freshly-installed"


@dataclass(frozen=True)
class ResolvedPath:
    """A command location tagged with its provenance."""

    path: str | None
    provenance: Provenance = Provenance.NONE

    @classmethod
    def none(cls) -> ResolvedPath:
        """Nothing resolved."""
        return cls(path=None, provenance=Provenance.NONE)

    @property
    def satisfied(self) -> bool:
        """True if the command already resolves without installing."""
        return self.path is not None and self.provenance in (
            Provenance.SEARCH_PATH,
            Provenance.PROJECT_LOCAL,
        )


@dataclass(frozen=True)
class ExecutionTarget:
    """Final decision on what to run.

    Attributes:
        path: Resolved executable or script path.
        in_process: The script can be handed to the interpreter directly.
        is_directory_package: Resolved through a package directory's manifest.
    """

    path: Path
    in_process: bool = False
    is_directory_package: bool = False


class ExecutionStrategy(str, Enum):
    """How an execution target is run."""

    IN_PROCESS = "in-process"
    SPAWNED = "spawned"


@dataclass(frozen=True)
class ExitOutcome:
    """Terminal result of an invocation.

    Attributes:
        exit_code: Exit status for this process.
        operational: Failure came from the resolved command itself.
        message: Diagnostic to surface (None for success and operational failures).
    """

    exit_code: int = 0
    operational: bool = False
    message: str | None = field(default=None)

    @classmethod
    def success(cls) -> ExitOutcome:
        return cls()

    @property
    def ok(self) -> bool:
        return self.exit_code == 0
