"""Protocol definitions for core abstractions.

This module defines abstract interfaces (Protocols) for the services the
resolution pipeline talks to. Designing to interfaces enables:
- Loose coupling between the pipeline and the outside world
- Easy substitution of test doubles
- Clear contracts for implementations

All concrete implementations satisfy these protocols structurally (duck typing).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from npx_runner.npm import InstallOutcome
    from npx_runner.process import ProcessResult


@runtime_checkable
class FileSystem(Protocol):
    """Protocol for asynchronous filesystem access.

    Missing paths surface as FileNotFoundError so callers can tell
    "not found" apart from other I/O failures.
    """

    async def is_dir(self, path: Path) -> bool:
        """Check if a path is a directory.

        Raises:
            FileNotFoundError: If the path does not exist.
        """
        ...

    async def read_text(self, path: Path) -> str:
        """Read text content from a file."""
        ...

    async def read_head(self, path: Path, size: int) -> bytes:
        """Read at most ``size`` bytes from the start of a file.

        The file handle is closed before any read error propagates.
        """
        ...

    async def listdir(self, path: Path) -> list[str]:
        """List directory entry names, sorted."""
        ...

    async def rmtree(self, path: Path) -> None:
        """Remove a directory tree. A missing tree is not an error."""
        ...


@runtime_checkable
class ProcessRunner(Protocol):
    """Protocol for child process execution."""

    async def run(
        self,
        cmd: Sequence[str] | str,
        *,
        env: Mapping[str, str] | None = None,
        capture: bool = False,
        quiet: bool = False,
    ) -> ProcessResult:
        """Run a command to completion.

        Args:
            cmd: Argument vector, or a string to run through the shell.
            env: Environment for the child (inherited if None).
            capture: Pipe stdout back instead of inheriting it.
            quiet: Discard the child's stderr.

        Returns:
            ProcessResult with return code and captured stdout.

        Raises:
            OSError: If the process could not be started.
        """
        ...

    async def which(self, command: str, path: str | None = None) -> str | None:
        """Look a command up on a search path.

        Args:
            command: Command name or path.
            path: Search path string (process PATH if None).

        Returns:
            Absolute path of the command, or None if not found.
        """
        ...


@runtime_checkable
class PackageManager(Protocol):
    """Protocol for the external package manager.

    Only three operations are relied upon: reading the configured cache,
    installing into a prefix, and reporting the lifecycle environment.
    """

    async def get_cache(self, *, quiet: bool = False, env: Mapping[str, str] | None = None) -> str:
        """Return the configured cache directory."""
        ...

    async def install(
        self,
        specs: Sequence[str],
        prefix: Path,
        *,
        cache: str | None = None,
        quiet: bool = False,
        env: Mapping[str, str] | None = None,
    ) -> InstallOutcome:
        """Install specifiers globally under ``prefix``.

        Raises:
            InstallError: If the install exits non-zero.
        """
        ...

    async def lifecycle_env(self, env: Mapping[str, str] | None = None) -> dict[str, str]:
        """Return the fully resolved lifecycle script environment."""
        ...
