"""Application context for dependency injection.

This module separates object creation from object use, enabling testability
and reducing coupling between the command line and the resolution pipeline.

Dependencies are typed using Protocols (abstract interfaces) rather than
concrete implementations, so test doubles can be injected without inheritance.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from npx_runner.console import Reporter
from npx_runner.protocols import FileSystem, PackageManager, ProcessRunner


def _default_filesystem() -> FileSystem:
    """Create the default filesystem implementation."""
    from npx_runner.filesystem import RealFileSystem
    return RealFileSystem()


@dataclass
class AppContext:
    """Container for the services one invocation uses.

    Attributes:
        package_manager: npm client.
        runner: Child process runner.
        filesystem: Filesystem abstraction.
        reporter: Diagnostic output.
        cwd: Directory the invocation runs in.
    """

    package_manager: PackageManager
    runner: ProcessRunner
    filesystem: FileSystem = field(default_factory=_default_filesystem)
    reporter: Reporter = field(default_factory=Reporter)
    cwd: Path = field(default_factory=Path.cwd)


def create_context(
    npm: str = "npm",
    userconfig: str | None = None,
    quiet: bool = False,
) -> AppContext:
    """Factory for application dependencies.

    Creates all services with proper wiring. Use this in production code.
    For tests, construct AppContext directly with test doubles.

    Args:
        npm: npm executable name or path.
        userconfig: Optional npm user config file.
        quiet: Suppress diagnostics.

    Returns:
        Configured AppContext with all dependencies.
    """
    from npx_runner.filesystem import RealFileSystem
    from npx_runner.npm import NpmClient
    from npx_runner.process import AsyncProcessRunner

    runner = AsyncProcessRunner()
    return AppContext(
        package_manager=NpmClient.create(npm, userconfig, runner),
        runner=runner,
        filesystem=RealFileSystem(),
        reporter=Reporter(quiet=quiet),
    )
