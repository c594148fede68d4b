"""On-demand installation into a private, invocation-scoped prefix."""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

from npx_runner.environment import IS_WINDOWS, Environment
from npx_runner.filesystem import RealFileSystem
from npx_runner.npm import InstallOutcome
from npx_runner.protocols import FileSystem, PackageManager
from npx_runner.types import InvocationRequest

logger = logging.getLogger(__name__)

# Directory under the npm cache holding per-process install roots
NPX_DIR = "_npx"


@dataclass(frozen=True)
class Installation:
    """Packages installed for the current invocation.

    Attributes:
        outcome: Install summary with the private prefix and its bin directory.
        bin: Directory holding the installed binaries.
        env: Environment with the bin directory first on the search path.
    """

    outcome: InstallOutcome
    bin: Path
    env: Environment


class PackageInstaller:
    """Installs packages into a private prefix that lives as long as one invocation.

    Follows Separate Use from Creation: constructor requires all dependencies.
    Use factory method `create()` for production instantiation with defaults.
    """

    def __init__(
        self,
        package_manager: PackageManager,
        filesystem: FileSystem,
        pid: int | None = None,
        windows: bool = IS_WINDOWS,
    ) -> None:
        """Initialize installer with required dependencies.

        Args:
            package_manager: Package manager client (required).
            filesystem: Filesystem abstraction (required).
            pid: Process identity scoping the private root. Defaults to os.getpid().
            windows: Whether binaries live directly in the prefix.
        """
        self.pm = package_manager
        self.fs = filesystem
        self.pid = os.getpid() if pid is None else pid
        self.windows = windows
        self._released: set[Path] = set()

    @classmethod
    def create(
        cls,
        package_manager: PackageManager,
        filesystem: FileSystem | None = None,
    ) -> PackageInstaller:
        """Factory method for production instantiation.

        Args:
            package_manager: Package manager client.
            filesystem: Optional filesystem abstraction (created if not provided).

        Returns:
            Configured PackageInstaller instance.
        """
        return cls(package_manager=package_manager, filesystem=filesystem or RealFileSystem())

    async def cache_dir(self, request: InvocationRequest, env: Environment | None = None) -> str:
        """Cache directory from the request, else npm's configured one."""
        if request.cache:
            return request.cache
        return await self.pm.get_cache(quiet=request.quiet, env=env)

    def private_root(self, cache: str | Path) -> tuple[Path, Path]:
        """Compute the private prefix and its binary directory.

        Args:
            cache: Package manager cache directory.

        Returns:
            Tuple of (prefix, bin directory).
        """
        prefix = Path(cache) / NPX_DIR / str(self.pid)
        bins = prefix if self.windows else prefix / "bin"
        return prefix, bins

    async def release(self, prefix: Path) -> None:
        """Remove a private prefix. Runs at most once per prefix and never raises."""
        if prefix in self._released:
            return
        self._released.add(prefix)
        try:
            await self.fs.rmtree(prefix)
            logger.debug("Removed install root %s", prefix)
        except OSError as e:
            logger.debug("Failed to remove install root %s: %s", prefix, e)

    @asynccontextmanager
    async def install(
        self,
        specs: Sequence[str],
        request: InvocationRequest,
        env: Environment,
    ) -> AsyncIterator[Installation]:
        """Install ``specs`` and hold the private prefix for the block's duration.

        The prefix is removed when the block exits, whether it succeeded,
        failed, or the install itself failed.

        Args:
            specs: Package specifiers.
            request: The invocation request.
            env: Current environment.

        Yields:
            Installation with the summary and the updated environment.

        Raises:
            InstallError: If the package manager install fails.
        """
        cache = await self.cache_dir(request, env)
        prefix, bins = self.private_root(cache)
        logger.debug("Installing %s into %s", list(specs), prefix)
        try:
            await self.fs.rmtree(bins)
            outcome = await self.pm.install(
                specs, prefix, cache=request.cache, quiet=request.quiet, env=env
            )
            outcome = outcome.model_copy(update={"prefix": prefix, "bin": bins})
            # Freshly installed binaries outrank project-local and ambient ones
            yield Installation(outcome=outcome, bin=bins, env=env.with_path_prefix(bins))
        finally:
            await self.release(prefix)
