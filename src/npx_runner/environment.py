"""Process environment threaded through the resolution pipeline.

The environment is an immutable value. Only two operations produce a new
one: replacing it wholesale with the package manager's lifecycle
environment, and prepending a directory to the search path.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from npx_runner.protocols import PackageManager
    from npx_runner.types import InvocationRequest

logger = logging.getLogger(__name__)

IS_WINDOWS = sys.platform == "win32"


def path_separator(windows: bool = IS_WINDOWS) -> str:
    """Search path separator for the platform."""
    return ";" if windows else ":"


class Environment(Mapping[str, str]):
    """Immutable mapping of environment variables."""

    def __init__(self, variables: Mapping[str, str] | None = None, *, windows: bool | None = None) -> None:
        self._vars = dict(variables or {})
        self._windows = IS_WINDOWS if windows is None else windows

    @classmethod
    def from_process(cls) -> Environment:
        """Snapshot the current process environment."""
        return cls(os.environ)

    def __getitem__(self, key: str) -> str:
        if key in self._vars or not self._windows:
            return self._vars[key]
        # Windows variable names are case-insensitive
        for name, value in self._vars.items():
            if name.upper() == key.upper():
                return value
        raise KeyError(key)

    def __iter__(self) -> Iterator[str]:
        return iter(self._vars)

    def __len__(self) -> int:
        return len(self._vars)

    def __repr__(self) -> str:
        return f"Environment(PATH={self.path!r}, {len(self)} vars)"

    @property
    def path_key(self) -> str:
        """Name of the search path variable (case varies on Windows)."""
        if self._windows:
            for key in self._vars:
                if key.upper() == "PATH":
                    return key
        return "PATH"

    @property
    def path(self) -> str:
        """Current search path string."""
        return self._vars.get(self.path_key, "")

    def with_path_prefix(self, directory: str | os.PathLike[str]) -> Environment:
        """Return a copy with ``directory`` first on the search path."""
        sep = path_separator(self._windows)
        current = self.path
        new_path = f"{os.fspath(directory)}{sep}{current}" if current else os.fspath(directory)
        variables = dict(self._vars)
        variables[self.path_key] = new_path
        return Environment(variables, windows=self._windows)

    def replaced_by(self, variables: Mapping[str, str]) -> Environment:
        """Return a new environment holding exactly ``variables``."""
        return Environment(variables, windows=self._windows)


def parse_env_lines(text: str) -> dict[str, str]:
    """Parse ``KEY=value`` lines into a mapping.

    Each line splits on its first ``=``. Values are kept verbatim: no
    variable expansion, quote handling or comment stripping.

    Args:
        text: Output of the package manager's parseable env report.

    Returns:
        Mapping of variable names to values. Lines without ``=`` are dropped.
    """
    variables: dict[str, str] = {}
    for line in text.splitlines():
        key, sep, value = line.partition("=")
        key = key.strip()
        if sep and key:
            variables[key] = value
    return variables


async def resolve_lifecycle_env(
    request: InvocationRequest,
    package_manager: PackageManager,
    env: Environment,
) -> Environment | None:
    """Capture the lifecycle script environment when the request asks for it.

    The returned environment already carries the search path additions the
    package manager makes for scripts, so it replaces ``env`` outright.

    Args:
        request: The invocation request.
        package_manager: Package manager client.
        env: Environment to run the package manager with.

    Returns:
        The lifecycle environment, or None when it was not requested.
    """
    if not request.call:
        return None
    variables = await package_manager.lifecycle_env(env)
    logger.debug("Captured %d lifecycle environment variables", len(variables))
    return env.replaced_by(variables)
