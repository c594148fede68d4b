"""Project-local binary lookup and search-path resolution."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from npx_runner.errors import CommandNotFoundError
from npx_runner.types import Provenance, ResolvedPath

if TYPE_CHECKING:
    from npx_runner.environment import Environment
    from npx_runner.protocols import ProcessRunner
    from npx_runner.types import InvocationRequest

logger = logging.getLogger(__name__)

# Markers of a directory that owns node_modules
PROJECT_MARKERS = ("package.json", "node_modules")


def find_project_prefix(start_path: Path | None = None) -> Path:
    """Find the nearest enclosing project directory.

    A path inside ``node_modules`` belongs to the project that owns it.
    Otherwise the nearest ancestor (inclusive) holding a project marker wins.

    Args:
        start_path: Starting directory. Defaults to cwd.

    Returns:
        Project prefix, or the resolved start path if no project was found.
    """
    original = (start_path or Path.cwd()).resolve()

    path = original
    while path.name == "node_modules":
        path = path.parent
    if path != original:
        return path

    while path != path.parent:
        if any((path / marker).exists() for marker in PROJECT_MARKERS):
            return path
        path = path.parent
    return original


def local_bin_path(cwd: Path | None = None) -> Path:
    """Directory that would hold the project's local binaries.

    Nothing is verified to exist there.
    """
    return find_project_prefix(cwd) / "node_modules" / ".bin"


def _is_within(path: str, directory: Path | None) -> bool:
    if directory is None:
        return False
    return Path(os.path.abspath(path)).parent == directory


async def get_existing_path(
    command: str,
    request: InvocationRequest,
    env: Environment,
    runner: ProcessRunner,
    local_bin: Path | None = None,
) -> ResolvedPath:
    """Find an already-available command.

    Args:
        command: Command name (or path when the request marks it local).
        request: The invocation request.
        env: Environment whose search path is consulted.
        runner: Process runner providing the ``which`` lookup.
        local_bin: Project-local binary directory, used to tag provenance.

    Returns:
        ResolvedPath for the command, or ResolvedPath.none() if absent.

    Raises:
        CommandNotFoundError: If absent and fallback installation is disabled.
    """
    if request.is_local:
        return ResolvedPath(command, Provenance.PROJECT_LOCAL)
    if request.cmd_had_version or request.package_requested or request.ignore_existing:
        return ResolvedPath.none()

    found = await runner.which(command, env.path)
    if found is None:
        if not request.install:
            raise CommandNotFoundError(command)
        logger.debug("%s not found on search path", command)
        return ResolvedPath.none()

    provenance = Provenance.PROJECT_LOCAL if _is_within(found, local_bin) else Provenance.SEARCH_PATH
    logger.debug("%s resolved to %s (%s)", command, found, provenance.value)
    return ResolvedPath(found, provenance)
