"""Pick the installed binary matching the requested command."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from npx_runner.errors import CommandNotFoundError
from npx_runner.protocols import FileSystem
from npx_runner.types import InvocationRequest, ResolvedPath

logger = logging.getLogger(__name__)


def should_locate(request: InvocationRequest, existing: ResolvedPath) -> bool:
    """Whether the installed bin directory has to be searched for the command."""
    return bool(
        request.command
        and not existing.satisfied
        and not request.package_requested
        and len(request.packages) == 1
    )


def match_binary(command: str, bins: list[str]) -> str:
    """Choose the binary for ``command`` from a bin directory listing.

    Matches ``command`` or ``command.cmd`` case-insensitively. When nothing
    matches, the first entry is returned. This is a best-effort default for
    packages whose binary name differs from the command, not a guarantee
    that the right binary was picked.

    Args:
        command: Requested command name.
        bins: Directory entries, in listing order.

    Returns:
        The chosen entry name.
    """
    pattern = re.compile(rf"^{re.escape(command)}(?:\.cmd)?$", re.IGNORECASE)
    for name in bins:
        if pattern.match(name):
            return name
    logger.debug("No binary named %s, falling back to %s", command, bins[0])
    return bins[0]


async def find_installed_command(command: str, bin_dir: Path, fs: FileSystem) -> Path:
    """Resolve ``command`` among the binaries of a fresh install.

    Args:
        command: Requested command name.
        bin_dir: Binary directory of the private install root.
        fs: Filesystem abstraction.

    Returns:
        Absolute path of the chosen binary.

    Raises:
        CommandNotFoundError: If the bin directory is missing or empty.
        OSError: For any other listing failure.
    """
    try:
        bins = await fs.listdir(bin_dir)
    except FileNotFoundError as e:
        raise CommandNotFoundError(command) from e
    if not bins:
        raise CommandNotFoundError(command)
    return Path(os.path.abspath(bin_dir / match_binary(command, bins)))
