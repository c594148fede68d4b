"""Filesystem abstraction for testability.

This module provides an asynchronous filesystem abstraction so the
pipeline never blocks the event loop on disk access. The RealFileSystem
implementation wraps standard library operations in worker threads.
"""

from __future__ import annotations

import asyncio
import os
import shutil
import stat
from pathlib import Path


def _read_head(path: Path, size: int) -> bytes:
    with open(path, "rb") as handle:
        return handle.read(size)


def _rmtree(path: Path) -> None:
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        pass


class RealFileSystem:
    """Production filesystem implementation.

    Satisfies the FileSystem protocol structurally.
    """

    async def is_dir(self, path: Path) -> bool:
        """Check if a path is a directory, raising if it is missing."""
        st = await asyncio.to_thread(path.stat)
        return stat.S_ISDIR(st.st_mode)

    async def read_text(self, path: Path) -> str:
        """Read text content from a file."""
        return await asyncio.to_thread(path.read_text, encoding="utf-8")

    async def read_head(self, path: Path, size: int) -> bytes:
        """Read the first ``size`` bytes of a file."""
        return await asyncio.to_thread(_read_head, path, size)

    async def listdir(self, path: Path) -> list[str]:
        """List directory entry names, sorted."""
        return sorted(await asyncio.to_thread(os.listdir, path))

    async def rmtree(self, path: Path) -> None:
        """Remove a directory tree."""
        await asyncio.to_thread(_rmtree, path)
