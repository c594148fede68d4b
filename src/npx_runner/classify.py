"""Decide whether a resolved path is a Node script or a plain executable."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from npx_runner.environment import IS_WINDOWS
from npx_runner.errors import CommandNotFoundError
from npx_runner.filesystem import RealFileSystem
from npx_runner.protocols import FileSystem
from npx_runner.types import ExecutionTarget, InvocationRequest

logger = logging.getLogger(__name__)

# Interpreter directive of scripts the Node interpreter can take over directly
NODE_SHEBANG = "#!/usr/bin/env node\n"
NODE_SHEBANG_BYTES = NODE_SHEBANG.encode("utf-8")

SCRIPT_EXTENSIONS = (".js", ".cjs", ".mjs")

MANIFEST_NAME = "package.json"

# Nesting limit for package directories pointing at other package directories
MAX_PACKAGE_DEPTH = 8


class PackageManifest(BaseModel):
    """The fields of package.json that decide a package's entry point."""

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    bin: str | dict[str, str] | None = None
    main: str | None = None

    def entry_point(self) -> str:
        """Relative path of the file to run.

        Prefers ``bin`` (the entry named after the package when it is a
        mapping, else its first entry), then ``main``, then ``index.js``.
        """
        if isinstance(self.bin, str) and self.bin:
            return self.bin
        if isinstance(self.bin, dict) and self.bin:
            unscoped = self.name.rsplit("/", 1)[-1]
            return self.bin.get(unscoped) or next(iter(self.bin.values()))
        return self.main or "index.js"


class ScriptClassifier:
    """Classifies resolved paths into execution targets."""

    def __init__(self, filesystem: FileSystem | None = None, windows: bool = IS_WINDOWS) -> None:
        self.fs = filesystem or RealFileSystem()
        self.windows = windows

    async def classify(
        self,
        existing: str | os.PathLike[str] | None,
        request: InvocationRequest,
        depth: int = 0,
    ) -> ExecutionTarget | None:
        """Classify a resolved path.

        Args:
            existing: Resolved path, or None when nothing was resolved.
            request: The invocation request.
            depth: Current package directory nesting.

        Returns:
            ExecutionTarget, or None when there is nothing to run.

        Raises:
            CommandNotFoundError: If a local package directory has no usable entry.
            OSError: If the path cannot be inspected or read.
        """
        if not existing:
            return None
        path = Path(existing)
        is_dir = await self.fs.is_dir(path)

        if request.is_local and path.suffix in SCRIPT_EXTENSIONS:
            return ExecutionTarget(path, in_process=True)
        if request.is_local and is_dir:
            return await self._classify_package_dir(path, request, depth)
        if self.windows:
            return ExecutionTarget(path, in_process=False)

        head = await self.fs.read_head(path, len(NODE_SHEBANG_BYTES))
        return ExecutionTarget(path, in_process=head == NODE_SHEBANG_BYTES)

    async def _classify_package_dir(
        self, directory: Path, request: InvocationRequest, depth: int
    ) -> ExecutionTarget:
        if depth >= MAX_PACKAGE_DEPTH:
            raise CommandNotFoundError(str(directory))
        try:
            text = await self.fs.read_text(directory / MANIFEST_NAME)
            manifest = PackageManifest.model_validate_json(text)
        except (OSError, ValueError) as e:
            logger.debug("Unusable manifest in %s: %s", directory, e)
            raise CommandNotFoundError(str(directory)) from e

        entry = Path(os.path.normpath(directory / manifest.entry_point()))
        if entry == directory:
            raise CommandNotFoundError(str(directory))

        try:
            target = await self.classify(entry, request, depth + 1)
        except (CommandNotFoundError, FileNotFoundError) as e:
            raise CommandNotFoundError(str(directory)) from e
        if target is None or not target.in_process:
            raise CommandNotFoundError(str(directory))

        logger.debug("Package directory %s runs %s", directory, target.path)
        return ExecutionTarget(target.path, in_process=True, is_directory_package=True)
