"""Child process execution on the asyncio event loop."""

from __future__ import annotations

import asyncio
import logging
import shutil
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    """Outcome of a finished child process.

    Attributes:
        returncode: Exit status. Negative values mean the child was killed
            by that signal number.
        stdout: Captured standard output (empty unless captured).
    """

    returncode: int
    stdout: str = ""

    @property
    def signal(self) -> int | None:
        """Terminating signal number, if any."""
        return -self.returncode if self.returncode < 0 else None


class AsyncProcessRunner:
    """Runs child processes, inheriting the caller's standard streams.

    Satisfies the ProcessRunner protocol structurally.
    """

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
        kwargs = {
            "stdout": asyncio.subprocess.PIPE if capture else None,
            "stderr": asyncio.subprocess.DEVNULL if quiet else None,
            "env": dict(env) if env is not None else None,
        }

        logger.debug("Running %s", cmd)
        if isinstance(cmd, str):
            proc = await asyncio.create_subprocess_shell(cmd, **kwargs)
        else:
            proc = await asyncio.create_subprocess_exec(*cmd, **kwargs)

        out, _ = await proc.communicate()
        logger.debug("%s exited with %s", cmd, proc.returncode)
        return ProcessResult(
            returncode=proc.returncode,
            stdout=out.decode("utf-8", errors="replace") if out else "",
        )

    async def which(self, command: str, path: str | None = None) -> str | None:
        """Look a command up on a search path."""
        return await asyncio.to_thread(shutil.which, command, path=path)
