"""Package manager (npm) operations."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from npx_runner.environment import Environment, parse_env_lines
from npx_runner.errors import InstallError, PackageManagerError
from npx_runner.process import AsyncProcessRunner
from npx_runner.protocols import ProcessRunner

logger = logging.getLogger(__name__)

# Default package manager executable
DEFAULT_NPM = "npm"


class InstallOutcome(BaseModel):
    """Result of installing packages into a private prefix.

    ``added`` and ``updated`` are only used for the human readable summary.
    npm 6 reports them as lists of packages, npm 7+ as plain counts.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    prefix: Path | None = None
    bin: Path | None = None
    added: int | None = None
    updated: int | None = Field(default=None, alias="changed")

    @field_validator("added", "updated", mode="before")
    @classmethod
    def _count(cls, value: Any) -> Any:
        if isinstance(value, list):
            return len(value)
        return value

    @classmethod
    def from_output(cls, stdout: str) -> InstallOutcome:
        """Parse npm's ``--json`` install output.

        Empty or unparseable output means no summary is available.

        Args:
            stdout: Raw standard output of the install.

        Returns:
            Parsed InstallOutcome (possibly with no counts).
        """
        if not stdout.strip():
            return cls()
        try:
            data = json.loads(stdout)
        except json.JSONDecodeError:
            logger.debug("Install output is not JSON, skipping summary")
            return cls()
        if not isinstance(data, dict):
            return cls()
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            logger.debug("Install output did not match expected shape: %s", e)
            return cls()

    @property
    def installed_count(self) -> int | None:
        """Total packages added or updated, if npm reported it."""
        if self.added is None and self.updated is None:
            return None
        return (self.added or 0) + (self.updated or 0)


def build_install_args(
    specs: Sequence[str],
    prefix: Path,
    cache: str | None = None,
    userconfig: str | None = None,
) -> list[str]:
    """Build the argument list for a global install under ``prefix``.

    Args:
        specs: Package specifiers.
        prefix: Private installation root.
        cache: Cache directory override.
        userconfig: User config override.

    Returns:
        npm arguments (without the npm executable itself).
    """
    args = ["install", *specs, "--global", "--prefix", str(prefix)]
    if cache:
        args += ["--cache", cache]
    if userconfig:
        args += ["--userconfig", userconfig]
    args += ["--loglevel", "error", "--json"]
    return args


class NpmClient:
    """Talks to the npm executable."""

    def __init__(
        self,
        npm: str = DEFAULT_NPM,
        userconfig: str | None = None,
        runner: ProcessRunner | None = None,
    ) -> None:
        """Initialize the npm client.

        Args:
            npm: npm executable name or path.
            userconfig: Optional npm user config file.
            runner: Process runner. Defaults to AsyncProcessRunner.

        Note:
            Prefer using factory method `create()` for construction.
        """
        self.npm = npm
        self.userconfig = userconfig
        self.runner = runner or AsyncProcessRunner()

    @classmethod
    def create(cls, npm: str, userconfig: str | None, runner: ProcessRunner) -> NpmClient:
        """Create an npm client with explicit settings.

        Args:
            npm: npm executable name or path.
            userconfig: Optional npm user config file.
            runner: Process runner to use.

        Returns:
            Configured NpmClient instance.
        """
        return cls(npm=npm, userconfig=userconfig, runner=runner)

    async def _resolve_npm(self, env: Mapping[str, str] | None = None) -> str:
        path = None
        if env is not None:
            path = env.path if isinstance(env, Environment) else env.get("PATH")
        npm_path = await self.runner.which(self.npm, path)
        if not npm_path:
            raise PackageManagerError(f"npm not found: {self.npm}")
        return npm_path

    async def get_cache(self, *, quiet: bool = False, env: Mapping[str, str] | None = None) -> str:
        """Return npm's configured cache directory.

        Args:
            quiet: Discard npm's stderr.
            env: Environment for the npm process.

        Raises:
            PackageManagerError: If npm is missing or the query fails.
        """
        npm_path = await self._resolve_npm(env)
        args = [npm_path, "config", "get", "cache", "--parseable"]
        if self.userconfig:
            args += ["--userconfig", self.userconfig]
        result = await self.runner.run(args, env=env, capture=True, quiet=quiet)
        if result.returncode != 0:
            raise PackageManagerError(
                f"npm config get cache failed with code {result.returncode}",
                result.returncode,
            )
        return result.stdout.strip()

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

        Args:
            specs: Package specifiers.
            prefix: Private installation root.
            cache: Cache directory override.
            quiet: Discard npm's stderr.
            env: Environment for the npm process.

        Returns:
            Parsed install summary.

        Raises:
            InstallError: If npm exits non-zero.
        """
        npm_path = await self._resolve_npm(env)
        args = build_install_args(specs, prefix, cache, self.userconfig)
        result = await self.runner.run([npm_path, *args], env=env, capture=True, quiet=quiet)
        if result.returncode != 0:
            raise InstallError(specs, result.returncode if result.returncode > 0 else 1)
        return InstallOutcome.from_output(result.stdout)

    async def lifecycle_env(self, env: Mapping[str, str] | None = None) -> dict[str, str]:
        """Return the environment npm gives lifecycle scripts.

        Raises:
            PackageManagerError: If ``npm run env`` fails.
        """
        result = await self.runner.run(
            [self.npm, "run", "env", "--parseable"], env=env, capture=True
        )
        if result.returncode != 0:
            raise PackageManagerError(
                f"npm run env failed with code {result.returncode}", result.returncode
            )
        return parse_env_lines(result.stdout)
