"""Shared test fixtures."""

from __future__ import annotations

import io
import stat
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from rich.console import Console

from npx_runner.console import Reporter
from npx_runner.context import AppContext
from npx_runner.filesystem import RealFileSystem
from npx_runner.npm import InstallOutcome
from npx_runner.process import ProcessResult
from npx_runner.types import InvocationRequest


class FakeRunner:
    """Process runner double that records commands instead of running them."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.results: list[ProcessResult] = []
        self.which_map: dict[str, str] = {}
        self.which_calls: list[tuple[str, str | None]] = []

    async def run(
        self,
        cmd: Sequence[str] | str,
        *,
        env: Mapping[str, str] | None = None,
        capture: bool = False,
        quiet: bool = False,
    ) -> ProcessResult:
        self.calls.append(
            {
                "cmd": cmd if isinstance(cmd, str) else list(cmd),
                "env": dict(env) if env is not None else None,
                "capture": capture,
                "quiet": quiet,
            }
        )
        if self.results:
            return self.results.pop(0)
        return ProcessResult(returncode=0)

    async def which(self, command: str, path: str | None = None) -> str | None:
        self.which_calls.append((command, path))
        return self.which_map.get(command)


def make_executable(path: Path, content: str = "#!/bin/sh\nexit 0\n") -> Path:
    """Write an executable file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def fake_runner() -> FakeRunner:
    """Create a recording process runner."""
    return FakeRunner()


@pytest.fixture
def mock_package_manager() -> MagicMock:
    """Create a mock package manager with async operations."""
    pm = MagicMock()
    pm.get_cache = AsyncMock(return_value="/fake/cache")
    pm.install = AsyncMock(return_value=InstallOutcome())
    pm.lifecycle_env = AsyncMock(return_value={})
    return pm


@pytest.fixture
def output() -> io.StringIO:
    """Buffer collecting reporter output."""
    return io.StringIO()


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Create a project directory with a package.json."""
    project = tmp_path / "project"
    project.mkdir()
    (project / "package.json").write_text('{"name": "demo"}')
    return project


@pytest.fixture
def app_context(
    fake_runner: FakeRunner,
    mock_package_manager: MagicMock,
    output: io.StringIO,
    project_dir: Path,
) -> AppContext:
    """Create an AppContext wired to test doubles."""
    return AppContext(
        package_manager=mock_package_manager,
        runner=fake_runner,
        filesystem=RealFileSystem(),
        reporter=Reporter(console=Console(file=output, width=200)),
        cwd=project_dir,
    )


@pytest.fixture
def make_request():
    """Factory for invocation requests with sensible defaults."""

    def _make(**kwargs: Any) -> InvocationRequest:
        kwargs.setdefault("command", "cowsay")
        kwargs.setdefault("packages", ("cowsay",))
        return InvocationRequest(**kwargs)

    return _make


@pytest.fixture
def ambient_path(tmp_path: Path) -> str:
    """Search path made of a single ambient directory."""
    ambient = tmp_path / "ambient"
    ambient.mkdir()
    return str(ambient)


