"""Resolution pipeline: find or install a command, then run it."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path

from npx_runner.classify import ScriptClassifier
from npx_runner.context import AppContext
from npx_runner.environment import Environment, resolve_lifecycle_env
from npx_runner.errors import NpxError, OperationalError
from npx_runner.execute import execute
from npx_runner.install import Installation, PackageInstaller
from npx_runner.locate import find_installed_command, should_locate
from npx_runner.paths import get_existing_path, local_bin_path
from npx_runner.types import ExitOutcome, InvocationRequest, Provenance, ResolvedPath

logger = logging.getLogger(__name__)


def needs_install(request: InvocationRequest, existing: ResolvedPath) -> bool:
    """Whether packages must be installed before running."""
    return (not existing.satisfied and not request.call) or request.package_requested


async def _find_existing(
    request: InvocationRequest, env: Environment, ctx: AppContext, local_bin: Path
) -> ResolvedPath:
    if not request.command:
        return ResolvedPath.none()
    return await get_existing_path(request.command, request, env, ctx.runner, local_bin)


def _report_summary(ctx: AppContext, installation: Installation, started: float) -> None:
    count = installation.outcome.installed_count
    if count is None:
        return
    elapsed = time.monotonic() - started
    ctx.reporter.show_info(f"npx-runner: installed {count} in {elapsed:.3f}s")


async def _classify_and_execute(
    existing: ResolvedPath,
    request: InvocationRequest,
    env: Environment,
    ctx: AppContext,
    *,
    install_root_held: bool,
) -> None:
    classifier = ScriptClassifier(ctx.filesystem)
    target = await classifier.classify(existing.path, request)
    await execute(target, request, env, ctx.runner, install_root_held=install_root_held)


async def resolve_and_run(request: InvocationRequest, ctx: AppContext, env: Environment) -> None:
    """Resolve the requested command, installing it if needed, and run it.

    Raises:
        NpxError: For any failure, with the exit code to finish with.
        OSError: For unexpected filesystem or spawn failures.
    """
    started = time.monotonic()

    local_bin = await asyncio.to_thread(local_bin_path, ctx.cwd)
    env = env.with_path_prefix(local_bin)

    existing, lifecycle_env = await asyncio.gather(
        _find_existing(request, env, ctx, local_bin),
        resolve_lifecycle_env(request, ctx.package_manager, env),
    )
    if lifecycle_env is not None:
        # Already carries the project bin directories
        env = lifecycle_env

    if not needs_install(request, existing):
        logger.debug("%s already available at %s", request.command, existing.path)
        await _classify_and_execute(existing, request, env, ctx, install_root_held=False)
        return

    installer = PackageInstaller.create(ctx.package_manager, ctx.filesystem)
    async with installer.install(request.packages, request, env) as installation:
        _report_summary(ctx, installation, started)
        command = request.command
        if command and should_locate(request, existing):
            located = await find_installed_command(command, installation.bin, ctx.filesystem)
            existing = ResolvedPath(str(located), Provenance.INSTALLED)
        await _classify_and_execute(
            existing, request, installation.env, ctx, install_root_held=True
        )


async def run(
    request: InvocationRequest,
    ctx: AppContext,
    env: Environment | None = None,
) -> ExitOutcome:
    """Run an invocation and map its result to an exit outcome.

    Args:
        request: The invocation request.
        ctx: Application context.
        env: Starting environment. Defaults to the process environment.

    Returns:
        ExitOutcome for this process.
    """
    try:
        await resolve_and_run(request, ctx, env if env is not None else Environment.from_process())
    except OperationalError as e:
        # Behave as if the command had been run directly: its code, no extra message
        return ExitOutcome(exit_code=e.exit_code, operational=True)
    except NpxError as e:
        logger.debug("Invocation failed: %r", e)
        return ExitOutcome(exit_code=e.exit_code or 1, message=str(e))
    except Exception as e:
        # Unexpected failures still end as one diagnostic line
        logger.debug("Invocation failed", exc_info=True)
        return ExitOutcome(exit_code=1, message=str(e) or type(e).__name__)
    return ExitOutcome.success()
