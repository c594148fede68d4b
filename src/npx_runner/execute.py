"""Run a resolved target, by process takeover or as a child process."""

from __future__ import annotations

import logging
import os
import shlex
import sys
from typing import TYPE_CHECKING, NoReturn

from npx_runner.errors import NpxError, OperationalError
from npx_runner.types import ExecutionStrategy, ExecutionTarget, InvocationRequest

if TYPE_CHECKING:
    from npx_runner.environment import Environment
    from npx_runner.protocols import ProcessRunner

logger = logging.getLogger(__name__)

NODE = "node"


def _same_script(path: os.PathLike[str] | str, current: str | None) -> bool:
    if not current:
        return False
    return os.path.abspath(path) == os.path.abspath(current)


def choose_strategy(
    target: ExecutionTarget | None,
    request: InvocationRequest,
    *,
    current_script: str | None = None,
    install_root_held: bool = False,
) -> ExecutionStrategy:
    """Decide how to run a target.

    Takeover needs a Node script, no shell execution, a script other than
    the one currently running, and no private install root still held.
    Replacing the process image would skip that root's removal.

    Args:
        target: Classified target (None when nothing was resolved).
        request: The invocation request.
        current_script: Entry script of this process. Defaults to sys.argv[0].
        install_root_held: A private install root must be released after the run.

    Returns:
        The execution strategy.
    """
    if current_script is None:
        current_script = sys.argv[0] if sys.argv else None
    if (
        target is not None
        and target.in_process
        and not request.shell
        and not request.call
        and not install_root_held
        and not _same_script(target.path, current_script)
    ):
        return ExecutionStrategy.IN_PROCESS
    return ExecutionStrategy.SPAWNED


def take_over(target: ExecutionTarget, request: InvocationRequest, env: Environment, node: str) -> NoReturn:
    """Replace this process with the Node interpreter running ``target``.

    The new process sees the script as its entry point, the forwarded
    arguments, the same working directory and ``env``.
    """
    argv = [node, str(target.path), *request.cmd_opts]
    logger.debug("Taking over process with %s", argv)
    sys.stdout.flush()
    sys.stderr.flush()
    os.execve(node, argv, dict(env))


def build_command(target: ExecutionTarget | None, request: InvocationRequest) -> list[str] | str:
    """Command to spawn: a shell string or an argument vector."""
    if request.call:
        return request.call
    if target is not None:
        program = str(target.path)
    elif request.command:
        program = request.command
    else:
        raise NpxError("You must supply a command.")
    argv = [program, *request.cmd_opts]
    return shlex.join(argv) if request.shell else argv


async def spawn_command(
    target: ExecutionTarget | None,
    request: InvocationRequest,
    env: Environment,
    runner: ProcessRunner,
) -> None:
    """Run the target as a child process with inherited standard streams.

    Without a target the literal requested command is run, so it is looked
    up on the environment's search path.

    Raises:
        OperationalError: If the child exits non-zero or is killed by a signal.
        OSError: If the child cannot be started.
    """
    cmd = build_command(target, request)
    result = await runner.run(cmd, env=env, quiet=request.quiet)
    if result.returncode == 0:
        return
    display = cmd if isinstance(cmd, str) else " ".join(cmd)
    signal = result.signal
    exit_code = 128 + signal if signal else result.returncode
    raise OperationalError(display, exit_code, signal=signal)


async def execute(
    target: ExecutionTarget | None,
    request: InvocationRequest,
    env: Environment,
    runner: ProcessRunner,
    *,
    install_root_held: bool = False,
    current_script: str | None = None,
) -> None:
    """Run a classified target with the strategy it qualifies for."""
    strategy = choose_strategy(
        target, request, current_script=current_script, install_root_held=install_root_held
    )
    logger.debug("Running %s with strategy %s", target.path if target else request.command, strategy.value)
    if strategy is ExecutionStrategy.IN_PROCESS and target is not None:
        node = await runner.which(NODE, env.path)
        if node:
            take_over(target, request, env, node)
        logger.debug("%s not on search path, spawning instead", NODE)
    await spawn_command(target, request, env, runner)
