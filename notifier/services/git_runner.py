"""
Git command runner.

Spawns the version-control binary with structured options and arguments,
buffers its output and classifies the result by exit status. One call
spawns exactly one process; retry policy belongs to the caller.
"""

import asyncio
from typing import Dict, List, Mapping, Optional

from notifier.models.command import CommandInvocation, CommandResult, OptionValue
from notifier.utils.logging import get_logger
from notifier.utils.metrics import PollMetrics, track_git_command


logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 120.0


class ProcessFailure(Exception):
    """External binary exited non-zero or could not be run."""

    def __init__(
        self,
        message: str,
        exit_code: Optional[int] = None,
        stderr: str = "",
        stdout: str = "",
    ):
        super().__init__(message)
        self.exit_code = exit_code
        self.stderr = stderr
        self.stdout = stdout


class ProcessSpawnFailure(ProcessFailure):
    """The binary could not be started (not found, not executable, ...)."""
    pass


class ProcessTimeoutFailure(ProcessFailure):
    """The process did not finish within the allowed time and was killed."""
    pass


def options_to_args(options: Optional[Mapping[str, OptionValue]]) -> List[str]:
    """
    Convert an option mapping into argv items.

    ``True`` emits a flag, ``False``/``None`` omits the option, any other
    value is emitted as ``-k value`` for single-character keys and
    ``--key=value`` otherwise. Mapping order is preserved.

    Args:
        options: Option name to value mapping

    Returns:
        List of argv items
    """
    args: List[str] = []

    for key, value in (options or {}).items():
        if value is None or value is False:
            continue
        if len(key) == 1:
            args.append(f"-{key}")
            if value is not True:
                args.append(str(value))
        elif value is True:
            args.append(f"--{key}")
        else:
            args.append(f"--{key}={value}")

    return args


def build_argv(invocation: CommandInvocation) -> List[str]:
    """Assemble ``binary <global opts> <command> <opts> <args>``."""
    argv = [invocation.binary]
    argv.extend(options_to_args(invocation.global_options))
    if invocation.command:
        argv.append(invocation.command)
    argv.extend(options_to_args(invocation.options))
    argv.extend(invocation.args)
    return argv


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
        await proc.wait()


async def run_command(
    invocation: CommandInvocation,
    timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
) -> CommandResult:
    """
    Run one external process to completion.

    Args:
        invocation: What to run and where
        timeout: Seconds before the process is killed (None waits forever)

    Returns:
        CommandResult with decoded stdout and stderr

    Raises:
        ProcessSpawnFailure: If the process could not be started
        ProcessTimeoutFailure: If the process exceeded ``timeout``
        ProcessFailure: If the process exited non-zero
    """
    argv = build_argv(invocation)
    name = invocation.command or invocation.binary

    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            cwd=invocation.cwd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise ProcessSpawnFailure(f"Could not run {invocation.binary}: {e}") from e

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(proc.communicate(), timeout)
    except asyncio.TimeoutError as e:
        await _kill(proc)
        raise ProcessTimeoutFailure(
            f"{invocation.binary} {name} timed out after {timeout}s"
        ) from e
    except asyncio.CancelledError:
        await _kill(proc)
        raise

    stdout = stdout_bytes.decode("utf-8", errors="replace")
    stderr = stderr_bytes.decode("utf-8", errors="replace")

    if proc.returncode != 0:
        raise ProcessFailure(
            f"{invocation.binary} {name} exited with status {proc.returncode}: {stderr.strip()}",
            exit_code=proc.returncode,
            stderr=stderr,
            stdout=stdout,
        )

    return CommandResult(exit_status=proc.returncode, stdout=stdout, stderr=stderr)


class GitRunner:
    """
    Runs git subcommands with a fixed set of global options.

    Example:
        git = GitRunner(**{"git-dir": "/var/repo.git", "no-pager": True})
        head = await git.run("rev-parse", {}, ["HEAD"])
    """

    def __init__(
        self,
        binary: str = "git",
        cwd: Optional[str] = None,
        timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
        metrics: Optional[PollMetrics] = None,
        **global_options: OptionValue,
    ):
        """
        Initialize the runner.

        Args:
            binary: Git executable
            cwd: Working directory for every invocation (None = current)
            timeout: Per-invocation timeout in seconds
            metrics: Optional collector for command latencies
            **global_options: Options placed before the subcommand
        """
        self.binary = binary
        self.cwd = cwd
        self.timeout = timeout
        self.metrics = metrics
        self.global_options: Dict[str, OptionValue] = dict(global_options)

    def invocation(
        self,
        command: str,
        options: Optional[Mapping[str, OptionValue]] = None,
        args: Optional[List[str]] = None,
    ) -> CommandInvocation:
        return CommandInvocation(
            binary=self.binary,
            cwd=self.cwd,
            command=command,
            args=list(args or []),
            options=dict(options or {}),
            global_options=self.global_options,
        )

    async def run(
        self,
        command: str,
        options: Optional[Mapping[str, OptionValue]] = None,
        args: Optional[List[str]] = None,
    ) -> str:
        """
        Run ``git <command>`` and return its stdout.

        Raises:
            ProcessFailure: If git could not be run or exited non-zero
        """
        invocation = self.invocation(command, options, args)
        async with track_git_command(self.metrics, command, build_argv(invocation), logger):
            result = await run_command(invocation, timeout=self.timeout)
        return result.stdout
