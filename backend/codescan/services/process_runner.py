"""Async execution of external commands as argument vectors."""

import asyncio
import logging
import os
from dataclasses import dataclass

from codescan.errors import CommandTimeoutError, ExecutableNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Captured outcome of one external process."""

    args: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


async def run_command(
    args: list[str],
    cwd: str | None = None,
    timeout: float | None = None,
    env: dict[str, str] | None = None,
) -> CommandResult:
    """Run ``args`` without a shell and capture its output.

    ``env`` entries are layered over the current environment.

    Raises:
        ExecutableNotFoundError: If the executable cannot be started.
        CommandTimeoutError: If the process outlives ``timeout``; it is killed first.
    """
    process_env = os.environ.copy()
    if env:
        process_env.update(env)

    logger.debug("Running %s (cwd=%s)", args, cwd)
    try:
        # Using create_subprocess_exec (safe - args as list, no shell)
        process = await asyncio.create_subprocess_exec(
            *args,
            cwd=cwd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=process_env,
        )
    except FileNotFoundError as exc:
        raise ExecutableNotFoundError(f"Executable not found: {args[0]}") from exc
    except PermissionError as exc:
        raise ExecutableNotFoundError(f"Executable is not runnable: {args[0]}") from exc

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        raise CommandTimeoutError(
            f"{os.path.basename(args[0])} timed out after {timeout} seconds",
            timeout=timeout,
        )

    return CommandResult(
        args=list(args),
        returncode=process.returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )
