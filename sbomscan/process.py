"""Async subprocess helper shared by the runtime wrappers and the scanner."""

import asyncio
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Exit status and decoded output of a finished command."""

    returncode: int
    output: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


async def run_command(
    cmd: list[str],
    env: dict[str, str] | None = None,
    combine_output: bool = True,
) -> CommandResult:
    """Run a command to completion and capture its output.

    A missing executable is reported as exit code 127 rather than raised, so
    callers handle every failure through the same returncode check.

    Args:
        cmd: Executable followed by its arguments
        env: Full environment for the child (default: inherit)
        combine_output: Merge stderr into stdout (default: True). When False
            only stderr is returned on failure and stdout on success.

    Returns:
        CommandResult with returncode and decoded output
    """
    logger.debug(f"Running: {' '.join(cmd)}")
    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT if combine_output else asyncio.subprocess.PIPE,
            env=env,
        )
    except (FileNotFoundError, PermissionError) as e:
        return CommandResult(returncode=127, output=f"{cmd[0]}: {e}")

    stdout, stderr = await process.communicate()
    returncode = process.returncode if process.returncode is not None else -1

    if combine_output:
        output = stdout.decode("utf-8", errors="replace")
    elif returncode != 0:
        output = (stderr or b"").decode("utf-8", errors="replace")
    else:
        output = stdout.decode("utf-8", errors="replace")

    return CommandResult(returncode=returncode, output=output)
