"""
External command execution.

This module provides the SubprocessCommandRunner, the only place where
BranchAI spawns processes. Commands are passed as argument lists and never
go through a shell.
"""

import asyncio
from typing import Sequence

from ..models.git import CommandResult
from ..utils.logging import get_logger

logger = get_logger("command.runner")

DEFAULT_COMMAND_TIMEOUT = 30


class SubprocessCommandRunner:
    """Runs commands as child processes of the event loop."""

    def __init__(self, timeout: float = DEFAULT_COMMAND_TIMEOUT):
        """
        Initialize the runner.

        Args:
            timeout: Seconds a single command may run before it is killed
        """
        self.timeout = timeout

    async def execute(self, command: Sequence[str], working_dir: str) -> CommandResult:
        """
        Run a command and capture its output.

        Args:
            command: Program and arguments
            working_dir: Directory to run the command in

        Returns:
            CommandResult with decoded stdout/stderr and the exit code

        Raises:
            OSError: If the program cannot be started
            asyncio.TimeoutError: If the command exceeds the timeout
        """
        logger.debug("Running command", {"command": list(command), "cwd": working_dir})

        process = await asyncio.create_subprocess_exec(
            *command,
            cwd=working_dir,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            logger.error("Command timed out", {"command": list(command)})
            raise

        return CommandResult(
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            exit_code=process.returncode,
        )
