"""
Terminal user interface for the interactive commands.
"""

import asyncio
import sys
from typing import Callable, List, Optional, TextIO

from ..models.flow import RecoveryAction

CANCEL_LABEL = "Cancel"

RECOVERY_HINTS = {
    RecoveryAction.OPEN_SETTINGS: "Run 'branchai settings' to review your configuration.",
    RecoveryAction.OPEN_STAGED_CHANGES: "Stage your changes with 'git add' and try again.",
    RecoveryAction.SWITCH_BRANCH: "Run 'git switch <branch>' to switch to it.",
}


class ConsoleInterface:
    """Prompts on stdin and reports on stdout."""

    def __init__(
        self,
        input_func: Callable[[str], str] = input,
        output: Optional[TextIO] = None,
    ):
        self.input_func = input_func
        self.output = output or sys.stdout

    def _write(self, text: str) -> None:
        self.output.write(text + "\n")
        self.output.flush()

    async def _read(self, prompt: str) -> Optional[str]:
        # input() blocks, so it runs in a worker thread off the event loop
        try:
            return await asyncio.to_thread(self.input_func, prompt)
        except EOFError:
            return None

    async def prompt_text(self, message: str, placeholder: str = "") -> Optional[str]:
        self._write(message)
        if placeholder:
            self._write(f"  e.g. {placeholder}")
        return await self._read("> ")

    async def select(self, candidates: List[str]) -> Optional[str]:
        self._write("Select a branch name to create:")
        for index, candidate in enumerate(candidates, start=1):
            self._write(f"  {index}. {candidate}")
        self._write(f"  0. {CANCEL_LABEL}")

        while True:
            answer = await self._read("Choice: ")
            if answer is None:
                return None

            answer = answer.strip()
            if answer in ("", "0") or answer.lower() == CANCEL_LABEL.lower():
                return None
            if answer.isdigit() and 1 <= int(answer) <= len(candidates):
                return candidates[int(answer) - 1]

            self._write(f"Please enter a number between 0 and {len(candidates)}.")

    async def confirm(self, message: str) -> bool:
        answer = await self._read(f"{message} [y/N] ")
        return answer is not None and answer.strip().lower() in ("y", "yes")

    def progress(self, message: str) -> None:
        self._write(message)

    def notify(
        self,
        level: str,
        message: str,
        action: Optional[RecoveryAction] = None,
    ) -> None:
        prefix = "" if level == "info" else f"[{level}] "
        self._write(f"{prefix}BranchAI: {message}")
        if action is not None and action in RECOVERY_HINTS:
            self._write(RECOVERY_HINTS[action])
