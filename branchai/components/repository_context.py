"""
Read-only repository queries used as generation context.

Every query degrades to a safe default instead of raising: context only
improves suggestion quality, so a failed query must never block branch
creation.
"""

from pathlib import Path
from typing import List, Optional, Sequence

from ..interfaces import ICommandRunner
from ..models.git import CommandResult, RepositoryContext
from ..utils.logging import get_logger
from .command_runner import SubprocessCommandRunner

logger = get_logger("git.context")

DEFAULT_DIFF_MAX_LENGTH = 2000
STAGED_DIFF_LABEL = "Staged changes:\n"
TRUNCATION_MARKER = "\n... (truncated)"


def split_paths(output: str) -> List[str]:
    """Split newline-separated git output into non-empty paths."""
    return [line for line in output.strip().split("\n") if line.strip()]


class GitRepositoryContextProvider:
    """Queries a git working tree for branch and staged-change information."""

    def __init__(
        self,
        workspace_root: Optional[str],
        runner: Optional[ICommandRunner] = None,
    ):
        """
        Initialize the provider.

        Args:
            workspace_root: Working tree root, or None when no workspace is open
            runner: Command runner; defaults to a subprocess runner
        """
        self.workspace_root = str(Path(workspace_root)) if workspace_root else None
        self.runner = runner or SubprocessCommandRunner()

    async def _run_git(self, args: Sequence[str]) -> Optional[CommandResult]:
        """Run a git query, returning None on any failure."""
        if self.workspace_root is None:
            return None

        try:
            result = await self.runner.execute(["git", *args], self.workspace_root)
        except Exception as e:
            logger.debug(
                "Git query could not run", {"args": list(args), "error": str(e)}
            )
            return None

        if not result.ok:
            logger.debug(
                "Git query failed",
                {"args": list(args), "exit_code": result.exit_code, "stderr": result.stderr.strip()},
            )
            return None

        return result

    async def is_repository(self) -> bool:
        """Check whether the workspace is inside a git repository."""
        result = await self._run_git(["rev-parse", "--git-dir"])
        return result is not None

    async def current_branch_name(self) -> Optional[str]:
        """Get the current branch name, or None if it cannot be determined."""
        result = await self._run_git(["branch", "--show-current"])
        if result is None:
            return None
        return result.stdout.strip()

    async def staged_file_names(self) -> List[str]:
        """List paths staged in the index."""
        result = await self._run_git(["diff", "--cached", "--name-only"])
        if result is None:
            return []
        return split_paths(result.stdout)

    async def modified_file_names(self) -> List[str]:
        """List paths with unstaged modifications."""
        result = await self._run_git(["diff", "--name-only"])
        if result is None:
            return []
        return split_paths(result.stdout)

    async def has_staged_changes(self) -> bool:
        """Check whether at least one path is staged."""
        return len(await self.staged_file_names()) > 0

    async def staged_diff(self, max_length: int = DEFAULT_DIFF_MAX_LENGTH) -> str:
        """
        Get the labeled staged diff.

        Args:
            max_length: Characters kept before the truncation marker is appended

        Returns:
            The labeled diff, truncated if needed, or an empty string
        """
        result = await self._run_git(["diff", "--cached"])
        if result is None or not result.stdout.strip():
            return ""

        full_diff = STAGED_DIFF_LABEL + result.stdout + "\n"

        if len(full_diff) > max_length:
            logger.info(
                "Staged diff truncated",
                {"original_length": len(full_diff), "max_length": max_length},
            )
            full_diff = full_diff[:max_length] + TRUNCATION_MARKER

        return full_diff

    async def gather_context(
        self, diff_max_length: int = DEFAULT_DIFF_MAX_LENGTH
    ) -> RepositoryContext:
        """Assemble a fresh RepositoryContext from the individual queries."""
        current_branch = await self.current_branch_name()
        staged_diff = await self.staged_diff(diff_max_length)

        staged_files: List[str] = []
        modified_files: List[str] = []
        if not staged_diff:
            staged_files = await self.staged_file_names()
            modified_files = await self.modified_file_names()

        return RepositoryContext(
            current_branch=current_branch or None,
            staged_diff=staged_diff,
            staged_files=staged_files,
            modified_files=modified_files,
        )
