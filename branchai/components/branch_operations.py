"""
Git branch creation and switching.

This module provides the GitBranchOperations class, which performs the only
two mutating git commands BranchAI issues: create-and-switch to a new
branch, and switch to an existing one.
"""

from pathlib import Path
from typing import Optional

from ..interfaces import ICommandRunner
from ..utils.error_handling import RepositoryError, RepositoryErrorCode
from ..utils.logging import get_logger
from .branch_name_validator import validate_branch_name
from .command_runner import SubprocessCommandRunner

logger = get_logger("git.branch")


class GitBranchOperations:
    """Branch queries and mutations for a git working tree."""

    def __init__(
        self,
        workspace_root: Optional[str],
        runner: Optional[ICommandRunner] = None,
    ):
        """
        Initialize branch operations.

        Args:
            workspace_root: Working tree root, or None when no workspace is open
            runner: Command runner; defaults to a subprocess runner
        """
        self.workspace_root = str(Path(workspace_root)) if workspace_root else None
        self.runner = runner or SubprocessCommandRunner()

    def _require_workspace(self) -> str:
        if self.workspace_root is None:
            raise RepositoryError(
                "No workspace folder found", RepositoryErrorCode.NO_WORKSPACE
            )
        return self.workspace_root

    async def branch_exists(self, branch_name: str) -> bool:
        """
        Check if a local branch already exists.

        Returns:
            True if the branch exists, False otherwise or on any failure
        """
        if self.workspace_root is None:
            return False

        try:
            result = await self.runner.execute(
                ["git", "branch", "--list", branch_name], self.workspace_root
            )
        except Exception as e:
            logger.debug("Branch lookup failed", {"branch": branch_name, "error": str(e)})
            return False

        return result.ok and len(result.stdout.strip()) > 0

    async def create_branch(self, branch_name: str) -> None:
        """
        Create a new branch and switch to it.

        Args:
            branch_name: Name of the branch to create

        Raises:
            RepositoryError: If the name is invalid, there is no workspace,
                or git refuses to create the branch
        """
        validation = validate_branch_name(branch_name)
        if not validation.valid:
            raise RepositoryError(
                validation.error or "Invalid branch name",
                RepositoryErrorCode.INVALID_NAME,
            )

        workspace = self._require_workspace()

        try:
            result = await self.runner.execute(
                ["git", "switch", "-c", branch_name], workspace
            )
        except Exception as e:
            raise RepositoryError(
                f"Failed to create branch: {e}", RepositoryErrorCode.CREATE_FAILED
            ) from e

        if result.ok:
            logger.info("Created branch", {"branch": branch_name})
            return

        error_message = (result.stderr or result.stdout).strip() or "Unknown error"
        logger.warning(
            "Branch creation failed", {"branch": branch_name, "stderr": error_message}
        )

        if "already exists" in error_message:
            raise RepositoryError(
                f"Branch '{branch_name}' already exists",
                RepositoryErrorCode.ALREADY_EXISTS,
            )

        if "not a git repository" in error_message.lower():
            raise RepositoryError(
                "Not a Git repository", RepositoryErrorCode.NOT_A_REPOSITORY
            )

        raise RepositoryError(
            f"Failed to create branch: {error_message}",
            RepositoryErrorCode.CREATE_FAILED,
        )

    async def switch_branch(self, branch_name: str) -> None:
        """
        Switch to an existing branch.

        Raises:
            RepositoryError: If there is no workspace or git refuses the switch
        """
        workspace = self._require_workspace()

        try:
            result = await self.runner.execute(["git", "switch", branch_name], workspace)
        except Exception as e:
            raise RepositoryError(
                f"Failed to switch to branch: {e}", RepositoryErrorCode.SWITCH_FAILED
            ) from e

        if not result.ok:
            error_message = (result.stderr or result.stdout).strip() or "Unknown error"
            logger.warning(
                "Branch switch failed", {"branch": branch_name, "stderr": error_message}
            )
            raise RepositoryError(
                f"Failed to switch to branch: {error_message}",
                RepositoryErrorCode.SWITCH_FAILED,
            )

        logger.info("Switched branch", {"branch": branch_name})
