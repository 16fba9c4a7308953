"""
Git operation data models.

This module defines data models for repository context gathering,
branch name validation and external command results.
"""

from dataclasses import dataclass, field
from typing import List, Optional

# Number of file names listed when no staged diff is available.
MAX_LISTED_FILES = 5


@dataclass
class CommandResult:
    """Result of an external command invocation."""

    stdout: str
    exit_code: int
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


@dataclass
class BranchValidation:
    """Result of validating a branch name."""

    valid: bool
    reason: Optional[str] = None
    error: Optional[str] = None


@dataclass
class RepositoryContext:
    """Repository state used as generation context. Never persisted."""

    current_branch: Optional[str] = None
    staged_diff: str = ""
    staged_files: List[str] = field(default_factory=list)
    modified_files: List[str] = field(default_factory=list)

    def describe(self) -> str:
        """Render the context block sent to the model.

        The staged diff is preferred; without one, the first few staged and
        modified file names are listed instead.
        """
        context = ""
        if self.current_branch:
            context += f"Current branch: {self.current_branch}"

        if self.staged_diff:
            context += f"\n\n{self.staged_diff}"
        else:
            if self.staged_files:
                context += (
                    f"\nStaged files: {', '.join(self.staged_files[:MAX_LISTED_FILES])}"
                )
            if self.modified_files:
                context += (
                    f"\nModified files: {', '.join(self.modified_files[:MAX_LISTED_FILES])}"
                )

        return context
