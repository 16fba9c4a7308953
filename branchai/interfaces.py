"""
Protocol interfaces for BranchAI.

This module defines the protocol interfaces that establish system
boundaries and enable dependency injection, so that the controller can be
driven by fake git backends, API clients and user interfaces in tests.
"""

from typing import List, Optional, Protocol, Sequence

from .models.config import GenerationConfig
from .models.flow import RecoveryAction
from .models.git import BranchValidation, CommandResult, RepositoryContext


class ICommandRunner(Protocol):
    """Protocol for running external commands."""

    async def execute(self, command: Sequence[str], working_dir: str) -> CommandResult:
        """Run a command in the given directory and capture its output."""
        ...


class IRepositoryContextProvider(Protocol):
    """Protocol for read-only repository queries. Never raises."""

    async def is_repository(self) -> bool:
        ...

    async def current_branch_name(self) -> Optional[str]:
        ...

    async def staged_file_names(self) -> List[str]:
        ...

    async def modified_file_names(self) -> List[str]:
        ...

    async def has_staged_changes(self) -> bool:
        ...

    async def staged_diff(self, max_length: int = 2000) -> str:
        ...

    async def gather_context(self, diff_max_length: int = 2000) -> RepositoryContext:
        ...


class IBranchOperations(Protocol):
    """Protocol for branch queries and mutations."""

    async def branch_exists(self, branch_name: str) -> bool:
        ...

    async def create_branch(self, branch_name: str) -> None:
        """Create and switch to a new branch."""
        ...

    async def switch_branch(self, branch_name: str) -> None:
        """Switch to an existing branch."""
        ...


class IBranchNameValidator(Protocol):
    """Protocol for branch name validation."""

    def validate(self, name: str) -> BranchValidation:
        ...


class IGenerationClient(Protocol):
    """Protocol for branch name generation."""

    async def generate(
        self,
        config: GenerationConfig,
        diff_context: Optional[str] = None,
        description: Optional[str] = None,
        count: Optional[int] = None,
    ) -> List[str]:
        ...


class IUserInterface(Protocol):
    """Protocol for the interactive surface presented to the user."""

    async def prompt_text(self, message: str, placeholder: str = "") -> Optional[str]:
        """Ask for free text. None means the user dismissed the prompt."""
        ...

    async def select(self, candidates: List[str]) -> Optional[str]:
        """Let the user pick a candidate. None means cancel."""
        ...

    async def confirm(self, message: str) -> bool:
        ...

    def progress(self, message: str) -> None:
        ...

    def notify(
        self,
        level: str,
        message: str,
        action: Optional[RecoveryAction] = None,
    ) -> None:
        """Show a user-visible message with an optional recovery action."""
        ...
