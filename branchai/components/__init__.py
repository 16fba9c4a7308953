"""
Core components for BranchAI.

This module contains the components that validate branch names, query and
mutate the git repository, build prompts, call the generation API and talk
to the user.
"""

from .branch_name_validator import BranchNameValidator, validate_branch_name
from .branch_operations import GitBranchOperations
from .command_runner import SubprocessCommandRunner
from .console_interface import ConsoleInterface
from .generation_client import ChatCompletionTransport, GenerationClient
from .prompt_builder import SuggestionRequestBuilder
from .repository_context import GitRepositoryContextProvider

__all__ = [
    "BranchNameValidator",
    "validate_branch_name",
    "GitBranchOperations",
    "SubprocessCommandRunner",
    "ConsoleInterface",
    "ChatCompletionTransport",
    "GenerationClient",
    "SuggestionRequestBuilder",
    "GitRepositoryContextProvider",
]
