"""
Data models for BranchAI.

This module contains the data classes used throughout the application
for representing settings, repository context, command results and
branch creation outcomes.
"""

from .config import GenerationConfig, Settings, ValidationResult
from .flow import FlowResult, FlowState, RecoveryAction
from .git import BranchValidation, CommandResult, RepositoryContext

__all__ = [
    "GenerationConfig",
    "Settings",
    "ValidationResult",
    "FlowResult",
    "FlowState",
    "RecoveryAction",
    "BranchValidation",
    "CommandResult",
    "RepositoryContext",
]
