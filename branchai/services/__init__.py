"""
Service layer for BranchAI.

This module contains the settings manager and the branch creation flow
that ties the components together.
"""

from .branch_creation import BranchCreationController
from .config_manager import SettingsManager

__all__ = [
    "BranchCreationController",
    "SettingsManager",
]
