"""
Utility modules for BranchAI.

This module contains the structured logging setup and the shared error
taxonomy and retry configuration.
"""

from .error_handling import (
    AttemptFailure,
    BranchAIError,
    ConfigurationError,
    FailureKind,
    NetworkError,
    ParseError,
    RepositoryError,
    RepositoryErrorCode,
    RetryConfig,
    classify_failure,
)
from .logging import get_logger, setup_logging

__all__ = [
    "AttemptFailure",
    "BranchAIError",
    "ConfigurationError",
    "FailureKind",
    "NetworkError",
    "ParseError",
    "RepositoryError",
    "RepositoryErrorCode",
    "RetryConfig",
    "classify_failure",
    "get_logger",
    "setup_logging",
]
