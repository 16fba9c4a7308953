"""
Error handling utilities for BranchAI.

This module defines the error taxonomy shared by all components, the
transient/fatal failure classification used by the generation client,
and the retry/backoff configuration.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence


class BranchAIError(Exception):
    """Base class for all BranchAI errors."""


class ConfigurationError(BranchAIError):
    """Raised when generation settings are missing or invalid. Never retried."""

    def __init__(
        self,
        missing_fields: Optional[Sequence[str]] = None,
        invalid_fields: Optional[Sequence[str]] = None,
    ):
        self.missing_fields: List[str] = list(missing_fields or [])
        self.invalid_fields: List[str] = list(invalid_fields or [])

        parts = []
        if self.missing_fields:
            parts.append(f"Missing: {', '.join(self.missing_fields)}")
        if self.invalid_fields:
            parts.append(f"Invalid: {', '.join(self.invalid_fields)}")
        super().__init__(f"Configuration error. {'; '.join(parts)}")


class FailureKind(Enum):
    """Retry classification of a failed network attempt."""

    TRANSIENT = "transient"
    FATAL = "fatal"


# Lowercase message fragments that mark a failure as worth retrying.
TRANSIENT_MARKERS = (
    "timeout",
    "econnreset",
    "econnrefused",
    "etimedout",
    "503",
    "502",
    "429",
)


def classify_failure(message: str) -> FailureKind:
    """Classify a failure message as transient or fatal."""
    lowered = message.lower()
    if any(marker in lowered for marker in TRANSIENT_MARKERS):
        return FailureKind.TRANSIENT
    return FailureKind.FATAL


@dataclass
class AttemptFailure:
    """Outcome of one failed network attempt."""

    message: str
    kind: FailureKind
    status: Optional[int] = None
    timed_out: bool = False

    @classmethod
    def from_message(
        cls, message: str, status: Optional[int] = None, timed_out: bool = False
    ) -> "AttemptFailure":
        return cls(
            message=message,
            kind=classify_failure(message),
            status=status,
            timed_out=timed_out,
        )

    @property
    def is_transient(self) -> bool:
        return self.kind is FailureKind.TRANSIENT


class NetworkError(BranchAIError):
    """Raised when the generation API could not be reached or refused the request."""

    def __init__(self, last_failure: AttemptFailure, attempts: int):
        self.last_failure = last_failure
        self.attempts = attempts
        super().__init__(
            f"Failed to generate branch names after {attempts} "
            f"attempt{'s' if attempts != 1 else ''}: {last_failure.message}"
        )

    @property
    def timed_out(self) -> bool:
        return self.last_failure.timed_out


class ParseError(BranchAIError):
    """Raised when a well-formed API reply holds no usable branch names."""


class RepositoryErrorCode(Enum):
    """Classification of version-control failures."""

    NOT_A_REPOSITORY = "not_a_repository"
    ALREADY_EXISTS = "already_exists"
    INVALID_NAME = "invalid_name"
    NO_WORKSPACE = "no_workspace"
    CREATE_FAILED = "create_failed"
    SWITCH_FAILED = "switch_failed"


class RepositoryError(BranchAIError):
    """Raised when a git precondition or mutation fails. Never retried."""

    def __init__(self, message: str, code: RepositoryErrorCode):
        super().__init__(message)
        self.code = code


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(self, max_retries: int = 3, base_delay: float = 1.0):
        self.max_retries = max_retries
        self.base_delay = base_delay

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the given zero-based attempt failed."""
        return self.base_delay * (2**attempt)
