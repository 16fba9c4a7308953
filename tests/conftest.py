"""
Pytest configuration and shared fixtures.

This module provides common fixtures and fakes for all tests in the
BranchAI test suite.
"""

from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from branchai.models.config import GenerationConfig
from branchai.models.flow import RecoveryAction
from branchai.models.git import CommandResult, RepositoryContext


class FakeCommandRunner:
    """Command runner that answers from a table of canned results."""

    def __init__(self, responses: Optional[Dict[Tuple[str, ...], object]] = None):
        self.responses = responses or {}
        self.calls: List[Tuple[Tuple[str, ...], str]] = []

    async def execute(self, command: Sequence[str], working_dir: str) -> CommandResult:
        key = tuple(command)
        self.calls.append((key, working_dir))
        response = self.responses.get(key)
        if response is None:
            return CommandResult(stdout="", stderr="fatal: unexpected command", exit_code=128)
        if isinstance(response, Exception):
            raise response
        return response


class FakeUserInterface:
    """Scripted user interface that records every notification."""

    def __init__(
        self,
        selection: Optional[str] = None,
        confirm: bool = False,
        text: Optional[str] = None,
    ):
        self.selection = selection
        self.confirm_answer = confirm
        self.text = text
        self.notifications: List[Tuple[str, str, Optional[RecoveryAction]]] = []
        self.progress_messages: List[str] = []
        self.offered: List[List[str]] = []
        self.confirmations: List[str] = []
        self.prompts: List[str] = []

    async def prompt_text(self, message: str, placeholder: str = "") -> Optional[str]:
        self.prompts.append(message)
        return self.text

    async def select(self, candidates: List[str]) -> Optional[str]:
        self.offered.append(list(candidates))
        return self.selection

    async def confirm(self, message: str) -> bool:
        self.confirmations.append(message)
        return self.confirm_answer

    def progress(self, message: str) -> None:
        self.progress_messages.append(message)

    def notify(
        self, level: str, message: str, action: Optional[RecoveryAction] = None
    ) -> None:
        self.notifications.append((level, message, action))


class FakeContextProvider:
    """Repository context provider with fixed answers."""

    def __init__(
        self,
        is_repo: bool = True,
        staged: bool = True,
        branch: Optional[str] = "main",
        diff: str = "Staged changes:\ndiff --git a/app.py b/app.py\n",
    ):
        self.is_repo = is_repo
        self.staged = staged
        self.branch = branch
        self.diff = diff
        self.gather_calls = 0

    async def is_repository(self) -> bool:
        return self.is_repo

    async def current_branch_name(self) -> Optional[str]:
        return self.branch

    async def staged_file_names(self) -> List[str]:
        return ["app.py"] if self.staged else []

    async def modified_file_names(self) -> List[str]:
        return []

    async def has_staged_changes(self) -> bool:
        return self.staged

    async def staged_diff(self, max_length: int = 2000) -> str:
        return self.diff

    async def gather_context(self, diff_max_length: int = 2000) -> RepositoryContext:
        self.gather_calls += 1
        return RepositoryContext(
            current_branch=self.branch,
            staged_diff=self.diff,
            staged_files=[] if self.diff else ["app.py"],
        )


class FakeBranchOperations:
    """Branch operations that record mutations instead of running git."""

    def __init__(self, existing: Sequence[str] = (), create_error=None, switch_error=None):
        self.existing = set(existing)
        self.create_error = create_error
        self.switch_error = switch_error
        self.created: List[str] = []
        self.switched: List[str] = []

    async def branch_exists(self, branch_name: str) -> bool:
        return branch_name in self.existing

    async def create_branch(self, branch_name: str) -> None:
        if self.create_error is not None:
            raise self.create_error
        self.created.append(branch_name)

    async def switch_branch(self, branch_name: str) -> None:
        if self.switch_error is not None:
            raise self.switch_error
        self.switched.append(branch_name)


@pytest.fixture
def sample_config() -> GenerationConfig:
    """Create a complete GenerationConfig for testing."""
    return GenerationConfig(
        endpoint="https://api.example.com/v1",
        api_key="sk-test-key",
        model="gpt-4o-mini",
        timeout_ms=30000,
        temperature=0.7,
        suggestion_count=5,
        reasoning_effort="medium",
    )


@pytest.fixture
def workspace(tmp_path):
    """A workspace directory path."""
    return str(tmp_path)


@pytest.fixture
def make_runner():
    """Factory for command runners answering from a table of canned results."""
    return FakeCommandRunner


@pytest.fixture
def make_ui():
    """Factory for scripted user interfaces."""
    return FakeUserInterface


@pytest.fixture
def make_context_provider():
    """Factory for repository context providers with fixed answers."""
    return FakeContextProvider


@pytest.fixture
def make_branch_operations():
    """Factory for branch operations that record mutations."""
    return FakeBranchOperations


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "unit: mark test as unit test")


def pytest_collection_modifyitems(config, items):
    """Add the unit marker to every test not marked otherwise."""
    for item in items:
        if not any(
            marker.name in ["integration", "slow"] for marker in item.iter_markers()
        ):
            item.add_marker(pytest.mark.unit)
