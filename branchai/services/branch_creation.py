"""
Branch creation flow for BranchAI.

This module provides the BranchCreationController, which checks the
repository and settings, gathers context, asks the generation client for
suggestions, lets the user pick one and creates (or switches to) the
chosen branch. Every error raised below the controller is caught here and
mapped to a user-visible message and recovery action.
"""

import asyncio
from typing import Callable, List, Optional

from ..components.branch_name_validator import BranchNameValidator
from ..interfaces import (
    IBranchNameValidator,
    IBranchOperations,
    IGenerationClient,
    IRepositoryContextProvider,
    IUserInterface,
)
from ..models.config import GenerationConfig
from ..models.flow import FlowResult, FlowState, RecoveryAction
from ..models.git import RepositoryContext
from ..utils.error_handling import (
    ConfigurationError,
    NetworkError,
    ParseError,
    RepositoryError,
    RepositoryErrorCode,
)
from ..utils.logging import get_logger

logger = get_logger("branch.creation")

MAX_DESCRIPTION_LENGTH = 2000
DESCRIPTION_PROMPT = "Enter your commit message to generate branch name"
DESCRIPTION_PLACEHOLDER = (
    "Add user authentication feature. This commit adds login form, "
    "OAuth integration, and session management."
)

_NOTIFY_LEVELS = {
    FlowState.NOT_REPOSITORY: "error",
    FlowState.NO_STAGED_CHANGES: "warning",
    FlowState.INVALID_DESCRIPTION: "warning",
    FlowState.CONFIG_INVALID: "warning",
    FlowState.GENERATION_FAILED: "error",
    FlowState.CANCELLED: "info",
    FlowState.INVALID_NAME: "error",
    FlowState.CREATED: "info",
    FlowState.SWITCHED: "info",
    FlowState.SWITCH_DECLINED: "info",
    FlowState.CREATE_FAILED: "error",
    FlowState.SWITCH_FAILED: "error",
    FlowState.BUSY: "warning",
}


def validate_description(description: str) -> Optional[str]:
    """Return an error message for an unusable description, else None."""
    if not description or not description.strip():
        return "Commit message cannot be empty"
    if len(description.strip()) > MAX_DESCRIPTION_LENGTH:
        return f"Commit message is too long (max {MAX_DESCRIPTION_LENGTH} characters)"
    return None


class BranchCreationController:
    """Drives one branch creation flow at a time."""

    def __init__(
        self,
        context_provider: IRepositoryContextProvider,
        branch_operations: IBranchOperations,
        generation_client: IGenerationClient,
        ui: IUserInterface,
        config_loader: Callable[[], GenerationConfig],
        validator: Optional[IBranchNameValidator] = None,
    ):
        """
        Initialize the controller.

        Args:
            context_provider: Read-only repository queries
            branch_operations: Branch existence check, creation and switching
            generation_client: Branch name generator
            ui: Interactive surface used for prompts and notifications
            config_loader: Returns fresh generation settings on every call
            validator: Branch name validator
        """
        self.context_provider = context_provider
        self.branch_operations = branch_operations
        self.generation_client = generation_client
        self.ui = ui
        self.config_loader = config_loader
        self.validator = validator or BranchNameValidator()
        self.state = FlowState.IDLE
        self._lock = asyncio.Lock()

    async def generate_from_staged_changes(self) -> FlowResult:
        """Suggest branch names from the staged diff and create the chosen one."""
        return await self._run_exclusive(self._staged_changes_flow)

    async def generate_from_description(self, description: Optional[str] = None) -> FlowResult:
        """
        Suggest branch names from a free-text description.

        Args:
            description: The description; prompted for when None
        """
        return await self._run_exclusive(lambda: self._description_flow(description))

    async def _run_exclusive(self, flow) -> FlowResult:
        # Overlapping invocations are rejected rather than queued.
        if self._lock.locked():
            return self._finish(
                FlowResult(
                    state=FlowState.BUSY,
                    message="Branch name generation is already in progress",
                )
            )

        async with self._lock:
            self.state = FlowState.IDLE
            result = await flow()
            self.state = result.state
            return result

    def _enter(self, state: FlowState) -> None:
        logger.debug("Flow state", {"from": self.state.value, "to": state.value})
        self.state = state

    def _finish(self, result: FlowResult) -> FlowResult:
        level = _NOTIFY_LEVELS.get(result.state, "info")
        logger.info(
            "Flow finished",
            {"state": result.state.value, "branch": result.branch_name},
        )
        self.ui.notify(level, result.message, result.action)
        return result

    async def _staged_changes_flow(self) -> FlowResult:
        failure = await self._check_repository()
        if failure:
            return failure

        self._enter(FlowState.CHECK_STAGED_OR_INPUT)
        if not await self.context_provider.has_staged_changes():
            return self._finish(
                FlowResult(
                    state=FlowState.NO_STAGED_CHANGES,
                    message=(
                        "No staged changes detected. Please stage your changes "
                        "using 'git add' before generating a branch name."
                    ),
                    action=RecoveryAction.OPEN_STAGED_CHANGES,
                )
            )

        config, failure = self._check_config()
        if failure:
            return failure

        self._enter(FlowState.GATHER_CONTEXT)
        self.ui.progress("Analyzing staged changes...")
        context = await self.context_provider.gather_context()

        return await self._generate_and_create(config, diff_context=context.describe())

    async def _description_flow(self, description: Optional[str]) -> FlowResult:
        failure = await self._check_repository()
        if failure:
            return failure

        self._enter(FlowState.CHECK_STAGED_OR_INPUT)
        if description is None:
            description = await self.ui.prompt_text(DESCRIPTION_PROMPT, DESCRIPTION_PLACEHOLDER)
            if description is None:
                return self._finish(
                    FlowResult(state=FlowState.CANCELLED, message="Operation cancelled")
                )

        error = validate_description(description)
        if error:
            return self._finish(
                FlowResult(state=FlowState.INVALID_DESCRIPTION, message=error)
            )

        config, failure = self._check_config()
        if failure:
            return failure

        self._enter(FlowState.GATHER_CONTEXT)
        context = RepositoryContext(
            current_branch=await self.context_provider.current_branch_name() or None
        )

        return await self._generate_and_create(
            config,
            diff_context=context.describe(),
            description=description.strip(),
        )

    async def _check_repository(self) -> Optional[FlowResult]:
        self._enter(FlowState.CHECK_REPO)
        if await self.context_provider.is_repository():
            return None

        return self._finish(
            FlowResult(
                state=FlowState.NOT_REPOSITORY,
                message="Not a Git repository. Please open a Git repository to use this feature.",
            )
        )

    def _check_config(self):
        """Load and validate settings; returns (config, failure)."""
        self._enter(FlowState.CHECK_CONFIG)
        try:
            config = self.config_loader()
        except ValueError as e:
            return None, self._finish(
                FlowResult(
                    state=FlowState.CONFIG_INVALID,
                    message=f"Could not load settings: {e}",
                    action=RecoveryAction.OPEN_SETTINGS,
                )
            )

        validation = config.validate()
        if not validation.valid:
            return None, self._finish(
                FlowResult(
                    state=FlowState.CONFIG_INVALID,
                    message=f"Configuration incomplete. Please configure: {validation.summary()}",
                    action=RecoveryAction.OPEN_SETTINGS,
                )
            )

        return config, None

    async def _generate_and_create(
        self,
        config: GenerationConfig,
        diff_context: Optional[str] = None,
        description: Optional[str] = None,
    ) -> FlowResult:
        self._enter(FlowState.GENERATE)
        self.ui.progress("Generating branch name suggestions...")

        try:
            suggestions = await self.generation_client.generate(
                config,
                diff_context=diff_context,
                description=description,
                count=config.suggestion_count,
            )
        except (ConfigurationError, NetworkError, ParseError) as e:
            return self._finish(self._generation_failure(e))

        return await self._select_and_create(suggestions)

    @staticmethod
    def _generation_failure(error: Exception) -> FlowResult:
        if isinstance(error, ConfigurationError):
            message = str(error)
        elif isinstance(error, NetworkError) and error.timed_out:
            message = f"{error}. Please check your network connection and try again."
        else:
            message = f"{error}. Please check your API configuration and try again."

        return FlowResult(
            state=FlowState.GENERATION_FAILED,
            message=message,
            action=RecoveryAction.OPEN_SETTINGS,
        )

    async def _select_and_create(self, suggestions: List[str]) -> FlowResult:
        self._enter(FlowState.AWAIT_SELECTION)
        choice = await self.ui.select(suggestions)
        if choice is None:
            return self._finish(
                FlowResult(state=FlowState.CANCELLED, message="Operation cancelled")
            )

        self._enter(FlowState.VALIDATE_CHOICE)
        validation = self.validator.validate(choice)
        if not validation.valid:
            return self._finish(
                FlowResult(
                    state=FlowState.INVALID_NAME,
                    message=validation.error or "Invalid branch name",
                    branch_name=choice,
                )
            )

        self._enter(FlowState.CREATE_BRANCH)
        if await self.branch_operations.branch_exists(choice):
            return await self._offer_switch(choice)

        try:
            await self.branch_operations.create_branch(choice)
        except RepositoryError as e:
            if e.code is RepositoryErrorCode.ALREADY_EXISTS:
                return await self._offer_switch(choice)
            return self._finish(
                FlowResult(
                    state=FlowState.CREATE_FAILED,
                    message=str(e),
                    branch_name=choice,
                )
            )

        return self._finish(
            FlowResult(
                state=FlowState.CREATED,
                message=f"Successfully created and switched to branch '{choice}'",
                branch_name=choice,
            )
        )

    async def _offer_switch(self, branch_name: str) -> FlowResult:
        self._enter(FlowState.OFFER_SWITCH)
        confirmed = await self.ui.confirm(
            f"Branch '{branch_name}' already exists. Would you like to switch to it?"
        )
        if not confirmed:
            return self._finish(
                FlowResult(
                    state=FlowState.SWITCH_DECLINED,
                    message=f"Branch '{branch_name}' already exists; nothing changed",
                    branch_name=branch_name,
                    action=RecoveryAction.SWITCH_BRANCH,
                )
            )

        try:
            await self.branch_operations.switch_branch(branch_name)
        except RepositoryError as e:
            return self._finish(
                FlowResult(
                    state=FlowState.SWITCH_FAILED,
                    message=str(e),
                    branch_name=branch_name,
                )
            )

        return self._finish(
            FlowResult(
                state=FlowState.SWITCHED,
                message=f"Successfully switched to branch '{branch_name}'",
                branch_name=branch_name,
            )
        )
