"""
Tests for the branch creation flow.

The controller is driven end to end with fake repository, branch, UI and
generation collaborators.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from branchai.components.generation_client import ChatCompletionTransport, GenerationClient
from branchai.models.config import GenerationConfig
from branchai.models.flow import FlowState, RecoveryAction
from branchai.services.branch_creation import (
    MAX_DESCRIPTION_LENGTH,
    BranchCreationController,
    validate_description,
)
from branchai.utils.error_handling import (
    AttemptFailure,
    ConfigurationError,
    NetworkError,
    ParseError,
    RepositoryError,
    RepositoryErrorCode,
)


@pytest.fixture
def make_controller(make_context_provider, make_branch_operations, make_ui):
    """Build a controller with fakes, returning it with its mocked generation client."""

    def _make(
        config,
        context_provider=None,
        branch_operations=None,
        ui=None,
        suggestions=None,
        generation_error=None,
        config_loader=None,
        generation_client=None,
    ):
        if generation_client is None:
            generation_client = AsyncMock()
            if generation_error is not None:
                generation_client.generate.side_effect = generation_error
            else:
                generation_client.generate.return_value = suggestions or [
                    "feature/login",
                    "bugfix/auth",
                ]

        controller = BranchCreationController(
            context_provider=context_provider or make_context_provider(),
            branch_operations=branch_operations or make_branch_operations(),
            generation_client=generation_client,
            ui=ui or make_ui(),
            config_loader=config_loader or (lambda: config),
        )
        return controller, generation_client

    return _make


class TestValidateDescription:
    def test_empty(self):
        assert validate_description("") == "Commit message cannot be empty"
        assert validate_description("   ") == "Commit message cannot be empty"

    def test_too_long(self):
        message = validate_description("x" * (MAX_DESCRIPTION_LENGTH + 1))
        assert message == "Commit message is too long (max 2000 characters)"

    def test_valid(self):
        assert validate_description("x" * MAX_DESCRIPTION_LENGTH) is None


class TestStagedChangesFlow:
    """Test cases for generating from staged changes."""

    @pytest.mark.asyncio
    async def test_creates_selected_branch(
        self,
        sample_config,
        make_controller,
        make_ui,
        make_context_provider,
        make_branch_operations,
    ):
        ui = make_ui(selection="feature/login")
        operations = make_branch_operations()
        context_provider = make_context_provider(branch="main")
        controller, client = make_controller(
            sample_config,
            context_provider=context_provider,
            branch_operations=operations,
            ui=ui,
        )

        result = await controller.generate_from_staged_changes()

        assert result.state is FlowState.CREATED
        assert result.branch_name == "feature/login"
        assert result.mutated is True
        assert operations.created == ["feature/login"]
        assert ui.offered == [["feature/login", "bugfix/auth"]]
        assert ui.notifications[-1] == (
            "info",
            "Successfully created and switched to branch 'feature/login'",
            None,
        )
        assert "Analyzing staged changes..." in ui.progress_messages
        assert controller.state is FlowState.CREATED

        kwargs = client.generate.call_args.kwargs
        assert kwargs["count"] == 5
        assert kwargs["description"] is None
        assert kwargs["diff_context"].startswith("Current branch: main\n\nStaged changes:")

    @pytest.mark.asyncio
    async def test_not_a_repository(
        self, sample_config, make_controller, make_ui, make_context_provider
    ):
        ui = make_ui()
        controller, client = make_controller(
            sample_config, context_provider=make_context_provider(is_repo=False), ui=ui
        )

        result = await controller.generate_from_staged_changes()

        assert result.state is FlowState.NOT_REPOSITORY
        assert ui.notifications[0][0] == "error"
        client.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_staged_changes(
        self, sample_config, make_controller, make_ui, make_context_provider
    ):
        ui = make_ui()
        controller, client = make_controller(
            sample_config, context_provider=make_context_provider(staged=False), ui=ui
        )

        result = await controller.generate_from_staged_changes()

        assert result.state is FlowState.NO_STAGED_CHANGES
        assert result.action is RecoveryAction.OPEN_STAGED_CHANGES
        assert "git add" in result.message
        client.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_incomplete_config(self, make_controller, make_context_provider):
        config = GenerationConfig(endpoint="https://api.example.com/v1", api_key="", model="m")
        context_provider = make_context_provider()
        controller, client = make_controller(config, context_provider=context_provider)

        result = await controller.generate_from_staged_changes()

        assert result.state is FlowState.CONFIG_INVALID
        assert result.action is RecoveryAction.OPEN_SETTINGS
        assert result.message == "Configuration incomplete. Please configure: Missing: API Key"
        assert context_provider.gather_calls == 0
        client.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_unreadable_settings(self, make_controller):
        def broken_loader():
            raise ValueError("Invalid YAML in settings file: bad")

        controller, client = make_controller(None, config_loader=broken_loader)

        result = await controller.generate_from_staged_changes()

        assert result.state is FlowState.CONFIG_INVALID
        assert "Invalid YAML" in result.message
        client.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_user_cancels_selection(
        self, sample_config, make_controller, make_ui, make_branch_operations
    ):
        operations = make_branch_operations()
        controller, _ = make_controller(
            sample_config, branch_operations=operations, ui=make_ui(selection=None)
        )

        result = await controller.generate_from_staged_changes()

        assert result.state is FlowState.CANCELLED
        assert operations.created == []
        assert operations.switched == []

    @pytest.mark.asyncio
    async def test_invalid_selected_name(
        self, sample_config, make_controller, make_ui, make_branch_operations
    ):
        operations = make_branch_operations()
        controller, _ = make_controller(
            sample_config,
            branch_operations=operations,
            ui=make_ui(selection="feature..bad"),
            suggestions=["feature..bad"],
        )

        result = await controller.generate_from_staged_changes()

        assert result.state is FlowState.INVALID_NAME
        assert operations.created == []

    @pytest.mark.asyncio
    async def test_existing_branch_offers_switch(
        self, sample_config, make_controller, make_ui, make_branch_operations
    ):
        ui = make_ui(selection="feature/login", confirm=True)
        operations = make_branch_operations(existing=["feature/login"])
        controller, _ = make_controller(sample_config, branch_operations=operations, ui=ui)

        result = await controller.generate_from_staged_changes()

        assert result.state is FlowState.SWITCHED
        assert operations.created == []
        assert operations.switched == ["feature/login"]
        assert ui.confirmations == [
            "Branch 'feature/login' already exists. Would you like to switch to it?"
        ]

    @pytest.mark.asyncio
    async def test_existing_branch_switch_declined(
        self, sample_config, make_controller, make_ui, make_branch_operations
    ):
        ui = make_ui(selection="feature/login", confirm=False)
        operations = make_branch_operations(existing=["feature/login"])
        controller, _ = make_controller(sample_config, branch_operations=operations, ui=ui)

        result = await controller.generate_from_staged_changes()

        assert result.state is FlowState.SWITCH_DECLINED
        assert result.action is RecoveryAction.SWITCH_BRANCH
        assert result.mutated is False
        assert operations.created == []
        assert operations.switched == []

    @pytest.mark.asyncio
    async def test_create_race_already_exists(
        self, sample_config, make_controller, make_ui, make_branch_operations
    ):
        ui = make_ui(selection="feature/login", confirm=True)
        operations = make_branch_operations(
            create_error=RepositoryError(
                "Branch 'feature/login' already exists", RepositoryErrorCode.ALREADY_EXISTS
            )
        )
        controller, _ = make_controller(sample_config, branch_operations=operations, ui=ui)

        result = await controller.generate_from_staged_changes()

        assert result.state is FlowState.SWITCHED
        assert operations.switched == ["feature/login"]

    @pytest.mark.asyncio
    async def test_create_failure(
        self, sample_config, make_controller, make_ui, make_branch_operations
    ):
        ui = make_ui(selection="feature/login")
        operations = make_branch_operations(
            create_error=RepositoryError(
                "Failed to create branch: fatal: cannot lock ref",
                RepositoryErrorCode.CREATE_FAILED,
            )
        )
        controller, _ = make_controller(sample_config, branch_operations=operations, ui=ui)

        result = await controller.generate_from_staged_changes()

        assert result.state is FlowState.CREATE_FAILED
        assert ui.notifications[-1][0] == "error"
        assert "cannot lock ref" in ui.notifications[-1][1]

    @pytest.mark.asyncio
    async def test_switch_failure(
        self, sample_config, make_controller, make_ui, make_branch_operations
    ):
        ui = make_ui(selection="feature/login", confirm=True)
        operations = make_branch_operations(
            existing=["feature/login"],
            switch_error=RepositoryError(
                "Failed to switch to branch: local changes",
                RepositoryErrorCode.SWITCH_FAILED,
            ),
        )
        controller, _ = make_controller(sample_config, branch_operations=operations, ui=ui)

        result = await controller.generate_from_staged_changes()

        assert result.state is FlowState.SWITCH_FAILED
        assert result.mutated is False


class TestGenerationFailures:
    """Test cases for mapping generation errors to messages."""

    @pytest.mark.asyncio
    async def test_non_text_reply_content(self, sample_config, make_controller, make_ui):
        class ListContentTransport:
            async def complete(self, config, prompt):
                payload = {"choices": [{"message": {"content": ["feature/x"]}}]}
                return ChatCompletionTransport._extract_content(payload)

        ui = make_ui(selection="feature/x")
        sleep = AsyncMock()
        client = GenerationClient(transport=ListContentTransport(), sleep=sleep)
        controller, _ = make_controller(sample_config, ui=ui, generation_client=client)

        result = await controller.generate_from_staged_changes()

        assert result.state is FlowState.GENERATION_FAILED
        assert result.action is RecoveryAction.OPEN_SETTINGS
        assert "Invalid API response format" in result.message
        assert ui.offered == []
        sleep.assert_not_called()

    @pytest.mark.asyncio
    async def test_timeout_suggests_network_check(self, sample_config, make_controller):
        failure = AttemptFailure.from_message("Request timeout", timed_out=True)
        controller, _ = make_controller(
            sample_config, generation_error=NetworkError(failure, 4)
        )

        result = await controller.generate_from_staged_changes()

        assert result.state is FlowState.GENERATION_FAILED
        assert result.action is RecoveryAction.OPEN_SETTINGS
        assert result.message.endswith("Please check your network connection and try again.")

    @pytest.mark.asyncio
    async def test_fatal_suggests_config_check(self, sample_config, make_controller):
        failure = AttemptFailure.from_message("API request failed with status 401: no", status=401)
        controller, _ = make_controller(
            sample_config, generation_error=NetworkError(failure, 1)
        )

        result = await controller.generate_from_staged_changes()

        assert result.state is FlowState.GENERATION_FAILED
        assert "status 401" in result.message
        assert result.message.endswith("Please check your API configuration and try again.")

    @pytest.mark.asyncio
    async def test_parse_error(self, sample_config, make_controller, make_ui):
        ui = make_ui()
        controller, _ = make_controller(
            sample_config, ui=ui, generation_error=ParseError("No branch names generated")
        )

        result = await controller.generate_from_staged_changes()

        assert result.state is FlowState.GENERATION_FAILED
        assert result.message.startswith("No branch names generated")
        assert ui.offered == []

    @pytest.mark.asyncio
    async def test_configuration_error(self, sample_config, make_controller):
        controller, _ = make_controller(
            sample_config, generation_error=ConfigurationError(["API Key"])
        )

        result = await controller.generate_from_staged_changes()

        assert result.state is FlowState.GENERATION_FAILED
        assert result.message == "Configuration error. Missing: API Key"


class TestDescriptionFlow:
    """Test cases for generating from a free-text description."""

    @pytest.mark.asyncio
    async def test_description_argument(
        self, sample_config, make_controller, make_ui, make_context_provider
    ):
        ui = make_ui(selection="feature/login")
        context_provider = make_context_provider(branch="develop", staged=False)
        controller, client = make_controller(
            sample_config, context_provider=context_provider, ui=ui
        )

        result = await controller.generate_from_description("  Add login form  ")

        assert result.state is FlowState.CREATED
        assert ui.prompts == []
        assert context_provider.gather_calls == 0
        kwargs = client.generate.call_args.kwargs
        assert kwargs["description"] == "Add login form"
        assert kwargs["diff_context"] == "Current branch: develop"

    @pytest.mark.asyncio
    async def test_prompts_when_missing(self, sample_config, make_controller, make_ui):
        ui = make_ui(selection="feature/login", text="Add login form")
        controller, client = make_controller(sample_config, ui=ui)

        result = await controller.generate_from_description()

        assert result.state is FlowState.CREATED
        assert len(ui.prompts) == 1
        assert client.generate.call_args.kwargs["description"] == "Add login form"

    @pytest.mark.asyncio
    async def test_prompt_cancelled(self, sample_config, make_controller, make_ui):
        ui = make_ui(text=None)
        controller, client = make_controller(sample_config, ui=ui)

        result = await controller.generate_from_description()

        assert result.state is FlowState.CANCELLED
        client.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_description(self, sample_config, make_controller):
        controller, client = make_controller(sample_config)

        result = await controller.generate_from_description("   ")

        assert result.state is FlowState.INVALID_DESCRIPTION
        assert result.message == "Commit message cannot be empty"
        client.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_description_checked_before_config(self, make_controller):
        config = GenerationConfig(endpoint="", api_key="", model="")
        controller, _ = make_controller(config)

        result = await controller.generate_from_description("x" * 2001)

        assert result.state is FlowState.INVALID_DESCRIPTION

    @pytest.mark.asyncio
    async def test_not_a_repository(
        self, sample_config, make_controller, make_ui, make_context_provider
    ):
        ui = make_ui(text="Add login form")
        controller, _ = make_controller(
            sample_config, context_provider=make_context_provider(is_repo=False), ui=ui
        )

        result = await controller.generate_from_description()

        assert result.state is FlowState.NOT_REPOSITORY
        assert ui.prompts == []


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_overlapping_invocation_is_rejected(
        self, sample_config, make_controller, make_ui
    ):
        release = asyncio.Event()

        async def blocking_select(candidates):
            await release.wait()
            return None

        ui = make_ui()
        ui.select = blocking_select
        controller, _ = make_controller(sample_config, ui=ui)

        first = asyncio.ensure_future(controller.generate_from_staged_changes())
        await asyncio.sleep(0)
        while not controller._lock.locked():
            await asyncio.sleep(0)

        second = await controller.generate_from_description("Add login")
        release.set()
        first_result = await first

        assert second.state is FlowState.BUSY
        assert first_result.state is FlowState.CANCELLED
        assert ui.notifications[0][0] == "warning"
