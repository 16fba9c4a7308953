"""
Branch creation flow data models.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class FlowState(Enum):
    """States of the branch creation flow, including its terminal outcomes."""

    IDLE = "idle"
    CHECK_REPO = "check_repo"
    CHECK_STAGED_OR_INPUT = "check_staged_or_input"
    CHECK_CONFIG = "check_config"
    GATHER_CONTEXT = "gather_context"
    GENERATE = "generate"
    AWAIT_SELECTION = "await_selection"
    VALIDATE_CHOICE = "validate_choice"
    CREATE_BRANCH = "create_branch"
    OFFER_SWITCH = "offer_switch"

    # Terminal outcomes
    NOT_REPOSITORY = "not_repository"
    NO_STAGED_CHANGES = "no_staged_changes"
    INVALID_DESCRIPTION = "invalid_description"
    CONFIG_INVALID = "config_invalid"
    GENERATION_FAILED = "generation_failed"
    CANCELLED = "cancelled"
    INVALID_NAME = "invalid_name"
    CREATED = "created"
    SWITCHED = "switched"
    SWITCH_DECLINED = "switch_declined"
    CREATE_FAILED = "create_failed"
    SWITCH_FAILED = "switch_failed"
    BUSY = "busy"


class RecoveryAction(Enum):
    """Follow-up the user is pointed to after a failure."""

    OPEN_SETTINGS = "open_settings"
    OPEN_STAGED_CHANGES = "open_staged_changes"
    SWITCH_BRANCH = "switch_branch"


@dataclass
class FlowResult:
    """Terminal outcome of one branch creation flow."""

    state: FlowState
    message: str
    branch_name: Optional[str] = None
    action: Optional[RecoveryAction] = None

    @property
    def mutated(self) -> bool:
        """Whether the working branch changed."""
        return self.state in (FlowState.CREATED, FlowState.SWITCHED)
