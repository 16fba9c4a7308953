"""
Branch name validation against git naming rules.
"""

import re

from ..models.git import BranchValidation

MAX_BRANCH_NAME_LENGTH = 255
RESERVED_NAMES = ("HEAD", "FETCH_HEAD", "ORIG_HEAD", "MERGE_HEAD")

# ~ ^ : ? * [ ] and ASCII control characters
_INVALID_CHARACTERS = re.compile(r"[~^:?*\[\]\x00-\x1f\x7f]")


def validate_branch_name(name: str) -> BranchValidation:
    """
    Validate a branch name. Rules are checked in order; the first failure wins.

    Args:
        name: Candidate branch name

    Returns:
        BranchValidation with the failed rule's reason and message, if any
    """
    if not name or not name.strip():
        return BranchValidation(
            valid=False, reason="empty", error="Branch name cannot be empty"
        )

    if len(name) > MAX_BRANCH_NAME_LENGTH:
        return BranchValidation(
            valid=False,
            reason="too_long",
            error=f"Branch name is too long (max {MAX_BRANCH_NAME_LENGTH} characters)",
        )

    if _INVALID_CHARACTERS.search(name):
        return BranchValidation(
            valid=False,
            reason="invalid_characters",
            error="Branch name contains invalid characters",
        )

    if ".." in name or name.startswith(".") or name.endswith("."):
        return BranchValidation(
            valid=False,
            reason="dot_rule",
            error="Branch name cannot contain consecutive dots or start/end with a dot",
        )

    if name != name.strip():
        return BranchValidation(
            valid=False,
            reason="whitespace",
            error="Branch name cannot have leading or trailing spaces",
        )

    if name in RESERVED_NAMES:
        return BranchValidation(
            valid=False, reason="reserved", error="Branch name is reserved"
        )

    return BranchValidation(valid=True)


class BranchNameValidator:
    """Injectable wrapper around validate_branch_name."""

    def validate(self, name: str) -> BranchValidation:
        return validate_branch_name(name)
