"""
Prompt construction for branch name generation.

This module builds the single system message sent to the generation API
from the repository context or a free-text description.
"""

from typing import Optional

BRANCH_PREFIXES = (
    "feature/",
    "bugfix/",
    "hotfix/",
    "refactor/",
    "docs/",
    "test/",
    "chore/",
)
MAX_SUGGESTED_NAME_LENGTH = 50

DESCRIPTION_LABEL = "Commit message context:"
DIFF_LABEL = "Git diff context:"


class SuggestionRequestBuilder:
    """Builds the instruction payload for the generation API."""

    def build(
        self,
        diff_context: Optional[str] = None,
        description: Optional[str] = None,
        count: int = 5,
    ) -> str:
        """
        Build the instruction payload.

        A non-blank description takes precedence over the diff context. With
        neither, the payload carries no content block and the model produces
        generic suggestions.

        Args:
            diff_context: Repository context (current branch, staged diff or file lists)
            description: Free-text description of the work
            count: Exact number of suggestions to ask for

        Returns:
            The system message text
        """
        prompt = (
            "You are a helpful assistant that generates Git branch names. "
            f"Generate {count} branch name suggestions based on the user's work context.\n"
            "\n"
            "Requirements:\n"
            f"- Use conventional branch naming prefixes: {', '.join(BRANCH_PREFIXES)}\n"
            "- Use kebab-case for the branch name\n"
            f"- Keep names concise but descriptive (max {MAX_SUGGESTED_NAME_LENGTH} characters)\n"
            "- Follow the format: prefix/description\n"
            "- Ensure each suggestion is unique\n"
            "- Analyze the provided context to understand the work being done\n"
            "\n"
            f"Output format: Return exactly {count} branch names, one per line, "
            "in order of relevance (most relevant first). "
            "Do not add numbering, explanations or any other commentary."
        )

        if description and description.strip():
            prompt += f"\n\n{DESCRIPTION_LABEL}\n{description.strip()}"
        elif diff_context and diff_context.strip():
            prompt += f"\n\n{DIFF_LABEL}\n{diff_context.strip()}"

        return prompt
