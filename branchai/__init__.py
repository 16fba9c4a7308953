"""
BranchAI

Generates git branch names from staged changes or a free-text description
using an OpenAI-compatible chat completions API, and creates the branch the
user picks.
"""

__version__ = "0.1.0"
__author__ = "BranchAI Team"
