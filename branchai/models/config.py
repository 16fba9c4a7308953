"""
Configuration models for the system.
"""

from dataclasses import dataclass, field
from typing import List, Optional

REASONING_EFFORTS = ("none", "minimal", "low", "medium", "high", "xhigh")

DEFAULT_API_ENDPOINT = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_TIMEOUT_MS = 30000
DEFAULT_TEMPERATURE = 0.7
DEFAULT_SUGGESTION_COUNT = 5

MIN_SUGGESTION_COUNT = 1
MAX_SUGGESTION_COUNT = 10
RECOMMENDED_TIMEOUT_RANGE_MS = (5000, 120000)
TEMPERATURE_RANGE = (0.0, 2.0)

# Models whose reasoning effort defaults differ from "medium".
NO_REASONING_MODELS = ("gpt-5.1",)
HIGH_REASONING_MODELS = ("gpt-5-pro",)


def default_reasoning_effort(model: str) -> str:
    """Reasoning effort used when the settings leave it unset."""
    if model in NO_REASONING_MODELS:
        return "none"
    if model in HIGH_REASONING_MODELS:
        return "high"
    return "medium"


def clamp_suggestion_count(count: int) -> int:
    return max(MIN_SUGGESTION_COUNT, min(MAX_SUGGESTION_COUNT, int(count)))


def mask_secret(secret: str) -> str:
    """Return a log-safe form of a secret, keeping only its first 3 characters."""
    if not secret:
        return ""
    return secret[:3] + "***"


@dataclass
class ValidationResult:
    """Result of validating a GenerationConfig."""

    valid: bool
    missing_fields: List[str] = field(default_factory=list)
    invalid_fields: List[str] = field(default_factory=list)

    def summary(self) -> str:
        parts = []
        if self.missing_fields:
            parts.append(f"Missing: {', '.join(self.missing_fields)}")
        if self.invalid_fields:
            parts.append(f"Invalid: {', '.join(self.invalid_fields)}")
        return "; ".join(parts)


@dataclass(frozen=True)
class GenerationConfig:
    """Settings for a single generation request.

    Built fresh from the settings file every time suggestions are requested.
    ``suggestion_count`` is clamped into [1, 10] on construction.
    """

    endpoint: str
    api_key: str
    model: str
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    temperature: float = DEFAULT_TEMPERATURE
    suggestion_count: int = DEFAULT_SUGGESTION_COUNT
    reasoning_effort: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(
            self, "suggestion_count", clamp_suggestion_count(self.suggestion_count)
        )

    def validate(self) -> ValidationResult:
        """Validate settings before any network call."""
        missing = []
        invalid = []

        if not self.api_key:
            missing.append("API Key")
        if not self.endpoint:
            missing.append("API Endpoint")
        if not self.model:
            missing.append("Model")

        if self.reasoning_effort and self.reasoning_effort not in REASONING_EFFORTS:
            invalid.append(
                f"Reasoning Effort (invalid value: {self.reasoning_effort})"
            )

        if not isinstance(self.timeout_ms, int) or self.timeout_ms <= 0:
            invalid.append(f"Timeout (must be positive: {self.timeout_ms})")

        low, high = TEMPERATURE_RANGE
        if not low <= self.temperature <= high:
            invalid.append(
                f"Temperature (must be between {low:g} and {high:g}: {self.temperature})"
            )

        return ValidationResult(
            valid=not missing and not invalid,
            missing_fields=missing,
            invalid_fields=invalid,
        )

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    def masked_api_key(self) -> str:
        return mask_secret(self.api_key)


@dataclass
class Settings:
    """Raw user settings as stored in the settings file."""

    api_endpoint: str = DEFAULT_API_ENDPOINT
    api_key: str = ""
    model: str = DEFAULT_MODEL
    timeout: int = DEFAULT_TIMEOUT_MS
    temperature: float = DEFAULT_TEMPERATURE
    suggestion_count: int = DEFAULT_SUGGESTION_COUNT
    reasoning_effort: Optional[str] = None

    def effective_reasoning_effort(self) -> str:
        if self.reasoning_effort:
            return self.reasoning_effort
        return default_reasoning_effort(self.model)

    def to_generation_config(self) -> GenerationConfig:
        return GenerationConfig(
            endpoint=self.api_endpoint.rstrip("/"),
            api_key=self.api_key,
            model=self.model,
            timeout_ms=self.timeout,
            temperature=self.temperature,
            suggestion_count=self.suggestion_count,
            reasoning_effort=self.effective_reasoning_effort(),
        )

    def masked(self) -> dict:
        """Settings as a dict safe to print or log."""
        return {
            "api_endpoint": self.api_endpoint,
            "api_key": mask_secret(self.api_key),
            "model": self.model,
            "timeout": self.timeout,
            "temperature": self.temperature,
            "suggestion_count": clamp_suggestion_count(self.suggestion_count),
            "reasoning_effort": self.effective_reasoning_effort(),
        }
