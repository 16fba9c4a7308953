"""
Settings management for BranchAI.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..models.config import (
    DEFAULT_API_ENDPOINT,
    DEFAULT_MODEL,
    DEFAULT_SUGGESTION_COUNT,
    DEFAULT_TEMPERATURE,
    DEFAULT_TIMEOUT_MS,
    MAX_SUGGESTION_COUNT,
    MIN_SUGGESTION_COUNT,
    RECOMMENDED_TIMEOUT_RANGE_MS,
    GenerationConfig,
    Settings,
)
from ..utils.logging import get_logger

logger = get_logger("config.manager")

CONFIG_ENV_VAR = "BRANCHAI_CONFIG"


def default_config_paths() -> List[Path]:
    """Settings file locations searched in order."""
    return [
        Path("branchai.yaml"),
        Path("branchai.yml"),
        Path.home() / ".config" / "branchai" / "config.yaml",
    ]


class SettingsManager:
    """Manages loading, validation, and templating of user settings."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the settings manager.

        Args:
            config_path: Path to the settings file. If None, standard locations
                are searched and the user-level path is used when none exists.
        """
        self.config_path = config_path or self._find_config_file()

    def _find_config_file(self) -> str:
        """Find the settings file in standard locations."""
        env_path = os.getenv(CONFIG_ENV_VAR)
        if env_path:
            return env_path

        possible_paths = default_config_paths()
        for path in possible_paths:
            if path.exists():
                return str(path)

        return str(possible_paths[-1])

    @property
    def exists(self) -> bool:
        return os.path.exists(self.config_path)

    def load_settings(self) -> Settings:
        """
        Load settings from file; a missing file yields the defaults.

        Raises:
            ValueError: If the file cannot be read or parsed.
        """
        if not self.exists:
            logger.info("No settings file found, using defaults", {"path": self.config_path})
            return Settings()

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                if self.config_path.endswith(".json"):
                    raw_config = json.load(f)
                else:
                    raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in settings file: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in settings file: {e}")
        except OSError as e:
            raise ValueError(f"Error reading settings file: {e}")

        if raw_config is None:
            raw_config = {}
        if not isinstance(raw_config, dict):
            raise ValueError("Settings file must contain a mapping of setting names to values")

        raw_config = self._expand_env_vars(raw_config)
        settings = self._parse_settings(raw_config)

        logger.info("Loaded settings", {"path": self.config_path, **settings.masked()})

        return settings

    def _expand_env_vars(self, obj: Any) -> Any:
        """Recursively expand ${VAR_NAME} values from the environment."""
        if isinstance(obj, dict):
            return {key: self._expand_env_vars(value) for key, value in obj.items()}
        elif isinstance(obj, list):
            return [self._expand_env_vars(item) for item in obj]
        elif isinstance(obj, str):
            if obj.startswith("${") and obj.endswith("}"):
                var_name = obj[2:-1]
                env_value = os.getenv(var_name)
                if env_value is None:
                    # Left empty so validation reports the field as missing
                    logger.warning(f"Environment variable '{var_name}' not found")
                    return ""
                return env_value
            return obj
        else:
            return obj

    def _parse_settings(self, raw_config: Dict[str, Any]) -> Settings:
        """Parse a raw settings dictionary into a Settings object."""
        try:
            timeout = int(raw_config.get("timeout", DEFAULT_TIMEOUT_MS))
            temperature = float(raw_config.get("temperature", DEFAULT_TEMPERATURE))
            suggestion_count = int(
                raw_config.get("suggestion_count", DEFAULT_SUGGESTION_COUNT)
            )
        except (TypeError, ValueError) as e:
            raise ValueError(f"Error parsing settings: {e}")

        low, high = RECOMMENDED_TIMEOUT_RANGE_MS
        if not low <= timeout <= high:
            logger.warning(
                "Timeout outside the recommended range",
                {"timeout": timeout, "min": low, "max": high},
            )

        if not MIN_SUGGESTION_COUNT <= suggestion_count <= MAX_SUGGESTION_COUNT:
            logger.warning(
                "Suggestion count clamped",
                {"suggestion_count": suggestion_count},
            )

        reasoning_effort = raw_config.get("reasoning_effort")

        return Settings(
            api_endpoint=str(raw_config.get("api_endpoint") or DEFAULT_API_ENDPOINT),
            api_key=str(raw_config.get("api_key") or ""),
            model=str(raw_config.get("model") or DEFAULT_MODEL),
            timeout=timeout,
            temperature=temperature,
            suggestion_count=suggestion_count,
            reasoning_effort=str(reasoning_effort) if reasoning_effort else None,
        )

    def load_generation_config(self) -> GenerationConfig:
        """Build a fresh GenerationConfig from the settings file."""
        return self.load_settings().to_generation_config()

    def get_config_template(self) -> Dict[str, Any]:
        """
        Get a template settings dictionary.

        Returns:
            Dictionary with every supported setting.
        """
        return {
            "api_endpoint": DEFAULT_API_ENDPOINT,
            "api_key": "${OPENAI_API_KEY}",
            "model": DEFAULT_MODEL,
            "timeout": DEFAULT_TIMEOUT_MS,
            "temperature": DEFAULT_TEMPERATURE,
            "suggestion_count": DEFAULT_SUGGESTION_COUNT,
            "reasoning_effort": None,
        }

    def write_template(self, overwrite: bool = False) -> bool:
        """
        Write the template to the settings path.

        Returns:
            True if the file was written, False if it already existed.
        """
        path = Path(self.config_path)
        if path.exists() and not overwrite:
            return False

        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self.get_config_template(), f, default_flow_style=False, sort_keys=False)

        logger.info("Wrote settings template", {"path": str(path)})
        return True
