"""
Branch name generation through an OpenAI-compatible chat completions API.

This module provides the ChatCompletionTransport, which performs a single
HTTP exchange, and the GenerationClient, which validates settings, builds
the prompt, retries transient failures with exponential backoff and parses
the reply into candidate branch names.
"""

import asyncio
import errno
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional

import aiohttp
import requests
from aiohttp import ClientTimeout

from ..models.config import GenerationConfig
from ..utils.error_handling import (
    AttemptFailure,
    ConfigurationError,
    NetworkError,
    ParseError,
    RetryConfig,
)
from ..utils.logging import get_logger
from .prompt_builder import SuggestionRequestBuilder

logger = get_logger("generation.client")

MAX_OUTPUT_TOKENS = 200

_ERRNO_TAGS = {
    errno.ECONNREFUSED: "ECONNREFUSED",
    errno.ECONNRESET: "ECONNRESET",
    errno.ETIMEDOUT: "ETIMEDOUT",
}


class TransportError(Exception):
    """A single HTTP exchange with the generation API failed."""

    def __init__(self, message: str, status: Optional[int] = None, timed_out: bool = False):
        super().__init__(message)
        self.status = status
        self.timed_out = timed_out


def _os_error_message(error: OSError) -> str:
    tag = _ERRNO_TAGS.get(error.errno)
    if tag:
        return f"{tag}: {error}"
    return f"Connection error: {error}"


def build_request_body(config: GenerationConfig, prompt: str) -> Dict[str, Any]:
    """Build the chat completions request body."""
    body: Dict[str, Any] = {
        "model": config.model,
        "messages": [{"role": "system", "content": prompt}],
        "temperature": config.temperature,
        "max_tokens": MAX_OUTPUT_TOKENS,
    }

    if config.reasoning_effort:
        body["reasoning_effort"] = config.reasoning_effort

    return body


def build_headers(config: GenerationConfig) -> Dict[str, str]:
    return {
        "Authorization": f"Bearer {config.api_key}",
        "Content-Type": "application/json",
    }


class ChatCompletionTransport:
    """Performs one POST to ``<endpoint>/chat/completions``."""

    def __init__(self, session_factory: Callable[..., Any] = aiohttp.ClientSession):
        """
        Initialize the transport.

        Args:
            session_factory: Callable returning an aiohttp-compatible client session
        """
        self.session_factory = session_factory

    async def complete(self, config: GenerationConfig, prompt: str) -> str:
        """
        Send the prompt and return the reply text.

        Raises:
            TransportError: On timeout, connection failure, non-success status
                or a reply without ``choices[0].message``
        """
        url = f"{config.endpoint}/chat/completions"
        timeout = ClientTimeout(total=config.timeout_seconds)

        try:
            async with self.session_factory(timeout=timeout) as session:
                async with session.post(
                    url,
                    json=build_request_body(config, prompt),
                    headers=build_headers(config),
                ) as response:
                    if response.status >= 400:
                        error_text = await response.text()
                        raise TransportError(
                            f"API request failed with status {response.status}: {error_text}",
                            status=response.status,
                        )

                    try:
                        data = await response.json(content_type=None)
                    except ValueError as e:
                        raise TransportError(f"Invalid API response format: {e}") from e

        except asyncio.TimeoutError as e:
            raise TransportError("Request timeout", timed_out=True) from e
        except aiohttp.ServerDisconnectedError as e:
            raise TransportError(f"ECONNRESET: {e}") from e
        except OSError as e:
            raise TransportError(_os_error_message(e)) from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Request failed: {e}") from e

        return self._extract_content(data)

    @staticmethod
    def _extract_content(data: Any) -> str:
        try:
            message = data["choices"][0]["message"]
        except (KeyError, IndexError, TypeError):
            raise TransportError("Invalid API response format")

        if not isinstance(message, dict):
            raise TransportError("Invalid API response format")

        content = message.get("content")
        if content is None:
            return ""
        if not isinstance(content, str):
            raise TransportError("Invalid API response format")

        return content


def parse_branch_names(response: str, count: int) -> List[str]:
    """
    Split a reply into candidate branch names.

    Lines are trimmed and blank lines dropped; order and duplicates are kept.

    Raises:
        ParseError: If no non-blank line remains
    """
    lines = [line.strip() for line in response.split("\n")]
    lines = [line for line in lines if line]

    if not lines:
        raise ParseError("No branch names generated")

    return lines[:count]


class GenerationClient:
    """Generates branch name suggestions with retry on transient failures."""

    def __init__(
        self,
        transport: Optional[ChatCompletionTransport] = None,
        request_builder: Optional[SuggestionRequestBuilder] = None,
        retry_config: Optional[RetryConfig] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize the client.

        Args:
            transport: HTTP transport; defaults to an aiohttp transport
            request_builder: Prompt builder
            retry_config: Retry policy; defaults to 3 retries with 1s/2s/4s backoff
            sleep: Coroutine used for backoff delays
        """
        self.transport = transport or ChatCompletionTransport()
        self.request_builder = request_builder or SuggestionRequestBuilder()
        self.retry_config = retry_config or RetryConfig()
        self.sleep = sleep

    async def generate(
        self,
        config: GenerationConfig,
        diff_context: Optional[str] = None,
        description: Optional[str] = None,
        count: Optional[int] = None,
    ) -> List[str]:
        """
        Generate branch name suggestions.

        Args:
            config: Generation settings
            diff_context: Repository context for the prompt
            description: Free-text description; takes precedence over diff_context
            count: Number of suggestions; defaults to config.suggestion_count

        Returns:
            Up to ``count`` candidate names, most relevant first

        Raises:
            ConfigurationError: If the settings are incomplete or invalid
            NetworkError: If the API call failed fatally or retries ran out
            ParseError: If the reply held no branch names
        """
        validation = config.validate()
        if not validation.valid:
            raise ConfigurationError(validation.missing_fields, validation.invalid_fields)

        suggestion_count = count or config.suggestion_count
        prompt = self.request_builder.build(diff_context, description, suggestion_count)

        logger.info(
            "Requesting branch name suggestions",
            {
                "model": config.model,
                "count": suggestion_count,
                "api_key": config.masked_api_key(),
            },
        )

        content = await self._call_with_retry(config, prompt)
        names = parse_branch_names(content, suggestion_count)

        logger.info("Received branch name suggestions", {"suggestions": len(names)})
        return names

    async def _call_with_retry(self, config: GenerationConfig, prompt: str) -> str:
        max_attempts = self.retry_config.max_attempts
        last_failure: Optional[AttemptFailure] = None
        attempts = 0

        for attempt in range(max_attempts):
            attempts = attempt + 1
            content, failure = await self._attempt(config, prompt)
            if failure is None:
                if attempt > 0:
                    logger.info("Generation succeeded after retry", {"attempt": attempts})
                return content

            last_failure = failure
            logger.warning(
                "Generation attempt failed",
                {
                    "attempt": attempts,
                    "max_attempts": max_attempts,
                    "kind": failure.kind.value,
                    "error": failure.message,
                },
            )

            if not failure.is_transient or attempt == max_attempts - 1:
                break

            delay = self.retry_config.delay_for(attempt)
            logger.info(f"Retrying in {delay:.2f} seconds", {"attempt": attempts})
            await self.sleep(delay)

        raise NetworkError(last_failure, attempts)

    async def _attempt(self, config: GenerationConfig, prompt: str):
        """Run one attempt under the hard deadline; returns (content, failure)."""
        try:
            content = await asyncio.wait_for(
                self.transport.complete(config, prompt),
                timeout=config.timeout_seconds,
            )
        except asyncio.TimeoutError:
            return None, AttemptFailure.from_message("Request timeout", timed_out=True)
        except TransportError as e:
            return None, AttemptFailure.from_message(
                str(e), status=e.status, timed_out=e.timed_out
            )
        except Exception as e:
            logger.error("Unexpected generation failure", {"error": str(e)}, exc_info=True)
            return None, AttemptFailure.from_message(str(e) or type(e).__name__)

        return content, None

    def test_connection(self, config: GenerationConfig) -> bool:
        """Query the endpoint's model listing with the configured credentials."""
        start_time = time.time()
        try:
            response = requests.get(
                f"{config.endpoint}/models",
                headers=build_headers(config),
                timeout=min(config.timeout_seconds, 10),
            )
        except requests.RequestException as e:
            logger.error("Connection test failed", {"error": str(e)})
            return False

        logger.info(
            "Connection test finished",
            {"status": response.status_code, "response_time": time.time() - start_time},
        )
        return response.status_code == 200
