"""
Claude API Client

Thin async wrapper around the Anthropic SDK used by the intent classifier
and the slot extractor. Both send one short user message and want one
short text answer back, so that is all this client supports.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

from anthropic import AsyncAnthropic, APIError, RateLimitError, APIConnectionError

from app.config import settings

logger = logging.getLogger(__name__)

# Errors worth retrying on the same model
TRANSIENT_ERRORS = (RateLimitError, APIConnectionError)


class ClaudeClientError(Exception):
    """Raised when Claude API call fails."""
    pass


@dataclass
class ClaudeResponse:
    """Text answer from Claude."""
    content: str
    model: str
    input_tokens: int
    output_tokens: int
    stop_reason: str
    latency_ms: float
    used_fallback: bool = False


class ClaudeClient:
    """
    Async Claude API client wrapper.

    Transient failures (rate limits, dropped connections) are retried with
    exponential backoff. If the configured model still fails, the request
    is tried once on the fallback model before giving up.
    """

    _instance: Optional["ClaudeClient"] = None

    def __init__(
        self,
        api_key: Optional[str] = None,
        max_retries: Optional[int] = None,
    ):
        """Initialize Claude client.

        Args:
            api_key: Anthropic API key (defaults to settings)
            max_retries: Attempts per model for transient errors (defaults to settings)

        Raises:
            ClaudeClientError: If no API key is configured
        """
        self.api_key = api_key or settings.anthropic_api_key
        if not self.api_key:
            raise ClaudeClientError("ANTHROPIC_API_KEY is not configured")

        # SDK retries are disabled; backoff is handled in _create
        self._client = AsyncAnthropic(
            api_key=self.api_key,
            timeout=settings.claude_timeout,
            max_retries=0,
        )
        self.model = settings.claude_model
        self.fallback_model = settings.claude_fallback_model
        self.max_retries = max_retries or settings.claude_max_retries

        logger.info(f"ClaudeClient initialized with model={self.model}")

    @classmethod
    def get_instance(cls) -> "ClaudeClient":
        """Get singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset singleton instance (useful for testing)."""
        cls._instance = None

    async def generate(
        self,
        prompt: str,
        max_tokens: int = 1024,
        temperature: float = 0.0,
        use_fallback_on_error: bool = True,
    ) -> ClaudeResponse:
        """
        Send a single-turn prompt and return the text answer.

        Args:
            prompt: User message
            max_tokens: Maximum tokens in response
            temperature: Sampling temperature (0.0 for deterministic)
            use_fallback_on_error: Try fallback model on failure

        Returns:
            ClaudeResponse with generated content

        Raises:
            ClaudeClientError: If every attempt fails
        """
        models = [self.model]
        if use_fallback_on_error and self.fallback_model and self.fallback_model != self.model:
            models.append(self.fallback_model)

        last_error: Optional[Exception] = None
        for model in models:
            start_time = time.time()
            try:
                response = await self._create(model, prompt, max_tokens, temperature)
            except (APIError, ClaudeClientError) as e:
                last_error = e
                logger.warning(f"Claude call on {model} failed: {e}")
                continue

            return ClaudeResponse(
                content=self._text_of(response),
                model=model,
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
                stop_reason=response.stop_reason,
                latency_ms=(time.time() - start_time) * 1000,
                used_fallback=model != self.model,
            )

        raise ClaudeClientError(f"Claude API call failed: {last_error}") from last_error

    async def _create(
        self,
        model: str,
        prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> Any:
        """Call the Messages API, backing off on transient errors."""
        for attempt in range(self.max_retries):
            try:
                return await self._client.messages.create(
                    model=model,
                    max_tokens=max_tokens,
                    temperature=temperature,
                    messages=[{"role": "user", "content": prompt}],
                )
            except TRANSIENT_ERRORS as e:
                if attempt == self.max_retries - 1:
                    raise
                wait_time = 2 ** attempt
                logger.warning(
                    f"{type(e).__name__} on {model}, retrying in {wait_time}s "
                    f"(attempt {attempt + 1}/{self.max_retries})"
                )
                await asyncio.sleep(wait_time)

        raise ClaudeClientError("max_retries must be at least 1")

    @staticmethod
    def _text_of(response: Any) -> str:
        """Join the text blocks of a Messages API response."""
        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        if not text:
            raise ClaudeClientError(f"Empty response (stop_reason={response.stop_reason})")
        return text

    async def close(self) -> None:
        """Close the client."""
        await self._client.close()


# Singleton accessor
async def get_claude_client() -> ClaudeClient:
    """Get Claude client singleton instance."""
    return ClaudeClient.get_instance()


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence from model output."""
    text = text.strip()
    if not text.startswith("```"):
        return text

    lines = text.split("\n")[1:]  # drop ```json / ```
    if lines and lines[-1].strip() == "```":
        lines = lines[:-1]
    return "\n".join(lines).strip()
