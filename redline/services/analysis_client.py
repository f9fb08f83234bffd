"""OpenAI adapter for the contract analysis calls.

Wraps the Chat Completions API behind ``AnalysisClient.complete`` so every
pipeline stage makes its request the same way: one configured depth, one
system prompt, one user payload, bounded by a fixed timeout.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from typing import Optional, TypeVar

from openai import (
    APIConnectionError,
    APITimeoutError,
    AsyncOpenAI,
    AuthenticationError,
    BadRequestError,
    InternalServerError,
    RateLimitError,
)
from pydantic import BaseModel, ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from redline.core.config import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

# Errors that are safe to retry (transient)
RETRYABLE_ERRORS = (
    RateLimitError,
    APIConnectionError,
    APITimeoutError,
    InternalServerError,
    asyncio.TimeoutError,
)

_CODE_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


class AnalysisError(RuntimeError):
    """Raised when an analysis request fails to return usable text."""

    pass


class AnalysisTimeoutError(AnalysisError):
    """Raised when an analysis request exceeds its timeout."""

    pass


class ResponseParseError(ValueError):
    """Raised when response text is not the expected JSON structure."""

    pass


@dataclass(frozen=True)
class DepthConfig:
    """Model configuration for one analysis depth.

    ``json_mode`` requests the provider's JSON object response format; it is
    an explicit capability flag since not every model supports it.
    """

    name: str
    model: str
    json_mode: bool = True
    temperature: float = 0.1


def strip_code_fences(text: str) -> str:
    """Remove markdown code-fence markers around a JSON payload."""
    return _CODE_FENCE_RE.sub("", text).strip()


def decode_response(text: Optional[str], model: type[T]) -> T:
    """Parse untrusted response text into ``model``.

    Raises:
        ResponseParseError: If the text is empty, not JSON, or the wrong shape.
    """
    if not text or not text.strip():
        raise ResponseParseError("Empty response text")

    try:
        data = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"Invalid JSON response: {e}") from e

    if not isinstance(data, dict):
        raise ResponseParseError(f"Expected a JSON object, got {type(data).__name__}")

    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ResponseParseError(f"Unexpected response structure: {e}") from e


def truncate_text(text: str, max_chars: int) -> str:
    """Truncate text to max_chars, preserving complete sentences where possible."""
    if len(text) <= max_chars:
        return text

    truncated = text[:max_chars]
    # Try to end at a sentence boundary
    last_period = truncated.rfind(".")
    if last_period > max_chars * 0.8:  # Only if we keep at least 80%
        truncated = truncated[: last_period + 1]

    return truncated


class AnalysisClient:
    """Request/response access to the external analysis capability.

    Args:
        openai_client: Async OpenAI client (a mock in tests).
        high: Depth used for classification, summaries, diffs and synthesis.
        fast: Cheaper depth used for standard-tier clause extraction.
        timeout_s: Bound on each request; exceeding it raises AnalysisTimeoutError.
        max_attempts: Attempts per request for transient errors (1 = no retry).
        max_chars: Per-text truncation limit used by prompt builders.
        max_concurrency: Cap on in-flight requests; 0 disables the cap.
    """

    def __init__(
        self,
        openai_client: AsyncOpenAI,
        *,
        high: DepthConfig,
        fast: DepthConfig,
        timeout_s: float = 60.0,
        max_attempts: int = 1,
        max_chars: int = 8000,
        max_concurrency: int = 0,
    ):
        self._openai = openai_client
        self.high = high
        self.fast = fast
        self.timeout_s = timeout_s
        self.max_attempts = max(1, max_attempts)
        self.max_chars = max_chars
        self._semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency > 0 else None

    @classmethod
    def from_settings(cls, settings: Settings) -> "AnalysisClient":
        """Build a client and both depths from application settings."""
        openai_client = AsyncOpenAI(
            api_key=settings.OPENAI_API_KEY or None,
            base_url=settings.OPENAI_BASE_URL,
            timeout=settings.LLM_TIMEOUT_S,
            # Retries are governed by LLM_MAX_ATTEMPTS only
            max_retries=0,
        )
        return cls(
            openai_client,
            high=DepthConfig(
                name="high",
                model=settings.HIGH_DEPTH_MODEL,
                json_mode=settings.HIGH_DEPTH_JSON_MODE,
                temperature=settings.LLM_TEMPERATURE,
            ),
            fast=DepthConfig(
                name="fast",
                model=settings.FAST_DEPTH_MODEL,
                json_mode=settings.FAST_DEPTH_JSON_MODE,
                temperature=settings.LLM_TEMPERATURE,
            ),
            timeout_s=settings.LLM_TIMEOUT_S,
            max_attempts=settings.LLM_MAX_ATTEMPTS,
            max_chars=settings.LLM_MAX_CHARS,
            max_concurrency=settings.LLM_MAX_CONCURRENCY,
        )

    def truncate(self, text: str) -> str:
        return truncate_text(text, self.max_chars)

    async def _call_openai(self, depth: DepthConfig, system_prompt: str, user_payload: str) -> str:
        options = {
            "model": depth.model,
            "temperature": depth.temperature,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_payload},
            ],
        }
        if depth.json_mode:
            options["response_format"] = {"type": "json_object"}

        response = await asyncio.wait_for(
            self._openai.chat.completions.create(**options),
            timeout=self.timeout_s,
        )

        content = response.choices[0].message.content
        if not content:
            raise AnalysisError("Empty response from LLM")
        return content

    async def _attempt(self, depth: DepthConfig, system_prompt: str, user_payload: str) -> str:
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=30),
            reraise=True,
        ):
            with attempt:
                return await self._call_openai(depth, system_prompt, user_payload)
        raise AnalysisError("No attempt made")  # pragma: no cover

    async def complete(self, depth: DepthConfig, system_prompt: str, user_payload: str) -> str:
        """Send one analysis request and return the raw response text.

        Raises:
            AnalysisTimeoutError: If the request exceeds the timeout.
            AnalysisError: On any other failure (API, empty response).
        """
        try:
            if self._semaphore is None:
                return await self._attempt(depth, system_prompt, user_payload)
            async with self._semaphore:
                return await self._attempt(depth, system_prompt, user_payload)
        except AnalysisError:
            raise
        except (asyncio.TimeoutError, APITimeoutError) as e:
            raise AnalysisTimeoutError(
                f"Analysis request timed out after {self.timeout_s}s"
            ) from e
        except RETRYABLE_ERRORS as e:
            raise AnalysisError(f"API error after {self.max_attempts} attempt(s): {e}") from e
        except (AuthenticationError, BadRequestError) as e:
            # Non-retryable errors - fail immediately
            raise AnalysisError(f"Non-retryable API error: {e}") from e
        except Exception as e:
            raise AnalysisError(f"Unexpected error: {e}") from e

    async def close(self) -> None:
        await self._openai.close()
