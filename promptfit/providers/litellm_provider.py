"""Universal LiteLLM adapter implementing the ModelProvider interface.

Streams completion requests to any LLM provider via LiteLLM's unified API.
Translates context-window rejections into ContextLengthExceededError and
retries transient failures with exponential backoff.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import AsyncIterator
from typing import Any

import litellm

# Suppress LiteLLM's "Give Feedback / Get Help" and "Provider List" banners
litellm.suppress_debug_info = True

from promptfit.providers.base import ModelProvider
from promptfit.providers.errors import ContextLengthExceededError, is_context_overflow
from promptfit.schemas.model import ModelConfig

logger = logging.getLogger(__name__)

# Max retries for transient failures
_MAX_RETRIES = 3
_BASE_BACKOFF = 1.0  # seconds


def _short_error_reason(error: Exception) -> str:
    """Extract a short, user-friendly reason from a LiteLLM error.

    Maps error types and status codes to concise descriptions instead
    of dumping full JSON error payloads.
    """
    error_str = str(error).lower()
    if "rate" in error_str or "429" in error_str:
        return "rate limit"
    if "overloaded" in error_str or "529" in error_str:
        return "overloaded"
    if "timeout" in error_str or isinstance(error, TimeoutError):
        return "timeout"
    if "503" in error_str or "unavailable" in error_str:
        return "service unavailable"
    if "500" in error_str or "internal" in error_str:
        return "server error"
    if "connection" in error_str:
        return "connection error"
    # Fallback: first 80 chars of the error
    return str(error)[:80]


class LiteLLMProvider(ModelProvider):
    """Universal LLM adapter powered by LiteLLM.

    Routes calls to any provider (Anthropic, OpenAI, Google, etc.) through
    litellm.acompletion() with streaming enabled.
    """

    def __init__(self, config: ModelConfig) -> None:
        super().__init__(config)
        # Resolve API key from environment
        self._api_key = os.environ.get(config.api_key_env, "") if config.api_key_env else ""

    async def stream(
        self,
        messages: list[dict[str, str]],
        *,
        timeout: int = 120,
        **request: Any,
    ) -> AsyncIterator[str]:
        """Stream completion text deltas via LiteLLM.

        Args:
            messages: Messages in OpenAI format, system message first.
            timeout: Timeout in seconds for the model call.
            **request: Extra completion parameters (temperature, max_tokens, ...).

        Yields:
            Non-empty text deltas in arrival order.

        Raises:
            ContextLengthExceededError: If the prompt exceeds the model window.
            TimeoutError: If every attempt times out.
            RuntimeError: If the call fails after all retries or is rejected.
        """
        kwargs = self._build_completion_kwargs(messages, timeout, request)
        kwargs["stream"] = True

        response = await self._call_streaming_with_retry(kwargs)

        async for chunk in response:
            delta = ""
            if chunk.choices and chunk.choices[0].delta:
                delta = chunk.choices[0].delta.content or ""
            if delta:
                yield delta

    def _build_completion_kwargs(
        self,
        messages: list[dict[str, str]],
        timeout: int,
        request: dict[str, Any],
    ) -> dict:
        """Build the kwargs dict for litellm.acompletion."""
        kwargs: dict = {
            "model": self._config.model,
            "messages": messages,
            "timeout": float(timeout),
            "max_tokens": self._config.max_output_tokens,
        }
        kwargs.update(request)

        # Set API key if available
        if self._api_key:
            kwargs["api_key"] = self._api_key

        # Set custom API base if configured
        if self._config.api_base:
            kwargs["api_base"] = self._config.api_base

        return kwargs

    async def _call_streaming_with_retry(self, kwargs: dict):
        """Call litellm.acompletion with stream=True and retry on failure.

        Retries on transient errors (rate limits, server errors, timeouts).
        Context-window rejections and other non-retryable errors are raised
        immediately.
        """
        last_error: Exception | None = None

        for attempt in range(_MAX_RETRIES):
            try:
                response = await litellm.acompletion(**kwargs)
                return response
            except TimeoutError:
                last_error = TimeoutError(
                    f"Streaming call timed out after {kwargs.get('timeout')}s "
                    f"(attempt {attempt + 1}/{_MAX_RETRIES})"
                )
            except litellm.ContextWindowExceededError as e:
                raise ContextLengthExceededError(
                    f"Prompt exceeds the context window of {self._config.model}: {e}"
                ) from e
            except litellm.AuthenticationError:
                raise RuntimeError(
                    f"Authentication failed for {self._config.model}. "
                    f"Check that {self._config.api_key_env} is set correctly."
                ) from None
            except litellm.BadRequestError as e:
                if is_context_overflow(e):
                    raise ContextLengthExceededError(
                        f"Prompt exceeds the context window of {self._config.model}: {e}"
                    ) from e
                raise RuntimeError(
                    f"Bad request to {self._config.model}: {e}"
                ) from e
            except (
                litellm.RateLimitError,
                litellm.ServiceUnavailableError,
                litellm.InternalServerError,
                litellm.APIConnectionError,
            ) as e:
                last_error = e

            if attempt < _MAX_RETRIES - 1:
                backoff = _BASE_BACKOFF * (2**attempt)
                logger.warning(
                    "Streaming retry %d/%d for %s (%s, backoff: %.1fs)",
                    attempt + 1, _MAX_RETRIES, self._config.display_name,
                    _short_error_reason(last_error), backoff,
                )
                await asyncio.sleep(backoff)

        if isinstance(last_error, TimeoutError):
            raise last_error
        raise RuntimeError(
            f"Streaming call to {self._config.model} failed after "
            f"{_MAX_RETRIES} retries: {last_error}"
        ) from last_error
