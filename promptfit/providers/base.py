"""Abstract base class for all model providers.

Defines the ModelProvider interface every LLM adapter implements. The
retry loop interacts exclusively through this interface — it never calls
provider SDKs directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any

from promptfit.schemas.model import ModelConfig, ModelDescriptor


class ModelProvider(ABC):
    """Abstract interface for any LLM that can receive a packed prompt.

    Initialized from a ModelConfig loaded from the TOML registry. Exposes
    identity, token limits, and a single async stream() method that all
    providers must implement.
    """

    def __init__(self, config: ModelConfig) -> None:
        self._config = config

    # ── Identity ──────────────────────────────────────────────

    @property
    def provider_id(self) -> str:
        """Provider identifier (e.g. 'anthropic', 'openai')."""
        return self._config.provider

    @property
    def model_id(self) -> str:
        """LiteLLM model identifier used for routing."""
        return self._config.model

    @property
    def display_name(self) -> str:
        """Human-friendly model name for CLI output."""
        return self._config.display_name

    # ── Limits ────────────────────────────────────────────────

    @property
    def descriptor(self) -> ModelDescriptor:
        """Token limits the packing engine budgets against."""
        return self._config.descriptor()

    @property
    def config(self) -> ModelConfig:
        """The full ModelConfig backing this provider."""
        return self._config

    # ── Core interface ────────────────────────────────────────

    @abstractmethod
    def stream(
        self,
        messages: list[dict[str, str]],
        **request: Any,
    ) -> AsyncIterator[str]:
        """Stream completion text for a system + user message pair.

        Args:
            messages: Messages in OpenAI format, system message first.
            **request: Request metadata (timeout, temperature, ...).

        Returns:
            An async iterator of text chunks.

        Raises:
            ContextLengthExceededError: If the provider rejects the prompt as
                exceeding the model's input window.
        """

    async def complete(self, messages: list[dict[str, str]], **request: Any) -> str:
        """Collect the full streamed response into one string."""
        parts = [chunk async for chunk in self.stream(messages, **request)]
        return "".join(parts)
