"""Model descriptor and registry entry schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field

DEFAULT_MAX_INPUT_TOKENS = 8192


class MaxTokens(BaseModel):
    """Token limits advertised for a model."""

    input: int = Field(default=DEFAULT_MAX_INPUT_TOKENS, gt=0, description="Input token limit")
    output: int = Field(default=4096, gt=0, description="Output token limit")


class ModelDescriptor(BaseModel):
    """Read-only description of the target model used for budgeting."""

    id: str = Field(default="gpt-4", description="Model identifier, also used for tokenizer lookup")
    max_tokens: MaxTokens | None = Field(
        default=None, description="Token limits; absent means the conservative default"
    )

    def input_limit(self, default: int = DEFAULT_MAX_INPUT_TOKENS) -> int:
        """Return the input token limit, or *default* when none is declared."""
        if self.max_tokens is None:
            return default
        return self.max_tokens.input


class ModelConfig(BaseModel):
    """Configuration for a single LLM model in the registry.

    Loaded from models.toml. Each entry provides the LiteLLM routing
    information and the token limits used to size prompts.
    """

    provider: str = Field(description="Provider identifier (e.g. 'anthropic', 'openai')")
    model: str = Field(description="LiteLLM model identifier (e.g. 'gpt-4o-mini')")
    display_name: str = Field(description="Human-friendly model name for CLI output")
    api_key_env: str = Field(default="", description="Environment variable name holding the API key")
    api_base: str = Field(default="", description="Custom API base URL (empty = provider default)")
    max_input_tokens: int = Field(
        default=DEFAULT_MAX_INPUT_TOKENS, gt=0, description="Maximum input tokens"
    )
    max_output_tokens: int = Field(default=4096, gt=0, description="Maximum output tokens")

    def descriptor(self) -> ModelDescriptor:
        """Build the descriptor the packing engine budgets against."""
        return ModelDescriptor(
            id=self.model,
            max_tokens=MaxTokens(
                input=self.max_input_tokens,
                output=self.max_output_tokens,
            ),
        )
