"""promptfit provider layer.

All LLM interactions go through LiteLLMProvider via the ModelProvider
interface.
"""

from promptfit.providers.base import ModelProvider
from promptfit.providers.errors import (
    ContextLengthExceededError,
    RequestTooLargeError,
    is_context_overflow,
)
from promptfit.providers.litellm_provider import LiteLLMProvider
from promptfit.providers.registry import load_models, load_packing_config

__all__ = [
    "ContextLengthExceededError",
    "LiteLLMProvider",
    "ModelProvider",
    "RequestTooLargeError",
    "is_context_overflow",
    "load_models",
    "load_packing_config",
]
