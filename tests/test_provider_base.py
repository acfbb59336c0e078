"""Tests for promptfit.providers.base — the ModelProvider contract."""

from __future__ import annotations

import pytest

from promptfit.providers.base import ModelProvider
from promptfit.schemas.model import ModelConfig


def _config() -> ModelConfig:
    return ModelConfig(
        provider="anthropic",
        model="claude-sonnet-4-5-20250929",
        display_name="Claude Sonnet 4.5",
        max_input_tokens=200000,
        max_output_tokens=8192,
    )


class EchoProvider(ModelProvider):
    async def stream(self, messages, **request):
        for message in messages:
            yield message["content"]


class TestModelProvider:
    def test_cannot_instantiate_abstract(self):
        with pytest.raises(TypeError):
            ModelProvider(_config())

    def test_identity_properties(self):
        provider = EchoProvider(_config())
        assert provider.provider_id == "anthropic"
        assert provider.model_id == "claude-sonnet-4-5-20250929"
        assert provider.display_name == "Claude Sonnet 4.5"
        assert provider.config.max_output_tokens == 8192

    def test_descriptor_carries_limits(self):
        descriptor = EchoProvider(_config()).descriptor
        assert descriptor.id == "claude-sonnet-4-5-20250929"
        assert descriptor.input_limit() == 200000

    @pytest.mark.asyncio
    async def test_complete_joins_stream(self):
        provider = EchoProvider(_config())
        text = await provider.complete([
            {"role": "system", "content": "a"},
            {"role": "user", "content": "b"},
        ])
        assert text == "ab"
