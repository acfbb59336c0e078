"""Shared fixtures: a deterministic one-token-per-character tokenizer."""

from __future__ import annotations

from collections.abc import Sequence

import pytest

from promptfit.context.tokens import TokenCalculator
from promptfit.schemas.model import MaxTokens, ModelDescriptor


class CharTokenizer:
    """Every character is one token, so token math is exact and readable."""

    def count_tokens(self, text: str, model: ModelDescriptor) -> int:
        return len(text)

    def encode(self, text: str, model: ModelDescriptor) -> list[int]:
        return [ord(c) for c in text]

    def decode(self, tokens: Sequence[int], model: ModelDescriptor) -> str:
        return "".join(chr(t) for t in tokens)


def make_model(max_input: int | None = 8192) -> ModelDescriptor:
    if max_input is None:
        return ModelDescriptor(id="test-model")
    return ModelDescriptor(id="test-model", max_tokens=MaxTokens(input=max_input))


@pytest.fixture()
def tokenizer() -> CharTokenizer:
    return CharTokenizer()


@pytest.fixture()
def calculator(tokenizer: CharTokenizer) -> TokenCalculator:
    return TokenCalculator(make_model(), tokenizer)


class ByteTokenizer:
    """One token per UTF-8 byte, so a cut can land inside a character.

    Partial characters are dropped on decode, as tiktoken's byte-level
    decoding does in ``TiktokenTokenizer``.
    """

    def count_tokens(self, text: str, model: ModelDescriptor) -> int:
        return len(text.encode("utf-8"))

    def encode(self, text: str, model: ModelDescriptor) -> list[int]:
        return list(text.encode("utf-8"))

    def decode(self, tokens: Sequence[int], model: ModelDescriptor) -> str:
        return bytes(tokens).decode("utf-8", errors="ignore")
