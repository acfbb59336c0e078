"""Token counting and budget allocation.

The Tokenizer protocol is the only seam to the encoding algorithm; the
default implementation wraps tiktoken. TokenCalculator binds a tokenizer
to one model descriptor and computes the budget left for user content.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

import tiktoken

from promptfit.schemas.model import DEFAULT_MAX_INPUT_TOKENS, ModelDescriptor

logger = logging.getLogger(__name__)

_FALLBACK_ENCODING = "cl100k_base"


@runtime_checkable
class Tokenizer(Protocol):
    """Counts, encodes, and decodes text for a given model.

    Implementations must satisfy ``decode(encode(x)) == x`` for any
    representable text.
    """

    def count_tokens(self, text: str, model: ModelDescriptor) -> int: ...

    def encode(self, text: str, model: ModelDescriptor) -> list[int]: ...

    def decode(self, tokens: Sequence[int], model: ModelDescriptor) -> str: ...


class TiktokenTokenizer:
    """Tokenizer backed by tiktoken, caching one encoding per model id.

    Model ids tiktoken does not recognize fall back to ``cl100k_base``.
    Special-token text (e.g. ``<|endoftext|>``) is encoded as plain text.
    """

    def __init__(self) -> None:
        self._encodings: dict[str, tiktoken.Encoding] = {}

    def count_tokens(self, text: str, model: ModelDescriptor) -> int:
        if not text:
            return 0
        return len(self.encode(text, model))

    def encode(self, text: str, model: ModelDescriptor) -> list[int]:
        if not text:
            return []
        return self._encoding_for(model).encode(text, disallowed_special=())

    def decode(self, tokens: Sequence[int], model: ModelDescriptor) -> str:
        """Decode *tokens*, dropping partial UTF-8 characters at the edges.

        A token slice can start or end inside a multi-byte character; those
        stray bytes are discarded rather than decoded to U+FFFD.
        """
        if not tokens:
            return ""
        raw = self._encoding_for(model).decode_bytes(list(tokens))
        return raw.decode("utf-8", errors="ignore")

    def _encoding_for(self, model: ModelDescriptor) -> tiktoken.Encoding:
        encoding = self._encodings.get(model.id)
        if encoding is None:
            try:
                encoding = tiktoken.encoding_for_model(model.id)
            except KeyError:
                logger.debug(
                    "Model %s unknown to tiktoken, using %s",
                    model.id, _FALLBACK_ENCODING,
                )
                encoding = tiktoken.get_encoding(_FALLBACK_ENCODING)
            self._encodings[model.id] = encoding
        return encoding


class TokenCalculator:
    """Token math for one model: counts, codec, and the user-content budget."""

    def __init__(
        self,
        model: ModelDescriptor,
        tokenizer: Tokenizer,
        *,
        default_max_input_tokens: int = DEFAULT_MAX_INPUT_TOKENS,
    ) -> None:
        self._model = model
        self._tokenizer = tokenizer
        self._default_max_input = default_max_input_tokens

    @property
    def model(self) -> ModelDescriptor:
        return self._model

    @property
    def max_input_tokens(self) -> int:
        return self._model.input_limit(self._default_max_input)

    def available_tokens(self, system_prompt: str, reserve: int) -> int:
        """Budget for user content: input limit minus system prompt minus reserve.

        The result may be zero or negative; callers treat that as
        "nothing more fits".
        """
        return self.max_input_tokens - self.count(system_prompt) - reserve

    def count(self, content: str) -> int:
        return self._tokenizer.count_tokens(content, self._model)

    def encode(self, content: str) -> list[int]:
        return self._tokenizer.encode(content, self._model)

    def decode(self, tokens: Sequence[int]) -> str:
        return self._tokenizer.decode(tokens, self._model)

    def take(self, tokens: Sequence[int], count: int, *, from_end: bool = False) -> str:
        """Decode the first *count* tokens, or the last with *from_end*.

        The result re-encodes to at most *count* tokens; the slice is
        narrowed one token at a time until it does.
        """
        count = min(count, len(tokens))
        while count > 0:
            piece = tokens[len(tokens) - count:] if from_end else tokens[:count]
            text = self.decode(piece)
            if self.count(text) <= count:
                return text
            count -= 1
        return ""

    def messages_tokens(self, messages: Sequence[dict[str, str]]) -> int:
        """Sum the content tokens of OpenAI-format messages."""
        return sum(self.count(m.get("content", "")) for m in messages)
