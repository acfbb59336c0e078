"""Tests for promptfit.context.tokens — tokenizer and budget allocator."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from promptfit.context.tokens import TiktokenTokenizer, TokenCalculator, Tokenizer
from promptfit.schemas.model import ModelDescriptor

from conftest import ByteTokenizer, CharTokenizer, make_model

_TIKTOKEN = "promptfit.context.tokens.tiktoken"


def _fake_encoding() -> MagicMock:
    encoding = MagicMock()
    encoding.encode.side_effect = lambda text, **_: [ord(c) for c in text]
    encoding.decode_bytes.side_effect = (
        lambda tokens: "".join(chr(t) for t in tokens).encode("utf-8")
    )
    return encoding


# ── Budget Allocator ─────────────────────────────────────────────


class TestTokenCalculator:
    def test_available_tokens_subtracts_system_and_reserve(self, tokenizer):
        calc = TokenCalculator(make_model(200), tokenizer)
        assert calc.available_tokens("s" * 50, reserve=100) == 50

    def test_available_tokens_may_be_negative(self, tokenizer):
        calc = TokenCalculator(make_model(120), tokenizer)
        assert calc.available_tokens("s" * 50, reserve=100) == -30

    def test_missing_limits_use_default_floor(self, tokenizer):
        calc = TokenCalculator(make_model(None), tokenizer)
        assert calc.max_input_tokens == 8192
        assert calc.available_tokens("", reserve=100) == 8092

    def test_custom_default_floor(self, tokenizer):
        calc = TokenCalculator(make_model(None), tokenizer, default_max_input_tokens=4096)
        assert calc.max_input_tokens == 4096

    def test_messages_tokens_sums_contents(self, calculator):
        messages = [
            {"role": "system", "content": "abc"},
            {"role": "user", "content": "defgh"},
        ]
        assert calculator.messages_tokens(messages) == 8

    def test_codec_round_trip(self, calculator):
        text = "héllo — wörld"
        assert calculator.decode(calculator.encode(text)) == text

    def test_char_tokenizer_satisfies_protocol(self):
        assert isinstance(CharTokenizer(), Tokenizer)


# ── Character-safe cuts ─────────────────────────────────────────


class LossyByteTokenizer(ByteTokenizer):
    """Decodes partial characters to U+FFFD, which re-encodes larger."""

    def decode(self, tokens, model):
        return bytes(tokens).decode("utf-8", errors="replace")


class TestTake:
    def test_cut_inside_character_drops_it(self):
        calc = TokenCalculator(make_model(), ByteTokenizer())
        tokens = calc.encode("日本語")  # 3 bytes per character

        assert calc.take(tokens, 4) == "日"
        assert calc.take(tokens, 4, from_end=True) == "語"

    def test_narrows_until_text_fits(self):
        calc = TokenCalculator(make_model(), LossyByteTokenizer())
        tokens = calc.encode("日本語")

        text = calc.take(tokens, 4)

        assert text == "日"
        assert "\ufffd" not in text

    def test_count_beyond_length_keeps_everything(self, calculator):
        assert calculator.take(calculator.encode("abc"), 10) == "abc"

    def test_zero_count(self, calculator):
        assert calculator.take(calculator.encode("abc"), 0) == ""


# ── Tiktoken Tokenizer ──────────────────────────────────────────


class TestTiktokenTokenizer:
    def test_known_model_uses_model_encoding(self):
        encoding = _fake_encoding()
        with patch(_TIKTOKEN) as tk:
            tk.encoding_for_model.return_value = encoding
            tok = TiktokenTokenizer()
            assert tok.count_tokens("abcd", ModelDescriptor(id="gpt-4o")) == 4

        tk.encoding_for_model.assert_called_once_with("gpt-4o")
        tk.get_encoding.assert_not_called()

    def test_unknown_model_falls_back_to_cl100k(self):
        encoding = _fake_encoding()
        with patch(_TIKTOKEN) as tk:
            tk.encoding_for_model.side_effect = KeyError("no such model")
            tk.get_encoding.return_value = encoding
            tok = TiktokenTokenizer()
            tokens = tok.encode("hi", ModelDescriptor(id="mystery-model"))

        assert tokens == [ord("h"), ord("i")]
        tk.get_encoding.assert_called_once_with("cl100k_base")

    def test_encoding_cached_per_model(self):
        encoding = _fake_encoding()
        with patch(_TIKTOKEN) as tk:
            tk.encoding_for_model.return_value = encoding
            tok = TiktokenTokenizer()
            model = ModelDescriptor(id="gpt-4o")
            tok.count_tokens("a", model)
            tok.count_tokens("b", model)
            tok.decode([99], model)

        assert tk.encoding_for_model.call_count == 1

    def test_special_tokens_encoded_as_text(self):
        encoding = _fake_encoding()
        with patch(_TIKTOKEN) as tk:
            tk.encoding_for_model.return_value = encoding
            TiktokenTokenizer().encode("<|endoftext|>", ModelDescriptor(id="gpt-4o"))

        encoding.encode.assert_called_once_with("<|endoftext|>", disallowed_special=())

    @pytest.mark.parametrize("method, arg", [
        ("count_tokens", ""),
        ("encode", ""),
        ("decode", []),
    ])
    def test_empty_input_skips_encoding(self, method, arg):
        with patch(_TIKTOKEN) as tk:
            result = getattr(TiktokenTokenizer(), method)(arg, ModelDescriptor())

        assert not result
        tk.encoding_for_model.assert_not_called()

    def test_decode_drops_partial_trailing_bytes(self):
        encoding = MagicMock()
        encoding.decode_bytes.return_value = "ab日".encode("utf-8")[:-1]
        with patch(_TIKTOKEN) as tk:
            tk.encoding_for_model.return_value = encoding
            text = TiktokenTokenizer().decode([1, 2, 3], ModelDescriptor(id="gpt-4o"))

        assert text == "ab"
        encoding.decode_bytes.assert_called_once_with([1, 2, 3])
