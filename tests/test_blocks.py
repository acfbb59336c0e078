"""Tests for promptfit.context.blocks — the commit-message block set."""

from __future__ import annotations

import pytest

from promptfit.context.blocks import BLOCK_SPECS, commit_message_blocks, make_block
from promptfit.schemas.config import PackingConfig
from promptfit.schemas.context import TruncationStrategy


class TestMakeBlock:
    def test_code_changes_is_smart_and_most_important(self):
        block = make_block("code-changes", "diff --git a/x b/x\n")
        assert block.strategy is TruncationStrategy.SMART_TRUNCATE_DIFF
        assert block.priority == min(p for p, _ in BLOCK_SPECS.values())

    def test_unknown_name(self):
        with pytest.raises(KeyError):
            make_block("mystery", "text")

    def test_every_standard_block_has_an_order_slot(self):
        assert set(BLOCK_SPECS) == set(PackingConfig().block_order)


class TestCommitMessageBlocks:
    def test_empty_texts_skipped(self):
        blocks = commit_message_blocks("+x", similar_code="  ", reminder="be brief")
        assert [b.name for b in blocks] == ["code-changes", "reminder"]

    def test_all_blocks(self):
        blocks = commit_message_blocks(
            "+x",
            original_code="a",
            user_commits="b",
            recent_commits="c",
            similar_code="d",
            custom_instructions="e",
            reminder="f",
            global_context="g",
        )
        assert {b.name for b in blocks} == set(BLOCK_SPECS)
        by_name = {b.name: b for b in blocks}
        assert by_name["similar-code"].content == "d"
        assert by_name["original-code"].strategy is TruncationStrategy.SMART_TRUNCATE_DIFF
