"""Tests for promptfit.context.reducer — one-step adaptive reduction."""

from __future__ import annotations

from promptfit.context.reducer import reduce_blocks, truncatable_blocks
from promptfit.notify import RecordingNotifier
from promptfit.schemas.config import PackingConfig
from promptfit.schemas.context import ContextBlock, ReductionAction


def _block(name: str, size: int, priority: int) -> ContextBlock:
    return ContextBlock(name=name, content="y" * size, priority=priority)


def _total(blocks) -> int:
    return sum(len(b.content) for b in blocks)


class TestTruncatableBlocks:
    def test_excludes_forced_and_orders_least_important_first(self):
        blocks = [
            _block("code-changes", 10, 100),
            _block("similar-code", 10, 600),
            _block("custom-instructions", 10, 300),
        ]
        names = [b.name for b in truncatable_blocks(blocks, PackingConfig())]
        assert names == ["similar-code", "custom-instructions"]


class TestReduceBlocks:
    def test_large_block_cut_to_seventy_percent(self, calculator):
        blocks = (_block("code-changes", 10, 100), _block("similar-code", 1000, 600))
        reduction = reduce_blocks(blocks, calculator, PackingConfig())

        assert reduction.action is ReductionAction.TRUNCATED
        assert reduction.block_name == "similar-code"
        assert len(reduction.blocks[1].content) == 700
        assert reduction.blocks[0] is blocks[0]

    def test_small_block_removed(self, calculator):
        blocks = (_block("similar-code", 100, 600), _block("original-code", 500, 500))
        reduction = reduce_blocks(blocks, calculator, PackingConfig())

        assert reduction.action is ReductionAction.REMOVED
        assert [b.name for b in reduction.blocks] == ["original-code"]

    def test_picks_largest_priority_number(self, calculator):
        blocks = (_block("a", 500, 10), _block("b", 500, 90), _block("c", 500, 50))
        reduction = reduce_blocks(blocks, calculator, PackingConfig())
        assert reduction.block_name == "b"

    def test_only_forced_blocks_left(self, calculator):
        blocks = (_block("code-changes", 5000, 100), _block("reminder", 50, 150))
        reduction = reduce_blocks(blocks, calculator, PackingConfig())

        assert reduction.reduced is False
        assert reduction.action is ReductionAction.NONE
        assert reduction.blocks == blocks

    def test_input_not_mutated(self, calculator):
        blocks = [_block("similar-code", 1000, 600)]
        reduce_blocks(blocks, calculator, PackingConfig())
        assert len(blocks[0].content) == 1000

    def test_monotonic_until_exhausted(self, calculator):
        config = PackingConfig()
        blocks = (
            _block("code-changes", 300, 100),
            _block("similar-code", 900, 600),
            _block("original-code", 400, 500),
            _block("custom-instructions", 60, 300),
        )
        sizes = [_total(blocks)]
        steps = 0
        while True:
            reduction = reduce_blocks(blocks, calculator, config)
            if not reduction.reduced:
                break
            blocks = reduction.blocks
            sizes.append(_total(blocks))
            steps += 1
            assert steps < 100

        assert all(later < earlier for earlier, later in zip(sizes, sizes[1:]))
        assert [b.name for b in blocks] == ["code-changes"]
        assert reduce_blocks(blocks, calculator, config).blocks == blocks

    def test_warnings_name_the_block(self, calculator):
        notifier = RecordingNotifier()
        reduce_blocks((_block("similar-code", 1000, 600),), calculator, PackingConfig(), notifier)
        reduce_blocks((_block("similar-code", 10, 600),), calculator, PackingConfig(), notifier)

        assert len(notifier.messages) == 2
        assert "shortened" in notifier.messages[0]
        assert "removed" in notifier.messages[1]
        assert all("similar-code" in m for m in notifier.messages)

    def test_custom_ratio(self, calculator):
        config = PackingConfig(truncation_ratio=0.5)
        reduction = reduce_blocks((_block("x", 400, 1),), calculator, config)
        assert len(reduction.blocks[0].content) == 200
