"""Block partitioning and budget packing.

Walks the ordered block list and decides, block by block, whether each
one is included whole, included truncated, or excluded. Lower priority
numbers are more important and are packed first in both partitions.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from promptfit.context.tokens import TokenCalculator
from promptfit.context.truncator import ContentTruncator
from promptfit.notify import Notifier, NullNotifier
from promptfit.schemas.config import PackingConfig
from promptfit.schemas.context import (
    BlockPartition,
    ContextBlock,
    PackedBlock,
    PackResult,
)

logger = logging.getLogger(__name__)


def partition_blocks(
    blocks: Iterable[ContextBlock],
    force_retain: Iterable[str],
) -> BlockPartition:
    """Split blocks into forced-retain and processable groups.

    Membership in *force_retain* (by name) decides the group. Each group
    is sorted ascending by priority; the sort is stable, so equal
    priorities keep the order in which blocks were added.
    """
    retain = set(force_retain)
    forced: list[ContextBlock] = []
    processable: list[ContextBlock] = []
    for block in blocks:
        (forced if block.name in retain else processable).append(block)

    return BlockPartition(
        forced=sorted(forced, key=lambda b: b.priority),
        processable=sorted(processable, key=lambda b: b.priority),
    )


class BlockPacker:
    """Fits partitioned blocks into a token budget."""

    def __init__(
        self,
        calculator: TokenCalculator,
        truncator: ContentTruncator,
        config: PackingConfig,
        notifier: Notifier | None = None,
    ) -> None:
        self._calc = calculator
        self._truncator = truncator
        self._config = config
        self._notifier = notifier or NullNotifier()

    def partition(self, blocks: Iterable[ContextBlock]) -> BlockPartition:
        return partition_blocks(blocks, self._config.force_retain_blocks)

    def pack_forced(self, blocks: list[ContextBlock], available: int) -> PackResult:
        """Include forced blocks while they fit.

        The primary block is truncated to the remaining budget when it does
        not fit. Any other forced block that does not fit is recorded as
        excluded.
        """
        result = PackResult(remaining_tokens=available)

        for block in blocks:
            tokens = self._calc.count(block.content)
            if tokens <= result.remaining_tokens:
                result.included.append(PackedBlock(block=block, tokens=tokens))
                result.remaining_tokens -= tokens
            elif block.name == self._config.primary_block:
                packed = self._truncate(block, result.remaining_tokens)
                result.included.append(packed)
                result.remaining_tokens -= packed.tokens
            else:
                logger.info(
                    "Forced block %s (%d tokens) does not fit %d remaining tokens",
                    block.name, tokens, result.remaining_tokens,
                )
                result.excluded.append(block.name)

        return result

    def pack_processable(self, blocks: list[ContextBlock], available: int) -> PackResult:
        """Include processable blocks until the budget runs out.

        The first block that does not fit is truncated into the remaining
        space when that space exceeds the truncation floor; every block
        after it is then excluded. Below the floor, non-fitting blocks are
        excluded one by one.
        """
        result = PackResult(remaining_tokens=available)
        floor = self._config.min_block_size_for_truncation

        for index, block in enumerate(blocks):
            tokens = self._calc.count(block.content)
            if tokens <= result.remaining_tokens:
                result.included.append(PackedBlock(block=block, tokens=tokens))
                result.remaining_tokens -= tokens
            elif result.remaining_tokens > floor:
                packed = self._truncate(block, result.remaining_tokens)
                result.included.append(packed)
                result.remaining_tokens -= packed.tokens
                result.excluded.extend(b.name for b in blocks[index + 1:])
                break
            else:
                result.excluded.append(block.name)

        return result

    def _truncate(self, block: ContextBlock, max_tokens: int) -> PackedBlock:
        content = self._truncator.truncate(block, max_tokens)
        tokens = self._calc.count(content)
        logger.info(
            "Truncated block %s to %d tokens (budget %d)", block.name, tokens, max_tokens
        )
        if not self._config.suppress_non_critical_warnings:
            self._notifier.warn(
                f"Context block '{block.name}' was truncated to fit the token budget"
            )
        return PackedBlock(
            block=block.model_copy(update={"content": content}),
            tokens=tokens,
            truncated=True,
        )
