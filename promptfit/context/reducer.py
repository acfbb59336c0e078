"""Adaptive reduction after a provider-reported context overflow.

Each call performs exactly one step on the working block set and returns
a new tuple of blocks: the least important non-retained block is either
cut to a fraction of its tokens or, when already small, removed. Repeated
steps converge on the forced-retain blocks alone.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from promptfit.context.tokens import TokenCalculator
from promptfit.notify import Notifier, NullNotifier
from promptfit.schemas.config import PackingConfig
from promptfit.schemas.context import ContextBlock, Reduction, ReductionAction

logger = logging.getLogger(__name__)


def truncatable_blocks(
    blocks: Sequence[ContextBlock], config: PackingConfig
) -> list[ContextBlock]:
    """Blocks eligible for reduction, least important first."""
    retain = set(config.force_retain_blocks)
    candidates = [b for b in blocks if b.name not in retain]
    return sorted(candidates, key=lambda b: b.priority, reverse=True)


def reduce_blocks(
    blocks: Sequence[ContextBlock],
    calculator: TokenCalculator,
    config: PackingConfig,
    notifier: Notifier | None = None,
) -> Reduction:
    """Apply one reduction step and return the resulting block set.

    Returns a Reduction with action NONE, and the blocks unchanged, when
    only forced-retain blocks are left.
    """
    notifier = notifier or NullNotifier()
    candidates = truncatable_blocks(blocks, config)
    if not candidates:
        logger.info("No truncatable blocks left to reduce")
        return Reduction(blocks=tuple(blocks))

    target = candidates[0]
    index = next(i for i, b in enumerate(blocks) if b is target)
    tokens = calculator.encode(target.content)

    if len(tokens) > config.min_block_size_for_truncation:
        keep = int(len(tokens) * config.truncation_ratio)
        shortened = target.model_copy(
            update={"content": calculator.take(tokens, keep)}
        )
        new_blocks = (*blocks[:index], shortened, *blocks[index + 1:])
        action = ReductionAction.TRUNCATED
        logger.info("Reduced block %s from %d to %d tokens", target.name, len(tokens), keep)
        message = f"Context block '{target.name}' was shortened to retry within the model limit"
    else:
        new_blocks = (*blocks[:index], *blocks[index + 1:])
        action = ReductionAction.REMOVED
        logger.info("Removed block %s (%d tokens)", target.name, len(tokens))
        message = f"Context block '{target.name}' was removed to retry within the model limit"

    if not config.suppress_non_critical_warnings:
        notifier.warn(message)

    return Reduction(blocks=new_blocks, action=action, block_name=target.name)
