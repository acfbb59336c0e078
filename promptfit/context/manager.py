"""Packing session and overflow retry loop.

A ContextManager owns the block set for a single request. It builds the
system and user messages within the model's token budget and, when the
provider still rejects the prompt as too long, shrinks the block set one
step at a time and retries.

A session holds mutable state and must not be shared across concurrent
requests; create one per request.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from typing import Any

from promptfit.context.assembler import ContentAssembler
from promptfit.context.packer import BlockPacker
from promptfit.context.reducer import reduce_blocks
from promptfit.context.tokens import TiktokenTokenizer, TokenCalculator, Tokenizer
from promptfit.context.truncator import ContentTruncator
from promptfit.notify import Notifier, NullNotifier
from promptfit.providers.base import ModelProvider
from promptfit.providers.errors import RequestTooLargeError, is_context_overflow
from promptfit.schemas.config import PackingConfig
from promptfit.schemas.context import BuildResult, ContextBlock
from promptfit.schemas.model import ModelDescriptor

logger = logging.getLogger(__name__)


class ContextManager:
    """Collects context blocks and builds budget-bounded prompts.

    Args:
        model: Descriptor of the target model; its input limit sizes the budget.
        system_prompt: System message sent verbatim.
        tokenizer: Token codec. Defaults to a tiktoken-backed tokenizer.
        config: Packing tunables. Defaults to the stock PackingConfig.
        notifier: Sink for user-visible truncation warnings.
    """

    def __init__(
        self,
        model: ModelDescriptor,
        system_prompt: str,
        *,
        tokenizer: Tokenizer | None = None,
        config: PackingConfig | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._config = config or PackingConfig()
        self._notifier = notifier or NullNotifier()
        self._system_prompt = system_prompt
        self._blocks: tuple[ContextBlock, ...] = ()
        self.retries = 0

        self._calc = TokenCalculator(
            model,
            tokenizer or TiktokenTokenizer(),
            default_max_input_tokens=self._config.default_max_input_tokens,
        )
        truncator = ContentTruncator(
            self._calc,
            diff_marker=self._config.diff_truncation_marker,
            hunks_marker=self._config.hunks_truncation_marker,
        )
        self._packer = BlockPacker(self._calc, truncator, self._config, self._notifier)
        self._assembler = ContentAssembler(self._config.block_order)

    @property
    def blocks(self) -> tuple[ContextBlock, ...]:
        return self._blocks

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    @property
    def calculator(self) -> TokenCalculator:
        return self._calc

    def add_block(self, block: ContextBlock) -> None:
        """Add a block; blocks with empty or whitespace-only content are ignored."""
        if block.content and block.content.strip():
            self._blocks = (*self._blocks, block)

    def set_system_prompt(self, system_prompt: str) -> None:
        self._system_prompt = system_prompt

    # ── Building ──────────────────────────────────────────────

    def build(self) -> BuildResult:
        """Pack the current blocks into messages and report what changed."""
        budget = self._calc.available_tokens(self._system_prompt, self._config.token_reserve)
        partition = self._packer.partition(self._blocks)

        forced = self._packer.pack_forced(partition.forced, budget)
        processable = self._packer.pack_processable(
            partition.processable, forced.remaining_tokens
        )

        packed = [*forced.included, *processable.included]
        excluded = [*forced.excluded, *processable.excluded]
        messages = self._assembler.build_messages(self._system_prompt, packed)

        result = BuildResult(
            messages=messages,
            included=[p.block.name for p in packed],
            truncated=[p.block.name for p in packed if p.truncated],
            excluded=excluded,
            budget=budget,
            remaining_tokens=processable.remaining_tokens,
        )
        self._report(result)
        return result

    def build_messages(self) -> list[dict[str, str]]:
        return self.build().messages

    def estimated_token_count(self) -> int:
        """Tokens of the packed system and user messages."""
        return self._calc.messages_tokens(self.build_messages())

    def estimated_raw_token_count(
        self, messages: Sequence[dict[str, str]] | None = None
    ) -> int:
        """Tokens of the untruncated prompt, or of *messages* when given."""
        if messages is None:
            messages = [
                {"role": "system", "content": self._system_prompt},
                {
                    "role": "user",
                    "content": self._assembler.build_raw_user_content(self._blocks),
                },
            ]
        return self._calc.messages_tokens(messages)

    def _report(self, result: BuildResult) -> None:
        logger.info("Included context blocks: %s", ", ".join(result.included))
        if not result.excluded:
            return
        logger.info("Excluded context blocks: %s", ", ".join(result.excluded))
        if not self._config.suppress_non_critical_warnings:
            self._notifier.warn(
                "Context blocks removed to fit the token budget: "
                + ", ".join(result.excluded)
            )

    # ── Overflow recovery ─────────────────────────────────────

    def smart_truncate(self) -> bool:
        """Shrink the block set by one step; False when nothing is left to shrink."""
        reduction = reduce_blocks(self._blocks, self._calc, self._config, self._notifier)
        self._blocks = reduction.blocks
        return reduction.reduced

    async def build_with_retry(
        self,
        provider: ModelProvider,
        *,
        max_retries: int | None = None,
        **request: Any,
    ) -> AsyncIterator[str]:
        """Stream a completion, shrinking and rebuilding on context overflow.

        Chunks are yielded as the provider produces them. Overflow errors
        raised before the first chunk trigger one reduction step and a
        rebuild, up to *max_retries* times. Any other error propagates
        unchanged.

        Args:
            provider: The model provider to stream from.
            max_retries: Overflow retry ceiling. Defaults to the config value.
            **request: Extra request metadata forwarded to ``provider.stream``.

        Raises:
            RequestTooLargeError: If the retry ceiling is reached or the block
                set cannot be reduced any further.
        """
        ceiling = self._config.max_retries if max_retries is None else max_retries
        self.retries = 0

        while True:
            messages = self.build_messages()
            streamed = False
            try:
                async for chunk in provider.stream(messages, **request):
                    streamed = True
                    yield chunk
                return
            except Exception as e:
                if streamed or not is_context_overflow(e):
                    raise
                overflow = e

            if self.retries >= ceiling:
                raise RequestTooLargeError(
                    f"Context length issue persists after {ceiling} retries. "
                    "Try a model with a larger context window or reduce the "
                    "number of selected files."
                ) from overflow

            if not self.smart_truncate():
                raise RequestTooLargeError(
                    "Unable to truncate context further. Try a model with a "
                    "larger context window or reduce the number of selected files."
                ) from overflow

            self.retries += 1
            logger.warning(
                "Context overflow from %s, retry %d/%d",
                provider.display_name, self.retries, ceiling,
            )
            if not self._config.suppress_non_critical_warnings:
                self._notifier.warn(
                    f"Context too long, attempting retry {self.retries}/{ceiling}."
                )
