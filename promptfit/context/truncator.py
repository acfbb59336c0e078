"""Per-block truncation to a target token count.

All cuts are made on token sequences and decoded through
``TokenCalculator.take``, which drops a character whose bytes straddle
the cut, so the decoded text never holds a split character and never
re-encodes to more tokens than were kept. Diff-shaped content is cut
hunk by hunk so file boundaries survive.
"""

from __future__ import annotations

import logging
import re

from promptfit.context.tokens import TokenCalculator
from promptfit.schemas.context import ContextBlock, TruncationStrategy

logger = logging.getLogger(__name__)

# A file section starts at a git or svn file header
_FILE_BOUNDARY_RE = re.compile(r"^(?=diff --git |Index: )", re.MULTILINE)

_DIFF_MARKER = "... (diff truncated) ..."
_HUNKS_MARKER = "... (some file diffs truncated) ..."


def split_diff_hunks(diff: str) -> list[str]:
    """Split a diff into per-file sections.

    Joining the returned pieces reproduces *diff* exactly. Text before the
    first file header, if any, is kept as its own leading piece.
    """
    return [piece for piece in _FILE_BOUNDARY_RE.split(diff) if piece]


class ContentTruncator:
    """Shrinks a block's content to at most ``max_tokens`` tokens."""

    def __init__(
        self,
        calculator: TokenCalculator,
        *,
        diff_marker: str = _DIFF_MARKER,
        hunks_marker: str = _HUNKS_MARKER,
    ) -> None:
        self._calc = calculator
        self._diff_marker = diff_marker
        self._hunks_marker = hunks_marker

    def truncate(self, block: ContextBlock, max_tokens: int) -> str:
        """Return the block's content cut down to *max_tokens* tokens.

        Content that already fits is returned unchanged. A non-positive
        budget yields an empty string.
        """
        max_tokens = max(max_tokens, 0)
        tokens = self._calc.encode(block.content)
        if len(tokens) <= max_tokens:
            return block.content
        if max_tokens == 0:
            return ""

        if block.strategy is TruncationStrategy.SMART_TRUNCATE_DIFF:
            return self.smart_truncate_diff(block.content, max_tokens)
        if block.strategy is TruncationStrategy.TRUNCATE_HEAD:
            return self._calc.take(tokens, max_tokens, from_end=True)
        return self._calc.take(tokens, max_tokens)

    def smart_truncate_diff(self, diff: str, max_tokens: int) -> str:
        """Truncate diff text while preserving whole file sections.

        A single section is cut in the middle, keeping its head and tail.
        With several sections, the first and last are always kept and
        sections are dropped from the middle outward until the estimate
        fits. The result is hard-clamped to *max_tokens* as a last resort.
        """
        if self._calc.count(diff) <= max_tokens:
            return diff

        hunks = split_diff_hunks(diff)
        if len(hunks) <= 1:
            text = self._truncate_middle(diff, max_tokens)
        else:
            text = self._truncate_by_hunks(hunks, max_tokens)
        return self._clamp(text, max_tokens)

    def _truncate_middle(self, content: str, max_tokens: int) -> str:
        marker = f"\n\n{self._diff_marker}\n\n"
        half = (max_tokens - self._calc.count(marker)) // 2
        tokens = self._calc.encode(content)
        if half <= 0:
            return self._calc.take(tokens, max_tokens)

        head = self._calc.take(tokens, half)
        tail = self._calc.take(tokens, half, from_end=True)
        return f"{head}{marker}{tail}"

    def _truncate_by_hunks(self, hunks: list[str], max_tokens: int) -> str:
        sized = [(h, self._calc.count(h)) for h in hunks]
        first, *middle, last = sized
        current = sum(tokens for _, tokens in sized)
        marker = f"{self._hunks_marker}\n\n"

        # the marker joins the output as soon as one section is dropped
        removed = 0
        overhead = 0
        while current + overhead > max_tokens and middle:
            _, dropped_tokens = middle.pop(len(middle) // 2)
            current -= dropped_tokens
            removed += 1
            overhead = self._calc.count(marker)

        kept = [first[0], *(h for h, _ in middle)]
        if removed:
            logger.info(
                "Dropped %d of %d diff sections to fit %d tokens",
                removed, len(hunks), max_tokens,
            )
            kept.append(marker)
        kept.append(last[0])
        return "".join(kept)

    def _clamp(self, text: str, max_tokens: int) -> str:
        tokens = self._calc.encode(text)
        if len(tokens) <= max_tokens:
            return text
        logger.debug("Hard-clamping truncated diff from %d to %d tokens", len(tokens), max_tokens)
        return self._calc.take(tokens, max_tokens)
