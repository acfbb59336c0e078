"""Renders packed blocks into the final system and user messages."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from promptfit.schemas.context import ContextBlock, PackedBlock

_WHITESPACE_RE = re.compile(r"\s+")


def tag_name(block_name: str) -> str:
    """Derive the XML-ish tag used to wrap a block."""
    return _WHITESPACE_RE.sub("-", block_name.lower())


class ContentAssembler:
    """Orders included blocks canonically and wraps each in a named tag.

    Presentation order comes from *block_order*, never from packing
    priority. Names missing from the order go last, in packing order.
    """

    def __init__(self, block_order: Sequence[str]) -> None:
        self._rank = {name: i for i, name in enumerate(block_order)}

    def sort_key(self, name: str) -> int:
        return self._rank.get(name, len(self._rank))

    def build_user_content(self, packed: Iterable[PackedBlock]) -> str:
        ordered = sorted(packed, key=lambda p: self.sort_key(p.block.name))
        return "\n\n".join(
            self._render(p.block, truncated=p.truncated) for p in ordered
        ).strip()

    def build_raw_user_content(self, blocks: Iterable[ContextBlock]) -> str:
        """Render every block untruncated, in canonical order."""
        ordered = sorted(blocks, key=lambda b: self.sort_key(b.name))
        return "\n\n".join(self._render(b) for b in ordered).strip()

    def build_messages(
        self, system_prompt: str, packed: Iterable[PackedBlock]
    ) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": self.build_user_content(packed)},
        ]

    @staticmethod
    def _render(block: ContextBlock, *, truncated: bool = False) -> str:
        tag = tag_name(block.name)
        opening = f'<{tag} truncated="true">' if truncated else f"<{tag}>"
        return f"{opening}\n{block.content}\n</{tag}>"
