"""Packing configuration schema.

Loaded from the ``[packing]`` table of defaults.toml. Every field has a
default so an empty table yields the stock behavior.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from promptfit.schemas.model import DEFAULT_MAX_INPUT_TOKENS


class PackingConfig(BaseModel):
    """Tunables for budgeting, truncation, ordering, and retries."""

    token_reserve: int = Field(
        default=100, ge=0, description="Tokens held back for response overhead"
    )
    min_block_size_for_truncation: int = Field(
        default=100,
        ge=0,
        description="Floor below which blocks are dropped rather than truncated",
    )
    truncation_ratio: float = Field(
        default=0.7,
        gt=0.0,
        lt=1.0,
        description="Share of tokens kept by one adaptive truncation step",
    )
    default_max_input_tokens: int = Field(
        default=DEFAULT_MAX_INPUT_TOKENS,
        gt=0,
        description="Input limit assumed when the model declares none",
    )
    max_retries: int = Field(default=3, ge=0, description="Overflow retry ceiling")
    primary_block: str = Field(
        default="code-changes",
        description="Forced block that is truncated rather than dropped",
    )
    force_retain_blocks: list[str] = Field(
        default_factory=lambda: [
            "code-changes",
            "user-commits",
            "recent-commits",
            "reminder",
        ],
        description="Block names exempt from outright exclusion",
    )
    block_order: list[str] = Field(
        default_factory=lambda: [
            "global-context",
            "user-commits",
            "recent-commits",
            "similar-code",
            "original-code",
            "code-changes",
            "reminder",
            "custom-instructions",
        ],
        description="Canonical presentation order of blocks in the user message",
    )
    suppress_non_critical_warnings: bool = Field(
        default=False, description="Silence truncation and removal warnings"
    )
    diff_truncation_marker: str = Field(default="... (diff truncated) ...")
    hunks_truncation_marker: str = Field(default="... (some file diffs truncated) ...")
