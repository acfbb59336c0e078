"""Context block schemas.

Defines the context block record, the truncation strategies a block may
declare, and the result models produced by partitioning, packing, building,
and adaptive reduction.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class TruncationStrategy(StrEnum):
    """How a block is shrunk when it does not fit whole."""

    TRUNCATE_TAIL = "truncate_tail"
    TRUNCATE_HEAD = "truncate_head"
    SMART_TRUNCATE_DIFF = "smart_truncate_diff"


class ContextBlock(BaseModel):
    """One named, prioritized unit of candidate prompt text.

    Blocks are immutable. Truncation and reduction produce new blocks via
    ``model_copy(update=...)`` and never edit a block in place.
    """

    model_config = ConfigDict(frozen=True)

    content: str = Field(description="Block text")
    priority: int = Field(description="Relative importance (lower = more important)")
    strategy: TruncationStrategy = Field(
        default=TruncationStrategy.TRUNCATE_TAIL,
        description="Truncation strategy used when the block does not fit",
    )
    name: str = Field(min_length=1, description="Stable identifier and tag name source")


class BlockPartition(BaseModel):
    """Blocks split into forced-retain and processable groups, each ordered."""

    forced: list[ContextBlock] = Field(default_factory=list)
    processable: list[ContextBlock] = Field(default_factory=list)


class PackedBlock(BaseModel):
    """A block accepted into the prompt, possibly with truncated content."""

    block: ContextBlock = Field(description="The block as it will be rendered")
    tokens: int = Field(ge=0, description="Token count of the rendered content")
    truncated: bool = Field(default=False, description="Whether the content was shortened")


class PackResult(BaseModel):
    """Outcome of one packing pass over a group of blocks."""

    included: list[PackedBlock] = Field(default_factory=list)
    excluded: list[str] = Field(
        default_factory=list, description="Names of blocks left out entirely"
    )
    remaining_tokens: int = Field(description="Budget left after this pass (may be negative)")

    @property
    def included_names(self) -> list[str]:
        return [p.block.name for p in self.included]

    @property
    def truncated_names(self) -> list[str]:
        return [p.block.name for p in self.included if p.truncated]


class BuildResult(BaseModel):
    """Messages produced by one build, plus a report of what was altered."""

    messages: list[dict[str, str]] = Field(
        default_factory=list, description="System and user messages in OpenAI format"
    )
    included: list[str] = Field(default_factory=list, description="Included block names")
    truncated: list[str] = Field(
        default_factory=list, description="Names of included blocks that were truncated"
    )
    excluded: list[str] = Field(default_factory=list, description="Excluded block names")
    budget: int = Field(description="Token budget available for user content")
    remaining_tokens: int = Field(description="Budget left after packing")

    @property
    def system_message(self) -> str:
        return self.messages[0]["content"] if self.messages else ""

    @property
    def user_message(self) -> str:
        return self.messages[1]["content"] if len(self.messages) > 1 else ""


class ReductionAction(StrEnum):
    """What one adaptive reduction step did."""

    TRUNCATED = "truncated"
    REMOVED = "removed"
    NONE = "none"


class Reduction(BaseModel):
    """Result of one adaptive reduction step over a block set."""

    blocks: tuple[ContextBlock, ...] = Field(description="The new working block set")
    action: ReductionAction = Field(default=ReductionAction.NONE)
    block_name: str | None = Field(
        default=None, description="Name of the block truncated or removed"
    )

    @property
    def reduced(self) -> bool:
        return self.action is not ReductionAction.NONE
