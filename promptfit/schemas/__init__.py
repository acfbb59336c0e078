"""Pydantic schemas for blocks, packing results, models, and configuration."""

from promptfit.schemas.config import PackingConfig
from promptfit.schemas.context import (
    BlockPartition,
    BuildResult,
    ContextBlock,
    PackedBlock,
    PackResult,
    Reduction,
    ReductionAction,
    TruncationStrategy,
)
from promptfit.schemas.model import MaxTokens, ModelConfig, ModelDescriptor

__all__ = [
    "BlockPartition",
    "BuildResult",
    "ContextBlock",
    "MaxTokens",
    "ModelConfig",
    "ModelDescriptor",
    "PackResult",
    "PackedBlock",
    "PackingConfig",
    "Reduction",
    "ReductionAction",
    "TruncationStrategy",
]
