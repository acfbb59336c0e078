"""Token-budget packing and adaptive truncation.

Partitions context blocks, fits them into a model's input budget with
per-block truncation, renders them in canonical order, and shrinks the
block set step by step when a provider still reports an overflow.
"""

from promptfit.context.assembler import ContentAssembler
from promptfit.context.blocks import commit_message_blocks, make_block
from promptfit.context.manager import ContextManager
from promptfit.context.packer import BlockPacker, partition_blocks
from promptfit.context.reducer import reduce_blocks
from promptfit.context.tokens import TiktokenTokenizer, TokenCalculator, Tokenizer
from promptfit.context.truncator import ContentTruncator, split_diff_hunks

__all__ = [
    "BlockPacker",
    "ContentAssembler",
    "ContentTruncator",
    "ContextManager",
    "TiktokenTokenizer",
    "TokenCalculator",
    "Tokenizer",
    "commit_message_blocks",
    "make_block",
    "partition_blocks",
    "reduce_blocks",
    "split_diff_hunks",
]
