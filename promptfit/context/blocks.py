"""Standard block set for commit-message prompts.

Turns already-gathered texts (diff, commit history, related code, user
input) into named context blocks with their truncation strategy and
priority. Lower priority numbers are packed first and reduced last.
"""

from __future__ import annotations

from promptfit.schemas.context import ContextBlock, TruncationStrategy

# name → (priority, strategy)
BLOCK_SPECS: dict[str, tuple[int, TruncationStrategy]] = {
    "code-changes": (100, TruncationStrategy.SMART_TRUNCATE_DIFF),
    "reminder": (150, TruncationStrategy.TRUNCATE_TAIL),
    "user-commits": (200, TruncationStrategy.TRUNCATE_TAIL),
    "recent-commits": (210, TruncationStrategy.TRUNCATE_TAIL),
    "custom-instructions": (300, TruncationStrategy.TRUNCATE_TAIL),
    "global-context": (400, TruncationStrategy.TRUNCATE_TAIL),
    "original-code": (500, TruncationStrategy.SMART_TRUNCATE_DIFF),
    "similar-code": (600, TruncationStrategy.TRUNCATE_TAIL),
}


def make_block(name: str, content: str) -> ContextBlock:
    """Create a block using the standard priority and strategy for *name*."""
    priority, strategy = BLOCK_SPECS[name]
    return ContextBlock(name=name, content=content, priority=priority, strategy=strategy)


def commit_message_blocks(
    code_changes: str,
    *,
    original_code: str = "",
    user_commits: str = "",
    recent_commits: str = "",
    similar_code: str = "",
    custom_instructions: str = "",
    reminder: str = "",
    global_context: str = "",
) -> list[ContextBlock]:
    """Build the blocks for a commit-message request.

    Empty texts are skipped, so the result only holds blocks worth adding.
    """
    texts = {
        "user-commits": user_commits,
        "recent-commits": recent_commits,
        "similar-code": similar_code,
        "original-code": original_code,
        "code-changes": code_changes,
        "custom-instructions": custom_instructions,
        "reminder": reminder,
        "global-context": global_context,
    }
    return [make_block(name, text) for name, text in texts.items() if text.strip()]
