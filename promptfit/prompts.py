"""System prompts and the reminder block for commit-message requests.

Prompt resolution takes an explicit ``in_progress`` flag instead of
process-wide state: a derived prompt that embeds the base system prompt
forwards the flag, and a resolution already in progress yields an empty
prompt rather than recursing.

The flag is set by the caller that is itself in the middle of building a
system prompt. A host hook that composes extra sections for the base
prompt, and asks for a derived prompt while doing so, passes
``in_progress=True`` so the nested lookup contributes nothing instead of
embedding the prompt that is still being built. Top-level callers, such
as the CLI, leave it at the default.
"""

from __future__ import annotations

import textwrap
from typing import Literal

from pydantic import BaseModel, Field


class PromptRequest(BaseModel):
    """Inputs that shape the system prompt for one request."""

    system_prompt: str = Field(default="", description="Explicit system prompt; wins when set")
    language: str = Field(default="English", description="Language of the generated message")
    scm: Literal["git", "svn"] = Field(default="git", description="Version control system")
    merge_commits: bool = Field(
        default=True, description="Merge all file changes into a single commit message"
    )


_COMMIT_PROMPT = """\
# {vcs} Commit Message Guide

## Role and Purpose

All output MUST be in {language}. You are to act as a pure {vcs} commit message
generator. When receiving a {vcs} diff, you will ONLY output the commit message
itself, with nothing else: no explanations, no questions, no comments.

## Output Format

{output_format}
## Type Selection

- feat: new functionality, or a new source file that adds behavior
- fix: a change that resolves a bug or unexpected behavior
- refactor: restructuring that does not change behavior
- perf: a change that improves performance
- docs: documentation-only changes
- test: adding or fixing tests
- chore: configuration, tooling, or dependency updates
"""

_MERGED_FORMAT = """\
If multiple file diffs are provided, merge them into a single commit message:
```
<type>(<scope>): <subject>
<body of merged changes>
```
"""

_SEPARATE_FORMAT = """\
If multiple file diffs are provided, generate a separate commit message for
each file:
```
<type>(<scope>): <subject>
<body for changes in file>
```
"""


def render_commit_system_prompt(request: PromptRequest) -> str:
    """Render the stock commit-message system prompt."""
    return _COMMIT_PROMPT.format(
        vcs=request.scm.upper(),
        language=request.language,
        output_format=_MERGED_FORMAT if request.merge_commits else _SEPARATE_FORMAT,
    )


def get_system_prompt(request: PromptRequest, *, in_progress: bool = False) -> str:
    """Resolve the system prompt for *request*.

    An explicit ``request.system_prompt`` wins over the stock template.
    Returns an empty string when called while a resolution is already in
    progress.
    """
    if in_progress:
        return ""
    if request.system_prompt:
        return request.system_prompt
    return render_commit_system_prompt(request)


def get_global_summary_prompt(request: PromptRequest, *, in_progress: bool = False) -> str:
    """System prompt asking for a one-to-three sentence summary of all changes."""
    header = textwrap.dedent("""\
        Based on the following code changes, write a concise global summary of
        the overall purpose and intent of the change set. Stay high level, do not
        describe each file, and keep it within one to three sentences.
        """)
    return f"{header}\n{get_system_prompt(request, in_progress=in_progress)}"


def get_file_description_prompt(
    request: PromptRequest, file_path: str, *, in_progress: bool = False
) -> str:
    """System prompt asking for a short description of one file's changes."""
    header = (
        f'Describe the changes to the file "{file_path}" concisely. Focus only '
        "on this file: what was modified and why. Keep it within one or two "
        "sentences.\n"
    )
    return f"{header}\n{get_system_prompt(request, in_progress=in_progress)}"


def build_reminder(language: str, *, has_commit_history: bool = False) -> str:
    """Text of the trailing reminder block."""
    lines = [
        "- IMPORTANT: You will be provided with code changes from MULTIPLE files.",
        "- Analyze ALL file changes under the `<code-changes>` block and synthesize "
        "them into a single, coherent commit message.",
        "- Do NOT focus on only the first file you see.",
    ]
    if has_commit_history:
        lines.append(
            "- DO NOT COPY commits from the commit history blocks; use them only "
            "as a reference for commit style."
        )
    lines.append(f"- The commit message MUST be in {language}.")
    lines.append("- Only output the message, without explanations or details.")
    return "\n".join(lines)
