"""Error taxonomy for provider calls and prompt sizing.

Context-overflow rejections are recoverable: the retry loop shrinks the
prompt and tries again. RequestTooLargeError is the fatal outcome once
shrinking is exhausted. Everything else is left to propagate untouched.
"""

from __future__ import annotations

# Phrases providers use when the prompt exceeds the input window
_OVERFLOW_PHRASES: tuple[str, ...] = (
    "maximum context length",
    "context length exceeded",
    "context_length_exceeded",
    "exceeds token limit",
    "is too large",
    "input is too long",
)


class ContextLengthExceededError(RuntimeError):
    """The provider rejected the request because the prompt is too long."""


class RequestTooLargeError(RuntimeError):
    """The prompt cannot be reduced enough for the target model."""


def is_context_overflow(error: BaseException | str) -> bool:
    """Return True if *error* signals a context-window overflow.

    Accepts an exception or its message text. A ContextLengthExceededError
    always matches; any other error matches when its text contains one of
    the known overflow phrases (case-insensitive).
    """
    if isinstance(error, ContextLengthExceededError):
        return True
    text = str(error).lower()
    return any(phrase in text for phrase in _OVERFLOW_PHRASES)
