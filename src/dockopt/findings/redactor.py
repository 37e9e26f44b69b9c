"""Secret value redaction for safe output."""

from __future__ import annotations


def redact(value: str, *, full: bool = False) -> str:
    """Partial reveal: first 2 + last 2 chars; short values fully hidden.

    Example: ``hunter2hunter2`` → ``hu...r2``
    """
    if full or len(value) <= 6:
        return "[REDACTED]"
    return f"{value[:2]}...{value[-2:]}"
