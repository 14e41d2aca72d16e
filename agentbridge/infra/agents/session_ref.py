"""Session-ref extraction from free-form agent output."""

from __future__ import annotations

import re

# Ordered by priority: an explicit label beats a bare UUID.
SESSION_REF_PATTERNS = (
    re.compile(r"session(?:\s+id)?\s*[:=]\s*([a-zA-Z0-9_-]+)", re.IGNORECASE),
    re.compile(
        r"\b([0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12})\b",
        re.IGNORECASE,
    ),
)


def extract_session_ref(transcript: str) -> str | None:
    """Return the first session identifier found in a transcript, or None."""
    for pattern in SESSION_REF_PATTERNS:
        match = pattern.search(transcript)
        if match:
            return match.group(1)
    return None
