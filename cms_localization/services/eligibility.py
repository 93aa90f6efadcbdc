from __future__ import annotations

import re
from typing import Final

SKIP_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"^https?://"),
    re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$"),
    # A single bare tag only; multi-tag HTML bodies are still sent as HTML.
    re.compile(r"^<[^>]+>$"),
    re.compile(r"^[0-9]+$"),
)


def is_translatable(value: object) -> bool:
    """Return True when ``value`` is worth sending to a translation provider.

    URLs, e-mail addresses, a lone HTML tag and purely numeric strings are
    skipped. Patterns are matched against the stripped text.
    """
    if not value or not isinstance(value, str):
        return False
    text = value.strip()
    if not text:
        return False
    return not any(pattern.search(text) for pattern in SKIP_PATTERNS)
