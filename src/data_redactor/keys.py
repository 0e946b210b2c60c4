"""Key name matching for safe and blocked key lists."""

from __future__ import annotations

import re
from collections.abc import Iterable
from functools import lru_cache

WILDCARD = "*"


@lru_cache(maxsize=1024)
def _wildcard_regex(pattern: str) -> re.Pattern[str]:
    """Translate a '*' wildcard pattern into a case-insensitive regex for fullmatch."""
    parts = (re.escape(part) for part in pattern.split(WILDCARD))
    return re.compile(".*".join(parts), re.IGNORECASE | re.DOTALL)


def matches_key_pattern(key: str, pattern: str) -> bool:
    """
    Check if a key matches a pattern, case-insensitively.

    Patterns without '*' require exact equality. Each '*' matches any run of
    characters (including none); everything else is literal.

    Examples:
        >>> matches_key_pattern("ACCESS_TOKEN", "*token*")
        True
        >>> matches_key_pattern("tok", "*token*")
        False
    """
    if WILDCARD not in pattern:
        return key.lower() == pattern.lower()

    return _wildcard_regex(pattern).fullmatch(key) is not None


def matches_any_key_pattern(key: str, patterns: Iterable[str]) -> bool:
    """Check if a key matches any of the given patterns."""
    return any(matches_key_pattern(key, pattern) for pattern in patterns)
