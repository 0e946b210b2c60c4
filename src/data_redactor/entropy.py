"""
Shannon entropy classifier.

Entropy is measured over the UTF-8 bytes of a string, so multi-byte characters
contribute one symbol per byte. Exclusion patterns let structurally benign
values (URLs, UUIDs, dates, ...) skip entropy-based redaction.
"""

from __future__ import annotations

import math
import re
from collections import Counter
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .config import EntropyConfig
    from .context import RedactionContext


# Sources of the generic "all hex" exclusion pattern. Long strings matching it
# (SHA-256 digests, API keys) are still entropy candidates.
HEX_PATTERN_SOURCES = frozenset({
    r"^[0-9a-f]+$",
    r"(?i)^[0-9a-f]+$",
    r"(?i)^[0-9a-f]+\Z",
    r"^[0-9a-fA-F]+$",
    r"^[0-9a-fA-F]+\Z",
})
HEX_BYPASS_MIN_LENGTH = 32


def byte_length(s: str) -> int:
    """Length of a string in UTF-8 bytes."""
    return len(s.encode("utf-8", errors="surrogatepass"))


def calculate_entropy(s: str, context: RedactionContext | None = None) -> float:
    """
    Calculate the Shannon entropy of a string, in bits per byte.

    Args:
        s: String to analyze
        context: Optional redaction context used to memoize results

    Returns:
        0.0 for strings of one byte or less, otherwise -sum(p * log2(p))
        over the byte frequency histogram.
    """
    if context is not None:
        cached = context.get_cached_entropy(s)
        if cached is not None:
            return cached

    data = s.encode("utf-8", errors="surrogatepass")
    length = len(data)

    entropy = 0.0
    if length > 1:
        for count in Counter(data).values():
            p = count / length
            entropy -= p * math.log2(p)

    if context is not None:
        context.cache_entropy(s, entropy)

    return entropy


def is_common_pattern(s: str, exclusion_patterns: Any) -> bool:
    """
    Check if a string matches a pattern that should never be entropy-redacted.

    Entries that are neither strings nor compiled patterns are skipped, as are
    strings that fail to compile. The generic hex pattern does not exclude
    strings of 32 bytes or more.
    """
    if not isinstance(exclusion_patterns, (list, tuple)):
        return False

    for entry in exclusion_patterns:
        if isinstance(entry, str):
            try:
                pattern = re.compile(entry)
            except re.error:
                continue
        elif isinstance(entry, re.Pattern):
            pattern = entry
        else:
            continue

        if pattern.search(s):
            if pattern.pattern in HEX_PATTERN_SOURCES and byte_length(s) >= HEX_BYPASS_MIN_LENGTH:
                continue
            return True

    return False


def should_redact_by_entropy(
    s: str,
    config: EntropyConfig,
    context: RedactionContext | None = None,
) -> bool:
    """
    Decide whether a string looks like a secret based on its entropy.

    Args:
        s: String to check
        config: Entropy settings of the active profile
        context: Optional context for entropy memoization

    Returns:
        True if the string has at least min_length bytes, is not excluded
        and reaches the entropy threshold
    """
    if byte_length(s) < config.min_length:
        return False

    if is_common_pattern(s, config.exclusion_patterns):
        return False

    return calculate_entropy(s, context) >= config.threshold
