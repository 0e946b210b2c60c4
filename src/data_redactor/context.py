"""Per-call redaction state."""

from __future__ import annotations

from dataclasses import dataclass, field

from .config import Profile


@dataclass
class RedactionContext:
    """
    Mutable state for a single top-level redact() call.

    Not thread-safe: the engine creates a fresh context for every call and
    passes it to each strategy invocation of that call only.
    """

    profile: Profile
    was_redacted: bool = False
    _redacted_keys: list[str] = field(default_factory=list, repr=False)
    _entropy_cache: dict[str, float] = field(default_factory=dict, repr=False)

    def add_redacted_key(self, key: str) -> None:
        """Record a redacted key and mark the call as having redactions."""
        self._redacted_keys.append(key)
        self.was_redacted = True

    def get_redacted_keys(self) -> list[str]:
        """Get redacted keys, deduplicated in first-seen order."""
        return list(dict.fromkeys(self._redacted_keys))

    def mark_redacted(self) -> None:
        self.was_redacted = True

    def has_redactions(self) -> bool:
        return self.was_redacted

    def get_cached_entropy(self, s: str) -> float | None:
        return self._entropy_cache.get(s)

    def cache_entropy(self, s: str, entropy: float) -> None:
        self._entropy_cache[s] = entropy
