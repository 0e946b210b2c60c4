"""
Redaction strategies.

Each strategy decides whether it applies to a key/value pair
(``should_handle``) and how to transform it (``handle``). The engine runs a
profile's strategies in order and the first one that applies wins.

Strategies are stateless: everything they decide comes from the profile on
the RedactionContext. ``handle`` must not raise; the engine does not catch
strategy exceptions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from .config import LARGE_OBJECT_KEY
from .context import RedactionContext
from .entropy import byte_length, should_redact_by_entropy
from .keys import matches_any_key_pattern
from .normalize import (
    NormalizationError,
    SupportsToDict,
    is_collection,
    is_opaque_object,
    to_collection,
)


class Remove:
    """Signal type: drop this entry from its parent container."""

    _instance: Remove | None = None

    def __new__(cls) -> Remove:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "REMOVE"

    def __reduce__(self) -> str:
        return "REMOVE"


REMOVE = Remove()


class RedactionStrategy(ABC):
    """Base class for redaction strategies."""

    #: Identifier used to reference the strategy from profile configuration
    name: str = ""

    @abstractmethod
    def should_handle(self, value: Any, key: str, context: RedactionContext) -> bool:
        """Check if this strategy applies to the given key/value pair."""

    @abstractmethod
    def handle(self, value: Any, key: str, context: RedactionContext) -> Any:
        """Return the replacement for the value, or REMOVE to drop the entry."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class SafeKeysStrategy(RedactionStrategy):
    """Leave values of safe keys untouched (exact, case-insensitive match)."""

    name = "safe_keys"

    def should_handle(self, value: Any, key: str, context: RedactionContext) -> bool:
        return key.lower() in context.profile.safe_keys

    def handle(self, value: Any, key: str, context: RedactionContext) -> Any:
        return value


class BlockedKeysStrategy(RedactionStrategy):
    """Replace values of blocked keys; supports '*' wildcards."""

    name = "blocked_keys"

    def should_handle(self, value: Any, key: str, context: RedactionContext) -> bool:
        return matches_any_key_pattern(key, context.profile.blocked_keys)

    def handle(self, value: Any, key: str, context: RedactionContext) -> Any:
        context.add_redacted_key(key)
        return context.profile.replacement


class LargeObjectStrategy(RedactionStrategy):
    """Summarize collections and objects with more entries than max_object_size."""

    name = "large_object"

    def should_handle(self, value: Any, key: str, context: RedactionContext) -> bool:
        profile = context.profile
        if not profile.redact_large_objects or profile.max_object_size is None:
            return False

        if is_collection(value):
            return len(value) > profile.max_object_size

        if is_opaque_object(value):
            try:
                converted = to_collection(value, fallback=False)
            except NormalizationError:
                return False
            return len(converted) > profile.max_object_size

        return False

    def handle(self, value: Any, key: str, context: RedactionContext) -> Any:
        context.mark_redacted()
        replacement = context.profile.replacement

        if is_collection(value):
            return {LARGE_OBJECT_KEY: f"{replacement} (Array with {len(value)} items)"}

        if is_opaque_object(value):
            property_count = "large number of"
            try:
                property_count = str(len(to_collection(value, fallback=False)))
            except NormalizationError:
                pass  # Keep default message
            return {
                LARGE_OBJECT_KEY: (
                    f"{replacement} (Object {type(value).__name__} "
                    f"with {property_count} properties)"
                ),
            }

        return value


class LargeStringStrategy(RedactionStrategy):
    """Replace strings longer than max_value_length (measured in UTF-8 bytes)."""

    name = "large_string"

    def should_handle(self, value: Any, key: str, context: RedactionContext) -> bool:
        limit = context.profile.max_value_length
        return isinstance(value, str) and limit is not None and byte_length(value) > limit

    def handle(self, value: Any, key: str, context: RedactionContext) -> Any:
        context.mark_redacted()

        if not isinstance(value, str):
            return value

        return f"{context.profile.replacement} (String with {byte_length(value)} characters)"


class RegexPatternsStrategy(RedactionStrategy):
    """Replace strings matching any configured pattern."""

    name = "regex_patterns"

    def should_handle(self, value: Any, key: str, context: RedactionContext) -> bool:
        if not isinstance(value, str):
            return False
        return any(p.search(value) for p in context.profile.patterns.values())

    def handle(self, value: Any, key: str, context: RedactionContext) -> Any:
        context.mark_redacted()
        return context.profile.replacement


class ShannonEntropyStrategy(RedactionStrategy):
    """Replace strings whose Shannon entropy reaches the profile threshold."""

    name = "shannon_entropy"

    def should_handle(self, value: Any, key: str, context: RedactionContext) -> bool:
        config = context.profile.shannon_entropy
        if not isinstance(value, str) or not config.enabled:
            return False
        return should_redact_by_entropy(value, config, context)

    def handle(self, value: Any, key: str, context: RedactionContext) -> Any:
        context.mark_redacted()
        return context.profile.replacement


StrategyFactory = Callable[[], RedactionStrategy]

BUILTIN_STRATEGIES: list[type[RedactionStrategy]] = [
    SafeKeysStrategy,
    BlockedKeysStrategy,
    LargeObjectStrategy,
    LargeStringStrategy,
    RegexPatternsStrategy,
    ShannonEntropyStrategy,
]


def builtin_registry() -> dict[str, StrategyFactory]:
    """
    Map identifiers to factories for the built-in strategies.

    Each strategy is reachable by its short name ("safe_keys") and its class
    name ("SafeKeysStrategy").
    """
    registry: dict[str, StrategyFactory] = {}
    for strategy_cls in BUILTIN_STRATEGIES:
        registry[strategy_cls.name] = strategy_cls
        registry[strategy_cls.__name__] = strategy_cls
    return registry


__all__ = [
    "BUILTIN_STRATEGIES",
    "REMOVE",
    "BlockedKeysStrategy",
    "LargeObjectStrategy",
    "LargeStringStrategy",
    "RedactionStrategy",
    "RegexPatternsStrategy",
    "Remove",
    "SafeKeysStrategy",
    "ShannonEntropyStrategy",
    "StrategyFactory",
    "SupportsToDict",
    "builtin_registry",
]
