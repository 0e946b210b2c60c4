"""
Redaction engine for data-redactor.

Walks arbitrary values (scalars, dicts, lists, objects) and applies a
profile's ordered strategy list to every key/value pair.

Features:
- Named profiles with their own key lists, patterns and strategy order
- First-match-wins strategy pipeline, with user-registered strategies
- Whole-collection checks before per-entry processing (large objects)
- Object normalization via to_dict() or a JSON round trip
- Configurable handling of objects that cannot be normalized
- Optional audit metadata (_redacted, _redacted_keys) on dict results

Thread safety:
Each redact() call owns its RedactionContext. The per-profile strategy cache
is shared and guarded by a lock; registering a custom strategy clears it.
"""

from __future__ import annotations

import copy
import importlib
import logging
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .config import (
    REDACTED_ARRAY_KEY,
    REDACTED_KEYS_KEY,
    REDACTED_MARKER_KEY,
    NonRedactableObjectBehavior,
    Profile,
)
from .config_loader import RedactorSettings, load_settings
from .context import RedactionContext
from .entropy import calculate_entropy
from .entropy import is_common_pattern as _is_common_pattern
from .normalize import NormalizationError, is_collection, is_opaque_object, to_collection
from .strategies import REMOVE, RedactionStrategy, StrategyFactory, builtin_registry

logger = logging.getLogger(__name__)


def _import_strategy_class(reference: str) -> type | None:
    """Import a class from 'package.module:Class' or 'package.module.Class'."""
    if ":" in reference:
        module_name, _, attr = reference.partition(":")
    else:
        module_name, _, attr = reference.rpartition(".")

    if not module_name or not attr:
        return None

    try:
        module = importlib.import_module(module_name)
        target = getattr(module, attr)
    except (ImportError, AttributeError, ValueError):
        return None

    return target if isinstance(target, type) else None


def _is_strategy(obj: Any) -> bool:
    return callable(getattr(obj, "should_handle", None)) and callable(getattr(obj, "handle", None))


class Redactor:
    """
    Redacts sensitive data from arbitrary values using profile strategies.

    Profiles are resolved from settings on every call, so configuration
    changes take effect immediately; strategy instances are cached per
    profile name.
    """

    def __init__(self, settings: RedactorSettings | None = None):
        """
        Initialize the redactor.

        Args:
            settings: Loaded configuration (default: built-in profiles only)
        """
        self.settings = settings if settings is not None else RedactorSettings()

        self._lock = threading.Lock()
        self._registry: dict[str, StrategyFactory] = builtin_registry()
        self._custom_strategies: dict[str, Any] = {}
        self._profile_strategies: dict[str, tuple[Any, ...]] = {}

        self._load_custom_strategies()

    def _load_custom_strategies(self) -> None:
        """Instantiate strategies named in the custom_strategies setting."""
        for name, reference in self.settings.custom_strategies.items():
            strategy_cls = _import_strategy_class(reference)
            if strategy_cls is None or not issubclass(strategy_cls, RedactionStrategy):
                logger.warning("Ignoring custom strategy %r: cannot load %r", name, reference)
                continue
            self._custom_strategies[name] = strategy_cls()

    # Strategy resolution

    def _create_strategy(self, reference: Any) -> Any | None:
        """Create a strategy instance from a profile reference, or None if unknown."""
        if isinstance(reference, str):
            if reference in self._custom_strategies:
                return copy.copy(self._custom_strategies[reference])
            if reference in self._registry:
                return self._registry[reference]()
            strategy_cls = _import_strategy_class(reference)
        else:
            strategy_cls = reference

        if isinstance(strategy_cls, type) and issubclass(strategy_cls, RedactionStrategy):
            return strategy_cls()

        logger.debug("Skipping unknown strategy reference %r", reference)
        return None

    def _build_strategies(self, profile: Profile) -> tuple[Any, ...]:
        strategies = []
        for reference in profile.strategies:
            strategy = self._create_strategy(reference)
            if strategy is not None:
                strategies.append(strategy)
        return tuple(strategies)

    def _get_strategies_for_profile(self, profile: Profile) -> tuple[Any, ...]:
        strategies = self._profile_strategies.get(profile.name)
        if strategies is not None:
            return strategies

        with self._lock:
            strategies = self._profile_strategies.get(profile.name)
            if strategies is None:
                strategies = self._build_strategies(profile)
                self._profile_strategies[profile.name] = strategies
            return strategies

    # Public API

    def redact(self, content: Any, profile: str | None = None) -> Any:
        """
        Redact sensitive data from content.

        Args:
            content: Any value: scalar, dict, list/tuple or object
            profile: Profile name (default: the configured default profile)

        Returns:
            The redacted value. Disabled profiles return ``content`` itself.
            Dict results get ``_redacted`` (and optionally ``_redacted_keys``)
            when anything was redacted and the profile marks redactions.

        Raises:
            ProfileNotFoundError: If the profile is not configured
            InvalidProfileConfigError: If the profile entry is malformed
        """
        config = self.settings.resolve_profile(profile)

        if not config.enabled:
            return content

        context = RedactionContext(config)
        strategies = self._get_strategies_for_profile(config)

        result = self._redact_value(content, "", context, strategies, set())

        if isinstance(result, Mapping) and context.has_redactions() and config.mark_redacted:
            result = {**result, REDACTED_MARKER_KEY: True}
            redacted_keys = context.get_redacted_keys()
            if config.track_redacted_keys and redacted_keys:
                result[REDACTED_KEYS_KEY] = redacted_keys

        return result

    def register_custom_strategy(self, name: str, strategy: Any) -> None:
        """
        Register a strategy that profiles can reference by name.

        Clears all cached per-profile strategy lists.
        """
        if not _is_strategy(strategy):
            raise TypeError(
                f"Strategy {name!r} must provide should_handle() and handle() methods"
            )

        with self._lock:
            self._custom_strategies = {**self._custom_strategies, name: strategy}
            self._profile_strategies = {}

    def get_strategies(self, profile: str | None = None) -> list[Any]:
        """Get the ordered strategy instances for a profile (for debugging)."""
        return list(self._get_strategies_for_profile(self.settings.resolve_profile(profile)))

    def get_available_profiles(self) -> list[str]:
        """Get the names of all configured profiles."""
        return self.settings.profile_names()

    def profile_exists(self, profile: str) -> bool:
        """Check if a profile is configured."""
        return profile in self.settings.profiles

    def calculate_shannon_entropy(self, s: str) -> float:
        """Calculate the Shannon entropy of a string (diagnostics)."""
        return calculate_entropy(s)

    def is_common_pattern(self, s: str, profile: Profile | str | None = None) -> bool:
        """Check a string against a profile's entropy exclusion patterns (diagnostics)."""
        if not isinstance(profile, Profile):
            profile = self.settings.resolve_profile(profile)
        return _is_common_pattern(s, profile.shannon_entropy.exclusion_patterns)

    # Recursive walk

    def _apply_strategies(
        self,
        value: Any,
        key: str,
        context: RedactionContext,
        strategies: tuple[Any, ...],
    ) -> Any:
        """Apply the first matching strategy, or return the value unchanged."""
        for strategy in strategies:
            if strategy.should_handle(value, key, context):
                return strategy.handle(value, key, context)
        return value

    def _redact_value(
        self,
        data: Any,
        key: str,
        context: RedactionContext,
        strategies: tuple[Any, ...],
        active: set[int],
    ) -> Any:
        if is_collection(data):
            return self._redact_collection(data, context, strategies, active)

        if is_opaque_object(data):
            return self._redact_object(data, key, context, strategies, active)

        return self._apply_strategies(data, key, context, strategies)

    def _redact_collection(
        self,
        data: Mapping[Any, Any] | list[Any] | tuple[Any, ...],
        context: RedactionContext,
        strategies: tuple[Any, ...],
        active: set[int],
    ) -> Any:
        # Whole-collection pass first (e.g. LargeObjectStrategy)
        as_value = self._apply_strategies(data, "", context, strategies)
        if as_value is not data:
            if as_value is REMOVE or is_collection(as_value):
                return as_value
            return {REDACTED_ARRAY_KEY: as_value}

        # A container already on the current path is a reference cycle
        if id(data) in active:
            return self._handle_cycle(data, context)

        active.add(id(data))
        try:
            if isinstance(data, Mapping):
                result: dict[str, Any] = {}
                for key, value in data.items():
                    processed = self._redact_entry(value, str(key), context, strategies, active)
                    if processed is not REMOVE:
                        result[str(key)] = processed
                return result

            items: list[Any] = []
            for index, value in enumerate(data):
                processed = self._redact_entry(value, str(index), context, strategies, active)
                if processed is not REMOVE:
                    items.append(processed)
            return items
        finally:
            active.discard(id(data))

    def _redact_entry(
        self,
        value: Any,
        key: str,
        context: RedactionContext,
        strategies: tuple[Any, ...],
        active: set[int],
    ) -> Any:
        processed = self._apply_strategies(value, key, context, strategies)

        # Unclaimed containers are processed recursively
        if processed is value and processed is not REMOVE and (
            is_collection(value) or is_opaque_object(value)
        ):
            processed = self._redact_value(value, key, context, strategies, active)

        return processed

    def _redact_object(
        self,
        obj: Any,
        key: str,
        context: RedactionContext,
        strategies: tuple[Any, ...],
        active: set[int],
    ) -> Any:
        as_value = self._apply_strategies(obj, key, context, strategies)
        if as_value is not obj:
            return as_value

        if id(obj) in active:
            return self._handle_cycle(obj, context)

        try:
            collection = to_collection(obj)
        except NormalizationError as e:
            logger.warning(
                "Unable to redact object %s: %s (behavior: %s)",
                type(obj).__name__,
                e,
                context.profile.non_redactable_object_behavior.value,
            )
            return self._handle_non_redactable(obj, context)

        active.add(id(obj))
        try:
            return self._redact_collection(collection, context, strategies, active)
        finally:
            active.discard(id(obj))

    def _handle_cycle(self, obj: Any, context: RedactionContext) -> Any:
        """
        Replace a back-reference to a value that is already being redacted.

        Follows the non-redactable policy, with 'preserve' treated as
        'redact' so the input container never reaches the output.
        """
        behavior = context.profile.non_redactable_object_behavior
        if behavior is NonRedactableObjectBehavior.PRESERVE:
            behavior = NonRedactableObjectBehavior.REDACT

        logger.warning(
            "Unable to redact %s: circular reference (behavior: %s)",
            type(obj).__name__,
            behavior.value,
        )
        return self._handle_non_redactable(obj, context, behavior)

    def _handle_non_redactable(
        self,
        obj: Any,
        context: RedactionContext,
        behavior: NonRedactableObjectBehavior | None = None,
    ) -> Any:
        """Apply the profile's policy to a value that cannot be normalized."""
        if behavior is None:
            behavior = context.profile.non_redactable_object_behavior

        if behavior is NonRedactableObjectBehavior.REMOVE:
            context.mark_redacted()
            return REMOVE

        if behavior is NonRedactableObjectBehavior.EMPTY_ARRAY:
            context.mark_redacted()
            return {}

        if behavior is NonRedactableObjectBehavior.REDACT:
            context.mark_redacted()
            return (
                f"{context.profile.replacement} "
                f"(Non-redactable object {type(obj).__name__})"
            )

        return obj


def create_redactor(
    settings: RedactorSettings | None = None,
    config_path: Path | None = None,
    root: Path | None = None,
) -> Redactor:
    """
    Factory function to create a redactor instance.

    Settings are loaded from ``config_path`` (or a config file found in
    ``root``) when not given explicitly.
    """
    if settings is None:
        settings = load_settings(root=root, config_path=config_path)
    return Redactor(settings=settings)
