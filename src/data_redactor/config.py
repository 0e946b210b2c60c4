"""
Profile models and built-in profiles for data-redactor.

A profile is an immutable bundle of redaction policy: key lists, regex
patterns, size limits, entropy settings and the ordered strategy list.
Profiles are rebuilt from plain configuration data on every redact() call.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

DEFAULT_PROFILE_NAME = "default"
DEFAULT_SCAN_PROFILE_NAME = "file_scan"
DEFAULT_REPLACEMENT = "[REDACTED]"
DEFAULT_MAX_OBJECT_SIZE = 100
DEFAULT_ENTROPY_THRESHOLD = 4.8
DEFAULT_ENTROPY_MIN_LENGTH = 25

# Audit keys injected into redacted output
REDACTED_MARKER_KEY = "_redacted"
REDACTED_KEYS_KEY = "_redacted_keys"
REDACTED_ARRAY_KEY = "_redacted_array"
LARGE_OBJECT_KEY = "_large_object_redacted"


class NonRedactableObjectBehavior(str, Enum):
    """What to do with objects that cannot be turned into a dict."""

    PRESERVE = "preserve"
    REMOVE = "remove"
    EMPTY_ARRAY = "empty_array"
    REDACT = "redact"

    @classmethod
    def parse(cls, value: Any) -> NonRedactableObjectBehavior:
        """Parse a configured value; anything unknown behaves as 'preserve'."""
        try:
            return cls(value)
        except ValueError:
            return cls.PRESERVE


@dataclass(frozen=True)
class EntropyConfig:
    """Shannon entropy settings of a profile."""

    enabled: bool = False
    threshold: float = DEFAULT_ENTROPY_THRESHOLD
    min_length: int = DEFAULT_ENTROPY_MIN_LENGTH
    exclusion_patterns: tuple[re.Pattern[str], ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> EntropyConfig:
        """Create EntropyConfig from a dictionary, ignoring malformed values."""
        if not isinstance(data, Mapping):
            return cls()

        enabled = data.get("enabled", False)
        raw_patterns = data.get("exclusion_patterns", [])

        return cls(
            enabled=enabled if isinstance(enabled, bool) else False,
            threshold=_to_float(data.get("threshold"), DEFAULT_ENTROPY_THRESHOLD),
            min_length=_to_int(data.get("min_length"), DEFAULT_ENTROPY_MIN_LENGTH),
            exclusion_patterns=tuple(
                _compile_patterns(raw_patterns) if isinstance(raw_patterns, (list, tuple)) else []
            ),
        )


@dataclass(frozen=True)
class Profile:
    """A named, immutable redaction policy."""

    name: str = DEFAULT_PROFILE_NAME
    enabled: bool = True
    strategies: tuple[Any, ...] = ()
    safe_keys: frozenset[str] = frozenset()
    blocked_keys: tuple[str, ...] = ()
    patterns: dict[str, re.Pattern[str]] = field(default_factory=dict)
    replacement: str = DEFAULT_REPLACEMENT
    mark_redacted: bool = True
    track_redacted_keys: bool = False
    non_redactable_object_behavior: NonRedactableObjectBehavior = (
        NonRedactableObjectBehavior.PRESERVE
    )
    max_value_length: int | None = None
    redact_large_objects: bool = True
    max_object_size: int | None = DEFAULT_MAX_OBJECT_SIZE
    shannon_entropy: EntropyConfig = field(default_factory=EntropyConfig)

    @classmethod
    def from_dict(cls, name: str, data: Mapping[str, Any]) -> Profile:
        """
        Create a Profile from a configuration mapping.

        Values of the wrong type fall back to their defaults and regex
        patterns that fail to compile are dropped.
        """
        safe_keys = data.get("safe_keys", [])
        blocked_keys = data.get("blocked_keys", [])
        patterns = data.get("patterns", {})
        strategies = data.get("strategies", [])
        replacement = data.get("replacement", DEFAULT_REPLACEMENT)
        max_object_size = data.get("max_object_size", DEFAULT_MAX_OBJECT_SIZE)

        return cls(
            name=name,
            enabled=_to_bool(data.get("enabled"), True),
            strategies=tuple(
                s for s in (strategies if isinstance(strategies, (list, tuple)) else [])
                if isinstance(s, (str, type))
            ),
            safe_keys=frozenset(_lower_strings(safe_keys)),
            blocked_keys=tuple(_lower_strings(blocked_keys)),
            patterns=_compile_named_patterns(patterns),
            replacement=replacement if isinstance(replacement, str) else DEFAULT_REPLACEMENT,
            mark_redacted=_to_bool(data.get("mark_redacted"), True),
            track_redacted_keys=_to_bool(data.get("track_redacted_keys"), False),
            non_redactable_object_behavior=NonRedactableObjectBehavior.parse(
                data.get("non_redactable_object_behavior", "preserve")
            ),
            max_value_length=_to_max_value_length(data.get("max_value_length")),
            redact_large_objects=_to_bool(data.get("redact_large_objects"), True),
            max_object_size=(
                max_object_size
                if isinstance(max_object_size, int) and not isinstance(max_object_size, bool)
                else DEFAULT_MAX_OBJECT_SIZE
            ),
            shannon_entropy=EntropyConfig.from_dict(data.get("shannon_entropy", {})),
        )


def _to_bool(value: Any, default: bool) -> bool:
    return value if isinstance(value, bool) else default


def _to_float(value: Any, default: float) -> float:
    if isinstance(value, bool) or value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _to_int(value: Any, default: int) -> int:
    if isinstance(value, bool) or value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _to_max_value_length(value: Any) -> int | None:
    """Positive numeric values become an int limit; anything else disables it."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return int(number) if number > 0 else None


def _lower_strings(values: Any) -> list[str]:
    if not isinstance(values, (list, tuple, set, frozenset)):
        return []
    return [v.lower() for v in values if isinstance(v, str)]


def _compile_patterns(sources: list[Any] | tuple[Any, ...]) -> list[re.Pattern[str]]:
    compiled = []
    for source in sources:
        if isinstance(source, re.Pattern):
            compiled.append(source)
            continue
        if not isinstance(source, str):
            continue
        try:
            compiled.append(re.compile(source))
        except re.error:
            pass  # Skip invalid patterns
    return compiled


def _compile_named_patterns(patterns: Any) -> dict[str, re.Pattern[str]]:
    if not isinstance(patterns, Mapping):
        return {}

    compiled: dict[str, re.Pattern[str]] = {}
    for name, source in patterns.items():
        for pattern in _compile_patterns([source]):
            compiled[str(name)] = pattern
    return compiled


# Strategy identifiers, in the default priority order
DEFAULT_STRATEGIES: list[str] = [
    "safe_keys",
    "blocked_keys",
    "large_object",
    "large_string",
    "regex_patterns",
    "shannon_entropy",
]

COMMON_SAFE_KEYS: list[str] = [
    # Identifiers
    "id",
    "uuid",
    "user_id",
    "order_id",
    "session_id",
    "request_id",
    # Timestamps
    "created_at",
    "updated_at",
    "timestamp",
    # Log record fields
    "level",
    "event",
    "message",
    "trace_id",
    "channel",
    "duration_ms",
    "memory_mb",
    "controlled_block",
    "controlled_block_id",
    "attempt",
    "status",
    "breaker_tripped",
    "uncaught",
    # Request metadata
    "title",
    "type",
    "method",
    "path",
    "url",
    "ip",
    "user_agent",
    "operation",
    "action",
    "source",
    "target",
    "version",
    "platform",
    "environment",
]

COMMON_BLOCKED_KEYS: list[str] = [
    "password",
    "*token*",
    "*key*",
    "*secret*",
    "authorization",
    "auth_token",
    "bearer_token",
    "access_token",
    "refresh_token",
    "session_id",
    "private_key",
    "client_secret",
    "full_name",
    "first_name",
    "last_name",
    "email",
    "ssn",
    "ein",
    "social_security_number",
    "tax_id",
    "credit_card",
    "card_number",
    "cvv",
    "pin",
]

EMAIL_PATTERN = r"[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+"
SSN_PATTERN = r"\b\d{3}-?\d{2}-?\d{4}\b"
CREDIT_CARD_PATTERN = r"\b(?:\d[ -]*?){13,16}\b"
URL_WITH_AUTH_PATTERN = r"https?://[^:/\s]+:[^@/\s]+@[^\s]+"
PHONE_SIMPLE_PATTERN = r"\b\d{3}[.-]?\d{3}[.-]?\d{4}\b"

# Values that look random but are structurally benign
COMMON_EXCLUSION_PATTERNS: list[str] = [
    r"^https?://",
    r"^[/\\].+[/\\]",
    r"^\d{4}-\d{2}-\d{2}",
    r"(?i)^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}\Z",
    r"(?i)^[0-9a-f]+\Z",
    r"^\s*\Z",
    r"^Mozilla/\d\.\d|^[A-Za-z]+/\d+\.\d+|AppleWebKit|Chrome|Safari|Firefox|Opera|Edge",
    r"^\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}\Z",
    r"(?i)^[0-9a-f]{2}:[0-9a-f]{2}:[0-9a-f]{2}:[0-9a-f]{2}:[0-9a-f]{2}:[0-9a-f]{2}\Z",
    r"(?i)^(SELECT|INSERT|UPDATE|DELETE|CREATE|DROP|ALTER|TRUNCATE|SHOW|DESCRIBE|EXPLAIN)\s+",
]

# Built-in profiles; config files may replace or extend these by name
BUILTIN_PROFILES: dict[str, dict[str, Any]] = {
    "default": {
        "enabled": True,
        "strategies": list(DEFAULT_STRATEGIES),
        "safe_keys": list(COMMON_SAFE_KEYS),
        "blocked_keys": list(COMMON_BLOCKED_KEYS),
        "patterns": {
            "email": EMAIL_PATTERN,
            "phone_simple": PHONE_SIMPLE_PATTERN,
            "ssn": SSN_PATTERN,
            "credit_card": CREDIT_CARD_PATTERN,
            "url_with_auth": URL_WITH_AUTH_PATTERN,
        },
        "replacement": DEFAULT_REPLACEMENT,
        "mark_redacted": True,
        "track_redacted_keys": False,
        "non_redactable_object_behavior": "preserve",
        "max_value_length": 5000,
        "redact_large_objects": True,
        "max_object_size": 100,
        "shannon_entropy": {
            "enabled": True,
            "threshold": 4.8,
            "min_length": 25,
            "exclusion_patterns": list(COMMON_EXCLUSION_PATTERNS),
        },
    },
    # Aggressive redaction for sensitive environments
    "strict": {
        "enabled": True,
        "strategies": list(DEFAULT_STRATEGIES),
        "safe_keys": [
            "id",
            "uuid",
            "created_at",
            "updated_at",
            "timestamp",
            "level",
            "event",
            "message",
        ],
        "blocked_keys": [
            "secret",
            *COMMON_BLOCKED_KEYS,
            "phone",
            "address",
            "user_agent",
            "ip",
            "name",
            "username",
        ],
        "patterns": {
            "email": EMAIL_PATTERN,
            "phone": r"\+?[\d\s\-\(\)]{7,15}",
            "ssn": SSN_PATTERN,
            "credit_card": CREDIT_CARD_PATTERN,
            "url_with_auth": URL_WITH_AUTH_PATTERN,
            "ipv4": r"\b\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}\b",
            "uuid": r"(?i)[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
            "jwt": r"^[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]*\Z",
        },
        "replacement": DEFAULT_REPLACEMENT,
        "mark_redacted": True,
        "track_redacted_keys": True,
        "non_redactable_object_behavior": "redact",
        "max_value_length": 1000,
        "redact_large_objects": True,
        "max_object_size": 25,
        "shannon_entropy": {
            "enabled": True,
            "threshold": 4.0,
            "min_length": 15,
            "exclusion_patterns": [
                r"^https?://",
                r"^\d{4}-\d{2}-\d{2}",
            ],
        },
    },
    # Plain text file content: pattern and entropy strategies only
    "file_scan": {
        "enabled": True,
        "strategies": ["regex_patterns", "shannon_entropy"],
        "safe_keys": [],
        "blocked_keys": [],
        "patterns": {
            "email": EMAIL_PATTERN,
            "phone_simple": PHONE_SIMPLE_PATTERN,
            "ssn": SSN_PATTERN,
            "credit_card": CREDIT_CARD_PATTERN,
            "url_with_auth": URL_WITH_AUTH_PATTERN,
            "api_key_stripe": r"sk_(?:test_|live_)[a-zA-Z0-9]{24,}",
            "api_key_generic": (
                r"(?:api[_-]?key|access[_-]?token|secret[_-]?key)[\s=:]+[a-zA-Z0-9_-]{16,}"
            ),
            "jwt_token": r"eyJ[a-zA-Z0-9_-]*\.eyJ[a-zA-Z0-9_-]*\.[a-zA-Z0-9_-]+",
            "base64_key": r"(?:key|token|secret)[\s=:]+[A-Za-z0-9+/]{32,}={0,2}",
            "aws_access_key": r"AKIA[0-9A-Z]{16}",
            "aws_secret_key": r"[0-9a-zA-Z/+]{40}",
            "github_token": r"gh[pousr]_[A-Za-z0-9_]{36}",
            "password_assignment": r"password[\s=:]+[^\s\n\r]+",
        },
        "replacement": DEFAULT_REPLACEMENT,
        "mark_redacted": True,
        "track_redacted_keys": False,
        "non_redactable_object_behavior": "preserve",
        "max_value_length": None,
        "redact_large_objects": False,
        "max_object_size": 100,
        "shannon_entropy": {
            "enabled": True,
            "threshold": 4.8,
            "min_length": 25,
            "exclusion_patterns": [
                p for p in COMMON_EXCLUSION_PATTERNS if p != r"(?i)^[0-9a-f]+\Z"
            ] + [
                r"^[a-zA-Z]{1,15}\Z",
                r"^[A-Za-z]+\s+[A-Za-z]+(\s+[A-Za-z]+)*\Z",
                r"^\d+\Z",
                r"^[A-Z]{2,}\Z",
                r"^[a-z]{2,}\Z",
            ],
        },
    },
    # High throughput: key lists and a couple of cheap patterns
    "performance": {
        "enabled": True,
        "strategies": ["safe_keys", "blocked_keys", "regex_patterns"],
        "safe_keys": list(COMMON_SAFE_KEYS),
        "blocked_keys": [
            "password",
            "secret",
            "*token*",
            "*key*",
            "authorization",
            "private_key",
            "client_secret",
        ],
        "patterns": {
            "email": EMAIL_PATTERN,
            "simple_token": r"^[A-Za-z0-9]{32,}\Z",
        },
        "replacement": DEFAULT_REPLACEMENT,
        "mark_redacted": False,
        "track_redacted_keys": False,
        "non_redactable_object_behavior": "preserve",
        "max_value_length": None,
        "redact_large_objects": False,
        "max_object_size": None,
        "shannon_entropy": {"enabled": False},
    },
}

# File scanning defaults
DEFAULT_SCAN_EXCLUDE_PATTERNS: list[str] = [
    "*.lock",
    "*.min.js",
    "vendor/",
    "node_modules/",
]
DEFAULT_SCAN_MAX_FILE_SIZE = 10_485_760  # 10 MB
