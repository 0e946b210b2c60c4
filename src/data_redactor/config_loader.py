"""
Configuration file loader for data-redactor.

Supports loading configuration from:
- redactor.toml / .redactor.toml
- redactor.yml / .redactor.yml / redactor.yaml / .redactor.yaml

Profiles defined in a config file replace built-in profiles of the same name
and add new ones. Environment variables override the default and scan profile
names.
"""

from __future__ import annotations

import copy
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .config import (
    BUILTIN_PROFILES,
    DEFAULT_PROFILE_NAME,
    DEFAULT_SCAN_EXCLUDE_PATTERNS,
    DEFAULT_SCAN_MAX_FILE_SIZE,
    DEFAULT_SCAN_PROFILE_NAME,
    Profile,
)

# Optional imports for config file parsing
try:
    import tomllib  # Python 3.11+
except ImportError:
    try:
        import tomli as tomllib  # type: ignore
    except ImportError:
        tomllib = None  # type: ignore

try:
    import yaml
except ImportError:
    yaml = None  # type: ignore


# Config file search order (first found wins)
CONFIG_FILE_NAMES = [
    "redactor.toml",
    ".redactor.toml",
    "redactor.yml",
    ".redactor.yml",
    "redactor.yaml",
    ".redactor.yaml",
]

ENV_DEFAULT_PROFILE = "REDACTOR_DEFAULT_PROFILE"
ENV_SCAN_PROFILE = "REDACTOR_SCAN_PROFILE"
ENV_SCAN_MAX_FILE_SIZE = "REDACTOR_SCAN_MAX_FILE_SIZE"


class ProfileError(ValueError):
    """Base error for profile lookups."""


class ProfileNotFoundError(ProfileError):
    """Requested profile is not defined in the configuration."""

    def __init__(self, name: str):
        super().__init__(f"Redaction profile '{name}' not found in configuration.")
        self.profile_name = name


class InvalidProfileConfigError(ProfileError):
    """Profile entry exists but is not a mapping."""

    def __init__(self, name: str):
        super().__init__(f"Invalid configuration for profile '{name}'.")
        self.profile_name = name


class ConfigFileError(Exception):
    """A config file exists but could not be parsed."""


@dataclass
class ScanSettings:
    """Settings for file scanning."""

    profile: str = DEFAULT_SCAN_PROFILE_NAME
    exclude_patterns: list[str] = field(
        default_factory=lambda: list(DEFAULT_SCAN_EXCLUDE_PATTERNS)
    )
    max_file_size: int = DEFAULT_SCAN_MAX_FILE_SIZE
    max_workers: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "exclude_patterns": list(self.exclude_patterns),
            "max_file_size": self.max_file_size,
            "max_workers": self.max_workers,
            "profile": self.profile,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ScanSettings:
        """Create from dictionary."""
        settings = cls()
        if isinstance(data.get("profile"), str):
            settings.profile = data["profile"]
        if "exclude_patterns" in data:
            settings.exclude_patterns = _normalize_globs(data["exclude_patterns"])
        if "max_file_size" in data:
            settings.max_file_size = int(data["max_file_size"])
        if data.get("max_workers") is not None:
            settings.max_workers = int(data["max_workers"])
        return settings


@dataclass
class RedactorSettings:
    """
    Resolved redactor configuration.

    Holds raw profile data; Profile objects are built on demand so that
    every redact() call sees the current configuration.
    """

    default_profile: str = DEFAULT_PROFILE_NAME
    profiles: dict[str, Any] = field(default_factory=lambda: copy.deepcopy(BUILTIN_PROFILES))
    custom_strategies: dict[str, str] = field(default_factory=dict)
    scan: ScanSettings = field(default_factory=ScanSettings)

    # Source file path (for debugging)
    _config_file: Path | None = field(default=None, repr=False)

    def resolve_profile(self, name: str | None = None) -> Profile:
        """
        Build the Profile for a name, or the default profile.

        Raises:
            ProfileNotFoundError: If the name is not configured
            InvalidProfileConfigError: If the entry is not a mapping
        """
        name = name if name is not None else self.default_profile

        if name not in self.profiles:
            raise ProfileNotFoundError(name)

        data = self.profiles[name]
        if not isinstance(data, Mapping):
            raise InvalidProfileConfigError(name)

        return Profile.from_dict(name, data)

    def profile_names(self) -> list[str]:
        """Get configured profile names in definition order."""
        return list(self.profiles)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization (sorted keys for determinism)."""
        result: dict[str, Any] = {
            "custom_strategies": dict(sorted(self.custom_strategies.items())),
            "default_profile": self.default_profile,
            "profiles": sorted(self.profiles),
            "scan": self.scan.to_dict(),
        }
        if self._config_file is not None:
            result["_loaded_from"] = str(self._config_file)
        return dict(sorted(result.items()))


def find_config_file(root: Path) -> Path | None:
    """
    Find a configuration file in a directory.

    Args:
        root: Directory to search

    Returns:
        Path to the config file, or None if not found
    """
    for name in CONFIG_FILE_NAMES:
        config_path = root / name
        if config_path.exists() and config_path.is_file():
            return config_path
    return None


def _unwrap_section(data: Any) -> dict[str, Any]:
    if not isinstance(data, dict):
        return {}
    # Support both flat and nested [redactor] section
    if isinstance(data.get("redactor"), dict):
        return data["redactor"]
    return data


def _parse_toml(path: Path) -> dict[str, Any]:
    """Parse a TOML config file."""
    if tomllib is None:
        raise ImportError(
            "TOML support requires 'tomli' package (Python < 3.11) or Python 3.11+. "
            "Install with: pip install tomli"
        )

    with open(path, "rb") as f:
        data = tomllib.load(f)

    return _unwrap_section(data)


def _parse_yaml(path: Path) -> dict[str, Any]:
    """Parse a YAML config file."""
    if yaml is None:
        raise ImportError(
            "YAML support requires 'pyyaml' package. Install with: pip install pyyaml"
        )

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    return _unwrap_section(data)


def _normalize_globs(globs: Any) -> list[str]:
    """Normalize glob patterns to a list, accepting comma-separated strings."""
    if globs is None:
        return []

    if isinstance(globs, str):
        globs = [g.strip() for g in globs.split(",")]

    if not isinstance(globs, (list, tuple, set)):
        return []

    return [str(g).strip() for g in globs if g and str(g).strip()]


def settings_from_dict(data: Mapping[str, Any]) -> RedactorSettings:
    """
    Build RedactorSettings from parsed config data.

    Profiles in ``data`` are layered over the built-in profiles by name.
    """
    settings = RedactorSettings()

    if isinstance(data.get("default_profile"), str):
        settings.default_profile = data["default_profile"]

    profiles = data.get("profiles")
    if isinstance(profiles, Mapping):
        for name, profile_data in profiles.items():
            settings.profiles[str(name)] = profile_data

    custom = data.get("custom_strategies")
    if isinstance(custom, Mapping):
        settings.custom_strategies = {
            str(name): target for name, target in custom.items() if isinstance(target, str)
        }

    scan = data.get("scan")
    if isinstance(scan, Mapping):
        settings.scan = ScanSettings.from_dict(scan)

    return settings


def apply_env_overrides(
    settings: RedactorSettings,
    environ: Mapping[str, str] | None = None,
) -> RedactorSettings:
    """Apply REDACTOR_* environment overrides in place."""
    environ = os.environ if environ is None else environ

    if environ.get(ENV_DEFAULT_PROFILE):
        settings.default_profile = environ[ENV_DEFAULT_PROFILE]
    if environ.get(ENV_SCAN_PROFILE):
        settings.scan.profile = environ[ENV_SCAN_PROFILE]
    if environ.get(ENV_SCAN_MAX_FILE_SIZE):
        try:
            settings.scan.max_file_size = int(environ[ENV_SCAN_MAX_FILE_SIZE])
        except ValueError:
            pass  # Keep configured size

    return settings


def load_settings(
    root: Path | None = None,
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> RedactorSettings:
    """
    Load redactor settings from a config file.

    Args:
        root: Directory to search for a config file (default: current directory)
        config_path: Explicit path to a config file (optional)
        environ: Environment mapping for overrides (default: os.environ)

    Returns:
        RedactorSettings with built-in profiles plus any loaded values

    Raises:
        ConfigFileError: If the config file cannot be parsed or holds invalid values
    """
    if config_path is None:
        config_path = find_config_file(root if root is not None else Path.cwd())

    if config_path is None or not config_path.exists():
        return apply_env_overrides(RedactorSettings(), environ)

    suffix = config_path.suffix.lower()
    try:
        if suffix == ".toml":
            data = _parse_toml(config_path)
        elif suffix in (".yml", ".yaml"):
            data = _parse_yaml(config_path)
        else:
            raise ConfigFileError(f"Unsupported config file type: {config_path.name}")
    except ConfigFileError:
        raise
    except Exception as e:
        raise ConfigFileError(f"Failed to parse {config_path}: {e}") from e

    try:
        settings = settings_from_dict(data)
    except (TypeError, ValueError) as e:
        raise ConfigFileError(f"Invalid value in {config_path}: {e}") from e
    settings._config_file = config_path

    return apply_env_overrides(settings, environ)
