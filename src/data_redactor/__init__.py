"""
data-redactor: detect and mask sensitive data in structured values and text.

Redacts credentials, PII and high-entropy secrets from nested dicts, lists and
objects using an ordered, profile-driven strategy pipeline.
"""

from __future__ import annotations

__version__ = "1.0.0"

from .config import EntropyConfig, NonRedactableObjectBehavior, Profile
from .config_loader import (
    ConfigFileError,
    InvalidProfileConfigError,
    ProfileError,
    ProfileNotFoundError,
    RedactorSettings,
    load_settings,
)
from .context import RedactionContext
from .redactor import Redactor, create_redactor
from .strategies import REMOVE, RedactionStrategy, SupportsToDict

__all__ = [
    "__version__",
    "ConfigFileError",
    "EntropyConfig",
    "InvalidProfileConfigError",
    "NonRedactableObjectBehavior",
    "Profile",
    "ProfileError",
    "ProfileNotFoundError",
    "REMOVE",
    "RedactionContext",
    "RedactionStrategy",
    "Redactor",
    "RedactorSettings",
    "SupportsToDict",
    "create_redactor",
    "load_settings",
]
