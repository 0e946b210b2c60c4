"""Tests for configuration file loading and profile building."""

import re
import tempfile
from pathlib import Path

import pytest

from data_redactor.config import (
    BUILTIN_PROFILES,
    DEFAULT_SCAN_EXCLUDE_PATTERNS,
    NonRedactableObjectBehavior,
    Profile,
)
from data_redactor.config_loader import (
    ConfigFileError,
    RedactorSettings,
    apply_env_overrides,
    find_config_file,
    load_settings,
    settings_from_dict,
)


class TestConfigFileFinding:
    """Tests for finding config files."""

    def test_find_toml_config(self):
        """Test finding redactor.toml config file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            config_file = root / "redactor.toml"
            config_file.write_text('[redactor]\ndefault_profile = "strict"\n')

            assert find_config_file(root) == config_file

    def test_find_hidden_yaml_config(self):
        """Test finding .redactor.yml config file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            config_file = root / ".redactor.yml"
            config_file.write_text("default_profile: strict\n")

            assert find_config_file(root) == config_file

    def test_no_config_file(self):
        """Test when no config file exists."""
        with tempfile.TemporaryDirectory() as tmpdir:
            assert find_config_file(Path(tmpdir)) is None

    def test_config_file_priority(self):
        """Test that the first file in priority order is found."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "redactor.yml").write_text("default_profile: strict\n")
            (root / "redactor.toml").write_text('default_profile = "performance"\n')

            assert find_config_file(root).name == "redactor.toml"


class TestConfigLoading:
    """Tests for loading settings from files."""

    def test_no_file_gives_builtins(self):
        """Test that built-in profiles are available without a config file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            settings = load_settings(root=Path(tmpdir), environ={})

        assert settings.default_profile == "default"
        assert set(settings.profile_names()) == set(BUILTIN_PROFILES)
        assert settings._config_file is None

    def test_load_toml_config(self):
        """Test loading profiles and scan settings from TOML."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "redactor.toml").write_text('''
[redactor]
default_profile = "api"

[redactor.profiles.api]
strategies = ["safe_keys", "blocked_keys"]
safe_keys = ["Request_ID"]
blocked_keys = ["*password*"]

[redactor.scan]
profile = "strict"
exclude_patterns = ["*.log", "build/"]
max_file_size = 2048
max_workers = 2
''')
            settings = load_settings(root=root, environ={})

        assert settings.default_profile == "api"
        assert "api" in settings.profiles
        assert "default" in settings.profiles
        assert settings.scan.profile == "strict"
        assert settings.scan.exclude_patterns == ["*.log", "build/"]
        assert settings.scan.max_file_size == 2048
        assert settings.scan.max_workers == 2

        profile = settings.resolve_profile()
        assert profile.name == "api"
        assert profile.safe_keys == frozenset({"request_id"})
        assert profile.blocked_keys == ("*password*",)

    def test_load_yaml_config(self):
        """Test loading a flat YAML config."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "redactor.yaml").write_text(
                "default_profile: strict\n"
                "scan:\n"
                "  exclude_patterns: '*.lock, dist/'\n"
            )
            settings = load_settings(root=root, environ={})

        assert settings.default_profile == "strict"
        assert settings.scan.exclude_patterns == ["*.lock", "dist/"]
        assert settings._config_file.name == "redactor.yaml"

    def test_profile_replaces_builtin(self):
        """Test that a config profile replaces the built-in of the same name."""
        settings = settings_from_dict({
            "profiles": {"default": {"strategies": ["blocked_keys"], "blocked_keys": ["x"]}},
        })
        profile = settings.resolve_profile("default")

        assert profile.strategies == ("blocked_keys",)
        assert profile.blocked_keys == ("x",)
        assert "strict" in settings.profiles

    def test_explicit_config_path(self):
        """Test loading an explicit config path."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "custom.yml"
            config_path.write_text("default_profile: performance\n")

            settings = load_settings(config_path=config_path, environ={})

        assert settings.default_profile == "performance"

    def test_invalid_toml(self):
        """Test that unparseable TOML raises ConfigFileError."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "redactor.toml"
            config_path.write_text("default_profile = [unterminated\n")

            with pytest.raises(ConfigFileError):
                load_settings(config_path=config_path, environ={})

    def test_invalid_yaml(self):
        """Test that unparseable YAML raises ConfigFileError."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "redactor.yml"
            config_path.write_text("profiles: [unclosed\n")

            with pytest.raises(ConfigFileError):
                load_settings(config_path=config_path, environ={})

    def test_invalid_scan_value(self):
        """Test that a parseable file with a bad scan value raises ConfigFileError."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "redactor.toml"
            config_path.write_text('[scan]\nmax_file_size = "big"\n')

            with pytest.raises(ConfigFileError, match="Invalid value"):
                load_settings(config_path=config_path, environ={})

    def test_unsupported_suffix(self):
        """Test that unknown config file types are rejected."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "redactor.json"
            config_path.write_text("{}")

            with pytest.raises(ConfigFileError, match="Unsupported"):
                load_settings(config_path=config_path, environ={})

    def test_non_string_custom_strategies_ignored(self):
        """Test that custom strategy entries must be import paths."""
        settings = settings_from_dict({
            "custom_strategies": {"ok": "pkg.mod:Cls", "bad": 42},
        })

        assert settings.custom_strategies == {"ok": "pkg.mod:Cls"}


class TestEnvOverrides:
    """Tests for REDACTOR_* environment variables."""

    def test_overrides(self):
        """Test that environment variables override loaded values."""
        settings = apply_env_overrides(
            RedactorSettings(),
            {
                "REDACTOR_DEFAULT_PROFILE": "strict",
                "REDACTOR_SCAN_PROFILE": "default",
                "REDACTOR_SCAN_MAX_FILE_SIZE": "1024",
            },
        )

        assert settings.default_profile == "strict"
        assert settings.scan.profile == "default"
        assert settings.scan.max_file_size == 1024

    def test_invalid_size_ignored(self):
        """Test that a non-numeric size override is ignored."""
        settings = apply_env_overrides(
            RedactorSettings(), {"REDACTOR_SCAN_MAX_FILE_SIZE": "huge"}
        )

        assert settings.scan.max_file_size == 10_485_760

    def test_empty_values_ignored(self):
        """Test that empty variables do not override."""
        settings = apply_env_overrides(RedactorSettings(), {"REDACTOR_DEFAULT_PROFILE": ""})

        assert settings.default_profile == "default"


class TestSettingsSerialization:
    """Tests for RedactorSettings.to_dict."""

    def test_to_dict_is_sorted(self):
        """Test that to_dict output has sorted keys and profile names."""
        data = RedactorSettings().to_dict()

        assert list(data) == sorted(data)
        assert data["profiles"] == sorted(BUILTIN_PROFILES)
        assert data["scan"]["exclude_patterns"] == DEFAULT_SCAN_EXCLUDE_PATTERNS
        assert "_loaded_from" not in data

    def test_builtins_not_shared(self):
        """Test that settings get their own copy of the built-in profiles."""
        settings = RedactorSettings()
        settings.profiles["default"]["replacement"] = "***"

        assert RedactorSettings().resolve_profile("default").replacement == "[REDACTED]"


class TestProfileFromDict:
    """Tests for Profile.from_dict coercion."""

    def test_defaults(self):
        """Test the defaults of an empty profile."""
        profile = Profile.from_dict("empty", {})

        assert profile.enabled is True
        assert profile.strategies == ()
        assert profile.replacement == "[REDACTED]"
        assert profile.mark_redacted is True
        assert profile.track_redacted_keys is False
        assert profile.non_redactable_object_behavior is NonRedactableObjectBehavior.PRESERVE
        assert profile.max_value_length is None
        assert profile.max_object_size == 100
        assert profile.shannon_entropy.enabled is False

    def test_wrong_types_fall_back(self):
        """Test that values of the wrong type use defaults."""
        profile = Profile.from_dict("odd", {
            "enabled": "yes",
            "mark_redacted": 0,
            "replacement": 5,
            "max_object_size": "big",
            "strategies": "safe_keys",
            "safe_keys": "id",
        })

        assert profile.enabled is True
        assert profile.mark_redacted is True
        assert profile.replacement == "[REDACTED]"
        assert profile.max_object_size == 100
        assert profile.strategies == ()
        assert profile.safe_keys == frozenset()

    @pytest.mark.parametrize(
        "value,expected",
        [(100, 100), ("250", 250), (12.7, 12), (0, None), (-5, None), ("abc", None), (None, None)],
    )
    def test_max_value_length(self, value, expected):
        """Test that max_value_length must be a positive number."""
        assert Profile.from_dict("p", {"max_value_length": value}).max_value_length == expected

    def test_keys_lowercased(self):
        """Test that key lists are lowercased and non-strings dropped."""
        profile = Profile.from_dict("p", {
            "safe_keys": ["ID", 3],
            "blocked_keys": ["*Token*", None],
        })

        assert profile.safe_keys == frozenset({"id"})
        assert profile.blocked_keys == ("*token*",)

    def test_invalid_patterns_dropped(self):
        """Test that invalid regex patterns are dropped."""
        profile = Profile.from_dict("p", {
            "patterns": {"bad": "(", "good": r"\d+"},
            "shannon_entropy": {"enabled": True, "exclusion_patterns": ["[", r"^x"]},
        })

        assert list(profile.patterns) == ["good"]
        assert isinstance(profile.patterns["good"], re.Pattern)
        assert [p.pattern for p in profile.shannon_entropy.exclusion_patterns] == [r"^x"]

    def test_unknown_behavior(self):
        """Test that unknown non-redactable behaviors parse as preserve."""
        profile = Profile.from_dict("p", {"non_redactable_object_behavior": "explode"})

        assert profile.non_redactable_object_behavior is NonRedactableObjectBehavior.PRESERVE
