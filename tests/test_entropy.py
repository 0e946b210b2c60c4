"""Tests for the Shannon entropy classifier."""

import re

import pytest

from data_redactor.config import COMMON_EXCLUSION_PATTERNS, EntropyConfig, Profile
from data_redactor.context import RedactionContext
from data_redactor.entropy import (
    byte_length,
    calculate_entropy,
    is_common_pattern,
    should_redact_by_entropy,
)

SHA256_EMPTY = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
HIGH_ENTROPY_40 = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMN"


class TestCalculateEntropy:
    """Tests for calculate_entropy."""

    @pytest.mark.parametrize("value", ["", "a"])
    def test_short_strings_have_zero_entropy(self, value):
        """Test that strings of one byte or less score 0."""
        assert calculate_entropy(value) == 0.0

    def test_uniform_string(self):
        """Test that a single repeated symbol scores 0."""
        assert calculate_entropy("aaaaaaaa") == 0.0

    def test_two_symbols(self):
        """Test two equally frequent symbols score 1 bit."""
        assert calculate_entropy("abab") == pytest.approx(1.0)

    def test_four_symbols(self):
        """Test four equally frequent symbols score 2 bits."""
        assert calculate_entropy("abcd") == pytest.approx(2.0)

    def test_distinct_symbols(self):
        """Test n distinct symbols score log2(n)."""
        assert calculate_entropy(HIGH_ENTROPY_40) == pytest.approx(5.321928, abs=1e-5)

    def test_measured_over_utf8_bytes(self):
        """Test that a two-byte character counts as two symbols."""
        # 'é' encodes to two distinct bytes
        assert calculate_entropy("é") == pytest.approx(1.0)

    def test_uses_context_cache(self):
        """Test that results are memoized on the context."""
        context = RedactionContext(Profile())
        calculate_entropy("abab", context)

        assert context.get_cached_entropy("abab") == pytest.approx(1.0)

    def test_returns_cached_value(self):
        """Test that a cached value is returned as-is."""
        context = RedactionContext(Profile())
        context.cache_entropy("abab", 9.9)

        assert calculate_entropy("abab", context) == 9.9


class TestIsCommonPattern:
    """Tests for exclusion pattern matching."""

    def test_matching_pattern(self):
        """Test that a matching exclusion pattern is detected."""
        assert is_common_pattern("https://example.com/a/b", [r"^https?://"])

    def test_no_match(self):
        """Test a string matching no pattern."""
        assert not is_common_pattern("plain", [r"^https?://", r"^\d+$"])

    def test_compiled_patterns(self):
        """Test that precompiled patterns are accepted."""
        assert is_common_pattern("2024-01-01T00:00:00", (re.compile(r"^\d{4}-\d{2}-\d{2}"),))

    def test_invalid_pattern_skipped(self):
        """Test that patterns failing to compile are ignored."""
        assert not is_common_pattern("abc", ["[unclosed"])
        assert is_common_pattern("abc", ["[unclosed", r"^abc$"])

    def test_non_pattern_entries_skipped(self):
        """Test that entries of other types are ignored."""
        assert is_common_pattern("abc", [42, None, r"^abc$"])

    def test_non_list_argument(self):
        """Test that a non-list argument never matches."""
        assert not is_common_pattern("abc", "^abc$")
        assert not is_common_pattern("abc", None)

    def test_short_hex_is_excluded(self):
        """Test that short hex strings match the hex pattern."""
        assert is_common_pattern("deadbeef", [r"^[0-9a-f]+$"])

    def test_long_hex_bypasses_hex_pattern(self):
        """Test that hex strings of 32+ chars are not excluded by the hex pattern."""
        assert not is_common_pattern(SHA256_EMPTY, [r"^[0-9a-f]+$"])
        assert not is_common_pattern(SHA256_EMPTY, [r"(?i)^[0-9a-f]+$"])

    def test_long_hex_still_excluded_by_other_patterns(self):
        """Test that the hex bypass only applies to the hex pattern itself."""
        assert is_common_pattern(SHA256_EMPTY, [r"^[0-9a-f]+$", r"^e3b0"])


class TestShouldRedactByEntropy:
    """Tests for should_redact_by_entropy."""

    @pytest.fixture
    def config(self):
        return EntropyConfig(enabled=True, threshold=4.0, min_length=20)

    def test_high_entropy_string(self, config):
        """Test that a long random-looking string is flagged."""
        assert should_redact_by_entropy(HIGH_ENTROPY_40, config)

    def test_too_short(self, config):
        """Test that strings below min_length are never flagged."""
        assert not should_redact_by_entropy("abc123XYZ", config)

    def test_low_entropy(self, config):
        """Test that repetitive strings are not flagged."""
        assert not should_redact_by_entropy("a" * 40, config)

    def test_excluded_string(self):
        """Test that exclusion patterns suppress flagging."""
        config = EntropyConfig(
            enabled=True,
            threshold=4.0,
            min_length=20,
            exclusion_patterns=(re.compile(r"^abc"),),
        )
        assert not should_redact_by_entropy(HIGH_ENTROPY_40, config)

    def test_threshold_is_inclusive(self):
        """Test that entropy equal to the threshold is flagged."""
        config = EntropyConfig(enabled=True, threshold=2.0, min_length=4)
        assert should_redact_by_entropy("abcd", config)

    def test_min_length_counts_bytes(self):
        """Test that min_length is compared with the UTF-8 byte length."""
        value = "".join(chr(0xE0 + i) for i in range(13))
        config = EntropyConfig(enabled=True, threshold=2.0, min_length=25)

        assert len(value) == 13
        assert byte_length(value) == 26
        assert should_redact_by_entropy(value, config)


class TestBuiltinExclusionPatterns:
    """Tests for the built-in exclusion pattern list."""

    def test_anchored_patterns_reject_trailing_newline(self):
        """Test that end-anchored patterns do not match before a final newline."""
        assert is_common_pattern("10.0.0.1", COMMON_EXCLUSION_PATTERNS)
        assert not is_common_pattern("10.0.0.1\n", [r"^\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}\Z"])

    def test_long_hex_bypasses_builtin_hex_pattern(self):
        """Test that the built-in hex pattern does not exclude long hex strings."""
        assert is_common_pattern("deadbeef", COMMON_EXCLUSION_PATTERNS)
        assert not is_common_pattern(SHA256_EMPTY, COMMON_EXCLUSION_PATTERNS)
