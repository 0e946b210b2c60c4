"""Tests for key pattern matching."""

import pytest

from data_redactor.keys import matches_any_key_pattern, matches_key_pattern


class TestMatchesKeyPattern:
    """Tests for exact and wildcard key matching."""

    def test_exact_match_case_insensitive(self):
        """Test that exact patterns ignore case."""
        assert matches_key_pattern("Password", "password")
        assert matches_key_pattern("password", "PASSWORD")

    def test_exact_match_requires_equality(self):
        """Test that exact patterns do not match substrings."""
        assert not matches_key_pattern("password_hint", "password")

    @pytest.mark.parametrize(
        "key",
        ["token", "api_token", "ACCESS_TOKEN", "my_custom_token_value", "tokens_list"],
    )
    def test_contains_wildcard(self, key):
        """Test '*token*' matches any key containing 'token'."""
        assert matches_key_pattern(key, "*token*")

    def test_contains_wildcard_no_match(self):
        """Test '*token*' does not match unrelated keys."""
        assert not matches_key_pattern("tok", "*token*")

    def test_prefix_wildcard(self):
        """Test 'api_*' matches keys starting with 'api_'."""
        assert matches_key_pattern("api_secret", "api_*")
        assert matches_key_pattern("api_", "api_*")
        assert not matches_key_pattern("my_api_secret", "api_*")

    def test_suffix_wildcard(self):
        """Test '*_key' matches keys ending with '_key'."""
        assert matches_key_pattern("stripe_key", "*_key")
        assert not matches_key_pattern("stripe_key_id", "*_key")

    def test_middle_wildcard(self):
        """Test wildcards between literal parts."""
        assert matches_key_pattern("user_secret_hash", "user_*_hash")
        assert not matches_key_pattern("user_secret", "user_*_hash")

    def test_regex_metacharacters_are_literal(self):
        """Test that regex syntax in patterns is matched literally."""
        assert matches_key_pattern("a.b", "a.*")
        assert not matches_key_pattern("axb", "a.b*")
        assert matches_key_pattern("x(1)", "*(1)")

    def test_lone_wildcard_matches_everything(self):
        """Test '*' matches any key, including the empty key."""
        assert matches_key_pattern("anything", "*")
        assert matches_key_pattern("", "*")

    def test_wildcard_rejects_trailing_newline(self):
        """Test that a trailing newline is not absorbed by the pattern end."""
        assert not matches_key_pattern("x_token\n", "*token")
        assert matches_key_pattern("x_token", "*token")


class TestMatchesAnyKeyPattern:
    """Tests for matching against a list of patterns."""

    def test_any_pattern(self):
        """Test that one matching pattern is enough."""
        assert matches_any_key_pattern("client_secret", ["password", "*secret*"])

    def test_no_patterns(self):
        """Test that an empty pattern list never matches."""
        assert not matches_any_key_pattern("password", [])
