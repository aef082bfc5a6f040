"""Tests for token extraction and challenge detection."""

import json

import pytest

from lelang.detect.challenge import DEFAULT_MARKERS, ChallengeDetector, is_challenge
from lelang.detect.tokens import (
    DEFAULT_RULES,
    HtmlTokenExtractor,
    extract_token,
    is_plausible_token,
)

LONG = "f3a9c2e1b7d4a6c8e0f2"


class TestHtmlTokenExtractor:
    """Tests for the HtmlTokenExtractor class."""

    def test_direct_assignment(self):
        """Test the direct-assignment pattern returns exactly the token."""
        html = "<script>\n  authenticityToken = 'abc123def456';\n</script>"
        assert extract_token(html) == "abc123def456"

    def test_direct_assignment_embedded_in_page(self, token_page, token):
        """Test extraction from a full page."""
        assert HtmlTokenExtractor().extract(token_page) == token

    @pytest.mark.parametrize(
        "html",
        [
            f'var config = {{"authenticityToken": "{LONG}"}};',
            f"data: {{ authenticityToken: '{LONG}' }}",
        ],
    )
    def test_json_key_value(self, html):
        """Test JSON-style key/value assignments."""
        assert extract_token(html) == LONG

    def test_meta_name_then_content(self):
        """Test meta tag with name before content."""
        html = f'<head><meta name="csrf-token" content="{LONG}"></head>'
        match = HtmlTokenExtractor().match(html)
        assert match.token == LONG
        assert match.rule == "meta_name_content"

    def test_meta_content_then_name(self):
        """Test meta tag with content before name."""
        html = f"<meta content='{LONG}' name='_token'>"
        match = HtmlTokenExtractor().match(html)
        assert match.token == LONG
        assert match.rule == "meta_content_name"

    def test_input_name_then_value(self):
        """Test hidden input with name before value."""
        html = f'<form><input type="hidden" name="_csrf_token" value="{LONG}"></form>'
        match = HtmlTokenExtractor().match(html)
        assert match.token == LONG
        assert match.rule == "input_name_value"

    def test_input_value_then_name(self):
        """Test hidden input with value before name."""
        html = f'<input value="{LONG}" type="hidden" name="authenticity_token">'
        match = HtmlTokenExtractor().match(html)
        assert match.token == LONG
        assert match.rule == "input_value_name"

    @pytest.mark.parametrize(
        "html,rule",
        [
            (f'window.csrfToken = "{LONG}";', "window_assignment"),
            (f"var apiToken = '{LONG}';", "var_declaration"),
            (f'let sessionToken = "{LONG}";', "let_declaration"),
            (f"const pageToken = '{LONG}';", "const_declaration"),
        ],
    )
    def test_javascript_assignments(self, html, rule):
        """Test window/var/let/const assignments."""
        match = HtmlTokenExtractor().match(f"<script>{html}</script>")
        assert match.token == LONG
        assert match.rule == rule

    def test_data_attribute(self):
        """Test data-*token* attributes."""
        html = f'<div id="app" data-csrf-token="{LONG}"></div>'
        match = HtmlTokenExtractor().match(html)
        assert match.token == LONG
        assert match.rule == "data_attribute"

    @pytest.mark.parametrize(
        "html,rule",
        [
            (json.dumps({"csrf_token": LONG}), "csrf_token_double"),
            (f"{{'csrf_token': '{LONG}'}}", "csrf_token_single"),
            (json.dumps({"token": LONG}), "token_double"),
            (f"{{'token': '{LONG}'}}", "token_single"),
        ],
    )
    def test_generic_key_value(self, html, rule):
        """Test Laravel and generic token key/value pairs."""
        match = HtmlTokenExtractor().match(html)
        assert match.token == LONG
        assert match.rule == rule

    def test_no_match_returns_none(self):
        """Test documents matching no rule yield None without raising."""
        extractor = HtmlTokenExtractor()
        assert extractor.extract("<html><body>Daftar Lelang</body></html>") is None
        assert extractor.extract("") is None
        assert extractor.extract(None) is None

    @pytest.mark.parametrize("short", ["", "a", "0123456789", "tooshort"])
    def test_short_captures_never_returned(self, short):
        """Test captures of 10 characters or fewer are rejected."""
        html = f'<meta name="csrf-token" content="{short}">{{"token": "{short}"}}'
        assert extract_token(html) is None

    def test_meta_name_capture_is_skipped(self):
        """Test the captured meta name is not mistaken for the token."""
        html = f'<meta name="csrf-token" content="{LONG}">'
        assert extract_token(html) == LONG
        assert extract_token(html) != "csrf-token"

    def test_first_matching_rule_wins(self):
        """Test priority order when several conventions are present."""
        html = (
            f'<meta name="csrf-token" content="meta-{LONG}">'
            "<script>authenticityToken = 'deadbeefcafe0123';</script>"
        )
        match = HtmlTokenExtractor().match(html)
        assert match.rule == "direct_assignment"
        assert match.token == "deadbeefcafe0123"

    def test_first_matching_rule_decides_even_when_short(self):
        """Test a matching rule with only short captures ends the search."""
        html = f"authenticityToken = 'abc';<meta name=\"csrf-token\" content=\"{LONG}\">"
        assert extract_token(html) is None

    def test_rule_order(self):
        """Test the rule list keeps its priority order."""
        assert [rule.name for rule in DEFAULT_RULES] == [
            "direct_assignment",
            "json_key_value",
            "meta_name_content",
            "meta_content_name",
            "input_name_value",
            "input_value_name",
            "window_assignment",
            "var_declaration",
            "let_declaration",
            "const_declaration",
            "data_attribute",
            "csrf_token_double",
            "csrf_token_single",
            "token_double",
            "token_single",
        ]
        assert isinstance(DEFAULT_RULES, tuple)

    def test_custom_min_length(self):
        """Test a custom plausibility threshold."""
        html = "authenticityToken = 'abc123';"
        assert extract_token(html) is None
        assert extract_token(html, min_length=5) == "abc123"


class TestIsPlausibleToken:
    """Tests for the token plausibility check."""

    def test_plausible(self):
        assert is_plausible_token("x" * 11)
        assert not is_plausible_token("x" * 10)
        assert not is_plausible_token("")
        assert not is_plausible_token(None)


class TestChallengeDetector:
    """Tests for the ChallengeDetector class."""

    def test_just_a_moment(self):
        """Test the interstitial title is recognised."""
        assert is_challenge("<title>Just a moment...</title>")

    def test_json_payload_is_not_challenge(self, listing):
        """Test an ordinary data payload is not a challenge."""
        assert not is_challenge(json.dumps(listing))
        assert not is_challenge(json.dumps({"data": []}))

    @pytest.mark.parametrize("marker", DEFAULT_MARKERS)
    def test_every_marker(self, marker):
        """Test each marker alone triggers detection."""
        detector = ChallengeDetector()
        assert detector.detect(f"<html><body>{marker}</body></html>") == marker

    def test_empty_text(self):
        """Test empty input is not a challenge."""
        assert not ChallengeDetector().is_challenge("")
        assert not ChallengeDetector().is_challenge(None)

    def test_custom_markers(self):
        """Test custom marker sets."""
        detector = ChallengeDetector(markers=("Access denied",))
        assert detector.is_challenge("<h1>Access denied</h1>")
        assert not detector.is_challenge("<title>Just a moment...</title>")
