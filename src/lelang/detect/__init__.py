"""Content detectors for acquisition.

This module provides the text inspections run on every decoded body:
- Security token extraction from HTML
- Anti-bot challenge page detection
"""

from lelang.detect.tokens import (
    DEFAULT_RULES,
    HtmlTokenExtractor,
    TokenMatch,
    TokenRule,
    extract_token,
    is_plausible_token,
)
from lelang.detect.challenge import DEFAULT_MARKERS, ChallengeDetector, is_challenge

__all__ = [
    "DEFAULT_RULES",
    "HtmlTokenExtractor",
    "TokenMatch",
    "TokenRule",
    "extract_token",
    "is_plausible_token",
    "DEFAULT_MARKERS",
    "ChallengeDetector",
    "is_challenge",
]
