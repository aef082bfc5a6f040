"""Security token extraction from HTML.

This module finds the anti-forgery token a page embeds for its
follow-up data requests. Deployments put it in different places, so
extraction runs an ordered list of pattern rules:

1. Direct assignment (``authenticityToken = '<hex>';``)
2. JSON-style key/value (``"authenticityToken": "..."``)
3. Meta tags (``csrf-token`` / ``_token``, either attribute order)
4. Input fields whose name contains "token" (either attribute order)
5. JavaScript ``window`` / ``var`` / ``let`` / ``const`` assignments
6. ``data-*token*`` attributes
7. Laravel ``csrf_token`` and generic ``token`` key/value pairs

The first rule that matches wins. Order decides which token is returned
when several conventions appear in one document, so the list is a tuple
and must not be reordered.
"""

import re
from dataclasses import dataclass

DEFAULT_MIN_LENGTH = 10

_Q = "['\"]"
_VALUE = "['\"]([^'\"]+)['\"]"


@dataclass(frozen=True)
class TokenRule:
    """A named extraction pattern.

    Attributes:
        name: Rule identifier used in diagnostics
        pattern: Compiled regex; every capture group is a token candidate
    """
    name: str
    pattern: re.Pattern[str]


@dataclass
class TokenMatch:
    """A plausible token and the rule that produced it."""
    token: str
    rule: str


def _rule(name: str, pattern: str, flags: int = 0) -> TokenRule:
    return TokenRule(name=name, pattern=re.compile(pattern, flags))


DEFAULT_RULES: tuple[TokenRule, ...] = (
    _rule("direct_assignment", r"authenticityToken = '([a-f0-9]+)';"),
    _rule("json_key_value", rf"{_Q}?authenticityToken{_Q}?\s*:\s*{_VALUE}"),
    # Name is captured too; meta names are never long enough to pass as a token
    _rule(
        "meta_name_content",
        rf"<meta\s+name={_Q}(csrf-token|_token){_Q}\s+content={_VALUE}",
        re.IGNORECASE,
    ),
    _rule(
        "meta_content_name",
        rf"<meta\s+content={_VALUE}\s+name={_Q}(csrf-token|_token){_Q}",
        re.IGNORECASE,
    ),
    _rule(
        "input_name_value",
        rf"<input[^>]*name={_Q}[^'\"]*token[^'\"]*{_Q}[^>]*value={_VALUE}",
        re.IGNORECASE,
    ),
    _rule(
        "input_value_name",
        rf"<input[^>]*value={_VALUE}[^>]*name={_Q}[^'\"]*token[^'\"]*{_Q}",
        re.IGNORECASE,
    ),
    _rule("window_assignment", rf"window\.[^=]*token[^=]*=\s*{_VALUE}", re.IGNORECASE),
    _rule("var_declaration", rf"\bvar\s+[^=]*token[^=]*=\s*{_VALUE}", re.IGNORECASE),
    _rule("let_declaration", rf"\blet\s+[^=]*token[^=]*=\s*{_VALUE}", re.IGNORECASE),
    _rule("const_declaration", rf"\bconst\s+[^=]*token[^=]*=\s*{_VALUE}", re.IGNORECASE),
    _rule("data_attribute", rf"data-[^=\s]*token[^=\s]*={_VALUE}", re.IGNORECASE),
    _rule("csrf_token_double", r'"csrf_token"\s*:\s*"([^"]+)"'),
    _rule("csrf_token_single", r"'csrf_token'\s*:\s*'([^']+)'"),
    _rule("token_double", r'"token"\s*:\s*"([^"]+)"'),
    _rule("token_single", r"'token'\s*:\s*'([^']+)'"),
)


def is_plausible_token(value: str | None, min_length: int = DEFAULT_MIN_LENGTH) -> bool:
    """Check that a candidate is a non-empty string longer than ``min_length``."""
    return isinstance(value, str) and len(value) > min_length


class HtmlTokenExtractor:
    """Extract a security token from HTML using ordered pattern rules.

    Not finding a token is a normal outcome: :meth:`extract` returns
    ``None`` and never raises.

    Example:
        >>> extractor = HtmlTokenExtractor()
        >>> extractor.extract("<script>authenticityToken = 'abc123def456';</script>")
        'abc123def456'
    """

    def __init__(
        self,
        rules: tuple[TokenRule, ...] = DEFAULT_RULES,
        min_length: int = DEFAULT_MIN_LENGTH,
    ) -> None:
        """Initialize HtmlTokenExtractor.

        Args:
            rules: Rules in priority order
            min_length: Candidates must be strictly longer than this
        """
        self.rules = tuple(rules)
        self.min_length = min_length

    def match(self, html: str | None) -> TokenMatch | None:
        """Find the token and the rule that produced it.

        The first rule whose pattern matches decides the result: its
        first capture longer than ``min_length`` is the token, and if it
        has none the document has no token. Later rules are not tried.
        """
        if not html:
            return None

        for rule in self.rules:
            found = rule.pattern.search(html)
            if found is None:
                continue
            for candidate in found.groups():
                if is_plausible_token(candidate, self.min_length):
                    return TokenMatch(token=candidate, rule=rule.name)
            return None

        return None

    def extract(self, html: str | None) -> str | None:
        """Return the token embedded in ``html``, or ``None``."""
        result = self.match(html)
        return result.token if result else None


def extract_token(html: str | None, min_length: int = DEFAULT_MIN_LENGTH) -> str | None:
    """Extract a token with the default rule set.

    Args:
        html: Raw HTML text
        min_length: Candidates must be strictly longer than this

    Returns:
        The token, or None when no rule yields a plausible one
    """
    return HtmlTokenExtractor(min_length=min_length).extract(html)
