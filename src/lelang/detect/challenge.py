"""Anti-bot challenge page detection.

A protective intermediary can answer any request with an interstitial
that needs client-side script to pass. These pages are recognised by
literal markers and reported, never solved.
"""

DEFAULT_MARKERS: tuple[str, ...] = (
    "Just a moment...",
    "Please wait...",
    "Enable JavaScript and cookies to continue",
    "Checking your browser before accessing",
    "cf-browser-verification",
    "cf-spinner-please-wait",
    "cf_chl_opt",
)


class ChallengeDetector:
    """Classify a decoded body as challenge page or ordinary content.

    Example:
        >>> ChallengeDetector().is_challenge("<title>Just a moment...</title>")
        True
    """

    def __init__(self, markers: tuple[str, ...] = DEFAULT_MARKERS) -> None:
        self.markers = tuple(markers)

    def detect(self, text: str | None) -> str | None:
        """Return the first marker found in ``text``, or None."""
        if not text:
            return None
        for marker in self.markers:
            if marker in text:
                return marker
        return None

    def is_challenge(self, text: str | None) -> bool:
        """Check whether ``text`` is an anti-bot interstitial."""
        return self.detect(text) is not None


def is_challenge(text: str | None) -> bool:
    """Check ``text`` against the default markers."""
    return ChallengeDetector().is_challenge(text)
