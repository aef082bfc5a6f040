"""Version information for Lelang."""

__version__ = "0.1.0"
