"""Command-line interface for Lelang."""
