"""VibeNav - vibe-aware walking route recommendation and navigation."""

__version__ = "1.0.0"
