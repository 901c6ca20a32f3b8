"""AI recipe generation for meal planning."""

__version__ = "1.0.0"
