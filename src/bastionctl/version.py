"""Version information for bastionctl."""

__version__ = "0.1.0"
