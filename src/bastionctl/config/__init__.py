"""Configuration management for bastionctl.

This module exports the main Settings class and configuration utilities.
"""

from bastionctl.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
