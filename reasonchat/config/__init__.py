"""Configuration module for ReasonChat."""

from reasonchat.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
