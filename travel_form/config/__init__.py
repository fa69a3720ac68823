"""Configuration module for the travel form service."""

from .settings import ALLOWED_UPLOAD_TYPES, Settings, get_settings

__all__ = ["ALLOWED_UPLOAD_TYPES", "Settings", "get_settings"]
