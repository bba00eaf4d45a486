"""
Application configuration using Pydantic settings.

Configuration comes from environment variables and an optional .env file.
Supports a mock storage mode for local development.
"""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
