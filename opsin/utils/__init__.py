"""Utility helpers package."""

from .logging import configure_logging
from .security import mask_secret, require_api_key

__all__ = ["configure_logging", "mask_secret", "require_api_key"]
