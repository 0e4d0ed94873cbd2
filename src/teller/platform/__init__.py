"""Financial platform API client."""

from .client import PlatformClient

__all__ = ["PlatformClient"]
