"""High-level clients."""

from .content_client import ContentClient

__all__ = ["ContentClient"]
