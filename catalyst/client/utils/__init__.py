"""Utility functions."""

from .hashing import hash_bytes, hash_files, verify_hash
from .retry import retry_async
from .urls import sanitize_url

__all__ = ["hash_bytes", "hash_files", "verify_hash", "retry_async", "sanitize_url"]
