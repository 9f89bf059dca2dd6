"""Response cache for conditional requests."""

from .manager import CacheEntry, ResponseCache

__all__ = ["CacheEntry", "ResponseCache"]
