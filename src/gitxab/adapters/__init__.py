"""Adapter modules for code-hosting backends."""

from .base import BaseAdapter, AdapterConfig
from .github import GitHubAdapter
from .gitlab import GitLabAdapter
from .factory import AdapterFactory

__all__ = [
    "BaseAdapter",
    "AdapterConfig",
    "GitHubAdapter",
    "GitLabAdapter",
    "AdapterFactory",
]
