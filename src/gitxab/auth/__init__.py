"""Credential resolution and backend detection."""

from .credentials import (
    CredentialResolver,
    ResolvedCredential,
    TOKEN_ENV_VARS,
    validate_token_format,
    auth_headers,
    request_headers,
)
from .detection import detect_backend, detect_from_remote, get_git_remote_url

__all__ = [
    "CredentialResolver",
    "ResolvedCredential",
    "TOKEN_ENV_VARS",
    "validate_token_format",
    "auth_headers",
    "request_headers",
    "detect_backend",
    "detect_from_remote",
    "get_git_remote_url",
]
