"""
Backend detection from overrides, configuration, remotes and environment.
"""
import os
import subprocess
from typing import Mapping, Optional
from urllib.parse import urlparse

from gitxab.config import ProvidersConfig
from gitxab.core.exceptions import ConfigurationError
from gitxab.core.models import BackendType
from gitxab.utils import get_logger, log_function_call
from .credentials import CredentialResolver

logger = get_logger(__name__)


def _parse_backend(value, source: str) -> BackendType:
    if isinstance(value, BackendType):
        return value
    try:
        return BackendType(str(value).strip().lower())
    except ValueError:
        valid = ", ".join(b.value for b in BackendType)
        raise ConfigurationError(
            f"Invalid backend '{value}' from {source}. Valid backends: {valid}"
        )


def _remote_host(remote_url: str) -> Optional[str]:
    """Host part of an https://, ssh:// or scp-style (git@host:path) remote."""
    url = remote_url.strip()
    if "://" in url:
        return (urlparse(url).hostname or "").lower() or None
    if "@" in url and ":" in url:
        return url.split("@", 1)[1].split(":", 1)[0].lower() or None
    return None


def detect_from_remote(
    remote_url: Optional[str],
    providers_config: Optional[ProvidersConfig] = None
) -> Optional[BackendType]:
    """
    Guess the backend from a git remote URL.

    github.com means GitHub, any "gitlab" in the URL means GitLab, and a
    host matching a configured base URL means that backend.
    """
    if not remote_url:
        return None

    lowered = remote_url.lower()
    if "github.com" in lowered:
        return BackendType.GITHUB
    if "gitlab" in lowered:
        return BackendType.GITLAB

    host = _remote_host(remote_url)
    if host and providers_config is not None:
        for backend in BackendType:
            base_url = providers_config.get(backend.value).base_url
            if base_url and (urlparse(base_url).hostname or "").lower() == host:
                return backend

    return None


def detect_backend(
    explicit=None,
    configured_default=None,
    remote_url: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    fallback=None,
    providers_config: Optional[ProvidersConfig] = None
) -> BackendType:
    """
    Decide which backend to talk to.

    Order:
        1. Explicit override
        2. Configured default backend
        3. Remote URL
        4. A token in the environment (GitHub checked first)
        5. Caller-supplied fallback

    Raises:
        ConfigurationError: If nothing decides and there is no fallback
    """
    if explicit:
        backend = _parse_backend(explicit, "explicit override")
        logger.debug(f"Backend {backend.value} from explicit override")
        return backend

    if configured_default:
        backend = _parse_backend(configured_default, "configuration")
        logger.debug(f"Backend {backend.value} from configuration")
        return backend

    backend = detect_from_remote(remote_url, providers_config)
    if backend is not None:
        logger.debug(f"Backend {backend.value} from remote {remote_url}")
        return backend

    resolver = CredentialResolver(environ=os.environ if environ is None else environ)
    for candidate in (BackendType.GITHUB, BackendType.GITLAB):
        if resolver.has_env_token(candidate):
            logger.debug(f"Backend {candidate.value} from environment token")
            return candidate

    if fallback:
        backend = _parse_backend(fallback, "fallback")
        logger.info(f"Backend not detected, falling back to {backend.value}")
        return backend

    raise ConfigurationError(
        "Could not detect a backend. Pass one explicitly, set default_backend "
        "in the configuration, or set GITHUB_TOKEN / GITLAB_TOKEN."
    )


@log_function_call
def get_git_remote_url(cwd: Optional[str] = None, remote: str = "origin") -> Optional[str]:
    """
    URL of a git remote in the given directory.

    Returns:
        The URL, or None when git is missing or the remote does not exist
    """
    try:
        result = subprocess.run(
            ["git", "remote", "get-url", remote],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=5,
            check=True,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"No git remote '{remote}': {e}")
        return None
    url = result.stdout.strip()
    return url or None
