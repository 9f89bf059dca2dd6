"""
Token resolution for the supported backends.
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from gitxab.config import ProvidersConfig
from gitxab.core.exceptions import NoCredentialError
from gitxab.core.models import BackendType
from gitxab.utils import get_logger

logger = get_logger(__name__)

# Checked in this order; the first non-blank value wins.
TOKEN_ENV_VARS: Dict[BackendType, List[str]] = {
    BackendType.GITHUB: ["GITHUB_TOKEN", "GH_TOKEN"],
    BackendType.GITLAB: ["GITLAB_TOKEN"],
}

GITHUB_TOKEN_PREFIXES = ("ghp_", "github_pat_", "gho_", "ghs_", "ghu_")
GITLAB_TOKEN_PREFIXES = ("glpat-",)
MIN_TOKEN_LENGTH = 20

GITHUB_API_VERSION = "2022-11-28"


@dataclass(frozen=True)
class ResolvedCredential:
    """A token and where it came from (for diagnostics, never the value)."""
    token: str
    source: str

    def __repr__(self) -> str:
        return f"ResolvedCredential(token='***', source={self.source!r})"


def _as_backend(backend) -> BackendType:
    if isinstance(backend, BackendType):
        return backend
    return BackendType(str(backend).lower())


class CredentialResolver:
    """
    Finds a token for a backend.

    Resolution order, first match wins:
        1. Backend environment variables (see TOKEN_ENV_VARS)
        2. providers.<backend>.token from the loaded configuration
        3. GitLab only: the legacy token file under the user config dir
    """

    def __init__(
        self,
        providers_config: Optional[ProvidersConfig] = None,
        environ: Optional[Mapping[str, str]] = None,
        config_home: Optional[str] = None
    ):
        """
        Args:
            providers_config: Loaded per-backend settings
            environ: Environment to read (defaults to os.environ)
            config_home: Override for $XDG_CONFIG_HOME
        """
        self.providers_config = providers_config
        self.environ = os.environ if environ is None else environ
        self.config_home = config_home

    def legacy_token_file(self) -> Path:
        """Path of the plaintext GitLab token file."""
        config_home = self.config_home or self.environ.get("XDG_CONFIG_HOME")
        base = Path(config_home) if config_home else Path.home() / ".config"
        return base / "gitxab" / "token"

    def checked_sources(self, backend) -> List[str]:
        """Names of every place resolve() looks, in order."""
        backend = _as_backend(backend)
        sources = list(TOKEN_ENV_VARS[backend])
        sources.append(f"providers.{backend.value}.token")
        if backend == BackendType.GITLAB:
            sources.append(str(self.legacy_token_file()))
        return sources

    def find(self, backend) -> Optional[ResolvedCredential]:
        """
        Look up a token without failing.

        Returns:
            ResolvedCredential, or None if nothing was found
        """
        backend = _as_backend(backend)

        for var in TOKEN_ENV_VARS[backend]:
            value = (self.environ.get(var) or "").strip()
            if value:
                logger.debug(f"Using {backend.value} token from ${var}")
                return ResolvedCredential(value, var)

        if self.providers_config is not None:
            value = (self.providers_config.get(backend.value).token or "").strip()
            if value:
                logger.debug(f"Using {backend.value} token from configuration")
                return ResolvedCredential(value, f"providers.{backend.value}.token")

        if backend == BackendType.GITLAB:
            token_file = self.legacy_token_file()
            try:
                value = token_file.read_text(encoding="utf-8").strip()
            except FileNotFoundError:
                value = ""
            except OSError as e:
                logger.warning(f"Could not read token file {token_file}: {e}")
                value = ""
            if value:
                logger.debug(f"Using gitlab token from {token_file}")
                return ResolvedCredential(value, str(token_file))

        return None

    def resolve(self, backend) -> ResolvedCredential:
        """
        Look up a token for a backend.

        Raises:
            NoCredentialError: If no source had a token
        """
        backend = _as_backend(backend)
        credential = self.find(backend)
        if credential is None:
            raise NoCredentialError(backend.value, self.checked_sources(backend))
        validate_token_format(credential.token, backend)
        return credential

    def has_env_token(self, backend) -> bool:
        """Whether any of the backend's token variables is set."""
        backend = _as_backend(backend)
        return any(
            (self.environ.get(var) or "").strip()
            for var in TOKEN_ENV_VARS[backend]
        )


def validate_token_format(token: str, backend) -> bool:
    """
    Check a token against the backend's known formats.

    Backends change token formats over time, so a mismatch only logs a
    warning.

    Returns:
        True if the token looks valid
    """
    backend = _as_backend(backend)
    prefixes = (
        GITHUB_TOKEN_PREFIXES if backend == BackendType.GITHUB
        else GITLAB_TOKEN_PREFIXES
    )
    valid = bool(token) and (
        token.startswith(prefixes) or len(token) >= MIN_TOKEN_LENGTH
    )
    if not valid:
        logger.warning(f"{backend.value} token does not look like a valid token")
    return valid


def auth_headers(token: str, backend) -> Dict[str, str]:
    """Authentication headers for a backend."""
    backend = _as_backend(backend)
    if backend == BackendType.GITHUB:
        return {"Authorization": f"Bearer {token}"}
    return {"PRIVATE-TOKEN": token}


def request_headers(token: str, backend, extra: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Full set of default headers for every request to a backend."""
    from gitxab import __version__

    backend = _as_backend(backend)
    headers = {"User-Agent": f"gitxab/{__version__}"}
    if backend == BackendType.GITHUB:
        headers["Accept"] = "application/vnd.github+json"
        headers["X-GitHub-Api-Version"] = GITHUB_API_VERSION
    else:
        headers["Accept"] = "application/json"
    headers.update(auth_headers(token, backend))
    if extra:
        headers.update(extra)
    return headers
