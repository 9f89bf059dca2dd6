"""
Factory for creating backend-specific adapters.
"""
import os
from typing import Mapping, Optional

from gitxab.auth import CredentialResolver, detect_backend
from gitxab.cache import ResponseCache
from gitxab.config import Settings, get_settings
from gitxab.core.exceptions import ConfigurationError
from gitxab.core.models import BackendType
from gitxab.utils import get_logger
from .base import BaseAdapter, AdapterConfig

logger = get_logger(__name__)

BASE_URL_ENV_VARS = {
    BackendType.GITHUB: "GITHUB_BASE_URL",
    BackendType.GITLAB: "GITLAB_BASE_URL",
}

GITLAB_API_SUFFIX = "/api/v4"


class AdapterFactory:
    """Factory for creating backend adapters."""

    _adapters = {}  # Registry of available adapters

    @classmethod
    def register_adapter(cls, backend: BackendType, adapter_class: type):
        """
        Register an adapter class for a backend.

        Args:
            backend: Backend type
            adapter_class: Adapter class to register
        """
        cls._adapters[backend] = adapter_class
        logger.debug(f"Registered adapter for {backend.value}: {adapter_class.__name__}")

    @classmethod
    def create_adapter(
        cls,
        backend=None,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        *,
        settings: Optional[Settings] = None,
        remote_url: Optional[str] = None,
        fallback=None,
        environ: Optional[Mapping[str, str]] = None,
        cache: Optional[ResponseCache] = None,
        **kwargs
    ) -> BaseAdapter:
        """
        Create an adapter, detecting the backend and token when not given.

        Args:
            backend: Backend type or name; detected when None
            token: Authentication token; resolved when None
            base_url: API base URL; resolved when None
            settings: Settings to use (defaults to get_settings())
            remote_url: Git remote URL used for detection
            fallback: Backend to use when detection is inconclusive
            environ: Environment to read (defaults to os.environ)
            cache: Response cache to share (a fresh one otherwise)
            **kwargs: Overrides for timeout, max_retries, verify_ssl,
                page_size, custom_headers and session

        Returns:
            Configured adapter instance

        Raises:
            ConfigurationError: If the backend cannot be determined
            NoCredentialError: If no token can be found
        """
        settings = settings or get_settings()
        environ = os.environ if environ is None else environ

        backend = detect_backend(
            explicit=backend,
            configured_default=settings.default_backend,
            remote_url=remote_url,
            environ=environ,
            fallback=fallback or settings.fallback_backend,
            providers_config=settings.providers,
        )

        if backend not in cls._adapters:
            available = ", ".join(cls.list_available_platforms())
            raise ConfigurationError(
                f"Unsupported backend: {backend.value}. "
                f"Available backends: {available}"
            )

        if token is None:
            resolver = CredentialResolver(settings.providers, environ=environ)
            credential = resolver.resolve(backend)
            token = credential.token
            logger.debug(f"Resolved {backend.value} token from {credential.source}")

        base_url = cls._resolve_base_url(backend, base_url, settings, environ)

        transport_settings = settings.transport
        config = AdapterConfig(
            backend=backend,
            base_url=base_url,
            token=token,
            timeout=kwargs.get('timeout', transport_settings.timeout),
            max_retries=kwargs.get('max_retries', transport_settings.max_retries),
            backoff_base=kwargs.get('backoff_base', transport_settings.backoff_base),
            max_backoff=kwargs.get('max_backoff', transport_settings.max_backoff),
            page_size=kwargs.get('page_size', transport_settings.page_size),
            verify_ssl=kwargs.get('verify_ssl', transport_settings.verify_ssl),
            custom_headers=kwargs.get('custom_headers')
        )

        adapter_class = cls._adapters[backend]

        if cache is None and settings.cache.enabled:
            cache = ResponseCache(settings.cache.file)

        transport = adapter_class._build_transport(
            config, cache=cache, session=kwargs.get('session')
        )

        adapter = adapter_class(config, transport)

        logger.info(f"Created {backend.value} adapter for {base_url}")
        return adapter

    @classmethod
    def create_github_adapter(cls, token: Optional[str] = None, **kwargs) -> BaseAdapter:
        """
        Convenience method to create GitHub adapter.

        Args:
            token: GitHub token
            **kwargs: Additional configuration

        Returns:
            GitHubAdapter instance
        """
        return cls.create_adapter(BackendType.GITHUB, token=token, **kwargs)

    @classmethod
    def create_gitlab_adapter(cls, token: Optional[str] = None, **kwargs) -> BaseAdapter:
        """
        Convenience method to create GitLab adapter.

        Args:
            token: GitLab token
            **kwargs: Additional configuration

        Returns:
            GitLabAdapter instance
        """
        return cls.create_adapter(BackendType.GITLAB, token=token, **kwargs)

    @classmethod
    def _resolve_base_url(
        cls,
        backend: BackendType,
        explicit: Optional[str],
        settings: Settings,
        environ: Mapping[str, str]
    ) -> str:
        """Explicit > environment > configuration > default."""
        base_url = (
            explicit
            or (environ.get(BASE_URL_ENV_VARS[backend]) or "").strip()
            or settings.providers.get(backend.value).base_url
            or cls._get_default_base_url(backend)
        )
        base_url = base_url.rstrip("/")
        if backend == BackendType.GITLAB and not base_url.endswith(GITLAB_API_SUFFIX):
            base_url += GITLAB_API_SUFFIX
        return base_url

    @staticmethod
    def _get_default_base_url(backend: BackendType) -> str:
        """Get default base URL for a backend."""
        urls = {
            BackendType.GITHUB: "https://api.github.com",
            BackendType.GITLAB: "https://gitlab.com/api/v4",
        }
        return urls.get(backend, "")

    @classmethod
    def list_available_platforms(cls) -> list:
        """Get list of available backends."""
        return [backend.value for backend in cls._adapters.keys()]


# Auto-register adapters when they're imported
def _auto_register_adapters():
    """Auto-register available adapters."""
    from .github import GitHubAdapter
    from .gitlab import GitLabAdapter

    AdapterFactory.register_adapter(BackendType.GITHUB, GitHubAdapter)
    AdapterFactory.register_adapter(BackendType.GITLAB, GitLabAdapter)


# Register adapters on module import
_auto_register_adapters()
