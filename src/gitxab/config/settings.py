"""
Configuration management for the GitXab client.
"""
import os
from pathlib import Path
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
import yaml
from dotenv import load_dotenv


BACKEND_NAMES = ("github", "gitlab")

# camelCase and snake_case keys are both accepted.
_KEY_ALIASES = {
    "defaultProvider": "default_backend",
    "default_provider": "default_backend",
    "defaultBackend": "default_backend",
    "fallbackBackend": "fallback_backend",
    "baseUrl": "base_url",
    "maxRetries": "max_retries",
    "backoffBase": "backoff_base",
    "maxBackoff": "max_backoff",
    "pageSize": "page_size",
    "verifySsl": "verify_ssl",
    "userAgent": "user_agent",
    "logLevel": "log_level",
}


def default_config_dir() -> Path:
    """Return $XDG_CONFIG_HOME/gitxab (or ~/.config/gitxab)."""
    xdg_config = os.getenv("XDG_CONFIG_HOME")
    base = Path(xdg_config) if xdg_config else Path.home() / ".config"
    return base / "gitxab"


def default_state_dir() -> Path:
    """Return $XDG_STATE_HOME/gitxab (or ~/.local/state/gitxab)."""
    xdg_state = os.getenv("XDG_STATE_HOME")
    base = Path(xdg_state) if xdg_state else Path.home() / ".local" / "state"
    return base / "gitxab"


@dataclass
class AppConfig:
    """Application-level configuration."""
    name: str = "GitXab"
    version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"


@dataclass
class ProviderConfig:
    """Per-backend connection settings."""
    base_url: Optional[str] = None
    token: Optional[str] = None


@dataclass
class ProvidersConfig:
    """Connection settings for every supported backend."""
    github: ProviderConfig = field(default_factory=ProviderConfig)
    gitlab: ProviderConfig = field(default_factory=ProviderConfig)

    def get(self, backend: str) -> ProviderConfig:
        """Get the settings for a backend name ("github" or "gitlab")."""
        if backend not in BACKEND_NAMES:
            raise KeyError(f"Unknown backend: {backend}")
        return getattr(self, backend)


@dataclass
class TransportConfig:
    """HTTP transport and retry configuration."""
    timeout: int = 30
    max_retries: int = 3
    backoff_base: float = 1.0
    max_backoff: float = 60.0
    page_size: int = 30
    verify_ssl: bool = True


@dataclass
class CacheConfig:
    """Response cache configuration."""
    enabled: bool = True
    file: Optional[str] = None  # None keeps the cache in memory


@dataclass
class LoggingConfig:
    """Logging configuration."""
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None
    max_size_mb: int = 10
    backup_count: int = 5


@dataclass
class Settings:
    """Main configuration class."""
    app: AppConfig = field(default_factory=AppConfig)
    transport: TransportConfig = field(default_factory=TransportConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    providers: ProvidersConfig = field(default_factory=ProvidersConfig)
    default_backend: Optional[str] = None
    fallback_backend: Optional[str] = None

    @classmethod
    def load_from_file(cls, config_path: Optional[str] = None) -> "Settings":
        """Load settings from a YAML/JSON file and environment variables."""
        load_dotenv()

        path = cls._find_config_file(config_path)

        config_data = {}
        if path is not None and path.exists():
            with open(path, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f) or {}

        settings = cls()

        if config_data:
            settings._update_from_dict(_normalize_keys(config_data))

        settings._update_from_env()

        return settings

    @staticmethod
    def _find_config_file(config_path: Optional[str]) -> Optional[Path]:
        if config_path is None:
            config_path = os.getenv("GITXAB_CONFIG_FILE")
        if config_path is not None:
            return Path(config_path)

        config_dir = default_config_dir()
        for candidate in ("config.yaml", "config.yml", "config.json"):
            path = config_dir / candidate
            if path.exists():
                return path
        return None

    def _update_from_dict(self, data: Dict[str, Any]) -> None:
        """Update settings from dictionary."""
        if "app" in data:
            self._update_dataclass(self.app, data["app"])
        if "transport" in data:
            self._update_dataclass(self.transport, data["transport"])
        if "cache" in data:
            self._update_dataclass(self.cache, data["cache"])
        if "logging" in data:
            self._update_dataclass(self.logging, data["logging"])
        if "providers" in data:
            for backend in BACKEND_NAMES:
                if backend in (data["providers"] or {}):
                    self._update_dataclass(
                        self.providers.get(backend),
                        data["providers"][backend] or {}
                    )
        if "default_backend" in data:
            self.default_backend = data["default_backend"]
        if "fallback_backend" in data:
            self.fallback_backend = data["fallback_backend"]

    def _update_from_env(self) -> None:
        """Update settings from environment variables"""
        if os.getenv("DEBUG"):
            self.app.debug = os.getenv("DEBUG").lower() in ("true", "1", "yes")

        if os.getenv("LOG_LEVEL"):
            self.app.log_level = os.getenv("LOG_LEVEL")

        if os.getenv("GITXAB_DEFAULT_BACKEND"):
            self.default_backend = os.getenv("GITXAB_DEFAULT_BACKEND").lower()

        if os.getenv("GITXAB_CACHE_FILE"):
            self.cache.file = os.getenv("GITXAB_CACHE_FILE")

    @staticmethod
    def _update_dataclass(instance: Any, data: Dict[str, Any]) -> None:
        """Update a dataclass instance with dictionary data."""
        for key, value in data.items():
            if hasattr(instance, key):
                current_value = getattr(instance, key)
                if isinstance(current_value, dict) and isinstance(value, dict):
                    current_value.update(value)
                else:
                    setattr(instance, key, value)

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        for label, value in (
            ("default_backend", self.default_backend),
            ("fallback_backend", self.fallback_backend),
        ):
            if value is not None and value not in BACKEND_NAMES:
                errors.append(f"{label} must be one of: {list(BACKEND_NAMES)}")

        if self.transport.max_retries < 0:
            errors.append("transport.max_retries must not be negative")

        if self.transport.backoff_base < 0:
            errors.append("transport.backoff_base must not be negative")

        if not 1 <= self.transport.page_size <= 100:
            errors.append("transport.page_size must be between 1 and 100")

        if self.transport.timeout <= 0:
            errors.append("transport.timeout must be positive")

        return errors

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary for serialization."""
        return {
            "app": self.app.__dict__,
            "transport": self.transport.__dict__,
            "cache": self.cache.__dict__,
            "logging": self.logging.__dict__,
            "providers": {
                backend: {
                    "base_url": self.providers.get(backend).base_url,
                    "token": "***" if self.providers.get(backend).token else None,
                }
                for backend in BACKEND_NAMES
            },
            "default_backend": self.default_backend,
            "fallback_backend": self.fallback_backend,
        }


def _normalize_keys(data: Any) -> Any:
    """Rewrite camelCase keys to their snake_case equivalents, recursively."""
    if isinstance(data, dict):
        return {
            _KEY_ALIASES.get(key, key): _normalize_keys(value)
            for key, value in data.items()
        }
    return data


# Global settings instance
_settings: Optional[Settings] = None


def get_settings(config_path: Optional[str] = None, reload: bool = False) -> Settings:
    """Get the global settings instance."""
    global _settings

    if _settings is None or reload:
        _settings = Settings.load_from_file(config_path)

    return _settings


def reload_settings(config_path: Optional[str] = None) -> Settings:
    """Reload settings from file."""
    return get_settings(config_path, reload=True)
