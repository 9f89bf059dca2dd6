"""Custom exceptions for the GitXab client."""

from typing import Any, Iterable, Optional

from gitxab.utils import get_logger

logger = get_logger(__name__)

# Response bodies attached to errors are cut to this many characters.
MAX_ERROR_BODY_LENGTH = 500


class GitXabError(Exception):
    """Base exception for the GitXab client."""

    def __init__(self, message: str, details: str = None):
        super().__init__(message)
        self.message = message
        self.details = details

        # Log the exception when created
        logger.debug(f"Exception raised: {message}")
        if details:
            logger.debug(f"Exception details: {details}")


class ConfigurationError(GitXabError):
    """Raised when there's a configuration problem."""
    pass


class NoCredentialError(GitXabError):
    """Raised when no usable token could be resolved for a backend."""

    def __init__(self, backend: str, checked: Iterable[str], details: str = None):
        self.backend = backend
        self.checked = list(checked)
        message = (
            f"No credential found for {backend}. "
            f"Set one of: {', '.join(self.checked)}"
        )
        super().__init__(message, details)


class UnsupportedIdentifierError(GitXabError):
    """Raised when an identifier of the wrong shape is passed to an adapter."""

    def __init__(self, backend: str, identifier: Any, details: str = None):
        self.backend = backend
        self.identifier = identifier
        super().__init__(
            f"Unsupported repository identifier for {backend}: {identifier!r}",
            details
        )


class UnsupportedOperationError(GitXabError):
    """Raised when a backend does not support the requested operation."""

    def __init__(self, backend: str, operation: str, details: str = None):
        self.backend = backend
        self.operation = operation
        super().__init__(f"{backend} does not support: {operation}", details)


class BackendAPIError(GitXabError):
    """Raised when a backend API call returns a non-2xx response."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        url: Optional[str] = None,
        details: str = None,
        payload: Any = None
    ):
        super().__init__(message, details)
        self.status_code = status_code
        self.body = truncate_body(body)
        self.url = url
        # Parsed response body, for adapters to read error messages from
        self.payload = payload


class UnauthorizedError(BackendAPIError):
    """Raised when the backend rejects the token."""

    def __init__(self, message: str, body: Optional[str] = None,
                 url: Optional[str] = None, details: str = None):
        super().__init__(message, status_code=401, body=body, url=url, details=details)


class NotFoundError(BackendAPIError):
    """Raised when a resource is not found."""

    def __init__(self, message: str, body: Optional[str] = None,
                 url: Optional[str] = None, details: str = None):
        super().__init__(message, status_code=404, body=body, url=url, details=details)


class AccessPermissionError(BackendAPIError):
    """Raised when lacking required permissions."""

    def __init__(self, message: str, body: Optional[str] = None,
                 url: Optional[str] = None, details: str = None):
        super().__init__(message, status_code=403, body=body, url=url, details=details)


class ValidationError(BackendAPIError):
    """Raised when the backend rejects a request payload (400/422)."""
    pass


class RateLimitError(BackendAPIError):
    """Raised when hitting rate limits."""

    def __init__(
        self,
        message: str,
        reset_at: Optional[float] = None,
        status_code: int = 429,
        body: Optional[str] = None,
        url: Optional[str] = None,
        details: str = None
    ):
        super().__init__(message, status_code=status_code, body=body, url=url, details=details)
        self.reset_at = reset_at


class TransientNetworkError(GitXabError):
    """Raised when connection or timeout failures outlast the retry budget."""

    def __init__(self, message: str, attempts: int = 1, details: str = None):
        super().__init__(message, details)
        self.attempts = attempts


class ConversionError(GitXabError):
    """Raised when a response cannot be mapped into the unified model."""

    def __init__(self, backend: str, entity_type: str, cause: Exception):
        self.backend = backend
        self.entity_type = entity_type
        self.cause = cause
        super().__init__(
            f"Failed to convert {backend} {entity_type}: {cause}",
            details=repr(cause)
        )


class RequestCancelledError(GitXabError):
    """Raised when the caller's cancellation event is set."""
    pass


def truncate_body(body: Optional[str]) -> Optional[str]:
    """Cut a response body down for attaching to an error."""
    if body is None:
        return None
    if not isinstance(body, str):
        body = str(body)
    if len(body) > MAX_ERROR_BODY_LENGTH:
        return body[:MAX_ERROR_BODY_LENGTH] + "..."
    return body
