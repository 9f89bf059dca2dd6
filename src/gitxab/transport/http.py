"""
HTTP transport with ETag caching and bounded retries.
"""
import copy
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlencode

import requests

from gitxab.cache import ResponseCache
from gitxab.core.exceptions import (
    BackendAPIError,
    ConfigurationError,
    RateLimitError,
    RequestCancelledError,
    TransientNetworkError,
    UnauthorizedError,
)
from gitxab.core.models import RateLimitInfo
from gitxab.utils import get_logger
from .retry import RetryPolicy, parse_rate_limit

logger = get_logger(__name__)

# Failures that may succeed on another attempt. Malformed URLs and other
# request-building errors are not retried.
RETRYABLE_NETWORK_ERRORS = (
    requests.ConnectionError,
    requests.Timeout,
    requests.exceptions.ChunkedEncodingError,
)


@dataclass
class HttpResponse:
    """
    A normalized response.

    Attributes:
        status_code: HTTP status (200 for cache hits)
        headers: Response headers (case-insensitive)
        body: Parsed JSON, text, or None for an empty body
        url: Full request URL
        from_cache: True when the body came from the cache after a 304
    """
    status_code: int
    headers: Mapping[str, str]
    body: Any
    url: str
    from_cache: bool = False

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class _SharedState:
    """Mutable state shared between a transport and its cancellable views."""

    def __init__(self):
        self.lock = threading.Lock()
        self.rate_limit: Optional[RateLimitInfo] = None


def _parse_body(response: requests.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class Transport:
    """
    Performs one logical request per call.

    GET requests go through the response cache: a known ETag is sent as
    If-None-Match and a 304 is answered from the cache. Every request goes
    through the retry policy.
    """

    def __init__(
        self,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
        cache: Optional[ResponseCache] = None,
        policy: Optional[RetryPolicy] = None,
        timeout: float = 30,
        verify_ssl: bool = True,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the transport.

        Args:
            base_url: API root, e.g. https://api.github.com
            headers: Headers sent with every request (auth, user agent)
            cache: Response cache; None disables conditional requests
            policy: Retry policy (defaults to RetryPolicy())
            timeout: Per-attempt timeout in seconds
            verify_ssl: Verify TLS certificates
            session: Session to reuse (a new one is created otherwise)
        """
        self.base_url = base_url.rstrip("/")
        self.cache = cache
        self.policy = policy or RetryPolicy()
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.session = session or requests.Session()
        if headers:
            self.session.headers.update(headers)
        self._state = _SharedState()
        self._cancel_event: Optional[threading.Event] = None

    @property
    def rate_limit(self) -> Optional[RateLimitInfo]:
        """Counters from the most recent response that carried them."""
        with self._state.lock:
            return self._state.rate_limit

    def with_cancel_event(self, event: threading.Event) -> "Transport":
        """
        A view of this transport that stops when `event` is set.

        The view shares the session, cache, policy and rate-limit state.
        """
        view = copy.copy(self)
        view._cancel_event = event
        return view

    def build_url(self, path_or_url: str, params: Optional[Mapping[str, Any]] = None) -> str:
        """
        Full URL for a path, with a deterministic query string.

        None-valued params are dropped and the rest are sorted by key.
        """
        if path_or_url.startswith(("http://", "https://")):
            url = path_or_url
        else:
            url = f"{self.base_url}/{path_or_url.lstrip('/')}"

        if params:
            query = urlencode(
                sorted((k, _query_value(v)) for k, v in params.items() if v is not None)
            )
            if query:
                url = f"{url}{'&' if '?' in url else '?'}{query}"
        return url

    def request(
        self,
        method: str,
        path_or_url: str,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None
    ) -> HttpResponse:
        """
        Perform a request.

        Args:
            method: HTTP method
            path_or_url: Path relative to base_url, or an absolute URL
            params: Query parameters
            json: JSON request body
            headers: Extra headers for this request

        Returns:
            HttpResponse

        Raises:
            UnauthorizedError: On 401
            RateLimitError: When still rate limited after all retries
            TransientNetworkError: When network failures outlast the retries
            ConfigurationError: When the request cannot be sent at all (bad URL)
            BackendAPIError: On any other non-2xx response
            RequestCancelledError: When the cancel event is set
        """
        method = method.upper()
        url = self.build_url(path_or_url, params)
        request_headers = dict(headers or {})

        use_cache = method == "GET" and self.cache is not None
        cached = self.cache.get(url) if use_cache else None
        if cached is not None and cached.etag and cached.body is not None:
            request_headers["If-None-Match"] = cached.etag

        for attempt in range(self.policy.max_attempts):
            self._check_cancelled()
            logger.debug(f"{method} {url} (attempt {attempt + 1}/{self.policy.max_attempts})")

            try:
                response = self.session.request(
                    method,
                    url,
                    json=json,
                    headers=request_headers,
                    timeout=self.timeout,
                    verify=self.verify_ssl,
                )
            except RETRYABLE_NETWORK_ERRORS as e:
                if attempt < self.policy.max_retries:
                    delay = self.policy.backoff_delay(attempt)
                    logger.warning(f"{method} {url} failed ({e}), retrying in {delay:.1f}s")
                    self._sleep(delay)
                    continue
                raise TransientNetworkError(
                    f"{method} {url} failed after {attempt + 1} attempts: {e}",
                    attempts=attempt + 1
                ) from e
            except requests.RequestException as e:
                raise ConfigurationError(f"{method} {url} could not be sent: {e}") from e

            self._check_cancelled()
            self._record_rate_limit(response.headers)
            status = response.status_code

            if status == 304 and cached is not None and cached.body is not None:
                logger.debug(f"Cache hit (304) for {url}")
                return HttpResponse(200, response.headers, cached.body, url, from_cache=True)

            if 200 <= status < 300:
                body = _parse_body(response)
                if use_cache and body is not None:
                    self.cache.put(url, response.headers.get("ETag"), body)
                return HttpResponse(status, response.headers, body, url)

            if self.policy.is_rate_limited(status, response.headers):
                if attempt < self.policy.max_retries:
                    delay = self.policy.rate_limit_delay(attempt, response.headers)
                    logger.warning(f"Rate limited on {url} ({status}), retrying in {delay:.1f}s")
                    self._sleep(delay)
                    continue
                raise RateLimitError(
                    f"Rate limit exceeded for {url}",
                    reset_at=self.policy.reset_at(response.headers),
                    status_code=status,
                    body=response.text,
                    url=url,
                )

            if status == 401:
                raise UnauthorizedError(
                    f"Authentication rejected for {url}",
                    body=response.text,
                    url=url,
                )

            raise BackendAPIError(
                f"{method} {url} failed with status {status}",
                status_code=status,
                body=response.text,
                url=url,
                payload=_parse_body(response),
            )

        # Not reached: every branch of the last attempt returns or raises.
        raise TransientNetworkError(f"{method} {url} failed", attempts=self.policy.max_attempts)

    def get(self, path_or_url: str, params: Optional[Mapping[str, Any]] = None, **kwargs) -> HttpResponse:
        return self.request("GET", path_or_url, params=params, **kwargs)

    def post(self, path_or_url: str, json: Any = None, **kwargs) -> HttpResponse:
        return self.request("POST", path_or_url, json=json, **kwargs)

    def put(self, path_or_url: str, json: Any = None, **kwargs) -> HttpResponse:
        return self.request("PUT", path_or_url, json=json, **kwargs)

    def patch(self, path_or_url: str, json: Any = None, **kwargs) -> HttpResponse:
        return self.request("PATCH", path_or_url, json=json, **kwargs)

    def _record_rate_limit(self, headers: Mapping[str, str]) -> None:
        info = parse_rate_limit(headers)
        if info is None:
            return
        with self._state.lock:
            self._state.rate_limit = info
        if info.remaining is not None and info.remaining < 10:
            logger.warning(f"Rate limit low: {info.remaining}/{info.limit} remaining")

    def _check_cancelled(self) -> None:
        if self._cancel_event is not None and self._cancel_event.is_set():
            raise RequestCancelledError("Request cancelled")

    def _sleep(self, delay: float) -> None:
        """Wait before a retry, waking early if the cancel event is set."""
        if self._cancel_event is not None:
            if self._cancel_event.wait(delay):
                raise RequestCancelledError("Request cancelled during backoff")
            return
        time.sleep(delay)

    def __repr__(self) -> str:
        return f"Transport(base_url={self.base_url})"


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


__all__ = ["HttpResponse", "Transport"]
