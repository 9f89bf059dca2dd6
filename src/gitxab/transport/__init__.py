"""HTTP transport and retry policy."""

from .retry import RetryPolicy, parse_rate_limit, parse_retry_after
from .http import HttpResponse, Transport

__all__ = [
    "RetryPolicy",
    "parse_rate_limit",
    "parse_retry_after",
    "HttpResponse",
    "Transport",
]
