"""
Retry, backoff and rate-limit decisions for the HTTP transport.

The policy only decides; Transport runs the loop and does the sleeping.
"""
import email.utils
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import FrozenSet, Mapping, Optional

from gitxab.core.models import RateLimitInfo

RATE_LIMIT_STATUS = 429

# Reset headers, GitHub spelling first.
_RESET_HEADERS = ("X-RateLimit-Reset", "RateLimit-Reset")
_REMAINING_HEADERS = ("X-RateLimit-Remaining", "RateLimit-Remaining")


def parse_retry_after(raw: Optional[str], now: Optional[float] = None) -> Optional[float]:
    """
    Seconds to wait from a Retry-After value.

    Accepts delta-seconds or an HTTP date. Returns None if unparseable.
    """
    if not raw:
        return None
    try:
        return max(0.0, float(raw))
    except ValueError:
        pass
    try:
        dt = email.utils.parsedate_to_datetime(raw)
    except (TypeError, ValueError):
        return None
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    now_dt = (
        datetime.fromtimestamp(now, timezone.utc) if now is not None
        else datetime.now(timezone.utc)
    )
    return max(0.0, (dt - now_dt).total_seconds())


def _header_int(headers: Mapping[str, str], *names: str) -> Optional[int]:
    for name in names:
        value = headers.get(name)
        if value is None:
            continue
        try:
            return int(float(value))
        except (TypeError, ValueError):
            continue
    return None


def parse_rate_limit(headers: Mapping[str, str]) -> Optional[RateLimitInfo]:
    """
    Rate-limit counters from GitHub (X-RateLimit-*) or GitLab (RateLimit-*)
    headers. Returns None when the response carries none.
    """
    limit = _header_int(headers, "X-RateLimit-Limit", "RateLimit-Limit")
    remaining = _header_int(headers, *_REMAINING_HEADERS)
    reset_at = _header_int(headers, *_RESET_HEADERS)
    used = _header_int(headers, "X-RateLimit-Used", "RateLimit-Observed")
    resource = headers.get("X-RateLimit-Resource")

    if limit is None and remaining is None and reset_at is None and used is None:
        return None
    return RateLimitInfo(
        limit=limit,
        remaining=remaining,
        reset_at=reset_at,
        used=used,
        resource=resource,
    )


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry with exponential backoff.

    Attributes:
        max_retries: Attempts allowed after the first one
        base_delay: Backoff before the first retry, in seconds
        max_delay: Upper bound for any single wait
        quota_statuses: Extra statuses that mean "out of quota" when the
            response also shows an exhausted limit (GitHub uses 403)
    """
    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    quota_statuses: FrozenSet[int] = field(default_factory=frozenset)

    @property
    def max_attempts(self) -> int:
        return 1 + self.max_retries

    def backoff_delay(self, retry_index: int) -> float:
        """Delay before retry number `retry_index` (0-based)."""
        return min(self.base_delay * (2 ** retry_index), self.max_delay)

    def is_quota_exhausted(self, status_code: int, headers: Mapping[str, str]) -> bool:
        """Whether a quota status really is a rate limit, not a plain 403."""
        if status_code not in self.quota_statuses:
            return False
        if headers.get("Retry-After") is not None:
            return True
        return _header_int(headers, *_REMAINING_HEADERS) == 0

    def is_rate_limited(self, status_code: int, headers: Mapping[str, str]) -> bool:
        """429, or a quota status with an exhausted limit."""
        return status_code == RATE_LIMIT_STATUS or self.is_quota_exhausted(status_code, headers)

    def reset_at(self, headers: Mapping[str, str], now: Optional[float] = None) -> Optional[float]:
        """Unix time the quota resets, from whichever hint the response has."""
        now = time.time() if now is None else now
        retry_after = parse_retry_after(headers.get("Retry-After"), now)
        if retry_after is not None:
            return now + retry_after
        reset = _header_int(headers, *_RESET_HEADERS)
        return float(reset) if reset is not None else None

    def rate_limit_delay(
        self,
        retry_index: int,
        headers: Mapping[str, str],
        now: Optional[float] = None
    ) -> float:
        """
        Wait before retrying a rate-limited response.

        Uses the reset hint when present, else exponential backoff.
        """
        now = time.time() if now is None else now
        reset_at = self.reset_at(headers, now)
        if reset_at is None:
            return self.backoff_delay(retry_index)
        return min(max(0.0, reset_at - now), self.max_delay)
