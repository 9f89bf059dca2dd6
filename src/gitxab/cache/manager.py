"""
Response cache for conditional (ETag) requests.
"""
import json
import os
import tempfile
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from gitxab.utils import get_logger

logger = get_logger(__name__)


@dataclass
class CacheEntry:
    """
    One cached GET response.

    Attributes:
        url: Full request URL (the cache key)
        etag: Last ETag the server sent
        body: Last response body
        updated_at: Unix time the entry was written
    """
    url: str
    etag: Optional[str] = None
    body: Any = None
    updated_at: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        data = {'url': self.url, 'updatedAt': self.updated_at}
        if self.etag is not None:
            data['etag'] = self.etag
        if self.body is not None:
            data['body'] = self.body
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheEntry":
        return cls(
            url=data['url'],
            etag=data.get('etag'),
            body=data.get('body'),
            updated_at=data.get('updatedAt', 0.0),
        )


class ResponseCache:
    """
    URL-keyed store of ETags and bodies.

    Entries live until evicted or cleared; there is no TTL or size limit.
    With a path, the whole index is loaded once and rewritten after every
    write. Writes are serialized on a separate lock so lookups never wait
    on the disk, and a failed write only leaves the file stale.
    """

    def __init__(self, path: Optional[str] = None):
        """
        Initialize the response cache.

        Args:
            path: JSON index file. None keeps the cache in memory.
        """
        self.path = Path(path) if path else None
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._flush_lock = threading.Lock()
        self._version = 0
        self._flushed_version = 0

        if self.path is not None:
            self._load()

        logger.debug(
            f"Response cache initialized ({len(self._entries)} entries, "
            f"file: {self.path or 'memory only'})"
        )

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            self._entries = {
                url: CacheEntry.from_dict(entry) for url, entry in data.items()
            }
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            # A corrupt index only costs a cold cache.
            logger.warning(f"Ignoring unreadable cache file {self.path}: {e}")
            self._entries = {}

    def _snapshot(self):
        """Bump the version and copy the map. Caller holds the lock."""
        self._version += 1
        return self._version, dict(self._entries)

    def _flush(self, version: int, entries: Dict[str, CacheEntry]) -> None:
        """
        Write a snapshot of the index atomically.

        Snapshots older than the last one written are skipped. Disk errors
        are logged and the in-memory map keeps serving.
        """
        if self.path is None:
            return
        with self._flush_lock:
            if version <= self._flushed_version:
                return
            data = {url: entry.to_dict() for url, entry in entries.items()}
            try:
                self._write_index(data)
            except OSError as e:
                logger.warning(f"Could not write cache file {self.path}: {e}")
                return
            self._flushed_version = version

    def _write_index(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self.path.parent), prefix=".cache-", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def get(self, url: str) -> Optional[CacheEntry]:
        """
        Look up the entry for a URL.

        Returns:
            The entry, or None on a miss
        """
        with self._lock:
            entry = self._entries.get(url)
        if entry is None:
            logger.debug(f"Cache miss: {url}")
        return entry

    def put(self, url: str, etag: Optional[str], body: Any) -> CacheEntry:
        """
        Store (or overwrite) the entry for a URL.

        Args:
            url: Full request URL
            etag: ETag header value, if any
            body: Parsed response body

        Returns:
            The stored entry
        """
        entry = CacheEntry(url=url, etag=etag, body=body, updated_at=time.time())
        with self._lock:
            self._entries[url] = entry
            version, snapshot = self._snapshot()
        self._flush(version, snapshot)
        logger.debug(f"Cached response for {url} (etag={etag})")
        return entry

    store = put

    def evict(self, url: str) -> bool:
        """
        Remove one entry.

        Returns:
            True if an entry was removed
        """
        with self._lock:
            removed = self._entries.pop(url, None) is not None
            if not removed:
                return False
            version, snapshot = self._snapshot()
        self._flush(version, snapshot)
        return True

    def clear_cache(self) -> None:
        """Clear all cache entries."""
        with self._lock:
            self._entries.clear()
            version, snapshot = self._snapshot()
        self._flush(version, snapshot)
        logger.info("Response cache cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, url: str) -> bool:
        with self._lock:
            return url in self._entries

    def get_cache_stats(self) -> Dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dictionary with cache statistics
        """
        with self._lock:
            entries = list(self._entries.values())

        timestamps = [e.updated_at for e in entries]
        stats = {
            'total_entries': len(entries),
            'entries_with_etag': sum(1 for e in entries if e.etag),
            'oldest_entry': min(timestamps) if timestamps else None,
            'newest_entry': max(timestamps) if timestamps else None,
            'file': str(self.path) if self.path else None,
        }
        if self.path is not None and self.path.exists():
            stats['file_size_bytes'] = self.path.stat().st_size
        return stats
