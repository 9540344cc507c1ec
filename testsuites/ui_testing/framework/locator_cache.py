"""
================================================================================
Locator Cache with File Persistence
================================================================================

Process-wide store of healed locators, keyed by the original locator's
serialized form.

    - Thread-safe lookup/insert for parallel test executions
    - Per-key locks so only one inference call per key is in flight
    - JSON persistence guarded by a filelock (also excludes xdist workers)
    - Load merges without overwriting in-memory entries
    - Age-based cleanup at start-up

Persistence failures never fail a test run: they are logged and the cache
keeps working in memory.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, Iterator, Optional, Union

from filelock import FileLock, Timeout
from loguru import logger

from .locators import CachedLocatorResult, utc_now


DEFAULT_LOCK_TIMEOUT = 30.0


@dataclass
class _KeyLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


@dataclass(frozen=True)
class CacheStatistics:
    total_entries: int
    oldest_entry: Optional[datetime] = None
    newest_entry: Optional[datetime] = None


class LocatorCache:
    """
    Concurrent, file-persisted map of original locator -> generated locator.

    Usage:
        >>> cache = LocatorCache("locator_cache.json")
        >>> cache.load_from_file()
        >>> cache.cleanup_older_than(timedelta(days=3))
        >>> ...
        >>> cache.save_to_file()
    """

    def __init__(
        self,
        cache_path: Union[str, Path],
        lock_timeout: float = DEFAULT_LOCK_TIMEOUT,
    ) -> None:
        self.cache_path = Path(cache_path)
        self.lock_path = self.cache_path.with_name(self.cache_path.name + ".lock")
        self._file_lock = FileLock(self.lock_path, timeout=lock_timeout)

        self._entries: Dict[str, CachedLocatorResult] = {}
        self._entries_lock = threading.Lock()
        self._key_locks: Dict[str, _KeyLock] = {}
        self._key_locks_guard = threading.Lock()

    # =========================================================================
    # In-memory operations
    # =========================================================================

    def lookup(self, key: str) -> Optional[CachedLocatorResult]:
        with self._entries_lock:
            return self._entries.get(key)

    def insert(self, key: str, entry: CachedLocatorResult) -> None:
        with self._entries_lock:
            self._entries[key] = entry

    def cleanup_older_than(
        self,
        max_age: timedelta,
        now: Optional[datetime] = None,
    ) -> int:
        """
        Remove entries generated before `now - max_age`.

        An entry exactly at the cutoff is kept.

        Returns:
            Number of removed entries
        """
        cutoff = (now or utc_now()) - max_age
        with self._entries_lock:
            stale = [k for k, v in self._entries.items() if v.timestamp < cutoff]
            for key in stale:
                del self._entries[key]

        if stale:
            logger.info(f"Cleaned up {len(stale)} old locator cache entries")
        return len(stale)

    def statistics(self) -> CacheStatistics:
        with self._entries_lock:
            timestamps = [v.timestamp for v in self._entries.values()]
        if not timestamps:
            return CacheStatistics(total_entries=0)
        return CacheStatistics(
            total_entries=len(timestamps),
            oldest_entry=min(timestamps),
            newest_entry=max(timestamps),
        )

    def snapshot(self) -> Dict[str, CachedLocatorResult]:
        """Shallow copy of the current map."""
        with self._entries_lock:
            return dict(self._entries)

    @contextmanager
    def key_lock(self, key: str) -> Iterator[None]:
        """
        Hold the per-key lock for the duration of the block.

        Used to make "lookup, else infer, else insert" single-flight per key.
        The lock is dropped once no thread holds or waits for it.
        """
        with self._key_locks_guard:
            key_lock = self._key_locks.get(key)
            if key_lock is None:
                key_lock = self._key_locks[key] = _KeyLock()
            key_lock.users += 1
        try:
            with key_lock.lock:
                yield
        finally:
            with self._key_locks_guard:
                key_lock.users -= 1
                if key_lock.users == 0:
                    del self._key_locks[key]

    def __len__(self) -> int:
        with self._entries_lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._entries_lock:
            return key in self._entries

    # =========================================================================
    # Persistence
    # =========================================================================

    def load_from_file(self) -> None:
        """
        Merge the persisted snapshot into memory.

        A missing file is normal (empty cache). Keys already in memory win.
        """
        if not self.cache_path.exists():
            logger.info(f"No existing locator cache file found at: {self.cache_path}")
            return

        try:
            with self._file_lock:
                with open(self.cache_path, "r", encoding="utf-8") as f:
                    data = json.load(f)

            if not isinstance(data, dict):
                raise ValueError(f"expected a JSON object, got {type(data).__name__}")

            loaded = {
                key: CachedLocatorResult.from_dict(value)
                for key, value in data.items()
            }
        except (OSError, Timeout, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Failed to load locator cache from file: {e}")
            return

        with self._entries_lock:
            for key, entry in loaded.items():
                self._entries.setdefault(key, entry)

        logger.info(f"Loaded {len(loaded)} cached locators from file: {self.cache_path}")

    def save_to_file(self) -> None:
        """Write the entire in-memory map, pretty-printed, replacing the file."""
        data = {key: entry.to_dict() for key, entry in self.snapshot().items()}

        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            with self._file_lock:
                with open(self.cache_path, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
        except (OSError, Timeout) as e:
            logger.warning(f"Failed to save locator cache to file: {e}")
            return

        logger.info(f"Locator cache saved to file: {self.cache_path} with {len(data)} entries")


__all__ = [
    "CacheStatistics",
    "LocatorCache",
]
