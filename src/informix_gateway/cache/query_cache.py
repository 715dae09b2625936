import hashlib
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from informix_gateway.bridge.result_codec import ResultSet

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def fingerprint(sql: str, params: Sequence[Any] | None = None) -> str:
    """Derive the cache key for a statement.

    The parameters never reach the database but they are part of the key, so the same text with
    different parameters is cached separately.
    """
    payload = json.dumps([sql.strip(), list(params or [])], default=str, ensure_ascii=False)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class _CacheEntry:
    rows: ResultSet
    stored_at: float


class QueryCache:
    """Read-through cache of result sets with lazy, age-based expiry.

    An entry is served while its age is strictly below the ttl. Expired entries are only noticed,
    and dropped, when they are looked up. Rows are copied in and out, so callers may modify what
    they receive.
    """

    def __init__(self, ttl: float, clock: Clock = time.monotonic):
        if ttl <= 0:
            raise ValueError(f"Cache ttl must be positive, got {ttl}")
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}
        self._lock = threading.Lock()

    @property
    def ttl(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str, ttl: float | None = None) -> ResultSet | None:
        effective_ttl = self._ttl if ttl is None else ttl
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            if self._clock() - entry.stored_at >= effective_ttl:
                del self._entries[key]
                logger.debug("Cache entry %s expired", key[:12])
                return None

            return _copy_rows(entry.rows)

    def put(self, key: str, rows: ResultSet) -> None:
        with self._lock:
            self._entries[key] = _CacheEntry(rows=_copy_rows(rows), stored_at=self._clock())

    def clear(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)


def _copy_rows(rows: ResultSet) -> ResultSet:
    # callers own what they get back, the stored rows never change
    return [dict(row) for row in rows]
