from __future__ import annotations

import json
import threading
from typing import Protocol

from content_gateway.errors import StatsPersistenceError
from content_gateway.ops.config import DEFAULT_STATS_KEY
from content_gateway.ops.logging import EventLogger, NullEventLogger
from content_gateway.usage.domain import StatsPayloadInvalid, UsageReport, UsageStats, success_rate


class StatsStore(Protocol):
    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class InMemoryStatsStore(StatsStore):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(initial or {})
        self.writes = 0

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value
        self.writes += 1


class UsageLedger:
    """Process-wide usage counters with write-through persistence.

    Each mutation is a single read-increment-write under a lock and is
    persisted before the call returns. Persistence is best effort: load and
    save failures are logged and counted, never raised.
    """

    def __init__(
        self,
        store: StatsStore,
        *,
        key: str = DEFAULT_STATS_KEY,
        event_logger: EventLogger | None = None,
    ) -> None:
        if not isinstance(key, str) or not key.strip():
            raise ValueError("key must be a non-empty string")
        self._store = store
        self._key = key
        self._event_logger = event_logger or NullEventLogger()
        self._lock = threading.Lock()
        self.load_error: Exception | None = None
        self.last_persistence_error: StatsPersistenceError | None = None
        self.persistence_failures = 0
        self._stats = self._load()

    @property
    def key(self) -> str:
        return self._key

    def _load(self) -> UsageStats:
        try:
            raw = self._store.get(self._key)
            if raw is None:
                return UsageStats()
            return UsageStats.from_raw(json.loads(raw))
        except (StatsPersistenceError, StatsPayloadInvalid, ValueError, TypeError) as exc:
            return self._record_load_failure(exc)
        except Exception as exc:
            wrapped = StatsPersistenceError(f"stats read failed: {type(exc).__name__}")
            wrapped.__cause__ = exc
            return self._record_load_failure(wrapped)

    def _record_load_failure(self, exc: Exception) -> UsageStats:
        self.load_error = exc
        self._event_logger.log(
            event="stats_load_failed",
            severity="WARNING",
            statsKey=self._key,
            errorType=type(exc).__name__,
            reason=str(exc)[:200],
        )
        return UsageStats()

    def _persist(self, stats: UsageStats) -> None:
        serialized = json.dumps(stats.to_dict(), separators=(",", ":"))
        try:
            self._store.set(self._key, serialized)
        except StatsPersistenceError as exc:
            self._record_persistence_failure(exc)
        except Exception as exc:
            wrapped = StatsPersistenceError(f"stats write failed: {type(exc).__name__}")
            wrapped.__cause__ = exc
            self._record_persistence_failure(wrapped)

    def _record_persistence_failure(self, exc: StatsPersistenceError) -> None:
        self.persistence_failures += 1
        self.last_persistence_error = exc
        self._event_logger.log(
            event="stats_persist_failed",
            severity="WARNING",
            statsKey=self._key,
            retryable=exc.retryable,
            reason=str(exc)[:200],
        )

    def record_upload(self, byte_size: int) -> UsageStats:
        if not isinstance(byte_size, int) or isinstance(byte_size, bool) or byte_size < 0:
            raise ValueError("byte_size must be a non-negative integer")
        with self._lock:
            self._stats = self._stats.with_upload(byte_size)
            self._persist(self._stats)
            return self._stats

    def record_download(self) -> UsageStats:
        with self._lock:
            self._stats = self._stats.with_download()
            self._persist(self._stats)
            return self._stats

    def record_error(self) -> UsageStats:
        with self._lock:
            self._stats = self._stats.with_error()
            self._persist(self._stats)
            return self._stats

    def snapshot(self) -> UsageStats:
        return self._stats

    def success_rate(self) -> int:
        return success_rate(self._stats)

    def report(self) -> UsageReport:
        return UsageReport.from_stats(self._stats)
