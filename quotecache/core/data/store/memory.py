"""In-memory store — lock-guarded lists backing the cache and telemetry in dev and tests."""
import dataclasses
import threading
from datetime import datetime, timezone

from quotecache.core.data.models import (
    CacheKey,
    CacheRecord,
    DataType,
    HealthMetric,
    RequestTelemetry,
)
from quotecache.core.data.store.base import CacheStore, TelemetrySink
from quotecache.core.result import Outcome, Unit, ok

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _recency(record: CacheRecord) -> tuple[datetime, datetime]:
    return (record.observed_at or _EPOCH, record.created_at or _EPOCH)


class InMemoryCacheStore(CacheStore):

    def __init__(self):
        self._lock = threading.Lock()
        self._records: list[CacheRecord] = []

    @property
    def records(self) -> list[CacheRecord]:
        with self._lock:
            return list(self._records)

    async def get_fresh(self, key: CacheKey, datatype: DataType, now: datetime) -> Outcome[CacheRecord | None]:
        with self._lock:
            candidates = [
                r for r in self._records
                if r.key == key and r.datatype == datatype and r.valid_until > now
            ]
        if not candidates:
            return Outcome.success(None)
        return Outcome.success(max(candidates, key=_recency))

    async def get_fresh_for_region(
        self, region: str, datatype: DataType, now: datetime, limit: int
    ) -> Outcome[list[CacheRecord]]:
        with self._lock:
            candidates = [
                r for r in self._records
                if r.key.region == region and r.datatype == datatype and r.valid_until > now
            ]
        # rank ascending, then newest first
        candidates.sort(key=_recency, reverse=True)
        candidates.sort(key=lambda r: r.rank if r.rank is not None else float("inf"))
        return Outcome.success(candidates[:limit])

    async def put(self, record: CacheRecord) -> Outcome[Unit]:
        with self._lock:
            self._records.append(self._stamp(record))
        return ok()

    async def put_many(self, records: list[CacheRecord]) -> Outcome[Unit]:
        ranked = [dataclasses.replace(r, rank=i) for i, r in enumerate(records, start=1)]
        with self._lock:
            self._records.extend(self._stamp(r) for r in ranked)
        return ok()

    @staticmethod
    def _stamp(record: CacheRecord) -> CacheRecord:
        now = datetime.now(timezone.utc)
        return dataclasses.replace(
            record,
            created_at=record.created_at or now,
            updated_at=record.updated_at or now,
        )


class InMemoryTelemetrySink(TelemetrySink):

    def __init__(self):
        self._lock = threading.Lock()
        self.requests: list[RequestTelemetry] = []
        self.health: list[HealthMetric] = []

    async def record_request(self, telemetry: RequestTelemetry) -> Outcome[Unit]:
        with self._lock:
            self.requests.append(telemetry)
        return ok()

    async def record_health(self, metric: HealthMetric) -> Outcome[Unit]:
        with self._lock:
            self.health.append(metric)
        return ok()
