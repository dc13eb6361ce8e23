"""Abstract CacheStore and TelemetrySink — persistence seams of the read-through cache."""
from abc import ABC, abstractmethod
from datetime import datetime

from quotecache.core.data.models import (
    CacheKey,
    CacheRecord,
    DataType,
    HealthMetric,
    RequestTelemetry,
)
from quotecache.core.result import Outcome, Unit


class CacheStore(ABC):
    """Append-only record store with timestamped validity. Records are never deleted here."""

    @abstractmethod
    async def get_fresh(self, key: CacheKey, datatype: DataType, now: datetime) -> Outcome[CacheRecord | None]:
        """Most recently observed record for key with valid_until > now, or None."""
        ...

    @abstractmethod
    async def get_fresh_for_region(
        self, region: str, datatype: DataType, now: datetime, limit: int
    ) -> Outcome[list[CacheRecord]]:
        """Up to `limit` fresh records for the region, by rank then most recent first."""
        ...

    @abstractmethod
    async def put(self, record: CacheRecord) -> Outcome[Unit]:
        ...

    @abstractmethod
    async def put_many(self, records: list[CacheRecord]) -> Outcome[Unit]:
        """Append all records, assigning rank 1..N in list order."""
        ...


class TelemetrySink(ABC):
    """Write-once observability records; never read back by the core."""

    @abstractmethod
    async def record_request(self, telemetry: RequestTelemetry) -> Outcome[Unit]:
        ...

    @abstractmethod
    async def record_health(self, metric: HealthMetric) -> Outcome[Unit]:
        ...
