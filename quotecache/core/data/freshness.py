"""FreshnessPolicy — per-datatype TTLs and the binary fresh/stale test."""
from datetime import datetime, timedelta

from quotecache.core.data.models import CacheRecord, DataType


class FreshnessPolicy:

    def __init__(
        self,
        quote_ttl: timedelta = timedelta(minutes=15),
        trending_ttl: timedelta = timedelta(minutes=30),
    ):
        if quote_ttl <= timedelta(0) or trending_ttl <= timedelta(0):
            raise ValueError("TTLs must be positive")
        if quote_ttl >= trending_ttl:
            raise ValueError(f"quote TTL ({quote_ttl}) must be shorter than trending TTL ({trending_ttl})")
        self._ttls = {DataType.QUOTE: quote_ttl, DataType.TRENDING: trending_ttl}

    @classmethod
    def from_minutes(cls, quote_minutes: float, trending_minutes: float) -> "FreshnessPolicy":
        return cls(timedelta(minutes=quote_minutes), timedelta(minutes=trending_minutes))

    def ttl_for(self, datatype: DataType) -> timedelta:
        return self._ttls[DataType(datatype)]

    def valid_until(self, datatype: DataType, now: datetime) -> datetime:
        return now + self.ttl_for(datatype)

    @staticmethod
    def is_fresh(record: CacheRecord, now: datetime) -> bool:
        # No grace period, no jitter
        return record.valid_until > now
