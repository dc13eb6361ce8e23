"""CacheStore / TelemetrySink implementations — in-memory and SQLAlchemy over aiosqlite."""
from datetime import timedelta

import pytest

from fakes import T0, quote_record
from quotecache.core.data.models import (
    CacheKey,
    CacheRecord,
    DataType,
    HealthMetric,
    RequestTelemetry,
    TrendingRecord,
)
from quotecache.core.data.store.db import create_all, create_engine, create_session_factory
from quotecache.core.data.store.memory import InMemoryCacheStore, InMemoryTelemetrySink
from quotecache.core.data.store.sql import SqlCacheStore, SqlTelemetrySink
from quotecache.core.result import ErrorKind


def _trending(symbol: str, now=T0) -> CacheRecord:
    return CacheRecord(
        key=CacheKey(region="US"),
        datatype=DataType.TRENDING,
        payload=TrendingRecord(symbol=symbol),
        valid_until=now + timedelta(minutes=30),
        observed_at=now,
        list_count=3,
        start_interval=202403011400,
    )


async def _sql(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'cache.db'}")
    await create_all(engine)
    sessions = create_session_factory(engine)
    return engine, SqlCacheStore(sessions), SqlTelemetrySink(sessions)


# ── Contract shared by both stores ───────────────────────────────────────


async def _check_contract(store) -> None:
    key = CacheKey(region="US", symbol="AAPL")

    assert (await store.get_fresh(key, DataType.QUOTE, T0)).value is None

    older = quote_record("AAPL", 188.0, T0 - timedelta(minutes=5))
    newer = quote_record("AAPL", 190.0, T0 - timedelta(minutes=1))
    assert (await store.put(older)).is_success
    assert (await store.put(newer)).is_success

    hit = (await store.get_fresh(key, DataType.QUOTE, T0)).value
    assert hit.payload.regular_market_price == 190.0
    assert hit.valid_until == newer.valid_until

    # newer expires at T0+14m, older at T0+10m
    assert (await store.get_fresh(key, DataType.QUOTE, T0 + timedelta(minutes=14))).value is None
    # other region, other datatype
    assert (await store.get_fresh(CacheKey("GB", "AAPL"), DataType.QUOTE, T0)).value is None
    assert (await store.get_fresh(key, DataType.TRENDING, T0)).value is None

    assert (await store.put_many([_trending(s) for s in ["NVDA", "TSLA", "AMD"]])).is_success
    listed = (await store.get_fresh_for_region("US", DataType.TRENDING, T0, 50)).value
    assert [r.payload.symbol for r in listed] == ["NVDA", "TSLA", "AMD"]
    assert [r.rank for r in listed] == [1, 2, 3]
    assert all(r.key.symbol is None for r in listed)
    assert all((r.list_count, r.start_interval) == (3, 202403011400) for r in listed)

    limited = (await store.get_fresh_for_region("US", DataType.TRENDING, T0, 2)).value
    assert len(limited) == 2
    expired = (await store.get_fresh_for_region("US", DataType.TRENDING, T0 + timedelta(minutes=30), 50)).value
    assert expired == []


class TestInMemoryCacheStore:

    @pytest.mark.asyncio
    async def test_contract(self):
        await _check_contract(InMemoryCacheStore())

    @pytest.mark.asyncio
    async def test_records_are_never_removed(self):
        store = InMemoryCacheStore()
        await store.put(quote_record("AAPL", 1.0, T0 - timedelta(hours=1)))
        await store.get_fresh(CacheKey("US", "AAPL"), DataType.QUOTE, T0)
        assert len(store.records) == 1

    @pytest.mark.asyncio
    async def test_put_stamps_created_at(self):
        store = InMemoryCacheStore()
        record = quote_record("AAPL", 1.0)
        await store.put(CacheRecord(record.key, record.datatype, record.payload, record.valid_until))
        assert store.records[0].created_at is not None


class TestSqlCacheStore:

    @pytest.mark.asyncio
    async def test_contract(self, tmp_path):
        engine, store, _ = await _sql(tmp_path)
        try:
            await _check_contract(store)
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_timestamps_come_back_as_utc(self, tmp_path):
        engine, store, _ = await _sql(tmp_path)
        try:
            await store.put(quote_record("AAPL", 1.0))
            hit = (await store.get_fresh(CacheKey("US", "AAPL"), DataType.QUOTE, T0)).value
            assert hit.valid_until == T0 + timedelta(minutes=15)
            assert hit.observed_at.tzinfo is not None
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_payload_round_trips(self, tmp_path):
        engine, store, _ = await _sql(tmp_path)
        try:
            record = quote_record("EURUSD=X", 1.0842)
            await store.put(record)
            hit = (await store.get_fresh(record.key, DataType.QUOTE, T0)).value
            assert hit.payload == record.payload
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_missing_schema_is_store_error(self, tmp_path):
        engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
        store = SqlCacheStore(create_session_factory(engine))
        try:
            read = await store.get_fresh(CacheKey("US", "AAPL"), DataType.QUOTE, T0)
            write = await store.put(quote_record("AAPL", 1.0))
            assert read.error.kind == ErrorKind.STORE
            assert write.error.kind == ErrorKind.STORE
        finally:
            await engine.dispose()


class TestTelemetrySinks:

    TELEMETRY = RequestTelemetry(
        request_id="6f1c8a2e-2b7c-4a53-9d0e-1f2a3b4c5d6e",
        endpoint="/api/yh/quote",
        method="GET",
        symbols="AAPL,MSFT",
        region="US",
        language="en",
        status_code=200,
        elapsed_ms=12,
        cache_hit=True,
        requested_at=T0,
    )
    METRIC = HealthMetric(
        service_name="YH Controller",
        status="Healthy",
        api_key_configured=True,
        api_key_source="Configuration Fallback",
        supported_regions=["US", "GB"],
    )

    @pytest.mark.asyncio
    async def test_memory_sink(self):
        sink = InMemoryTelemetrySink()
        await sink.record_request(self.TELEMETRY)
        await sink.record_health(self.METRIC)
        assert sink.requests == [self.TELEMETRY]
        assert sink.health == [self.METRIC]

    @pytest.mark.asyncio
    async def test_sql_sink(self, tmp_path):
        engine, _, sink = await _sql(tmp_path)
        try:
            assert (await sink.record_request(self.TELEMETRY)).is_success
            assert (await sink.record_health(self.METRIC)).is_success
        finally:
            await engine.dispose()
