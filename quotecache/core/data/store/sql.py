"""SqlCacheStore / SqlTelemetrySink — SQLAlchemy async persistence.

Timestamps are written as naive UTC (portable across Postgres and SQLite) and
given back their UTC tzinfo on the way out.
"""
from datetime import datetime, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from quotecache.core.data.models import (
    PAYLOAD_TYPES,
    CacheKey,
    CacheRecord,
    DataType,
    HealthMetric,
    RequestTelemetry,
)
from quotecache.core.data.store.base import CacheStore, TelemetrySink
from quotecache.core.data.store.tables import ApiHealthMetricRow, ApiRequestRow, CacheRecordRow
from quotecache.core.result import Outcome, Unit, ok, store_failure

logger = structlog.get_logger()


def _to_db(ts: datetime | None) -> datetime | None:
    if ts is None:
        return None
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc).replace(tzinfo=None)
    return ts


def _from_db(ts: datetime | None) -> datetime | None:
    if ts is None:
        return None
    return ts.replace(tzinfo=timezone.utc) if ts.tzinfo is None else ts


def _row_to_record(row: CacheRecordRow) -> CacheRecord:
    datatype = DataType(row.datatype)
    return CacheRecord(
        key=CacheKey(region=row.region, symbol=row.symbol),
        datatype=datatype,
        payload=PAYLOAD_TYPES[datatype].from_payload(row.payload),
        valid_until=_from_db(row.valid_until),
        observed_at=_from_db(row.observed_at),
        created_at=_from_db(row.created_at),
        updated_at=_from_db(row.updated_at),
        rank=row.rank,
        list_count=row.list_count,
        start_interval=row.start_interval,
    )


def _record_to_row(record: CacheRecord, rank: int | None = None) -> CacheRecordRow:
    now = datetime.now(timezone.utc)
    return CacheRecordRow(
        datatype=record.datatype.value,
        region=record.key.region,
        symbol=record.key.symbol,
        payload=record.payload.to_payload(),
        observed_at=_to_db(record.observed_at),
        valid_until=_to_db(record.valid_until),
        rank=rank if rank is not None else record.rank,
        list_count=record.list_count,
        start_interval=record.start_interval,
        created_at=_to_db(record.created_at or now),
        updated_at=_to_db(record.updated_at or now),
    )


class SqlCacheStore(CacheStore):

    def __init__(self, session_factory: async_sessionmaker):
        self._sessions = session_factory

    async def get_fresh(self, key: CacheKey, datatype: DataType, now: datetime) -> Outcome[CacheRecord | None]:
        symbol_clause = (
            CacheRecordRow.symbol.is_(None) if key.symbol is None else CacheRecordRow.symbol == key.symbol
        )
        stmt = (
            select(CacheRecordRow)
            .where(
                CacheRecordRow.datatype == datatype.value,
                CacheRecordRow.region == key.region,
                symbol_clause,
                CacheRecordRow.valid_until > _to_db(now),
            )
            .order_by(
                CacheRecordRow.observed_at.desc().nulls_last(),
                CacheRecordRow.created_at.desc(),
                CacheRecordRow.id.desc(),
            )
            .limit(1)
        )
        try:
            async with self._sessions() as session:
                row = (await session.execute(stmt)).scalars().first()
        except SQLAlchemyError as e:
            return Outcome.failure(store_failure("get_fresh", e))
        return Outcome.success(_row_to_record(row) if row is not None else None)

    async def get_fresh_for_region(
        self, region: str, datatype: DataType, now: datetime, limit: int
    ) -> Outcome[list[CacheRecord]]:
        stmt = (
            select(CacheRecordRow)
            .where(
                CacheRecordRow.datatype == datatype.value,
                CacheRecordRow.region == region,
                CacheRecordRow.valid_until > _to_db(now),
            )
            .order_by(
                CacheRecordRow.rank.asc().nulls_last(),
                CacheRecordRow.observed_at.desc().nulls_last(),
                CacheRecordRow.created_at.desc(),
            )
            .limit(limit)
        )
        try:
            async with self._sessions() as session:
                rows = (await session.execute(stmt)).scalars().all()
        except SQLAlchemyError as e:
            return Outcome.failure(store_failure("get_fresh_for_region", e))
        return Outcome.success([_row_to_record(r) for r in rows])

    async def put(self, record: CacheRecord) -> Outcome[Unit]:
        try:
            async with self._sessions() as session:
                session.add(_record_to_row(record))
                await session.commit()
        except SQLAlchemyError as e:
            return Outcome.failure(store_failure("put", e))
        return ok()

    async def put_many(self, records: list[CacheRecord]) -> Outcome[Unit]:
        # One transaction: the list is a single cache unit
        try:
            async with self._sessions() as session:
                session.add_all([_record_to_row(r, rank=i) for i, r in enumerate(records, start=1)])
                await session.commit()
        except SQLAlchemyError as e:
            return Outcome.failure(store_failure("put_many", e))
        logger.debug("store.put_many", count=len(records))
        return ok()


class SqlTelemetrySink(TelemetrySink):

    def __init__(self, session_factory: async_sessionmaker):
        self._sessions = session_factory

    async def record_request(self, telemetry: RequestTelemetry) -> Outcome[Unit]:
        row = ApiRequestRow(
            request_id=telemetry.request_id,
            endpoint=telemetry.endpoint,
            method=telemetry.method,
            symbols=telemetry.symbols,
            region=telemetry.region,
            language=telemetry.language,
            status_code=telemetry.status_code,
            response_time_ms=telemetry.elapsed_ms,
            cache_hit=telemetry.cache_hit,
            request_timestamp=_to_db(telemetry.requested_at),
            created_at=_to_db(datetime.now(timezone.utc)),
        )
        return await self._add(row, "record_request")

    async def record_health(self, metric: HealthMetric) -> Outcome[Unit]:
        row = ApiHealthMetricRow(
            service_name=metric.service_name,
            status=metric.status,
            api_key_configured=metric.api_key_configured,
            api_key_source=metric.api_key_source,
            parameter_store_path=metric.parameter_store_path,
            supported_regions=list(metric.supported_regions),
            message=metric.message,
            response_time_ms=metric.response_time_ms,
            created_at=_to_db(datetime.now(timezone.utc)),
        )
        return await self._add(row, "record_health")

    async def _add(self, row, operation: str) -> Outcome[Unit]:
        try:
            async with self._sessions() as session:
                session.add(row)
                await session.commit()
        except SQLAlchemyError as e:
            return Outcome.failure(store_failure(operation, e))
        return ok()
