"""ORM tables for cached upstream data and request telemetry."""
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class CacheRecordRow(Base):
    """One cached upstream answer. Append-only: several rows may exist per key over time."""
    __tablename__ = "cache_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    datatype: Mapped[str] = mapped_column(String(20), nullable=False)
    region: Mapped[str] = mapped_column(String(2), nullable=False)
    symbol: Mapped[str | None] = mapped_column(String(20))     # NULL for per-region aggregates
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    observed_at: Mapped[datetime | None] = mapped_column(DateTime)
    valid_until: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    rank: Mapped[int | None] = mapped_column(Integer)
    list_count: Mapped[int | None] = mapped_column(Integer)
    start_interval: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_cache_records_lookup", "datatype", "region", "symbol", "valid_until"),
    )

    def __repr__(self):
        return f"<CacheRecordRow(datatype='{self.datatype}', region='{self.region}', symbol='{self.symbol}')>"


class ApiRequestRow(Base):
    __tablename__ = "api_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    request_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    endpoint: Mapped[str] = mapped_column(String(100), nullable=False)
    method: Mapped[str] = mapped_column(String(10), nullable=False)
    symbols: Mapped[str | None] = mapped_column(Text)
    region: Mapped[str] = mapped_column(String(10), default="US")
    language: Mapped[str] = mapped_column(String(10), default="en")
    status_code: Mapped[int | None] = mapped_column(Integer)
    response_time_ms: Mapped[int | None] = mapped_column(Integer)
    cache_hit: Mapped[bool] = mapped_column(Boolean, default=False)
    request_timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class ApiHealthMetricRow(Base):
    __tablename__ = "api_health_metrics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    service_name: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    api_key_configured: Mapped[bool] = mapped_column(Boolean, default=False)
    api_key_source: Mapped[str | None] = mapped_column(String(50))
    parameter_store_path: Mapped[str | None] = mapped_column(String(200))
    supported_regions: Mapped[list | None] = mapped_column(JSON)
    message: Mapped[str | None] = mapped_column(Text)
    response_time_ms: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
