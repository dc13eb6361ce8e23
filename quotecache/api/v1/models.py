"""Pydantic request/response models — camelCase on the wire, snake_case in Python."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from quotecache.core.data.bulk import BulkResult, GroupResult
from quotecache.core.data.models import QuoteBatch, QuoteRecord, TrendingRecord, TrendingResult


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Quotes ───────────────────────────────────────────────────────────────


class QuoteRequestBody(WireModel):
    symbols: str = ""
    region: str = "US"
    language: str = "en"


class QuoteData(WireModel):
    symbol: str
    regular_market_price: float | None = None
    regular_market_change: float | None = None
    regular_market_change_percent: float | None = None
    regular_market_time: int | None = None
    regular_market_day_high: float | None = None
    regular_market_day_low: float | None = None
    regular_market_volume: int | None = None
    regular_market_previous_close: float | None = None
    currency: str | None = None
    market_state: str | None = None
    short_name: str | None = None
    long_name: str | None = None
    exchange: str | None = None
    exchange_timezone_name: str | None = None
    exchange_timezone_short_name: str | None = None
    quote_type: str | None = None
    market_cap: int | None = None
    shares_outstanding: int | None = None
    book_value: float | None = None
    price_to_book: float | None = None
    fifty_two_week_low: float | None = None
    fifty_two_week_high: float | None = None
    fifty_day_average: float | None = None
    two_hundred_day_average: float | None = None
    trailing_pe: float | None = Field(None, alias="trailingPE")
    forward_pe: float | None = Field(None, alias="forwardPE")
    dividend_yield: float | None = None
    trailing_annual_dividend_yield: float | None = None
    beta: float | None = None

    @classmethod
    def from_record(cls, record: QuoteRecord) -> QuoteData:
        return cls(**record.to_payload())


class QuoteResponse(WireModel):
    symbols: list[str]
    region: str
    language: str
    quotes: list[QuoteData]
    timestamp: datetime
    error_message: str | None = None

    @classmethod
    def from_batch(cls, batch: QuoteBatch) -> QuoteResponse:
        return cls(
            symbols=batch.symbols,
            region=batch.region,
            language=batch.language,
            quotes=[QuoteData.from_record(q) for q in batch.quotes],
            timestamp=batch.timestamp,
            error_message=batch.error_message,
        )


# ── Trending ─────────────────────────────────────────────────────────────


class TrendingStock(WireModel):
    symbol: str
    short_name: str | None = None
    long_name: str | None = None
    regular_market_price: float | None = None
    regular_market_change: float | None = None
    regular_market_change_percent: float | None = None
    currency: str | None = None
    market_state: str | None = None
    exchange: str | None = None
    quote_type: str | None = None

    @classmethod
    def from_record(cls, record: TrendingRecord) -> TrendingStock:
        return cls(**record.to_payload())


class TrendingResponse(WireModel):
    region: str
    stocks: list[TrendingStock]
    timestamp: datetime
    count: int = 0
    job_timestamp: int | None = None
    start_interval: int | None = None

    @classmethod
    def from_result(cls, result: TrendingResult) -> TrendingResponse:
        return cls(
            region=result.region,
            stocks=[TrendingStock.from_record(s) for s in result.stocks],
            timestamp=result.timestamp,
            count=result.count,
            job_timestamp=result.job_timestamp,
            start_interval=result.start_interval,
        )


# ── Market summary / FX / crypto ─────────────────────────────────────────


class MarketIndex(WireModel):
    symbol: str
    name: str
    price: float | None = None
    change: float | None = None
    change_percent: float | None = None
    currency: str | None = None
    market_state: str | None = None
    market_time: int | None = None


class MarketSector(WireModel):
    name: str
    performance: float | None = None
    change_percent: float | None = None
    top_stocks: list[str] = Field(default_factory=list)


class MarketSummaryResponse(WireModel):
    region: str
    language: str
    indices: list[MarketIndex]
    sectors: list[MarketSector] = Field(default_factory=list)
    timestamp: datetime
    error_message: str | None = None


class CurrencyExchangeResponse(WireModel):
    from_currency: str
    to_currency: str
    symbol: str
    exchange_rate: float | None = None
    change: float | None = None
    change_percent: float | None = None
    last_update: int | None = None
    timestamp: datetime
    error_message: str | None = None


class CryptoData(WireModel):
    symbol: str
    name: str | None = None
    price: float | None = None
    change: float | None = None
    change_percent: float | None = None
    currency: str | None = None
    market_cap: int | None = None
    volume_24h: int | None = Field(None, alias="volume24h")
    high_24h: float | None = Field(None, alias="high24h")
    low_24h: float | None = Field(None, alias="low24h")
    market_state: str | None = None
    last_update: int | None = None


class CryptoResponse(WireModel):
    symbols: list[str]
    currency: str
    crypto_quotes: list[CryptoData]
    timestamp: datetime
    error_message: str | None = None


# ── Bulk ─────────────────────────────────────────────────────────────────


class SymbolGroupBody(WireModel):
    group_name: str
    symbols: list[str]


class BulkQuoteRequestBody(WireModel):
    symbol_groups: list[SymbolGroupBody]
    region: str = "US"
    language: str = "en"


class QuoteGroup(WireModel):
    group_name: str
    quotes: list[QuoteData]
    success_count: int = 0
    error_count: int = 0
    errors: list[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, group: GroupResult) -> QuoteGroup:
        return cls(
            group_name=group.name,
            quotes=[QuoteData.from_record(q) for q in group.quotes],
            success_count=group.success_count,
            error_count=group.error_count,
            errors=group.errors,
        )


class BulkQuoteResponse(WireModel):
    region: str
    language: str
    quote_groups: list[QuoteGroup]
    timestamp: datetime
    total_symbols: int = 0
    successful_quotes: int = 0
    failed_quotes: int = 0
    errors: list[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: BulkResult) -> BulkQuoteResponse:
        return cls(
            region=result.region,
            language=result.language,
            quote_groups=[QuoteGroup.from_result(g) for g in result.groups],
            timestamp=result.timestamp,
            total_symbols=result.total_symbols,
            successful_quotes=result.successful_quotes,
            failed_quotes=result.failed_quotes,
            errors=result.errors,
        )


# ── System ───────────────────────────────────────────────────────────────


class HealthResponse(WireModel):
    service: str
    status: str
    api_key_configured: bool
    api_key_source: str
    parameter_store_path: str
    supported_regions: list[str]
    timestamp: datetime
    message: str
    available_endpoints: list[str]


class ApiEndpoint(WireModel):
    path: str
    method: str
    description: str
    parameters: list[str]
    examples: list[str]


class RateLimit(WireModel):
    requests_per_minute: int
    requests_per_hour: int
    requests_per_day: int
    burst_limit: int


class CapabilitiesResponse(WireModel):
    available_endpoints: list[ApiEndpoint]
    supported_regions: list[str]
    supported_languages: list[str]
    supported_asset_types: list[str]
    rate_limits: RateLimit
    timestamp: datetime
    api_version: str
