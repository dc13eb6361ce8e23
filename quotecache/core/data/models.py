"""Domain types shared by providers, stores and the API layer."""
from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Union

from quotecache.core.regions import is_supported_region, normalize_region
from quotecache.core.result import (
    Outcome,
    validation_format,
    validation_invalid,
    validation_required,
)

SYMBOL_RE = re.compile(r"^[A-Z0-9.\-=^]{1,20}$")
DEFAULT_MAX_SYMBOLS = 10


class DataType(str, Enum):
    QUOTE = "quote"
    TRENDING = "trending"


# ── Upstream records ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class QuoteRecord:
    symbol: str
    regular_market_price: float | None = None
    regular_market_change: float | None = None
    regular_market_change_percent: float | None = None
    regular_market_time: int | None = None          # epoch seconds, upstream-reported
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
    trailing_pe: float | None = None
    forward_pe: float | None = None
    dividend_yield: float | None = None
    trailing_annual_dividend_yield: float | None = None
    beta: float | None = None

    def to_payload(self) -> dict:
        return asdict(self)

    @classmethod
    def from_payload(cls, payload: dict) -> QuoteRecord:
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in payload.items() if k in names})


@dataclass(frozen=True)
class TrendingRecord:
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

    def to_payload(self) -> dict:
        return asdict(self)

    @classmethod
    def from_payload(cls, payload: dict) -> TrendingRecord:
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in payload.items() if k in names})


@dataclass(frozen=True)
class TrendingList:
    region: str
    records: list[TrendingRecord] = field(default_factory=list)
    count: int = 0
    job_timestamp: int | None = None
    start_interval: int | None = None


Payload = Union[QuoteRecord, TrendingRecord]

PAYLOAD_TYPES: dict[DataType, type] = {
    DataType.QUOTE: QuoteRecord,
    DataType.TRENDING: TrendingRecord,
}


# ── Cache records ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CacheKey:
    region: str
    symbol: str | None = None    # None for per-region aggregates (trending)


@dataclass(frozen=True)
class CacheRecord:
    key: CacheKey
    datatype: DataType
    payload: Payload
    valid_until: datetime
    observed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    rank: int | None = None
    # trending only: upstream list metadata, repeated on every ranked record
    list_count: int | None = None
    start_interval: int | None = None

    def is_usable(self, now: datetime) -> bool:
        return now < self.valid_until


# ── Requests and results ─────────────────────────────────────────────────


@dataclass(frozen=True)
class BatchRequest:
    symbols: list[str]           # normalised: upper-case, deduplicated, request order
    requested: list[str]         # caller's symbols as given (trimmed, original case)
    region: str
    language: str = "en"

    @property
    def joined(self) -> str:
        return ",".join(self.symbols)

    @classmethod
    def parse(
        cls,
        symbols: str | list[str] | None,
        region: str | None = "US",
        language: str | None = "en",
        max_symbols: int = DEFAULT_MAX_SYMBOLS,
    ) -> Outcome[BatchRequest]:
        if isinstance(symbols, str):
            raw = symbols.split(",")
        else:
            raw = list(symbols or [])
        requested = [s.strip() for s in raw if s and s.strip()]
        if not requested:
            return Outcome.failure(validation_required("symbols"))

        normalized: list[str] = []
        seen: set[str] = set()
        for s in requested:
            upper = s.upper()
            if not SYMBOL_RE.match(upper):
                return Outcome.failure(validation_format("symbols", f"'{s}' is not a valid symbol"))
            if upper not in seen:
                seen.add(upper)
                normalized.append(upper)

        if len(normalized) > max_symbols:
            return Outcome.failure(
                validation_format("symbols", f"at most {max_symbols} symbols per request, got {len(normalized)}")
            )

        if not is_supported_region(region):
            return Outcome.failure(validation_invalid("region", region or ""))

        lang = (language or "en").strip().lower() or "en"
        return Outcome.success(
            cls(symbols=normalized, requested=requested, region=normalize_region(region), language=lang)
        )


@dataclass(frozen=True)
class QuoteBatch:
    """BatchResult for quote requests; quotes follow the request's symbol order."""
    symbols: list[str]
    region: str
    language: str
    quotes: list[QuoteRecord]
    timestamp: datetime
    error_message: str | None = None


@dataclass(frozen=True)
class TrendingResult:
    region: str
    stocks: list[TrendingRecord]
    timestamp: datetime
    count: int = 0
    job_timestamp: int | None = None
    start_interval: int | None = None


# ── Observability records ────────────────────────────────────────────────


@dataclass(frozen=True)
class RequestTelemetry:
    request_id: str
    endpoint: str
    method: str
    symbols: str | None
    region: str
    language: str
    status_code: int
    elapsed_ms: int
    cache_hit: bool
    requested_at: datetime


@dataclass(frozen=True)
class HealthMetric:
    service_name: str
    status: str
    api_key_configured: bool
    api_key_source: str | None = None
    parameter_store_path: str | None = None
    supported_regions: list[str] = field(default_factory=list)
    message: str | None = None
    response_time_ms: int | None = None
