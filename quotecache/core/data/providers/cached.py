"""CachedQuoteProvider — wraps any QuoteProvider with a persisted read-through cache.

Quote batches are split per symbol: fresh cache records are served as-is and only
the missing symbols go upstream. Trending lists are cached as one unit per region.
Store and telemetry failures are logged and never change the returned Outcome.
"""
import asyncio
import dataclasses
import time
import uuid
from collections.abc import Awaitable
from datetime import datetime, timezone
from typing import Callable

import structlog

from quotecache.core.data.freshness import FreshnessPolicy
from quotecache.core.data.models import (
    DEFAULT_MAX_SYMBOLS,
    BatchRequest,
    CacheKey,
    CacheRecord,
    DataType,
    QuoteBatch,
    QuoteRecord,
    RequestTelemetry,
    TrendingList,
    TrendingResult,
)
from quotecache.core.data.providers.base import QuoteProvider
from quotecache.core.data.store.base import CacheStore, TelemetrySink
from quotecache.core.regions import normalize_region
from quotecache.core.result import Outcome, status_for, unexpected, validation_format, validation_invalid

logger = structlog.get_logger()

QUOTE_ENDPOINT = "/api/yh/quote"
TRENDING_ENDPOINT = "/api/yh/trending"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _epoch_to_utc(ts: int | None) -> datetime | None:
    if ts is None:
        return None
    if ts > 100_000_000_000:   # upstream job timestamps are sometimes in milliseconds
        ts //= 1000
    try:
        return datetime.fromtimestamp(ts, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


class CachedQuoteProvider(QuoteProvider):
    """Decorator that checks the CacheStore before hitting the upstream provider."""

    def __init__(
        self,
        upstream: QuoteProvider,
        store: CacheStore,
        telemetry: TelemetrySink,
        policy: FreshnessPolicy | None = None,
        clock: Callable[[], datetime] = utc_now,
        max_symbols: int = DEFAULT_MAX_SYMBOLS,
        trending_limit: int = 50,
    ):
        self._upstream = upstream
        self._store = store
        self._telemetry = telemetry
        self._policy = policy or FreshnessPolicy()
        self._clock = clock
        self._max_symbols = max_symbols
        self._trending_limit = trending_limit

    @property
    def name(self) -> str:
        return f"cached_{self._upstream.name}"

    @property
    def supported_regions(self) -> list[str]:
        return self._upstream.supported_regions

    # ── Quote batches ────────────────────────────────────────────────────

    async def get_quotes(
        self,
        symbols: str | list[str] | None,
        region: str | None = "US",
        language: str | None = "en",
        *,
        endpoint: str = QUOTE_ENDPOINT,
        method: str = "GET",
    ) -> Outcome[QuoteBatch]:
        """Validate raw input, then resolve the batch through the cache."""
        parsed = BatchRequest.parse(symbols, region, language, self._max_symbols)
        if parsed.is_failure:
            raw = symbols if isinstance(symbols, str) else ",".join(symbols or [])
            await self._record(
                endpoint, method, raw or None, normalize_region(region), language or "en",
                parsed, time.perf_counter(), self._clock(), cache_hit=False,
            )
            return parsed
        return await self._quotes(parsed.value, endpoint, method)

    async def fetch_quotes(self, request: BatchRequest) -> Outcome[QuoteBatch]:
        return await self._quotes(request, QUOTE_ENDPOINT, "GET")

    async def _quotes(self, request: BatchRequest, endpoint: str, method: str) -> Outcome[QuoteBatch]:
        started, requested_at = time.perf_counter(), self._clock()
        if not request.symbols or len(request.symbols) > self._max_symbols:
            outcome = Outcome.failure(
                validation_format("symbols", f"between 1 and {self._max_symbols} symbols per request")
            )
            cache_hit = False
        else:
            outcome, cache_hit = await self._guarded(self._resolve_quotes(request), "quotes", region=request.region)
        await self._record(
            endpoint, method, ",".join(request.requested), request.region, request.language,
            outcome, started, requested_at, cache_hit,
        )
        return outcome

    async def _resolve_quotes(self, request: BatchRequest) -> tuple[Outcome[QuoteBatch], bool]:
        now = self._clock()
        keys = [CacheKey(region=request.region, symbol=s) for s in request.symbols]
        hits = await asyncio.gather(*(self._read_fresh(k, DataType.QUOTE, now) for k in keys))

        cached: dict[str, QuoteRecord] = {}
        to_fetch: list[str] = []
        for symbol, record in zip(request.symbols, hits):
            if record is not None:
                cached[symbol] = record.payload
                logger.debug("cache.hit", symbol=symbol, region=request.region)
            else:
                to_fetch.append(symbol)
                logger.debug("cache.miss", symbol=symbol, region=request.region)

        if not to_fetch:
            logger.info("quotes.served", cached=len(cached), fetched=0, region=request.region)
            batch = QuoteBatch(
                symbols=list(request.requested),
                region=request.region,
                language=request.language,
                quotes=[cached[s] for s in request.symbols],
                timestamp=self._clock(),
            )
            return Outcome.success(batch), True

        # Upstream sees only the symbols the cache could not serve
        remaining = dataclasses.replace(request, symbols=to_fetch, requested=to_fetch)
        result = await self._upstream.fetch_quotes(remaining)
        if result.is_failure:
            logger.warning(
                "upstream.failed", symbols=",".join(to_fetch), region=request.region,
                code=result.error.code, error=result.error.message,
            )
            return result, False

        fetched = result.value.quotes
        await self._store_quotes(fetched, request.region)

        merged = dict(cached)
        for quote in fetched:
            merged.setdefault(quote.symbol, quote)
        wanted = set(request.symbols)
        ordered = [merged[s] for s in request.symbols if s in merged]
        extras: dict[str, QuoteRecord] = {}
        for quote in fetched:
            if quote.symbol not in wanted:
                extras.setdefault(quote.symbol, quote)
        ordered.extend(extras.values())

        logger.info("quotes.served", cached=len(cached), fetched=len(to_fetch), region=request.region)
        batch = QuoteBatch(
            symbols=list(request.requested),
            region=request.region,
            language=request.language,
            quotes=ordered,
            timestamp=self._clock(),
            error_message=result.value.error_message,
        )
        return Outcome.success(batch), False

    async def _store_quotes(self, quotes: list[QuoteRecord], region: str) -> None:
        now = self._clock()
        valid_until = self._policy.valid_until(DataType.QUOTE, now)
        # One write per quote; a failed write must not stop the ones after it
        for quote in quotes:
            record = CacheRecord(
                key=CacheKey(region=region, symbol=quote.symbol),
                datatype=DataType.QUOTE,
                payload=quote,
                valid_until=valid_until,
                observed_at=_epoch_to_utc(quote.regular_market_time) or now,
                created_at=now,
                updated_at=now,
            )
            if await self._best_effort(self._store.put(record), "cache.write_failed", symbol=quote.symbol, region=region):
                logger.debug("cache.stored", symbol=quote.symbol, region=region)

    # ── Trending (whole list is one cache unit per region) ───────────────

    async def get_trending(
        self,
        region: str | None,
        *,
        endpoint: str = TRENDING_ENDPOINT,
        method: str = "GET",
    ) -> Outcome[TrendingResult]:
        started, requested_at = time.perf_counter(), self._clock()
        code = normalize_region(region)
        if not self.is_valid_region(code):
            outcome: Outcome[TrendingResult] = Outcome.failure(validation_invalid("region", region or ""))
            cache_hit = False
        else:
            outcome, cache_hit = await self._guarded(self._resolve_trending(code), "trending", region=code)
        await self._record(endpoint, method, None, code, "en", outcome, started, requested_at, cache_hit)
        return outcome

    async def fetch_trending(self, region: str) -> Outcome[TrendingList]:
        result = await self.get_trending(region)
        return result.map(
            lambda r: TrendingList(
                region=r.region,
                records=list(r.stocks),
                count=r.count,
                job_timestamp=r.job_timestamp,
                start_interval=r.start_interval,
            )
        )

    async def _resolve_trending(self, region: str) -> tuple[Outcome[TrendingResult], bool]:
        now = self._clock()
        cached = await self._read_fresh_region(region, DataType.TRENDING, now)
        if cached:
            logger.info("cache.hit", datatype="trending", region=region, count=len(cached))
            head = cached[0]
            result = TrendingResult(
                region=region,
                stocks=[r.payload for r in cached],
                timestamp=self._clock(),
                count=head.list_count or len(cached),
                job_timestamp=int(head.observed_at.timestamp()) if head.observed_at else None,
                start_interval=head.start_interval,
            )
            return Outcome.success(result), True

        logger.info("cache.miss", datatype="trending", region=region)
        fetched = await self._upstream.fetch_trending(region)
        if fetched.is_failure:
            logger.warning("upstream.failed", datatype="trending", region=region, code=fetched.error.code)
            return Outcome.failure(fetched.error), False

        trending = fetched.value
        if trending.records:
            await self._store_trending(trending, region)

        result = TrendingResult(
            region=region,
            stocks=list(trending.records),
            timestamp=self._clock(),
            count=trending.count,
            job_timestamp=trending.job_timestamp,
            start_interval=trending.start_interval,
        )
        return Outcome.success(result), False

    async def _store_trending(self, trending: TrendingList, region: str) -> None:
        now = self._clock()
        valid_until = self._policy.valid_until(DataType.TRENDING, now)
        observed = _epoch_to_utc(trending.job_timestamp) or now
        records = [
            CacheRecord(
                key=CacheKey(region=region),
                datatype=DataType.TRENDING,
                payload=stock,
                valid_until=valid_until,
                observed_at=observed,
                created_at=now,
                updated_at=now,
                list_count=trending.count,
                start_interval=trending.start_interval,
            )
            for stock in trending.records
        ]
        if await self._best_effort(self._store.put_many(records), "cache.write_failed", datatype="trending", region=region):
            logger.info("cache.stored", datatype="trending", region=region, count=len(records))

    # ── Best-effort plumbing ─────────────────────────────────────────────

    async def _guarded(self, op: Awaitable[tuple[Outcome, bool]], datatype: str, **context) -> tuple[Outcome, bool]:
        """Turn an exception escaping the upstream or a collaborator into a failed Outcome."""
        try:
            return await op
        except Exception as e:
            logger.exception("request.unexpected_error", datatype=datatype, **context)
            return Outcome.failure(unexpected(e)), False

    async def _read_fresh(self, key: CacheKey, datatype: DataType, now: datetime) -> CacheRecord | None:
        """Store read; any failure counts as a miss."""
        try:
            outcome = await self._store.get_fresh(key, datatype, now)
        except Exception:
            logger.exception("cache.read_failed", symbol=key.symbol, region=key.region)
            return None
        if outcome.is_failure:
            logger.warning("cache.read_failed", symbol=key.symbol, region=key.region, error=str(outcome.error))
            return None
        record = outcome.value
        return record if record is not None and self._policy.is_fresh(record, now) else None

    async def _read_fresh_region(self, region: str, datatype: DataType, now: datetime) -> list[CacheRecord]:
        try:
            outcome = await self._store.get_fresh_for_region(region, datatype, now, self._trending_limit)
        except Exception:
            logger.exception("cache.read_failed", datatype=datatype.value, region=region)
            return []
        if outcome.is_failure:
            logger.warning("cache.read_failed", datatype=datatype.value, region=region, error=str(outcome.error))
            return []
        return [r for r in outcome.value if self._policy.is_fresh(r, now)]

    async def _best_effort(self, op: Awaitable[Outcome], event: str, **context) -> bool:
        """Await a write whose failure must never reach the caller. Returns True on success."""
        try:
            outcome = await op
        except Exception:
            logger.exception(event, **context)
            return False
        if outcome.is_failure:
            logger.warning(event, error=str(outcome.error), **context)
            return False
        return True

    async def _record(
        self,
        endpoint: str,
        method: str,
        symbols: str | None,
        region: str,
        language: str,
        outcome: Outcome,
        started: float,
        requested_at: datetime,
        cache_hit: bool,
    ) -> None:
        try:
            telemetry = RequestTelemetry(
                request_id=str(uuid.uuid4()),
                endpoint=endpoint,
                method=method,
                symbols=symbols,
                region=region,
                language=language,
                status_code=status_for(outcome.error),
                elapsed_ms=int((time.perf_counter() - started) * 1000),
                cache_hit=cache_hit,
                requested_at=requested_at,
            )
        except Exception:
            logger.exception("telemetry.failed", endpoint=endpoint)
            return
        await self._best_effort(self._telemetry.record_request(telemetry), "telemetry.failed", endpoint=endpoint)
