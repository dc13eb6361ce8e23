"""Quote endpoints — every read goes through the cache-first provider."""
import re

from fastapi import APIRouter, Depends, Query

from quotecache.api.v1.errors import ApiError, unwrap
from quotecache.api.v1.models import (
    BulkQuoteRequestBody,
    BulkQuoteResponse,
    CryptoData,
    CryptoResponse,
    CurrencyExchangeResponse,
    MarketIndex,
    MarketSummaryResponse,
    QuoteRequestBody,
    QuoteResponse,
    TrendingResponse,
)
from quotecache.core.data import get_provider
from quotecache.core.data.bulk import SymbolGroup, fetch_bulk
from quotecache.core.data.providers.cached import CachedQuoteProvider, utc_now
from quotecache.core.regions import get_region
from quotecache.core.result import validation_format, validation_required

router = APIRouter(tags=["Quotes"])

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")
MAX_CRYPTO_SYMBOLS = 10


def _currency(value: str, field: str) -> str:
    code = (value or "").strip().upper()
    if not _CURRENCY_RE.match(code):
        raise ApiError(validation_format(field, "expected a 3-letter currency code"))
    return code


@router.get("/quote", response_model=QuoteResponse)
async def get_quote(
    symbols: str | None = Query(None),
    region: str = Query("US"),
    lang: str = Query("en"),
    provider: CachedQuoteProvider = Depends(get_provider),
):
    """Quotes for up to 10 symbols, served from cache where fresh."""
    batch = unwrap(await provider.get_quotes(symbols, region, lang))
    return QuoteResponse.from_batch(batch)


@router.post("/quote", response_model=QuoteResponse)
async def post_quote(body: QuoteRequestBody, provider: CachedQuoteProvider = Depends(get_provider)):
    batch = unwrap(await provider.get_quotes(body.symbols, body.region, body.language, method="POST"))
    return QuoteResponse.from_batch(batch)


@router.get("/trending/{region}", response_model=TrendingResponse)
async def get_trending(region: str, provider: CachedQuoteProvider = Depends(get_provider)):
    """Trending list for a region; the whole list is cached as one unit."""
    result = unwrap(await provider.get_trending(region, endpoint=f"/api/yh/trending/{region.upper()}"))
    return TrendingResponse.from_result(result)


@router.get("/market-summary/{region}", response_model=MarketSummaryResponse)
async def get_market_summary(
    region: str,
    lang: str = Query("en"),
    provider: CachedQuoteProvider = Depends(get_provider),
):
    """Headline indices for the region, quoted through the cache."""
    config = get_region(region)
    batch = unwrap(
        await provider.get_quotes(
            list(config.indices), config.code.value, lang, endpoint="/api/yh/market-summary"
        )
    )
    indices = [
        MarketIndex(
            symbol=q.symbol,
            name=config.indices.get(q.symbol) or q.short_name or q.symbol,
            price=q.regular_market_price,
            change=q.regular_market_change,
            change_percent=q.regular_market_change_percent,
            currency=q.currency or config.currency,
            market_state=q.market_state,
            market_time=q.regular_market_time,
        )
        for q in batch.quotes
    ]
    return MarketSummaryResponse(
        region=batch.region,
        language=batch.language,
        indices=indices,
        sectors=[],
        timestamp=batch.timestamp,
        error_message=batch.error_message,
    )


@router.get("/currency-exchange/{from_currency}/{to_currency}", response_model=CurrencyExchangeResponse)
async def get_currency_exchange(
    from_currency: str,
    to_currency: str,
    provider: CachedQuoteProvider = Depends(get_provider),
):
    """FX rate via the upstream pair symbol, e.g. EURUSD=X."""
    source = _currency(from_currency, "fromCurrency")
    target = _currency(to_currency, "toCurrency")
    symbol = f"{source}{target}=X"

    batch = unwrap(await provider.get_quotes([symbol], "US", "en", endpoint="/api/yh/currency-exchange"))
    quote = batch.quotes[0] if batch.quotes else None
    return CurrencyExchangeResponse(
        from_currency=source,
        to_currency=target,
        symbol=symbol,
        exchange_rate=quote.regular_market_price if quote else None,
        change=quote.regular_market_change if quote else None,
        change_percent=quote.regular_market_change_percent if quote else None,
        last_update=quote.regular_market_time if quote else None,
        timestamp=utc_now(),
        error_message=batch.error_message,
    )


@router.get("/crypto", response_model=CryptoResponse)
async def get_crypto(
    symbols: str | None = Query(None),
    currency: str = Query("USD"),
    provider: CachedQuoteProvider = Depends(get_provider),
):
    """Crypto quotes; bare symbols get the currency pair suffix (BTC -> BTC-USD)."""
    currency = _currency(currency, "currency")
    requested = [s.strip().upper() for s in (symbols or "").split(",") if s.strip()]
    if not requested:
        raise ApiError(validation_required("symbols"))
    if len(requested) > MAX_CRYPTO_SYMBOLS:
        raise ApiError(validation_format("symbols", f"at most {MAX_CRYPTO_SYMBOLS} symbols per request"))

    pairs = [s if "-" in s else f"{s}-{currency}" for s in requested]
    batch = unwrap(await provider.get_quotes(pairs, "US", "en", endpoint="/api/yh/crypto"))
    quotes = [
        CryptoData(
            symbol=q.symbol,
            name=q.short_name or q.symbol,
            price=q.regular_market_price,
            change=q.regular_market_change,
            change_percent=q.regular_market_change_percent,
            currency=q.currency or currency,
            market_cap=q.market_cap,
            volume_24h=q.regular_market_volume,
            high_24h=q.regular_market_day_high,
            low_24h=q.regular_market_day_low,
            market_state=q.market_state,
            last_update=q.regular_market_time,
        )
        for q in batch.quotes
    ]
    return CryptoResponse(
        symbols=requested,
        currency=currency,
        crypto_quotes=quotes,
        timestamp=utc_now(),
        error_message=batch.error_message,
    )


@router.post("/bulk-quotes", response_model=BulkQuoteResponse)
async def post_bulk_quotes(body: BulkQuoteRequestBody, provider: CachedQuoteProvider = Depends(get_provider)):
    """Quotes for several named symbol groups; a failed group never fails the request."""
    if not body.symbol_groups:
        raise ApiError(validation_required("symbolGroups"))
    groups = [SymbolGroup(name=g.group_name, symbols=g.symbols) for g in body.symbol_groups]
    result = await fetch_bulk(provider, groups, body.region, body.language)
    return BulkQuoteResponse.from_result(result)
