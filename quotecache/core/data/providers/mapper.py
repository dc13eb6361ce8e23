"""
Normalise yfapi.net JSON into domain records.

Quote endpoint shape:
  {"quoteResponse": {"result": [{"symbol": "AAPL", "regularMarketPrice": 189.9, ...}], "error": null}}
Trending endpoint shape:
  {"finance": {"result": [{"count": 20, "jobTimestamp": ..., "startInterval": ..., "quotes": [{"symbol": ...}]}]}}

Entries without a symbol are skipped; a value of the wrong JSON type is treated as absent.
"""
from datetime import datetime, timezone
from typing import Any

from quotecache.core.data.models import BatchRequest, QuoteBatch, QuoteRecord, TrendingList, TrendingRecord
from quotecache.core.result import Outcome, parse_error

# upstream camelCase key -> QuoteRecord attribute
_QUOTE_FLOATS = {
    "regularMarketPrice": "regular_market_price",
    "regularMarketChange": "regular_market_change",
    "regularMarketChangePercent": "regular_market_change_percent",
    "regularMarketDayHigh": "regular_market_day_high",
    "regularMarketDayLow": "regular_market_day_low",
    "regularMarketPreviousClose": "regular_market_previous_close",
    "bookValue": "book_value",
    "priceToBook": "price_to_book",
    "fiftyTwoWeekLow": "fifty_two_week_low",
    "fiftyTwoWeekHigh": "fifty_two_week_high",
    "fiftyDayAverage": "fifty_day_average",
    "twoHundredDayAverage": "two_hundred_day_average",
    "trailingPE": "trailing_pe",
    "forwardPE": "forward_pe",
    "dividendYield": "dividend_yield",
    "trailingAnnualDividendYield": "trailing_annual_dividend_yield",
    "beta": "beta",
}
_QUOTE_INTS = {
    "regularMarketTime": "regular_market_time",
    "regularMarketVolume": "regular_market_volume",
    "marketCap": "market_cap",
    "sharesOutstanding": "shares_outstanding",
}
_QUOTE_STRINGS = {
    "currency": "currency",
    "marketState": "market_state",
    "shortName": "short_name",
    "longName": "long_name",
    "exchange": "exchange",
    "exchangeTimezoneName": "exchange_timezone_name",
    "exchangeTimezoneShortName": "exchange_timezone_short_name",
    "quoteType": "quote_type",
}
_TRENDING_FLOATS = {
    "regularMarketPrice": "regular_market_price",
    "regularMarketChange": "regular_market_change",
    "regularMarketChangePercent": "regular_market_change_percent",
}
_TRENDING_STRINGS = {
    "shortName": "short_name",
    "longName": "long_name",
    "currency": "currency",
    "marketState": "market_state",
    "exchange": "exchange",
    "quoteType": "quote_type",
}


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _integer(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _string(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _symbol(element: Any) -> str | None:
    if not isinstance(element, dict):
        return None
    symbol = _string(element.get("symbol"))
    return symbol.strip().upper() if symbol and symbol.strip() else None


def map_quote(element: dict) -> QuoteRecord | None:
    symbol = _symbol(element)
    if symbol is None:
        return None
    values: dict[str, Any] = {"symbol": symbol}
    values.update({attr: _number(element.get(key)) for key, attr in _QUOTE_FLOATS.items()})
    values.update({attr: _integer(element.get(key)) for key, attr in _QUOTE_INTS.items()})
    values.update({attr: _string(element.get(key)) for key, attr in _QUOTE_STRINGS.items()})
    return QuoteRecord(**values)


def map_trending_stock(element: dict) -> TrendingRecord | None:
    symbol = _symbol(element)
    if symbol is None:
        return None
    values: dict[str, Any] = {"symbol": symbol}
    values.update({attr: _number(element.get(key)) for key, attr in _TRENDING_FLOATS.items()})
    values.update({attr: _string(element.get(key)) for key, attr in _TRENDING_STRINGS.items()})
    return TrendingRecord(**values)


def map_quote_response(doc: Any, request: BatchRequest) -> Outcome[QuoteBatch]:
    if not isinstance(doc, dict) or not isinstance(doc.get("quoteResponse"), dict):
        return Outcome.failure(parse_error("quote response: missing quoteResponse"))
    envelope = doc["quoteResponse"]

    results = envelope.get("result")
    quotes = []
    if isinstance(results, list):
        quotes = [q for q in (map_quote(e) for e in results) if q is not None]

    error = envelope.get("error")
    if isinstance(error, dict):
        error = error.get("description") or error.get("code")
    if error is not None:
        error = str(error)

    return Outcome.success(
        QuoteBatch(
            symbols=list(request.requested),
            region=request.region,
            language=request.language,
            quotes=quotes,
            timestamp=datetime.now(timezone.utc),
            error_message=error,
        )
    )


def map_trending_response(doc: Any, region: str) -> Outcome[TrendingList]:
    if not isinstance(doc, dict) or not isinstance(doc.get("finance"), dict):
        return Outcome.failure(parse_error("trending response: missing finance"))

    stocks: list[TrendingRecord] = []
    count = 0
    job_timestamp = None
    start_interval = None

    results = doc["finance"].get("result")
    for block in results if isinstance(results, list) else []:
        if not isinstance(block, dict):
            continue
        count = _integer(block.get("count")) or count
        job_timestamp = _integer(block.get("jobTimestamp")) or job_timestamp
        start_interval = _integer(block.get("startInterval")) or start_interval
        quotes = block.get("quotes")
        if isinstance(quotes, list):
            stocks.extend(s for s in (map_trending_stock(e) for e in quotes) if s is not None)

    return Outcome.success(
        TrendingList(
            region=region.upper(),
            records=stocks,
            count=count or len(stocks),
            job_timestamp=job_timestamp,
            start_interval=start_interval,
        )
    )
