"""yfapi.net provider — direct upstream access, no caching."""
import asyncio
import json
from typing import Any, Callable

import aiohttp
import structlog
from aiolimiter import AsyncLimiter

from quotecache.core.data.models import BatchRequest, QuoteBatch, TrendingList
from quotecache.core.data.providers.base import QuoteProvider
from quotecache.core.data.providers.mapper import map_quote_response, map_trending_response
from quotecache.core.regions import normalize_region, supported_regions
from quotecache.core.result import (
    Outcome,
    connection_failed,
    parse_error,
    request_failed,
    timeout,
    validation_invalid,
)
from quotecache.core.secrets import ApiKeyResolver

logger = structlog.get_logger()

YF_BASE = "https://yfapi.net"
QUOTE_PATH = "/v6/finance/quote"
TRENDING_PATH = "/v1/finance/trending/{region}"


class YahooFinanceProvider(QuoteProvider):

    def __init__(
        self,
        keys: ApiKeyResolver,
        base_url: str = YF_BASE,
        timeout_seconds: float = 10.0,
        rate_per_minute: int = 100,
        session_factory: Callable[..., aiohttp.ClientSession] = aiohttp.ClientSession,
    ):
        self._keys = keys
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._limiter = AsyncLimiter(rate_per_minute, 60)
        self._session_factory = session_factory

    @property
    def name(self) -> str:
        return "yahoo"

    @property
    def supported_regions(self) -> list[str]:
        return supported_regions()

    async def fetch_quotes(self, request: BatchRequest) -> Outcome[QuoteBatch]:
        if not self.is_valid_region(request.region):
            return Outcome.failure(validation_invalid("region", request.region))

        logger.info("upstream.request", endpoint="quote", symbols=request.joined, region=request.region)
        doc = await self._get_json(
            QUOTE_PATH,
            {"symbols": request.joined, "region": request.region, "lang": request.language},
        )
        return doc.bind(lambda d: map_quote_response(d, request))

    async def fetch_trending(self, region: str) -> Outcome[TrendingList]:
        region = normalize_region(region)
        if not self.is_valid_region(region):
            return Outcome.failure(validation_invalid("region", region))

        logger.info("upstream.request", endpoint="trending", region=region)
        doc = await self._get_json(TRENDING_PATH.format(region=region), {})
        return doc.bind(lambda d: map_trending_response(d, region))

    async def _get_json(self, path: str, params: dict[str, str]) -> Outcome[Any]:
        key = await self._keys.resolve()
        if key.is_failure:
            return Outcome.failure(key.error)

        # Credentials travel with this request only; the session is never shared
        headers = {"X-API-KEY": key.value.value, "Accept": "application/json"}
        url = f"{self._base_url}{path}"
        try:
            async with self._limiter:
                async with self._session_factory(timeout=self._timeout) as session:
                    async with session.get(url, params=params, headers=headers) as resp:
                        if not 200 <= resp.status < 300:
                            logger.warning("upstream.failed", path=path, status=resp.status)
                            return Outcome.failure(request_failed(resp.status))
                        raw = await resp.read()
        except asyncio.TimeoutError:
            logger.error("upstream.timeout", path=path)
            return Outcome.failure(timeout())
        except aiohttp.ClientError as e:
            logger.error("upstream.connection_failed", path=path, error=str(e))
            return Outcome.failure(connection_failed(type(e).__name__))

        try:
            return Outcome.success(json.loads(raw.decode("utf-8")))
        except (UnicodeDecodeError, ValueError):
            logger.error("upstream.bad_json", path=path)
            return Outcome.failure(parse_error("JSON response"))
