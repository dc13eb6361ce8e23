"""Service endpoints — health (with API key source) and the static capability catalogue."""
import time

import structlog
from fastapi import APIRouter, Depends

from quotecache.api.v1.models import ApiEndpoint, CapabilitiesResponse, HealthResponse, RateLimit
from quotecache.core.data import get_key_resolver, get_telemetry
from quotecache.core.data.models import HealthMetric
from quotecache.core.data.providers.cached import utc_now
from quotecache.core.data.store.base import TelemetrySink
from quotecache.core.regions import SUPPORTED_ASSET_TYPES, SUPPORTED_LANGUAGES, supported_regions
from quotecache.core.secrets import ApiKeyResolver

logger = structlog.get_logger()

router = APIRouter(tags=["System"])

SERVICE_NAME = "YH Controller"
API_VERSION = "1.0.0"

ENDPOINTS = [
    ApiEndpoint(
        path="/api/yh/quote",
        method="GET",
        description="Get real-time stock quotes",
        parameters=["symbols", "region", "lang"],
        examples=["/api/yh/quote?symbols=AAPL,GOOGL&region=US&lang=en"],
    ),
    ApiEndpoint(
        path="/api/yh/quote",
        method="POST",
        description="Get real-time stock quotes via JSON payload",
        parameters=["QuoteRequest body"],
        examples=['POST with { "symbols": "AAPL,GOOGL", "region": "US" }'],
    ),
    ApiEndpoint(
        path="/api/yh/trending/{region}",
        method="GET",
        description="Get trending stocks for a region",
        parameters=["region"],
        examples=["/api/yh/trending/US"],
    ),
    ApiEndpoint(
        path="/api/yh/market-summary/{region}",
        method="GET",
        description="Get market summary for a region",
        parameters=["region", "lang"],
        examples=["/api/yh/market-summary/US?lang=en"],
    ),
    ApiEndpoint(
        path="/api/yh/currency-exchange/{fromCurrency}/{toCurrency}",
        method="GET",
        description="Get currency exchange rates",
        parameters=["fromCurrency", "toCurrency"],
        examples=["/api/yh/currency-exchange/USD/EUR"],
    ),
    ApiEndpoint(
        path="/api/yh/crypto",
        method="GET",
        description="Get cryptocurrency quotes",
        parameters=["symbols", "currency"],
        examples=["/api/yh/crypto?symbols=BTC,ETH&currency=USD"],
    ),
    ApiEndpoint(
        path="/api/yh/bulk-quotes",
        method="POST",
        description="Process bulk quote requests",
        parameters=["BulkQuoteRequest body"],
        examples=["POST with grouped symbol requests"],
    ),
]

RATE_LIMITS = RateLimit(requests_per_minute=100, requests_per_hour=2000, requests_per_day=10000, burst_limit=10)


def _endpoint_lines() -> list[str]:
    lines = [f"{e.method} {e.path}" for e in ENDPOINTS]
    return lines + ["GET /api/yh/capabilities", "GET /api/yh/health"]


@router.get("/health", response_model=HealthResponse)
async def health(
    keys: ApiKeyResolver = Depends(get_key_resolver),
    telemetry: TelemetrySink = Depends(get_telemetry),
):
    """Service status and where the upstream API key is coming from."""
    started = time.perf_counter()
    key = await keys.resolve()
    configured = key.is_success
    source = key.value.source if configured else "Not configured"
    status = "Healthy" if configured else "Degraded"
    message = "YH Finance API integration is ready" if configured else key.error.message
    regions = supported_regions()

    metric = HealthMetric(
        service_name=SERVICE_NAME,
        status=status,
        api_key_configured=configured,
        api_key_source=source,
        parameter_store_path=keys.parameter_name,
        supported_regions=regions,
        message=message,
        response_time_ms=int((time.perf_counter() - started) * 1000),
    )
    try:
        recorded = await telemetry.record_health(metric)
        if recorded.is_failure:
            logger.warning("telemetry.failed", metric="health", error=str(recorded.error))
    except Exception:
        logger.exception("telemetry.failed", metric="health")

    return HealthResponse(
        service=SERVICE_NAME,
        status=status,
        api_key_configured=configured,
        api_key_source=source,
        parameter_store_path=keys.parameter_name,
        supported_regions=regions,
        timestamp=utc_now(),
        message=message,
        available_endpoints=_endpoint_lines(),
    )


@router.get("/capabilities", response_model=CapabilitiesResponse)
async def capabilities():
    return CapabilitiesResponse(
        available_endpoints=ENDPOINTS,
        supported_regions=supported_regions(),
        supported_languages=SUPPORTED_LANGUAGES,
        supported_asset_types=SUPPORTED_ASSET_TYPES,
        rate_limits=RATE_LIMITS,
        timestamp=utc_now(),
        api_version=API_VERSION,
    )
