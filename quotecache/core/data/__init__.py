"""Data layer — cache-first quote access.

ALL quote and trending reads go through get_provider(), which returns a
CachedQuoteProvider wrapping the yfapi.net client. The SQL cache is checked
first; only symbols without a fresh record are sent upstream.
"""

from quotecache.core.config import settings
from quotecache.core.data.freshness import FreshnessPolicy
from quotecache.core.data.providers.cached import CachedQuoteProvider
from quotecache.core.data.providers.yahoo import YahooFinanceProvider
from quotecache.core.data.store.base import TelemetrySink
from quotecache.core.data.store.db import create_engine, create_session_factory
from quotecache.core.data.store.sql import SqlCacheStore, SqlTelemetrySink
from quotecache.core.secrets import ApiKeyResolver, ParameterStore

# Process-wide singletons
_engine = create_engine(settings.database_url)
_sessions = create_session_factory(_engine)
_store = SqlCacheStore(_sessions)
_telemetry = SqlTelemetrySink(_sessions)
_keys = ApiKeyResolver(
    settings.yf_api_key_parameter,
    fallback_key=settings.yf_api_key,
    parameter_store=ParameterStore(settings.aws_region) if settings.use_parameter_store else None,
)
_yahoo = YahooFinanceProvider(
    _keys,
    base_url=settings.yf_api_base_url,
    timeout_seconds=settings.upstream_timeout_seconds,
    rate_per_minute=settings.upstream_rate_per_minute,
)
_default_provider = CachedQuoteProvider(
    _yahoo,
    _store,
    _telemetry,
    policy=FreshnessPolicy.from_minutes(settings.quote_ttl_minutes, settings.trending_ttl_minutes),
    max_symbols=settings.max_batch_symbols,
    trending_limit=settings.trending_limit,
)


def get_provider() -> CachedQuoteProvider:
    """Return the default cache-first quote provider."""
    return _default_provider


def get_telemetry() -> TelemetrySink:
    return _telemetry


def get_key_resolver() -> ApiKeyResolver:
    return _keys


def get_engine():
    return _engine
