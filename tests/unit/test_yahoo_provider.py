"""YahooFinanceProvider against a stubbed aiohttp session."""
import asyncio
import json

import aiohttp
import pytest

from quotecache.core.data.models import BatchRequest
from quotecache.core.data.providers.yahoo import YahooFinanceProvider
from quotecache.core.result import ErrorKind
from quotecache.core.secrets import ApiKeyResolver

QUOTE_BODY = json.dumps({
    "quoteResponse": {"result": [{"symbol": "AAPL", "regularMarketPrice": 190.1}], "error": None}
})
TRENDING_BODY = json.dumps({
    "finance": {"result": [{"count": 2, "quotes": [{"symbol": "NVDA"}, {"symbol": "TSLA"}]}]}
})


class FakeResponse:

    def __init__(self, status: int, body: str | bytes):
        self.status = status
        self._body = body

    async def read(self) -> bytes:
        return self._body if isinstance(self._body, bytes) else self._body.encode("utf-8")

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    """Stands in for aiohttp.ClientSession; also acts as its own factory."""

    def __init__(self, status: int = 200, body: str | bytes = QUOTE_BODY, exc: Exception | None = None):
        self.status = status
        self.body = body
        self.exc = exc
        self.calls: list[tuple[str, dict, dict]] = []
        self.opened = 0

    def __call__(self, **kwargs):
        self.opened += 1
        return self

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def get(self, url, params=None, headers=None):
        self.calls.append((url, params, headers))
        if self.exc is not None:
            raise self.exc
        return FakeResponse(self.status, self.body)


def _provider(session: FakeSession, key: str = "test-key") -> YahooFinanceProvider:
    return YahooFinanceProvider(ApiKeyResolver("/WebApiProject/YfApi/ApiKey", fallback_key=key),
                                session_factory=session)


REQUEST = BatchRequest.parse("AAPL,MSFT", region="US", language="en").unwrap()


class TestYahooFinanceProvider:

    @pytest.mark.asyncio
    async def test_quote_request_shape(self):
        session = FakeSession()
        outcome = await _provider(session).fetch_quotes(REQUEST)

        assert outcome.is_success
        assert outcome.value.quotes[0].symbol == "AAPL"
        url, params, headers = session.calls[0]
        assert url == "https://yfapi.net/v6/finance/quote"
        assert params == {"symbols": "AAPL,MSFT", "region": "US", "lang": "en"}
        assert headers["X-API-KEY"] == "test-key"

    @pytest.mark.asyncio
    async def test_trending_path(self):
        session = FakeSession(body=TRENDING_BODY)
        outcome = await _provider(session).fetch_trending("gb")

        assert [r.symbol for r in outcome.value.records] == ["NVDA", "TSLA"]
        assert session.calls[0][0] == "https://yfapi.net/v1/finance/trending/GB"

    @pytest.mark.asyncio
    async def test_key_travels_per_request(self):
        session = FakeSession()
        await asyncio.gather(
            _provider(session, key="key-one").fetch_quotes(REQUEST),
            _provider(session, key="key-two").fetch_quotes(REQUEST),
        )
        assert sorted(h["X-API-KEY"] for _, _, h in session.calls) == ["key-one", "key-two"]
        assert session.opened == 2

    @pytest.mark.asyncio
    async def test_non_2xx_is_request_failed(self):
        outcome = await _provider(FakeSession(status=429, body="slow down")).fetch_quotes(REQUEST)
        assert outcome.error.kind == ErrorKind.UPSTREAM_REQUEST_FAILED
        assert outcome.error.status_code == 429

    @pytest.mark.asyncio
    async def test_timeout(self):
        outcome = await _provider(FakeSession(exc=asyncio.TimeoutError())).fetch_quotes(REQUEST)
        assert outcome.error.kind == ErrorKind.TIMEOUT

    @pytest.mark.asyncio
    async def test_connection_error(self):
        outcome = await _provider(FakeSession(exc=aiohttp.ClientConnectionError())).fetch_quotes(REQUEST)
        assert outcome.error.kind == ErrorKind.CONNECTION_FAILED

    @pytest.mark.asyncio
    async def test_bad_json_is_parse_error(self):
        outcome = await _provider(FakeSession(body="<html>")).fetch_quotes(REQUEST)
        assert outcome.error.kind == ErrorKind.PARSE

    @pytest.mark.asyncio
    async def test_undecodable_body_is_parse_error(self):
        body = b'{"quoteResponse": {"result": [{"symbol": "\xff\xfe"}]}}'
        outcome = await _provider(FakeSession(body=body)).fetch_quotes(REQUEST)
        assert outcome.error.kind == ErrorKind.PARSE

    @pytest.mark.asyncio
    async def test_missing_envelope_is_parse_error(self):
        outcome = await _provider(FakeSession(body="{}")).fetch_quotes(REQUEST)
        assert outcome.error.kind == ErrorKind.PARSE

    @pytest.mark.asyncio
    async def test_missing_key_never_calls_upstream(self):
        session = FakeSession()
        outcome = await _provider(session, key="").fetch_quotes(REQUEST)

        assert outcome.error.kind == ErrorKind.CONFIGURATION
        assert session.calls == []

    @pytest.mark.asyncio
    async def test_invalid_region(self):
        session = FakeSession()
        outcome = await _provider(session).fetch_trending("XX")
        assert outcome.error.kind == ErrorKind.VALIDATION
        assert session.calls == []

    def test_identity(self):
        provider = _provider(FakeSession())
        assert provider.name == "yahoo"
        assert "IN" in provider.supported_regions
